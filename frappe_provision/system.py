# imports - standard imports
import re

# imports - module imports
from frappe_provision.exceptions import CommandFailedError
from frappe_provision.utils import (
	ensure_local_bin_in_path,
	exec_cmd,
	get_cmd_output,
	log,
	sudo,
	which,
)
from frappe_provision.utils.render import job, step

system_packages = (
	"python3-dev",
	"python3.12-venv",
	"python3-pip",
	"redis-server",
	"software-properties-common",
	"mariadb-server",
	"mariadb-client",
	"xvfb",
	"libfontconfig",
	"wkhtmltopdf",
	"curl",
	"git",
	"build-essential",
	"nodejs",
	"jq",
)


@job(title="Installing system packages", success="System packages installed")
def install_packages(packages=system_packages):
	if not which("apt"):
		raise CommandFailedError("apt not found, only Debian/Ubuntu hosts are supported")

	exec_cmd(sudo("apt update -y"))
	exec_cmd(sudo(f"apt install -y {' '.join(packages)}"))
	install_yarn()


@step(title="Installing yarn", success="yarn installed")
def install_yarn():
	if which("yarn"):
		return

	if exec_cmd(sudo("npm install -g yarn"), _raise=False):
		log("Could not install yarn, node dependencies of apps may fail to build", level=3)


def install_pipx():
	"""Try apt first, then a user-level pip install"""
	exec_cmd(sudo("apt install -y pipx"), _raise=False)
	if not which("pipx"):
		exec_cmd("python3 -m pip install --user pipx", _raise=False)
		exec_cmd("python3 -m pipx ensurepath", _raise=False)
	ensure_local_bin_in_path()


@job(title="Installing bench CLI", success="bench CLI available")
def ensure_bench_cli() -> str:
	ensure_local_bin_in_path()

	if which("bench"):
		return which("bench")

	if not which("pipx"):
		install_pipx()

	installed = False
	if which("pipx"):
		installed = not exec_cmd("pipx install frappe-bench --force", _raise=False)

	if not installed:
		exec_cmd("python3 -m pip install --user frappe-bench")

	ensure_local_bin_in_path()
	return which("bench", raise_err=True)


VERSION_PATTERN = r"(\d+\.\d+(?:\.\d+)?)"

minimum_versions = {
	"node": ("node --version", "18.0", VERSION_PATTERN),
	"redis-server": ("redis-server --version", "6.0", VERSION_PATTERN),
	# `mariadb --version` leads with the client version
	"mariadb": ("mariadb --version", "10.6", r"(?:Distrib|from) " + VERSION_PATTERN),
}


def get_tool_version(cmd: str, pattern: str = VERSION_PATTERN):
	"""Version reported by `cmd`, as a semantic_version.Version, None if unknown"""
	import semantic_version

	output = get_cmd_output(cmd, _raise=False)
	version = re.findall(pattern, output or "")
	if not version:
		return None

	return semantic_version.Version.coerce(version[0])


@step(title="Checking tool versions", success="Tool versions checked")
def check_versions() -> dict:
	"""Warn about tools older than what Frappe v15 needs. Returns {tool: version}"""
	import semantic_version

	found = {}
	for tool, (cmd, minimum, pattern) in minimum_versions.items():
		if not which(tool):
			log(f"{tool} not found in PATH", level=3)
			continue

		version = get_tool_version(cmd, pattern)
		found[tool] = version

		if version is None:
			log(f"Could not determine {tool} version", level=3)
		elif version < semantic_version.Version.coerce(minimum):
			log(f"{tool} {version} is older than the required {minimum}", level=3)

	return found
