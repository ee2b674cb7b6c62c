# imports - standard imports
import os
import sys
from contextlib import contextmanager
from logging import Logger

# imports - third party imports
import click

# imports - module imports
import frappe_provision
from frappe_provision.commands import provision_command
from frappe_provision.exceptions import ConfigError
from frappe_provision.utils import is_root, log, setup_logging

# these variables are used to show dynamic outputs on the terminal
dynamic_feed = False
verbose = False
from_command_line = False  # set when commands are executed via the CLI
frappe_provision.LOG_BUFFER = []

change_uid_msg = "You should not run this command as root"
root_commands = ("packages", "mariadb", "free-ports")


@contextmanager
def execute_cmd(command: str = None, logger: Logger = None):
	try:
		yield
	except BaseException as e:
		return_code = getattr(e, "code", 1)

		if isinstance(e, Exception):
			click.secho(f"ERROR: {e}", fg="red")

		if return_code:
			logger.warning(f"{command} executed with exit code {return_code}")

		if isinstance(e, Exception) and not verbose:
			sys.exit(1)

		raise e


def cli():
	global from_command_line, verbose

	from_command_line = True
	command = " ".join(sys.argv)
	argv = set(sys.argv)

	if argv.intersection({"-v", "--verbose"}):
		verbose = True

	set_config_path_from_sysargv()
	logger = setup_logging(get_log_path())
	logger.info(command)

	if len(sys.argv) > 1 and not argv.intersection({"--help", "--version"}):
		check_uid()

	with execute_cmd(command=command, logger=logger):
		provision_command()


def get_cmd_from_sysargv():
	"""First token that isn't an option (or an option's value)"""
	skip_next = False
	for arg in sys.argv[1:]:
		if skip_next:
			skip_next = False
			continue
		if arg in ("--config", "--use-feature"):
			skip_next = True
			continue
		if arg.startswith("-"):
			continue
		return arg


def check_uid():
	if is_root() and get_cmd_from_sysargv() not in root_commands:
		log(change_uid_msg, level=3)
		sys.exit(1)


def set_config_path_from_sysargv():
	for idx, arg in enumerate(sys.argv):
		if arg == "--config" and idx + 1 < len(sys.argv):
			frappe_provision.config_path = sys.argv[idx + 1]
		elif arg.startswith("--config="):
			frappe_provision.config_path = arg.split("=", 1)[1]


def get_log_path() -> str:
	"""Log into the bench's logs folder once it exists"""
	from frappe_provision.config.provision_config import get_config

	try:
		config = get_config()
	except ConfigError:
		return "."

	return os.path.join(config.install_dir, config.bench_name)
