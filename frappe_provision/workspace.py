# imports - standard imports
import json
import logging
import os
import re
import shutil
from collections import deque
from glob import glob
from typing import List

# imports - module imports
import frappe_provision
from frappe_provision.apps import (
	AppSpec,
	clone,
	download_archive,
)
from frappe_provision.exceptions import (
	CommandFailedError,
	FetchError,
	InvalidRemoteException,
	NotInBenchDirectoryError,
)
from frappe_provision.fixtures import fixtures_set_aside
from frappe_provision.services import Service, free_bench_ports
from frappe_provision.utils import (
	exec_cmd,
	get_provision_env,
	log,
	register_secret,
	retry,
	which,
)
from frappe_provision.utils.render import job, step

logger = logging.getLogger(frappe_provision.PROJECT_NAME)

paths_in_bench = ("apps", "sites", "config", "logs")
SERVE_PORT_PATTERN = re.compile(r"(bench serve\s+--port\s+)\d+")


def is_bench_directory(directory=os.path.curdir):
	return all(
		os.path.exists(os.path.abspath(os.path.join(directory, folder)))
		for folder in paths_in_bench
	)


def to_config_literal(value) -> str:
	"""Render a value the way `bench config set-common-config` parses it back"""
	if isinstance(value, bool):
		return "true" if value else "false"
	if isinstance(value, (int, float)):
		return str(value)
	return repr(str(value))


class BenchWorkspace:
	def __init__(self, config):
		self.config = config
		self.install_dir = config.install_dir
		self.name = config.bench_name
		self.path = os.path.join(self.install_dir, self.name)
		self.cache_dir = os.path.join(self.install_dir, ".cache")

		register_secret(config.mariadb_root_password)
		register_secret(config.admin_password)

	def __repr__(self):
		return f"<BenchWorkspace {self.path}>"

	@property
	def exists(self) -> bool:
		return is_bench_directory(self.path)

	@property
	def bench_cmd(self) -> str:
		return which("bench") or "bench"

	@property
	def apps(self) -> List[str]:
		apps_path = os.path.join(self.path, "apps")
		if not os.path.isdir(apps_path):
			return []
		return sorted(
			app for app in os.listdir(apps_path) if os.path.isdir(os.path.join(apps_path, app))
		)

	@property
	def sites(self) -> List[str]:
		sites_path = os.path.join(self.path, "sites")
		if not os.path.isdir(sites_path):
			return []
		return sorted(
			site
			for site in os.listdir(sites_path)
			if os.path.exists(os.path.join(sites_path, site, "site_config.json"))
		)

	def has_app(self, app_name) -> bool:
		return os.path.isdir(os.path.join(self.path, "apps", app_name))

	def site_config(self, site) -> dict:
		path = os.path.join(self.path, "sites", site, "site_config.json")
		if not os.path.exists(path):
			return {}
		with open(path) as f:
			return json.load(f)

	def run(self, *args, cwd=None, _raise=True, input=None) -> int:
		"""Run a bench subcommand from inside the bench"""
		return exec_cmd(
			[self.bench_cmd] + [str(arg) for arg in args],
			cwd=cwd or self.path,
			env=get_provision_env(),
			_raise=_raise,
			input=input,
		)

	def validate(self):
		if not self.exists:
			raise NotInBenchDirectoryError(
				f"{self.path} is not a valid bench directory. Run `provision bench-init` first."
			)

	@job(title="Initializing bench {name}", success="Bench {name} initialized")
	def init(self):
		if os.path.exists(self.path):
			log(f"Bench {self.path} already exists, skipping init", level=3)
			return False

		os.makedirs(self.install_dir, exist_ok=True)
		log(f"Initializing bench {self.name} (frappe branch: {self.config.frappe_branch})")
		try:
			self.run(
				"init",
				self.name,
				"--frappe-branch",
				self.config.frappe_branch,
				"--python",
				self.config.python,
				"--verbose",
				cwd=self.install_dir,
			)
		except CommandFailedError:
			raise CommandFailedError("bench init failed")
		return True

	def set_common_config(self, **values):
		args = []
		for key, value in values.items():
			args.extend(["-c", key, to_config_literal(value)])

		if self.run("config", "set-common-config", *args, _raise=False):
			log(f"Could not set {', '.join(values)} in common_site_config.json", level=3)
			return False
		return True

	@step(title="Pointing bench to MariaDB", success="Bench points to MariaDB")
	def configure_database(self):
		return self.set_common_config(
			db_host=self.config.db_host,
			db_port=self.config.db_port,
			mariadb_root_password=self.config.mariadb_root_password,
		)

	@step(title="Configuring Redis ports", success="Redis ports configured")
	def configure_redis(self):
		host = "127.0.0.1"
		configured = self.set_common_config(
			redis_cache=f"redis://{host}:{self.config.redis_cache_port}",
			redis_queue=f"redis://{host}:{self.config.redis_queue_port}",
			redis_socketio=f"redis://{host}:{self.config.redis_socketio_port}",
		)
		if configured and self.run("setup", "redis", _raise=False):
			log("bench setup redis failed, Redis configs may use stale ports", level=3)
		return configured

	@step(title="Configuring web server port", success="Web server port configured")
	def configure_webserver(self):
		return self.set_common_config(
			webserver_port=self.config.site_port,
			socketio_port=self.config.socketio_port,
		)

	def update_procfile(self) -> bool:
		"""Point the Procfile's `bench serve` at `site_port`. Returns True if it changed"""
		procfile_path = os.path.join(self.path, "Procfile")
		if not os.path.exists(procfile_path):
			return False

		with open(procfile_path) as f:
			procfile = f.read()

		updated = SERVE_PORT_PATTERN.sub(rf"\g<1>{self.config.site_port}", procfile)

		if updated == procfile:
			return False

		with open(procfile_path, "w") as f:
			f.write(updated)

		log(f"Procfile now serves on port {self.config.site_port}")
		return True

	def configure(self):
		self.configure_database()
		self.configure_redis()
		self.configure_webserver()
		self.update_procfile()

	@step(title="Fetching {app.name}", success="{app.name} fetched")
	def get_app(self, app: AppSpec, token=None) -> bool:
		"""Fetch `app` into apps/. Returns False if an optional app couldn't be fetched"""
		if self.has_app(app.name):
			log(f"{app.name} already present in apps/", level=3)
			return True

		url = app.url(token=token)
		app_path = os.path.join(self.path, "apps", app.name)

		def _get_app():
			# a failed attempt can leave a partial clone behind
			if os.path.exists(app_path):
				shutil.rmtree(app_path)
			return self.run("get-app", "--branch", app.branch, app.name, url)

		try:
			retry(
				_get_app,
				attempts=self.config.clone_retries,
				delay=self.config.clone_retry_delay,
				exceptions=(CommandFailedError,),
				description=f"bench get-app {app.name}",
			)
			return True
		except CommandFailedError:
			logger.info(f"bench get-app {app.name} failed, fetching its source directly")

		try:
			source = self.fetch_source(app, token=token)
			if os.path.exists(app_path):
				shutil.rmtree(app_path)
			self.run("get-app", app.name, source)
			return True
		except (FetchError, CommandFailedError) as e:
			if app.required:
				raise FetchError(f"{app.name} is required but could not be fetched: {e}")
			log(f"{app.name} fetch skipped: {e}", level=3)
			return False

	def fetch_source(self, app: AppSpec, token=None) -> str:
		"""Clone `app` into the local cache, falling back to the GitHub zip archive"""
		dest = os.path.join(self.cache_dir, app.name)
		os.makedirs(self.cache_dir, exist_ok=True)

		try:
			clone(
				app.url(token=token),
				app.branch,
				dest,
				attempts=self.config.clone_retries,
				delay=self.config.clone_retry_delay,
			)
			return dest
		except FetchError:
			if not self.config.zip_fallback:
				raise

		try:
			org, repo = app.org_repo
		except InvalidRemoteException:
			raise FetchError(f"{app.repo} can't be downloaded as an archive")

		return download_archive(org, repo, app.branch, dest, token=token)

	def drop_site(self, site):
		return self.run(
			"drop-site",
			site,
			"--no-backup",
			"--force",
			"--db-root-username",
			"root",
			"--db-root-password",
			self.config.mariadb_root_password,
			_raise=False,
		)

	@job(title="Creating site {site}", success="Site {site} created")
	def new_site(self, site):
		# `c` continues past a debugger prompt left in an app's install hooks
		return_code = self.run(
			"new-site",
			site,
			"--db-host",
			self.config.db_host,
			"--db-port",
			self.config.db_port,
			"--db-root-username",
			"root",
			"--db-root-password",
			self.config.mariadb_root_password,
			"--admin-password",
			self.config.admin_password,
			"--no-interactive",
			input="c\n",
			_raise=False,
		)

		if return_code:
			log("Failed to create site. Full debug info follows", level=2)
			self.dump_diagnostics()
			raise CommandFailedError(f"bench new-site {site} failed")

	def dump_diagnostics(self, lines=100):
		print(Service("mariadb").journal(lines=lines))
		for log_file in sorted(glob(os.path.join(self.path, "logs", "*"))):
			if not os.path.isfile(log_file):
				continue
			print(f"==> {log_file} <==")
			with open(log_file, errors="replace") as f:
				print("".join(deque(f, maxlen=lines)))

	@step(title="Installing {app.name} on {site}", success="{app.name} installed on {site}")
	def install_app(self, site, app: AppSpec) -> bool:
		if not self.has_app(app.name):
			log(f"{app.name} is not in apps/, skipping install", level=3)
			return False

		if app.defer_fixtures:
			with fixtures_set_aside(os.path.join(self.path, "apps", app.name)):
				return_code = self.run("--site", site, "install-app", app.name, _raise=False)
			if not return_code:
				return_code = self.migrate(site, _raise=False)
		else:
			return_code = self.run("--site", site, "install-app", app.name, _raise=False)

		if return_code:
			log(f"{app.name} install skipped/warn", level=3)
			return False
		return True

	def migrate(self, site, _raise=True):
		return self.run("--site", site, "migrate", _raise=_raise)

	def build(self, app=None):
		args = ["build"]
		if app:
			args.extend(["--app", app])
		return self.run(*args)

	def start(self):
		free_bench_ports(self.config)
		return self.run("start")
