# imports - standard imports
import sys
from typing import List

# imports - third party imports
import click

# imports - module imports
from frappe_provision.apps import AppSpec, get_apps
from frappe_provision.mariadb import MariaDB
from frappe_provision.system import check_versions, ensure_bench_cli, install_packages
from frappe_provision.utils import ensure_local_bin_in_path, log, register_secret
from frappe_provision.utils.render import job
from frappe_provision.workspace import BenchWorkspace


class Installer:
	"""Provisions MariaDB, a bench, its apps and a site in one go"""

	def __init__(self, config):
		self.config = config
		self.workspace = BenchWorkspace(config)
		self.mariadb = MariaDB(config)
		self.apps = get_apps(config)
		self.token = None

	@property
	def core_apps(self) -> List[AppSpec]:
		return [app for app in self.apps if not app.custom]

	@property
	def custom_apps(self) -> List[AppSpec]:
		return [app for app in self.apps if app.custom]

	def resolve_token(self, interactive=True):
		"""GitHub token from config/env, else asked for. None means custom apps are skipped"""
		if self.config.use_local_apps:
			return None

		token = self.config.github_token
		if not token and interactive and sys.stdin.isatty():
			token = click.prompt(
				"Enter your GitHub Personal Access Token (for private repos), or press Enter to skip",
				default="",
				hide_input=True,
				show_default=False,
			)

		self.token = (token or "").strip() or None
		register_secret(self.token)
		return self.token

	@job(title="Fetching apps", success="Apps fetched")
	def fetch_apps(self):
		for app in self.core_apps:
			self.workspace.get_app(app, token=self.token)

		log("Core apps fetched successfully.", level=1)

		if self.config.use_local_apps or not self.token:
			if self.custom_apps:
				log("No GitHub token given, custom apps will not be fetched", level=3)
			return

		for app in self.custom_apps:
			self.workspace.get_app(app, token=self.token)

	@job(title="Creating site {site}", success="Site {site} ready")
	def create_site(self, site):
		self.workspace.drop_site(site)
		self.workspace.new_site(site)

		site_config = self.workspace.site_config(site)
		if site_config:
			self.mariadb.fix_site_db_user(
				site_config.get("db_name"), site_config.get("db_password")
			)

	@job(title="Installing apps on {site}", success="Apps installed on {site}")
	def install_apps(self, site):
		installed = []
		for app in self.apps:
			if not self.workspace.has_app(app.name):
				continue
			if self.workspace.install_app(site, app):
				installed.append(app.name)
		return installed

	def setup_bench(self):
		ensure_bench_cli()
		self.workspace.init()
		self.workspace.configure()

	def run(self, skip_packages=False, skip_mariadb=False, interactive=True):
		config = self.config
		ensure_local_bin_in_path()

		log(f"Bench will be installed to: {self.workspace.path}")
		self.resolve_token(interactive=interactive)

		if not skip_packages:
			install_packages()
		check_versions()

		if not skip_mariadb:
			self.mariadb.setup()

		self.setup_bench()
		self.fetch_apps()
		self.create_site(config.site_name)
		self.install_apps(config.site_name)

		self.print_summary()

	def print_summary(self):
		log("Frappe setup completed!", level=1)
		click.echo(f"Access your site at: http://localhost:{self.config.site_port}")
		click.secho("To start the development server, run:", fg="yellow")
		click.echo(f"cd {self.workspace.path} && bench start")
