# imports - third party imports
import click


def get_installer():
	from frappe_provision.config.provision_config import get_config
	from frappe_provision.installer import Installer

	return Installer(get_config())


def get_workspace(validate=True):
	from frappe_provision.config.provision_config import get_config
	from frappe_provision.workspace import BenchWorkspace

	workspace = BenchWorkspace(get_config())
	if validate:
		workspace.validate()
	return workspace


@click.command(
	"install",
	help="Provision everything: system packages, MariaDB, bench, apps and the site",
)
@click.option("--skip-packages", is_flag=True, default=False, help="Do not apt install system packages")
@click.option("--skip-mariadb", is_flag=True, default=False, help="Do not (re)configure MariaDB")
@click.option(
	"--no-interactive",
	is_flag=True,
	default=False,
	help="Never prompt, custom apps are skipped unless GITHUB_TOKEN is set",
)
def install(skip_packages, skip_mariadb, no_interactive):
	get_installer().run(
		skip_packages=skip_packages,
		skip_mariadb=skip_mariadb,
		interactive=not no_interactive,
	)


@click.command("packages", help="Install the OS packages Frappe needs, and yarn")
def packages():
	from frappe_provision.system import install_packages

	install_packages()


@click.command(
	"mariadb",
	help="Configure MariaDB on the custom port, set the root password and create the app user",
)
def mariadb():
	from frappe_provision.config.provision_config import get_config
	from frappe_provision.mariadb import MariaDB

	MariaDB(get_config()).setup()


@click.command("bench-init", help="Install bench CLI, initialize the bench and point it to MariaDB/Redis")
def bench_init():
	import os

	from frappe_provision.utils import log

	installer = get_installer()
	path = installer.workspace.path
	existed = os.path.exists(path)

	try:
		installer.setup_bench()
	except SystemExit:
		raise
	except Exception:
		import shutil

		from frappe_provision.utils import get_traceback

		print(get_traceback())

		log(f"There was a problem while creating {path}", level=2)
		if existed:
			raise
		if click.confirm("Do you want to rollback these changes?", abort=True):
			log(f'Rolling back bench "{path}"')
			if os.path.exists(path):
				shutil.rmtree(path)


@click.command("get-apps", help="Fetch the configured apps into the bench")
@click.option("--no-interactive", is_flag=True, default=False, help="Never prompt for a GitHub token")
def get_apps(no_interactive):
	installer = get_installer()
	installer.workspace.validate()
	installer.resolve_token(interactive=not no_interactive)
	installer.fetch_apps()


@click.command("new-site", help="Drop and recreate the configured site")
@click.option("--site", default=None, help="Site name, defaults to site_name from config")
def new_site(site=None):
	installer = get_installer()
	installer.workspace.validate()
	installer.create_site(site or installer.config.site_name)


@click.command("install-apps", help="Install every fetched app on the site")
@click.option("--site", default=None, help="Site name, defaults to site_name from config")
def install_apps(site=None):
	from frappe_provision.utils import log

	installer = get_installer()
	installer.workspace.validate()
	installed = installer.install_apps(site or installer.config.site_name)
	log(f"Installed: {', '.join(installed) or 'nothing'}", level=1)


@click.command("migrate", help="Run bench migrate on the site")
@click.option("--site", default=None, help="Site name, defaults to site_name from config")
def migrate(site=None):
	workspace = get_workspace()
	workspace.migrate(site or workspace.config.site_name)


@click.command("build", help="Build assets of the bench")
@click.option("--app", default=None, help="Build assets of this app only")
def build(app=None):
	get_workspace().build(app=app)
