# imports - third party imports
import click

# imports - module imports
from frappe_provision.utils.cli import (
	print_provision_version,
	set_config_path,
	setup_verbosity,
	use_experimental_feature,
)


@click.group()
@click.option(
	"--version",
	is_flag=True,
	is_eager=True,
	callback=print_provision_version,
	expose_value=False,
)
@click.option(
	"--use-feature",
	is_eager=True,
	callback=use_experimental_feature,
	expose_value=False,
)
@click.option(
	"-v",
	"--verbose",
	is_flag=True,
	callback=setup_verbosity,
	expose_value=False,
)
@click.option(
	"--config",
	is_eager=True,
	callback=set_config_path,
	expose_value=False,
	help="Path to provision.json",
)
def provision_command():
	pass


from frappe_provision.commands.make import (
	bench_init,
	build,
	get_apps,
	install,
	install_apps,
	mariadb,
	migrate,
	new_site,
	packages,
)

provision_command.add_command(install)
provision_command.add_command(packages)
provision_command.add_command(mariadb)
provision_command.add_command(bench_init)
provision_command.add_command(get_apps)
provision_command.add_command(new_site)
provision_command.add_command(install_apps)
provision_command.add_command(migrate)
provision_command.add_command(build)


from frappe_provision.commands.utils import free_ports, start, wait_for_port

provision_command.add_command(start)
provision_command.add_command(free_ports)
provision_command.add_command(wait_for_port)


from frappe_provision.commands.config import config

provision_command.add_command(config)
