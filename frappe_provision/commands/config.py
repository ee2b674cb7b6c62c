# imports - module imports
from frappe_provision.config.provision_config import (
	get_config,
	parse_value,
	remove_config_keys,
	update_config,
)

# imports - third party imports
import click


@click.group(help="Change provisioning configuration")
def config():
	pass


@click.command("show", help="Print the effective configuration, secrets masked")
def show_config():
	import json

	from frappe_provision.utils import mask_secrets

	effective = get_config()
	secrets = [
		effective.get(key)
		for key in ("mariadb_root_password", "db_password", "admin_password", "github_token")
		if effective.get(key)
	]
	click.echo(mask_secrets(json.dumps(effective, indent=1, sort_keys=True), secrets))


@click.command("set", help="Set values in provision.json")
@click.option("configs", "-c", multiple=True, type=(str, str), help="KEY VALUE pair")
def set_config(configs):
	update_config({key: parse_value(value) for key, value in configs})


@click.command("unset", help="Remove keys from provision.json, falling back to defaults")
@click.argument("keys", nargs=-1)
def unset_config(keys):
	remove_config_keys(keys)


config.add_command(show_config)
config.add_command(set_config)
config.add_command(unset_config)
