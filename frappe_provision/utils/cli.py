import click


def print_provision_version(ctx, param, value):
	"""Prints current frappe-provision version"""
	if not value or ctx.resilient_parsing:
		return

	import frappe_provision

	click.echo(frappe_provision.VERSION)
	ctx.exit()


def use_experimental_feature(ctx, param, value):
	if not value:
		return

	if value == "dynamic-feed":
		import frappe_provision.cli

		frappe_provision.cli.dynamic_feed = True
		frappe_provision.cli.verbose = True
	else:
		from frappe_provision.exceptions import FeatureDoesNotExistError

		raise FeatureDoesNotExistError(f"Feature {value} does not exist")

	click.secho(
		"WARNING: provision is using its new CLI rendering engine. This behaviour has"
		f" been enabled by passing --{value} in the command. This feature is"
		" experimental and may not be implemented for all commands yet.",
		fg="yellow",
	)


def setup_verbosity(ctx, param, value):
	if not value:
		return

	import frappe_provision.cli

	frappe_provision.cli.verbose = True


def set_config_path(ctx, param, value):
	if not value:
		return

	import frappe_provision

	frappe_provision.config_path = value
