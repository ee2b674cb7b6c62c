"""Module for rendering and persisting the provisioner's configuration"""


def env():
	from jinja2 import Environment, PackageLoader

	return Environment(loader=PackageLoader("frappe_provision.config"), keep_trailing_newline=True)
