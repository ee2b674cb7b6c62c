# imports - standard imports
import os
import tempfile

# imports - module imports
import frappe_provision.config
from frappe_provision.utils import exec_cmd, sudo

CONFIG_FILE_NAME = "99-custom-erpnext.cnf"
DEFAULT_SERVER_CONFIG = "50-server.cnf"


def generate_config(config) -> str:
	template = frappe_provision.config.env().get_template(CONFIG_FILE_NAME)
	return template.render(
		port=config.db_port,
		socket=config.mysql_socket,
		bind_address=config.db_host,
		data_dir=config.mysql_data_dir,
		innodb_buffer_pool_size=config.innodb_buffer_pool_size,
		log_dir=config.mysql_log_dir,
	)


def write_mariadb_config(config) -> str:
	"""Render the server config into the MariaDB conf dir, backing up the stock config first"""
	conf_dir = config.mariadb_conf_dir
	server_cnf = os.path.join(conf_dir, DEFAULT_SERVER_CONFIG)
	target = os.path.join(conf_dir, CONFIG_FILE_NAME)

	if os.path.exists(server_cnf):
		exec_cmd(sudo(f"cp {server_cnf} {server_cnf}.bak"), _raise=False)

	with tempfile.NamedTemporaryFile("w", suffix=".cnf", delete=False) as f:
		f.write(generate_config(config))
		tmp_path = f.name

	try:
		exec_cmd(sudo(f"mkdir -p {conf_dir}"))
		exec_cmd(sudo(f"install -m 644 {tmp_path} {target}"))
	finally:
		os.remove(tmp_path)

	return target
