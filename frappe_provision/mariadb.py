# imports - standard imports
import os
import subprocess
import time

# imports - module imports
import frappe_provision
import frappe_provision.config
from frappe_provision.config.mariadb import write_mariadb_config
from frappe_provision.exceptions import DatabaseError, ServiceTimeoutError
from frappe_provision.network import wait_for
from frappe_provision.services import Service
from frappe_provision.utils import (
	exec_cmd,
	get_cmd_output,
	log,
	register_secret,
	sudo,
)
from frappe_provision.utils.render import job, step

LOCAL_HOSTS = ("localhost", "127.0.0.1")


def escape_string(value) -> str:
	"""Escape a value for use inside a single quoted SQL string literal"""
	return str(value).replace("\\", "\\\\").replace("'", "\\'")


def escape_identifier(value) -> str:
	return str(value).replace("`", "``")


def render_sql(template_name, **context) -> str:
	template = frappe_provision.config.env().get_template(template_name)
	return template.render(**context)


class MariaDB:
	def __init__(self, config):
		self.config = config
		self.host = config.db_host
		self.port = config.db_port
		self.root_password = config.mariadb_root_password
		self.service = Service("mariadb")

		register_secret(self.root_password)
		register_secret(config.db_password)

	def mysql_cmd(self, password=None) -> list:
		cmd = ["mysql", "--protocol=TCP", "-h", self.host, "-P", str(self.port), "-u", "root"]
		if password:
			cmd.append(f"-p{password}")
		return cmd

	def execute(self, sql, password=None, _raise=True) -> int:
		"""Run an SQL script through the mysql CLI"""
		return_code = exec_cmd(self.mysql_cmd(password), input=sql, _raise=False)
		if return_code and _raise:
			raise DatabaseError(f"mysql exited with code {return_code}")
		return return_code

	def can_connect(self, password=None, query="SELECT 1;") -> bool:
		cmd = self.mysql_cmd(password) + ["-e", query]
		return not subprocess.call(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

	@step(title="Preparing MariaDB directories", success="MariaDB directories ready")
	def prepare_dirs(self):
		config = self.config
		log_dir = config.mysql_log_dir

		exec_cmd(sudo(f"mkdir -p {log_dir} {config.mysql_run_dir}"))
		exec_cmd(sudo(f"touch {log_dir}/error.log {log_dir}/slow.log"), _raise=False)
		exec_cmd(
			sudo(
				f"chown -R mysql:mysql {log_dir} {config.mysql_run_dir} {config.mysql_data_dir}"
			),
			_raise=False,
		)
		exec_cmd(sudo(f"chmod 750 {config.mysql_data_dir}"), _raise=False)

	@step(title="Writing MariaDB server config", success="MariaDB server config written")
	def write_server_config(self):
		return write_mariadb_config(self.config)

	@step(title="Starting MariaDB without grant tables", success="MariaDB started")
	def start_without_grants(self):
		self.service.stop()
		time.sleep(1)
		self.service.daemon_reload()
		self.service.set_environment(MYSQLD_OPTS="--skip-grant-tables")
		self.service.enable()
		self.service.start()

	@step(title="Waiting for MariaDB", success="MariaDB is accepting connections")
	def wait_until_ready(self, password=None):
		try:
			wait_for(
				lambda: self.can_connect(password=password),
				timeout=self.config.service_timeout,
				interval=self.config.poll_interval,
				description=f"MariaDB on port {self.port}",
			)
		except ServiceTimeoutError:
			self.dump_diagnostics()
			raise

	def dump_diagnostics(self, lines=50):
		log("MariaDB failed to start, debug info follows", level=2)
		if not self.service.is_active():
			log(f"{self.service.name} service is not active", level=2)
		print(self.service.journal(lines=lines))
		error_log = os.path.join(self.config.mysql_log_dir, "error.log")
		print(get_cmd_output(sudo(f"tail -n {lines} {error_log}"), _raise=False))

	@step(title="Setting MariaDB root password", success="MariaDB root password set")
	def set_root_password(self):
		self.execute(
			render_sql(
				"set_root_password.sql",
				hosts=LOCAL_HOSTS,
				password=escape_string(self.root_password),
			)
		)

	@step(title="Restarting MariaDB with authentication", success="MariaDB restarted")
	def restart_with_grants(self):
		self.service.stop(_raise=True)
		time.sleep(2)
		self.service.unset_environment("MYSQLD_OPTS")
		self.service.start()
		self.wait_until_ready(password=self.root_password)

	def verify_root_login(self):
		if not self.can_connect(password=self.root_password, query="SELECT VERSION();"):
			raise DatabaseError(
				"Cannot login to MariaDB root user with password. Check logs."
			)
		log(f"MariaDB root password verified on TCP port {self.port}", level=1)

	@step(title="Creating MariaDB user", success="MariaDB user configured")
	def create_app_user(self):
		self.execute(
			render_sql(
				"create_user.sql",
				hosts=LOCAL_HOSTS,
				user=escape_string(self.config.db_user),
				password=escape_string(self.config.db_password),
			),
			password=self.root_password,
		)

	def fix_site_db_user(self, db_name, db_password):
		"""Recreate the site's database user so it can log in over TCP as well as the socket"""
		if not db_name or not db_password:
			log("Site config has no db_name/db_password, skipping DB user fix", level=3)
			return False

		register_secret(db_password)
		self.execute(
			render_sql(
				"site_db_user.sql",
				hosts=LOCAL_HOSTS,
				user=escape_string(db_name),
				password=escape_string(db_password),
				database=escape_identifier(db_name),
			),
			password=self.root_password,
		)
		log(f"Site DB user {db_name} configured", level=1)
		return True

	@job(title="Setting up MariaDB on port {port}", success="MariaDB ready on port {port}")
	def setup(self):
		self.prepare_dirs()
		self.write_server_config()
		self.start_without_grants()
		time.sleep(3)
		self.wait_until_ready()
		self.set_root_password()
		self.restart_with_grants()
		self.verify_root_login()
		self.create_app_user()
