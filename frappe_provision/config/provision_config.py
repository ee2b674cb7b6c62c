# imports - standard imports
import ast
import json
import os

# imports - module imports
import frappe_provision
from frappe_provision.exceptions import ConfigError
from frappe_provision.utils import _dict

CONFIG_FILE_NAME = "provision.json"
ENV_PREFIX = "PROVISION_"

default_apps = [
	{"name": "erpnext", "repo": "https://github.com/frappe/erpnext", "required": True},
	{"name": "hrms", "repo": "https://github.com/frappe/hrms", "required": True},
	{
		"name": "mmcy_hrms",
		"repo": "github.com/MMCY-Tech/custom-hrms.git",
		"custom": True,
	},
	{
		"name": "mmcy_asset_management",
		"repo": "github.com/MMCY-Tech/custom-asset-management.git",
		"custom": True,
	},
	{
		"name": "mmcy_it_operations",
		"repo": "github.com/MMCY-Tech/custom-it-operations.git",
		"custom": True,
	},
]

default_config = {
	"frappe_branch": "version-15",
	"custom_branch": "develop",
	"bench_name": "frappe-bench",
	"install_dir": "~/frappe-setup",
	"python": "python3",
	"site_name": "mmcy.hrms",
	"site_port": 8003,
	"db_host": "127.0.0.1",
	"db_port": 3307,
	"db_user": "frappe",
	"db_password": "frappe",
	"mariadb_root_password": "root",
	"admin_password": "admin",
	"mysql_socket": "/run/mysqld/mysqld.sock",
	"mysql_data_dir": "/var/lib/mysql",
	"mysql_run_dir": "/run/mysqld",
	"mysql_log_dir": "/var/log/mysql",
	"mariadb_conf_dir": "/etc/mysql/mariadb.conf.d",
	"innodb_buffer_pool_size": "256M",
	"redis_cache_port": 13000,
	"redis_queue_port": 11000,
	"redis_socketio_port": 12000,
	"socketio_port": 9000,
	"use_local_apps": False,
	"github_token": None,
	"clone_retries": 3,
	"clone_retry_delay": 5,
	"zip_fallback": True,
	"service_timeout": 60,
	"poll_interval": 3,
	"apps": default_apps,
}

port_keys = (
	"site_port",
	"db_port",
	"redis_cache_port",
	"redis_queue_port",
	"redis_socketio_port",
	"socketio_port",
)

# values that must be at least 1
positive_keys = ("service_timeout", "poll_interval", "clone_retries")

# never parsed from the environment, a password like `1e5` stays a string
string_keys = ("db_password", "mariadb_root_password", "admin_password", "github_token")


def get_config_path(config_path=None):
	return (
		config_path
		or frappe_provision.config_path
		or os.environ.get(f"{ENV_PREFIX}CONFIG")
		or os.path.join(os.getcwd(), CONFIG_FILE_NAME)
	)


def get_file_config(config_path=None) -> dict:
	config_path = get_config_path(config_path)
	if not os.path.exists(config_path):
		return {}
	with open(config_path) as f:
		try:
			return json.load(f)
		except json.JSONDecodeError as e:
			raise ConfigError(f"{config_path} is not valid JSON: {e}")


def get_env_config(environ=None) -> dict:
	environ = os.environ if environ is None else environ
	config = {}

	for key in default_config:
		value = environ.get(f"{ENV_PREFIX}{key.upper()}")
		if value is not None:
			config[key] = value if key in string_keys else parse_value(value)

	if environ.get("GITHUB_TOKEN"):
		config["github_token"] = environ["GITHUB_TOKEN"]

	return config


def get_config(config_path=None, environ=None) -> _dict:
	"""Defaults, overridden by the config file, overridden by the environment"""
	return build_config(get_file_config(config_path), environ=environ)


def build_config(file_config, environ=None) -> _dict:
	config = _dict(json.loads(json.dumps(default_config)))
	config.update(file_config)
	config.update(get_env_config(environ))
	config.install_dir = os.path.abspath(os.path.expanduser(config.install_dir))

	validate_config(config)
	return config


def put_config(config, config_path=None):
	config_path = get_config_path(config_path)
	with open(config_path, "w") as f:
		return json.dump(config, f, indent=1, sort_keys=True)


def update_config(new_config, config_path=None):
	config = get_file_config(config_path)
	config.update(new_config)
	# raises ConfigError before anything is written
	build_config(config)
	put_config(config, config_path=config_path)


def remove_config_keys(keys, config_path=None):
	config = get_file_config(config_path)
	for key in keys:
		config.pop(key, None)
	put_config(config, config_path=config_path)


def parse_value(value: str):
	if value in ("true", "false"):
		value = value.title()
	try:
		return ast.literal_eval(value)
	except (ValueError, SyntaxError):
		return value


def validate_config(config):
	for key in port_keys:
		try:
			port = int(config[key])
		except (TypeError, ValueError):
			raise ConfigError(f"{key} must be a port number, got {config[key]!r}")
		if not 0 < port < 65536:
			raise ConfigError(f"{key} must be between 1 and 65535, got {port}")
		config[key] = port

	for key in positive_keys:
		try:
			value = int(config[key])
		except (TypeError, ValueError):
			raise ConfigError(f"{key} must be a number, got {config[key]!r}")
		if value < 1:
			raise ConfigError(f"{key} must be at least 1, got {value}")
		config[key] = value

	for key in ("site_name", "bench_name", "install_dir"):
		if not config.get(key):
			raise ConfigError(f"{key} cannot be empty")

	if not isinstance(config.get("apps"), list):
		raise ConfigError("apps must be a list")

	for app in config["apps"]:
		if not isinstance(app, dict) or not app.get("name") or not app.get("repo"):
			raise ConfigError(f"Every app needs a name and a repo, got {app!r}")
