# imports - standard imports
import json
import os

# imports - module imports
from frappe_provision.config.provision_config import (
	default_config,
	get_config,
	get_env_config,
	parse_value,
	remove_config_keys,
	update_config,
)
from frappe_provision.exceptions import ConfigError
from frappe_provision.tests.test_base import TestProvisionBase


class TestProvisionConfig(TestProvisionBase):
	def test_defaults(self):
		config = get_config(config_path=self.config_path, environ={})

		self.assertEqual(config.frappe_branch, "version-15")
		self.assertEqual(config.site_name, "mmcy.hrms")
		self.assertEqual(config.site_port, 8003)
		self.assertEqual(config.db_port, 3307)
		self.assertEqual(config.install_dir, os.path.expanduser("~/frappe-setup"))
		self.assertEqual([app["name"] for app in config.apps][:2], ["erpnext", "hrms"])
		self.assertIsNone(config.github_token)

	def test_defaults_are_not_shared(self):
		config = get_config(config_path=self.config_path, environ={})
		config.apps.append({"name": "x", "repo": "y"})

		self.assertEqual(len(default_config["apps"]), 5)

	def test_file_overrides_defaults(self):
		config = self.make_config(site_name="hr.local", db_port=3308)

		self.assertEqual(config.site_name, "hr.local")
		self.assertEqual(config.db_port, 3308)
		self.assertEqual(config.install_dir, self.install_dir)

	def test_env_overrides_file(self):
		config = self.make_config(
			environ={
				"PROVISION_SITE_NAME": "env.local",
				"PROVISION_DB_PORT": "3310",
				"PROVISION_USE_LOCAL_APPS": "true",
				"GITHUB_TOKEN": "ghp_token",
			},
			site_name="hr.local",
		)

		self.assertEqual(config.site_name, "env.local")
		self.assertEqual(config.db_port, 3310)
		self.assertIs(config.use_local_apps, True)
		self.assertEqual(config.github_token, "ghp_token")

	def test_env_config_ignores_unknown_keys(self):
		self.assertEqual(get_env_config({"PROVISION_NOT_A_KEY": "1"}), {})

	def test_parse_value(self):
		self.assertEqual(parse_value("3307"), 3307)
		self.assertIs(parse_value("false"), False)
		self.assertEqual(parse_value("'quoted'"), "quoted")
		self.assertEqual(parse_value("mmcy.hrms"), "mmcy.hrms")
		self.assertEqual(parse_value("version-15"), "version-15")

	def test_validation(self):
		with self.assertRaises(ConfigError):
			self.make_config(db_port=70000)

		with self.assertRaises(ConfigError):
			self.make_config(site_port="web")

		with self.assertRaises(ConfigError):
			self.make_config(site_name="")

		with self.assertRaises(ConfigError):
			self.make_config(apps=[{"name": "erpnext"}])

	def test_polling_values_must_be_positive(self):
		for key in ("poll_interval", "service_timeout", "clone_retries"):
			with self.assertRaises(ConfigError):
				self.make_config(**{key: 0})

		config = self.make_config(poll_interval="2")
		self.assertEqual(config.poll_interval, 2)

	def test_env_secrets_stay_strings(self):
		config = self.make_config(
			environ={
				"PROVISION_MARIADB_ROOT_PASSWORD": "1e5",
				"PROVISION_ADMIN_PASSWORD": "true",
				"PROVISION_DB_PASSWORD": "0123",
			}
		)

		self.assertEqual(config.mariadb_root_password, "1e5")
		self.assertEqual(config.admin_password, "true")
		self.assertEqual(config.db_password, "0123")

	def test_ports_are_coerced(self):
		config = self.make_config(site_port="8004")
		self.assertEqual(config.site_port, 8004)

	def test_invalid_json(self):
		self.write_file(self.config_path, "{not json")

		with self.assertRaises(ConfigError):
			get_config(config_path=self.config_path, environ={})

	def test_update_and_remove(self):
		update_config({"site_name": "a.local", "site_port": 8010}, config_path=self.config_path)
		update_config({"site_port": 8011}, config_path=self.config_path)

		with open(self.config_path) as f:
			self.assertEqual(json.load(f), {"site_name": "a.local", "site_port": 8011})

		remove_config_keys(["site_port", "missing"], config_path=self.config_path)
		config = get_config(config_path=self.config_path, environ={})

		self.assertEqual(config.site_name, "a.local")
		self.assertEqual(config.site_port, 8003)

	def test_update_rejected_leaves_file_untouched(self):
		update_config({"site_port": 8010}, config_path=self.config_path)

		with self.assertRaises(ConfigError):
			update_config({"db_port": "x"}, config_path=self.config_path)

		with open(self.config_path) as f:
			self.assertEqual(json.load(f), {"site_port": 8010})
