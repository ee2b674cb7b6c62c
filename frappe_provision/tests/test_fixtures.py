# imports - standard imports
import os

# imports - module imports
from frappe_provision.fixtures import (
	DEFERRED_DIR,
	find_fixtures_dir,
	fixtures_set_aside,
)
from frappe_provision.tests.test_base import TestProvisionBase


class TestFixtures(TestProvisionBase):
	def setUp(self):
		super().setUp()
		self.app_path = os.path.join(self.tmp_dir, "apps", "mmcy_hrms")
		self.fixtures_dir = os.path.join(self.app_path, "mmcy_hrms", "fixtures")
		for name in ("custom_field.json", "property_setter.json"):
			self.write_file(os.path.join(self.fixtures_dir, name), "[]")
		self.write_file(os.path.join(self.fixtures_dir, "README.md"), "keep me")

	def test_find_fixtures_dir(self):
		self.assertEqual(find_fixtures_dir(self.app_path), self.fixtures_dir)
		self.assertIsNone(find_fixtures_dir(os.path.join(self.tmp_dir, "apps", "other")))

	def test_find_fixtures_dir_in_differently_named_module(self):
		app_path = os.path.join(self.tmp_dir, "apps", "custom-app")
		fixtures_dir = os.path.join(app_path, "custom_app", "fixtures")
		os.makedirs(fixtures_dir)

		self.assertEqual(find_fixtures_dir(app_path), fixtures_dir)

	def test_set_aside_and_restore(self):
		with fixtures_set_aside(self.app_path) as moved:
			self.assertEqual(moved, ["custom_field.json", "property_setter.json"])
			self.assert_not_exists(self.fixtures_dir, "custom_field.json")
			self.assert_exists(self.fixtures_dir, DEFERRED_DIR, "custom_field.json")
			self.assert_exists(self.fixtures_dir, "README.md")

		self.assert_exists(self.fixtures_dir, "custom_field.json")
		self.assert_exists(self.fixtures_dir, "property_setter.json")
		self.assert_not_exists(self.fixtures_dir, DEFERRED_DIR)

	def test_restored_on_error(self):
		with self.assertRaises(RuntimeError):
			with fixtures_set_aside(self.app_path):
				raise RuntimeError("install-app failed")

		self.assert_exists(self.fixtures_dir, "custom_field.json")
		self.assert_not_exists(self.fixtures_dir, DEFERRED_DIR)

	def test_existing_files_are_not_overwritten(self):
		target = os.path.join(self.fixtures_dir, "custom_field.json")

		with fixtures_set_aside(self.app_path):
			self.write_file(target, "[{\"regenerated\": true}]")

		self.assertEqual(self.read_file(target), "[{\"regenerated\": true}]")
		self.assert_not_exists(self.fixtures_dir, DEFERRED_DIR)

	def test_app_without_fixtures(self):
		app_path = os.path.join(self.tmp_dir, "apps", "hrms")
		os.makedirs(os.path.join(app_path, "hrms"))

		with fixtures_set_aside(app_path) as moved:
			self.assertEqual(moved, [])
