# imports - standard imports
import os
import shutil
from contextlib import contextmanager
from glob import glob

# imports - module imports
from frappe_provision.utils import log

DEFERRED_DIR = ".deferred"


def find_fixtures_dir(app_path: str) -> str:
	"""Returns the `fixtures` folder of the app's python module, None if it has none"""
	module_fixtures = os.path.join(app_path, os.path.basename(app_path), "fixtures")
	if os.path.isdir(module_fixtures):
		return module_fixtures

	for path in sorted(glob(os.path.join(app_path, "*", "fixtures"))):
		if os.path.isdir(path):
			return path


@contextmanager
def fixtures_set_aside(app_path: str):
	"""Move an app's fixture files out of the way for the duration of the block.

	Some apps ship fixtures that refer to doctypes created later in their own
	install, which makes `install-app` fail. The files are restored on exit,
	a `migrate` afterwards syncs them.
	"""
	fixtures_dir = find_fixtures_dir(app_path)
	moved = []

	if not fixtures_dir:
		yield moved
		return

	deferred_dir = os.path.join(fixtures_dir, DEFERRED_DIR)
	os.makedirs(deferred_dir, exist_ok=True)

	for path in sorted(glob(os.path.join(fixtures_dir, "*.json"))):
		name = os.path.basename(path)
		shutil.move(path, os.path.join(deferred_dir, name))
		moved.append(name)

	if moved:
		log(f"Set aside {len(moved)} fixture file(s) of {os.path.basename(app_path)}")

	try:
		yield moved
	finally:
		restore_fixtures(fixtures_dir)


def restore_fixtures(fixtures_dir: str):
	deferred_dir = os.path.join(fixtures_dir, DEFERRED_DIR)
	if not os.path.isdir(deferred_dir):
		return

	for name in sorted(os.listdir(deferred_dir)):
		target = os.path.join(fixtures_dir, name)
		if os.path.exists(target):
			log(f"{target} already exists, keeping it", level=3)
			os.remove(os.path.join(deferred_dir, name))
			continue
		shutil.move(os.path.join(deferred_dir, name), target)

	os.rmdir(deferred_dir)
