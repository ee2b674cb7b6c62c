import pathlib

from setuptools import find_packages, setup

from frappe_provision import PROJECT_NAME, VERSION

install_requires = pathlib.Path("requirements.txt").read_text().strip().split("\n")
long_description = pathlib.Path("README.md").read_text()

setup(
	name=PROJECT_NAME,
	description="CLI to provision a single-host Frappe / ERPNext / HRMS stack",
	long_description=long_description,
	long_description_content_type="text/markdown",
	version=VERSION,
	license="GPLv3",
	classifiers=[
		"Development Status :: 4 - Beta",
		"Environment :: Console",
		"License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
		"Natural Language :: English",
		"Operating System :: POSIX :: Linux",
		"Topic :: System :: Installation/Setup",
		"Topic :: System :: Systems Administration",
	],
	packages=find_packages(),
	package_data={"frappe_provision.config": ["templates/*"]},
	python_requires=">=3.8",
	zip_safe=False,
	include_package_data=True,
	install_requires=install_requires,
	extras_require={"test": ["pytest"]},
	entry_points={"console_scripts": ["provision=frappe_provision.cli:cli"]},
)
