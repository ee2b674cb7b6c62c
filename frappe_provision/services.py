# imports - standard imports
import logging
import subprocess

# imports - module imports
import frappe_provision
from frappe_provision.utils import exec_cmd, get_cmd_output, log, sudo, which

logger = logging.getLogger(frappe_provision.PROJECT_NAME)


class Service:
	"""Thin wrapper around a systemd unit"""

	def __init__(self, name):
		self.name = name

	def __repr__(self):
		return f"<Service {self.name}>"

	def systemctl(self, *args, _raise=True):
		return exec_cmd(sudo(" ".join(("systemctl",) + args)), _raise=_raise)

	def start(self):
		return self.systemctl("start", self.name)

	def stop(self, _raise=False):
		return self.systemctl("stop", self.name, _raise=_raise)

	def restart(self):
		return self.systemctl("restart", self.name)

	def enable(self, _raise=False):
		return self.systemctl("enable", self.name, _raise=_raise)

	def daemon_reload(self):
		return self.systemctl("daemon-reload")

	def set_environment(self, **variables):
		assignments = " ".join(f'{key}="{value}"' for key, value in variables.items())
		return self.systemctl("set-environment", assignments)

	def unset_environment(self, *keys):
		return self.systemctl("unset-environment", *keys)

	def is_active(self) -> bool:
		return not subprocess.call(
			["systemctl", "is-active", "--quiet", self.name],
			stdout=subprocess.DEVNULL,
			stderr=subprocess.DEVNULL,
		)

	def journal(self, lines=50) -> str:
		return get_cmd_output(
			sudo(f"journalctl -u {self.name} -n {lines} --no-pager"), _raise=False
		)


def kill_port(port) -> bool:
	"""Kill whatever listens on `port`. Returns True if something was killed"""
	if not which("fuser"):
		log(f"fuser not found, cannot free port {port}", level=3)
		return False
	return not exec_cmd(sudo(f"fuser -k {port}/tcp"), _raise=False)


def pkill(pattern) -> bool:
	return not exec_cmd(["pkill", "-f", pattern], _raise=False)


def get_bench_ports(config) -> list:
	return [
		config.site_port,
		config.socketio_port,
		config.redis_cache_port,
		config.redis_queue_port,
		config.redis_socketio_port,
	]


def free_bench_ports(config):
	for port in get_bench_ports(config):
		if kill_port(port):
			logger.info(f"Freed port {port}")

	# a dev server left behind by an earlier `bench start`
	pkill(f"(bench|frappe) serve --port {config.site_port}")
