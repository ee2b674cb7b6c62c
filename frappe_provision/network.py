# imports - standard imports
import socket
import time
from typing import Callable

# imports - module imports
from frappe_provision.exceptions import ServiceTimeoutError
from frappe_provision.utils import log


def is_port_open(host: str, port: int, timeout: float = 1.0) -> bool:
	try:
		with socket.create_connection((host, int(port)), timeout=timeout):
			return True
	except OSError:
		return False


def wait_for(
	check: Callable[[], bool],
	timeout: int = 60,
	interval: int = 3,
	description: str = "service",
):
	"""Poll `check` every `interval` seconds until it returns a truthy value.

	Raises ServiceTimeoutError once `timeout` seconds have elapsed.
	"""
	if interval <= 0:
		raise ValueError(f"interval must be positive, got {interval}")

	elapsed = 0
	log(f"Waiting for {description}...")

	while elapsed < timeout:
		if check():
			log(f"{description} is ready", level=1)
			return True
		print(f"Still waiting... ({elapsed}/{timeout} seconds)")
		time.sleep(interval)
		elapsed += interval

	raise ServiceTimeoutError(f"{description} did not come up within {timeout} seconds")


def wait_for_port(host: str, port: int, timeout: int = 60, interval: int = 3):
	return wait_for(
		lambda: is_port_open(host, port),
		timeout=timeout,
		interval=interval,
		description=f"{host}:{port}",
	)
