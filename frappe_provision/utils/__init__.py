# imports - standard imports
import logging
import os
import re
import subprocess
import sys
import time
from shlex import split
from typing import Callable, Iterable, List, Union

# imports - third party imports
import click

# imports - module imports
from frappe_provision import PROJECT_NAME
from frappe_provision.exceptions import CommandFailedError

logger = logging.getLogger(PROJECT_NAME)
_secrets = set()
MASK = "********"


def register_secret(value):
	"""Hide `value` from every command echo and log line written from here on"""
	if value and len(str(value)) > 1:
		_secrets.add(str(value))


def mask_secrets(text: str, secrets: Iterable = None) -> str:
	"""Replace secrets standing on their own, or glued to a `-p` flag, with a mask.

	User names passed to `-u`/`--db-root-username` are shown as is, a root
	password of `root` would hide them otherwise.
	"""
	secrets = {str(s) for s in (secrets or ()) if s} | _secrets
	for secret in sorted(secrets, key=len, reverse=True):
		pattern = (
			rf"(?<!\s-u )(?<!--db-root-username )"
			rf"(?:(?<=\s-p)|(?<=^-p)|(?<![\w./-])){re.escape(secret)}(?![\w./-])"
		)
		text = re.sub(pattern, MASK, text)
	return text


def log(message, level=0, no_log=False):
	import frappe_provision
	import frappe_provision.cli

	levels = {
		0: ("blue", "INFO"),  # normal
		1: ("green", "SUCCESS"),  # success
		2: ("red", "ERROR"),  # fail
		3: ("yellow", "WARN"),  # warn/suggest
	}

	color, prefix = levels.get(level, levels[0])
	message = mask_secrets(message)

	if frappe_provision.cli.from_command_line and frappe_provision.cli.dynamic_feed:
		frappe_provision.LOG_BUFFER.append({"prefix": prefix, "message": message, "color": color})

	if no_log:
		click.secho(message, fg=color)
	else:
		loggers = {2: logger.error, 3: logger.warning}
		level_logger = loggers.get(level, logger.info)

		level_logger(message)
		click.secho(f"{prefix}: {message}", fg=color)


def exec_cmd(
	cmd: Union[str, List[str]], cwd=".", env=None, _raise=True, input: str = None
) -> int:
	"""Run `cmd` and return its exit code.

	`input` is written to the process' stdin, otherwise stdin is inherited.
	"""
	if env is not None:
		_env = os.environ.copy()
		_env.update(env)
		env = _env

	if isinstance(cmd, str):
		cmd = split(cmd)

	printable = mask_secrets(" ".join(cmd))
	click.secho(f"$ {printable}", fg="bright_black")

	cwd_info = f"cd {cwd} && " if cwd != "." else ""
	cmd_log = f"{cwd_info}{printable}"
	logger.debug(cmd_log)

	return_code = subprocess.run(
		cmd, cwd=cwd, env=env, input=input, universal_newlines=True
	).returncode

	if return_code:
		logger.warning(f"{cmd_log} executed with exit code {return_code}")
		if _raise:
			raise CommandFailedError(f"{printable} exited with code {return_code}")
	return return_code


def get_cmd_output(cmd, cwd=".", _raise=True, env=None, input=None):
	output = ""
	try:
		output = subprocess.check_output(
			cmd,
			cwd=cwd,
			shell=isinstance(cmd, str),
			stderr=subprocess.PIPE,
			encoding="utf-8",
			env=env,
			input=input,
		).strip()
	except subprocess.CalledProcessError as e:
		if e.output:
			output = e.output
		elif _raise:
			raise
	return output


def which(executable: str, raise_err: bool = False) -> str:
	from shutil import which

	exec_ = which(executable)

	if not exec_ and raise_err:
		raise FileNotFoundError(f"{executable} not found in PATH")

	return exec_


def is_root():
	return os.getuid() == 0


def sudo(cmd: str) -> str:
	"""Prefix `cmd` with sudo unless already running as root"""
	return cmd if is_root() else f"sudo {cmd}"


def get_local_bin_path() -> str:
	return os.path.join(os.path.expanduser("~"), ".local", "bin")


def ensure_local_bin_in_path():
	local_bin = get_local_bin_path()
	paths = os.environ.get("PATH", "").split(os.pathsep)
	if local_bin not in paths:
		os.environ["PATH"] = os.pathsep.join([local_bin] + [p for p in paths if p])


def get_provision_env() -> dict:
	"""Environment for bench calls. Python debuggers are disabled so that a stray
	`breakpoint()` in an app's install hooks can't block an unattended run."""
	path = os.environ.get("PATH", "")
	return {
		"PATH": os.pathsep.join([get_local_bin_path(), path]) if path else get_local_bin_path(),
		"PYTHONBREAKPOINT": "0",
		"PYTHONDONTWRITEBYTECODE": "1",
		"PYTHONUNBUFFERED": "1",
		"PYTHONIOENCODING": "utf-8",
	}


def retry(
	fn: Callable,
	attempts: int = 3,
	delay: float = 5,
	exceptions=(Exception,),
	description: str = None,
):
	"""Call `fn` until it succeeds, at most `attempts` times.

	Sleeps `delay * attempt` seconds after each failed attempt (linear back-off).
	The last exception is re-raised once attempts are exhausted.
	"""
	attempts = max(1, int(attempts))
	description = description or getattr(fn, "__name__", "operation")

	for attempt in range(1, attempts + 1):
		try:
			return fn()
		except exceptions as e:
			if attempt == attempts:
				log(f"{description} failed after {attempts} attempt(s)", level=2)
				raise

			wait = delay * attempt
			log(
				f"{description} failed ({e}), retrying in {wait}s"
				f" [attempt {attempt}/{attempts}]",
				level=3,
			)
			time.sleep(wait)


def setup_logging(path=".") -> logging.Logger:
	LOG_LEVEL = 15
	logging.addLevelName(LOG_LEVEL, "LOG")

	def logv(self, message, *args, **kws):
		if self.isEnabledFor(LOG_LEVEL):
			self._log(LOG_LEVEL, message, args, **kws)

	logging.Logger.log = logv

	if os.path.exists(os.path.join(path, "logs")):
		log_file = os.path.join(path, "logs", "provision.log")
		hdlr = logging.FileHandler(log_file)
	else:
		hdlr = logging.NullHandler()

	logger = logging.getLogger(PROJECT_NAME)
	formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
	hdlr.setFormatter(formatter)
	logger.addHandler(hdlr)
	logger.setLevel(logging.DEBUG)

	return logger


def get_traceback() -> str:
	"""Returns the traceback of the Exception"""
	from traceback import format_exception

	exc_type, exc_value, exc_tb = sys.exc_info()

	if not any([exc_type, exc_value, exc_tb]):
		return ""

	trace_list = format_exception(exc_type, exc_value, exc_tb)
	return "".join(trace_list)


class _dict(dict):
	"""dict like object that exposes keys as attributes"""

	def __getattr__(self, key):
		ret = self.get(key)
		if not ret and key.startswith("__") and key != "__deepcopy__":
			raise AttributeError()
		return ret

	def __setattr__(self, key, value):
		self[key] = value

	def __getstate__(self):
		return self

	def __setstate__(self, d):
		self.update(d)

	def update(self, d):
		"""update and return self -- the missing dict feature in python"""
		super().update(d)
		return self

	def copy(self):
		return _dict(dict(self).copy())
