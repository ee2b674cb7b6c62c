# imports - standard imports
from functools import wraps
from inspect import signature

# imports - third party imports
import click

# imports - module imports
import frappe_provision


class Rendering:
	def __init__(self, success, title, is_parent, args, kwargs, fn=None):
		import frappe_provision.cli

		self.dynamic_feed = (
			frappe_provision.cli.from_command_line and frappe_provision.cli.dynamic_feed
		)

		if not self.dynamic_feed:
			return

		try:
			self.kw = dict(args[0].__dict__)
		except Exception:
			self.kw = {}

		if fn:
			self.kw.update(signature(fn).bind_partial(*args, **kwargs).arguments)
		else:
			self.kw.update(kwargs)

		self.is_parent = is_parent
		self.title = title
		self.success = success

	def __enter__(self, *args, **kwargs):
		if not self.dynamic_feed:
			return

		_prefix = click.style("⏼", fg="bright_yellow")
		_hierarchy = "" if self.is_parent else "  "
		self._title = self.title.format(**self.kw)
		click.secho(f"{_hierarchy}{_prefix} {self._title}")

		frappe_provision.LOG_BUFFER.append(
			{
				"message": self._title,
				"prefix": _prefix,
				"color": None,
				"is_parent": self.is_parent,
			}
		)

	def __exit__(self, exc_type, *args, **kwargs):
		if not self.dynamic_feed:
			return

		if exc_type:
			self._prefix = click.style("✘", fg="red")
			self._success = self._title
		else:
			self._prefix = click.style("✔", fg="green")
			self._success = self.success.format(**self.kw)

		self.render_screen()

	def render_screen(self):
		click.clear()

		for l in frappe_provision.LOG_BUFFER:
			if l["message"] == self._title:
				l["prefix"] = self._prefix
				l["message"] = self._success
			_hierarchy = "" if l.get("is_parent") else "  "
			click.secho(f'{_hierarchy}{l["prefix"]} {l["message"]}', fg=l["color"])


def job(title: str = None, success: str = None):
	"""Supposed to be wrapped around an atomic job in a given process.
	For instance, `provision install` consists of jobs like `setting up MariaDB`
	and `creating the site`.
	"""

	def innfn(fn):
		@wraps(fn)
		def wrapper_fn(*args, **kwargs):
			with Rendering(
				success=success,
				title=title,
				is_parent=True,
				args=args,
				kwargs=kwargs,
				fn=fn,
			):
				return fn(*args, **kwargs)

		return wrapper_fn

	return innfn


def step(title: str = None, success: str = None):
	"""Supposed to be wrapped around the smallest possible atomic step in a given operation.
	For instance, `waiting for MariaDB` is a step in the MariaDB setup.
	"""

	def innfn(fn):
		@wraps(fn)
		def wrapper_fn(*args, **kwargs):
			with Rendering(
				success=success,
				title=title,
				is_parent=False,
				args=args,
				kwargs=kwargs,
				fn=fn,
			):
				return fn(*args, **kwargs)

		return wrapper_fn

	return innfn
