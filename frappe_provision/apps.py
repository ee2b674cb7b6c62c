# imports - standard imports
import logging
import os
import re
import shutil
import tempfile
from functools import lru_cache
from typing import List, Tuple
from urllib.parse import urlparse

# imports - module imports
import frappe_provision
from frappe_provision.exceptions import (
	FetchError,
	InvalidBranchException,
	InvalidRemoteException,
)
from frappe_provision.utils import log, register_secret, retry

logger = logging.getLogger(frappe_provision.PROJECT_NAME)

GITHUB_HOST = "github.com"
ARCHIVE_AUTHOR = ("frappe-provision", "provision@localhost")


class AppSpec:
	"""An app to fetch into the bench and install on the site.

	`repo` is either a full git url or a host/path like `github.com/org/repo.git`,
	the latter is turned into an https url carrying the GitHub token if one is set.
	"""

	def __init__(
		self,
		name: str,
		repo: str,
		branch: str = None,
		required: bool = False,
		custom: bool = False,
		defer_fixtures: bool = False,
	):
		self.name = name
		self.repo = repo
		self.branch = branch
		self.required = required
		self.custom = custom
		self.defer_fixtures = defer_fixtures

	def __repr__(self):
		return f"<AppSpec {self.name}@{self.branch}>"

	def __eq__(self, other):
		return isinstance(other, AppSpec) and vars(self) == vars(other)

	def url(self, token=None) -> str:
		return get_repo_url(self.repo, token=token)

	@property
	def org_repo(self) -> Tuple[str, str]:
		return parse_github_repo(self.repo)


def get_apps(config) -> List[AppSpec]:
	"""AppSpecs from config, core apps on `frappe_branch` and custom apps on `custom_branch` unless pinned"""
	apps = []
	for app in config.apps:
		custom = bool(app.get("custom"))
		default_branch = config.custom_branch if custom else config.frappe_branch
		apps.append(
			AppSpec(
				name=app["name"],
				repo=app["repo"],
				branch=app.get("branch") or default_branch,
				required=bool(app.get("required")),
				custom=custom,
				defer_fixtures=bool(app.get("defer_fixtures")),
			)
		)
	return apps


def get_repo_url(repo: str, token: str = None) -> str:
	if re.match(r"^(https?|git|ssh|file)://", repo) or repo.startswith("git@"):
		return repo

	if os.path.isabs(repo):
		return repo

	if token:
		register_secret(token)
		return f"https://token:{token}@{repo}"

	return f"https://{repo}"


def parse_github_repo(url: str) -> Tuple[str, str]:
	"""Returns (org, repo) of a GitHub url, raises InvalidRemoteException for anything else"""
	if url.startswith("git@"):
		host, _, path = url[len("git@") :].partition(":")
	else:
		if "://" not in url:
			url = f"https://{url}"
		parsed = urlparse(url)
		host, path = parsed.hostname, parsed.path

	parts = [p for p in (path or "").split("/") if p]
	if host != GITHUB_HOST or len(parts) < 2:
		raise InvalidRemoteException(f"{url} is not a GitHub repository url")

	org, repo = parts[0], parts[1]
	if repo.endswith(".git"):
		repo = repo[: -len(".git")]

	return org, repo


def get_archive_url(org: str, repo: str, branch: str) -> str:
	return f"https://{GITHUB_HOST}/{org}/{repo}/archive/refs/heads/{branch}.zip"


@lru_cache(maxsize=None)
def is_valid_branch(url: str, branch: str):
	"""Check if a branch or tag exists on a remote. Throws InvalidBranchException if not

	:param url: git url
	:type url: str
	:param branch: branch to check
	:type branch: str
	:raises InvalidRemoteException: remote can't be reached
	:raises InvalidBranchException: branch for this repo doesn't exist
	"""
	import git

	g = git.cmd.Git()

	try:
		res = g.ls_remote("--heads", "--tags", url, branch)
	except git.exc.GitCommandError:
		raise InvalidRemoteException(f"Invalid remote: {url}")

	if not res:
		raise InvalidBranchException(f"Invalid branch or tag: {branch} for the remote {url}")


def clone(url: str, branch: str, dest: str, attempts: int = 3, delay: float = 5):
	"""Shallow clone `url` at `branch` into `dest`, retrying with a linear back-off"""
	import git

	try:
		is_valid_branch(url, branch)
	except InvalidBranchException as e:
		# retrying won't make the branch appear
		raise FetchError(str(e))
	except InvalidRemoteException:
		logger.info(f"Could not list branches of {os.path.basename(dest)}, cloning anyway")

	def _clone():
		if os.path.exists(dest):
			shutil.rmtree(dest)
		try:
			return git.Repo.clone_from(
				url, dest, branch=branch, depth=1, origin="upstream"
			)
		except git.exc.GitCommandError as e:
			raise FetchError(f"git clone of {branch} failed with exit code {e.status}")

	return retry(_clone, attempts=attempts, delay=delay, description=f"Cloning {dest}")


def download_archive(
	org: str, repo: str, branch: str, dest: str, token: str = None, timeout: int = 300
) -> str:
	"""Download a GitHub branch as a zip archive and unpack it into `dest`.

	The unpacked tree is committed into a fresh git repository, bench only
	accepts local apps that are git repositories.
	"""
	import git
	import requests

	url = get_archive_url(org, repo, branch)
	headers = {"Authorization": f"token {token}"} if token else {}

	log(f"Downloading {org}/{repo}@{branch} archive")

	with tempfile.TemporaryDirectory() as tmp:
		archive_path = os.path.join(tmp, f"{repo}.zip")

		try:
			with requests.get(url, headers=headers, stream=True, timeout=timeout) as response:
				if response.status_code != 200:
					raise FetchError(f"Could not download {url}: HTTP {response.status_code}")

				with open(archive_path, "wb") as f:
					for chunk in response.iter_content(chunk_size=1024 * 64):
						f.write(chunk)
		except requests.RequestException as e:
			raise FetchError(f"Could not download {url}: {e}")

		unpack_dir = os.path.join(tmp, "unpacked")
		shutil.unpack_archive(archive_path, unpack_dir, format="zip")
		logger.info(f"Unzipped {archive_path}")

		# archives unpack into a single `<repo>-<branch>` directory
		entries = os.listdir(unpack_dir)
		if len(entries) != 1:
			raise FetchError(f"Unexpected layout in archive of {org}/{repo}")

		if os.path.exists(dest):
			shutil.rmtree(dest)
		os.makedirs(os.path.dirname(os.path.abspath(dest)), exist_ok=True)
		shutil.move(os.path.join(unpack_dir, entries[0]), dest)

	repo_ = git.Repo.init(dest)
	repo_.git.checkout("-b", branch)
	repo_.git.add(A=True)
	with repo_.git.custom_environment(
		GIT_AUTHOR_NAME=ARCHIVE_AUTHOR[0],
		GIT_AUTHOR_EMAIL=ARCHIVE_AUTHOR[1],
		GIT_COMMITTER_NAME=ARCHIVE_AUTHOR[0],
		GIT_COMMITTER_EMAIL=ARCHIVE_AUTHOR[1],
	):
		repo_.git.commit("-m", f"{org}/{repo}@{branch} from archive")

	return dest
