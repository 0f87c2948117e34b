"""Which repository to analyse, and where its snapshot and log live.

The repository comes from the first source that names one: environment
(REPO_OWNER/REPO_NAME or the Actions GITHUB_REPOSITORY), prmetrics.yaml,
then the ``origin`` git remote. Collected data is cached per repository
under $XDG_CACHE_HOME/prmetrics.
"""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

GITHUB_WEB_URL = "https://github.com"

# git@host:owner/repo(.git), http(s)://host/owner/repo(.git), ssh://git@host/owner/repo(.git)
_REMOTE_PATTERNS = [
    re.compile(r"git@[\w.-]+:(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"),
    re.compile(r"https?://[\w.-]+/(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"),
    re.compile(r"ssh://git@[\w.-]+/(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"),
]


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def api_path(self) -> str:
        """REST prefix for repo-scoped endpoints."""
        return f"/repos/{self.full_name}"

    def pr_url(self, number: int) -> str:
        return f"{GITHUB_WEB_URL}/{self.full_name}/pull/{number}"

    @property
    def data_dir(self) -> Path:
        return get_cache_dir() / self.owner / self.name

    @property
    def snapshot_file(self) -> Path:
        return self.data_dir / "pr-data.json"

    @property
    def log_file(self) -> Path:
        return self.data_dir / "prmetrics.log"


def parse_git_remote_url(url: str) -> RepoInfo | None:
    for pattern in _REMOTE_PATTERNS:
        match = pattern.match(url.strip())
        if match:
            return RepoInfo(owner=match["owner"], name=match["name"])
    return None


def parse_repo_ref(ref: str) -> RepoInfo:
    """Parse ``owner/repo``; a GitHub URL for the repo is accepted too."""
    ref = (ref or "").strip()
    if "://" in ref or ref.startswith("git@"):
        repo = parse_git_remote_url(ref)
        if repo:
            return repo

    owner, _, name = ref.partition("/")
    if not owner or not name or "/" in name:
        raise ValueError(f"Repository must be in format owner/repo, got {ref!r}")
    return RepoInfo(owner=owner, name=name.removesuffix(".git"))


def get_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    return (Path(base) if base else Path.home() / ".cache") / "prmetrics"


def get_git_remote_url(remote: str = "origin") -> str | None:
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote],
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return result.stdout.strip()


def detect_repo_from_git() -> RepoInfo | None:
    url = get_git_remote_url("origin")
    return parse_git_remote_url(url) if url else None


def get_repo_from_config() -> RepoInfo | None:
    from .analysis_config import AnalysisConfig

    config = AnalysisConfig.load()
    if config.repo_owner and config.repo_name:
        return RepoInfo(owner=config.repo_owner, name=config.repo_name)
    return None


def get_repo_from_env() -> RepoInfo | None:
    owner, name = os.environ.get("REPO_OWNER"), os.environ.get("REPO_NAME")
    if owner and name:
        return RepoInfo(owner=owner, name=name)

    try:
        return parse_repo_ref(os.environ["GITHUB_REPOSITORY"])
    except (KeyError, ValueError):
        return None


def get_repo() -> RepoInfo:
    """First repository named by env, prmetrics.yaml or the git remote.

    Raises ValueError if none of them names one.
    """
    for detect in (get_repo_from_env, get_repo_from_config, detect_repo_from_git):
        repo = detect()
        if repo:
            return repo

    raise ValueError(
        "Could not determine repository. Pass --repo owner/name, set REPO_OWNER and "
        "REPO_NAME, add a repo section to prmetrics.yaml, or run inside a clone with a "
        "GitHub origin remote."
    )
