"""
Configuration loader for epicflow.

Project settings live in <repo>/.epicflow/project.env. Every key is optional;
a repository without the file gets the defaults below, with the default
branch detected from git.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from epicflow import git
from epicflow.lib import envparse
from epicflow.lib import validate
from epicflow.lib.constants import CONFIG_DIR, PROJECT_ENV

logger = logging.getLogger(__name__)

DEFAULT_DOCS_DIR = "docs/epics"
DEFAULT_BRANCH_PREFIX = "epic/"
DEFAULT_REMOTE = "origin"
DEFAULT_STEP_TIMEOUT = 900


@dataclass
class ProjectConfig:
    """Project-level configuration from .epicflow/project.env"""
    repo_path: Path
    default_branch: str
    docs_dir: Path  # Absolute; DOCS_DIR is relative to repo_path
    branch_prefix: str  # Epic branches are <prefix><NNN>-<slug>
    remote: str
    step_timeout: int  # Seconds per test/lint/typecheck run
    fetch_before_check: bool  # Fetch the remote before the behind-remote check

    @property
    def config_dir(self) -> Path:
        return self.repo_path / CONFIG_DIR


def detect_default_branch(repo_path: Path, remote: str = DEFAULT_REMOTE) -> str:
    """Detect default branch from the remote HEAD, then common local names."""
    branch = git.get_remote_default_branch(repo_path, remote)
    if branch:
        return branch

    for candidate in ("main", "master"):
        if git.branch_exists(repo_path, candidate):
            return candidate

    return "main"


def load_project_config(repo_path: Path) -> ProjectConfig:
    """Load .epicflow/project.env (if present) and return ProjectConfig.

    Raises:
        ValueError: if the env file is malformed
        ValidationError: if a value fails the project schema
    """
    env_path = repo_path / CONFIG_DIR / PROJECT_ENV
    env: dict[str, str] = {}
    if env_path.exists():
        env = envparse.load_env(env_path)
        validate.validate(env, "project")
    else:
        logger.debug(f"No {env_path}, using defaults")

    remote = env.get("REMOTE", DEFAULT_REMOTE)
    default_branch = env.get("DEFAULT_BRANCH") or detect_default_branch(repo_path, remote)

    return ProjectConfig(
        repo_path=repo_path,
        default_branch=default_branch,
        docs_dir=repo_path / env.get("DOCS_DIR", DEFAULT_DOCS_DIR),
        branch_prefix=env.get("BRANCH_PREFIX", DEFAULT_BRANCH_PREFIX),
        remote=remote,
        step_timeout=int(env.get("STEP_TIMEOUT", str(DEFAULT_STEP_TIMEOUT))),
        fetch_before_check=env.get("FETCH_BEFORE_CHECK", "true").lower() == "true",
    )
