"""
GitHub integration helpers for the PR step.

Provides utilities for interacting with GitHub via the gh CLI.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import NamedTuple

from epicflow import git

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30


class PullRequest(NamedTuple):
    """An existing GitHub PR."""
    number: int
    url: str
    state: str  # "open", "closed", "merged"


def check_gh_available() -> tuple[bool, str]:
    """Check gh CLI is installed and authenticated.

    Returns: (ok, error_message)
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "status"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            return False, "GitHub CLI not authenticated\n  Run: gh auth login"
        return True, ""

    except FileNotFoundError:
        return False, "GitHub CLI (gh) not found\n  Install: https://cli.github.com/"
    except subprocess.TimeoutExpired:
        return False, "GitHub CLI timed out"


def find_pr_for_branch(repo_path: Path, branch: str) -> PullRequest | None:
    """Find the open PR whose head is branch.

    Returns None when there is no open PR or gh is unavailable; a lookup
    failure is logged, not raised, since callers fall back to asking the
    operator for a link.
    """
    try:
        result = subprocess.run(
            ["gh", "pr", "view", branch, "--json", "number,url,state"],
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=GH_TIMEOUT_SECONDS,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, subprocess.SubprocessError) as e:
        logger.warning(f"PR lookup for {branch} failed: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"No PR for {branch}: {result.stderr.strip()}")
        return None

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError:
        logger.warning(f"Invalid JSON from gh pr view for {branch}")
        return None

    state = str(data.get("state", "")).lower()
    if state != "open":
        return None
    return PullRequest(number=int(data.get("number", 0)), url=data.get("url", ""), state=state)


def parse_pr_number(pr_url: str) -> int | None:
    """Extract the PR number from a URL like https://github.com/o/r/pull/42."""
    try:
        return int(pr_url.rstrip("/").split("/")[-1])
    except (ValueError, IndexError):
        return None


def create_github_pr(
    repo_path: Path,
    branch: str,
    base_branch: str,
    title: str,
    body: str,
    remote: str = "origin",
) -> tuple[bool, str, int | None]:
    """
    Push branch and create a GitHub PR.

    Returns: (success, url_or_error, pr_number)
    """
    push_result = git.push_set_upstream(repo_path, remote, branch)
    if not push_result.success:
        return False, f"Failed to push branch: {push_result.output}", None

    try:
        result = subprocess.run(
            ["gh", "pr", "create",
             "--base", base_branch,
             "--head", branch,
             "--title", title,
             "--body", body],
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=GH_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        return False, "GitHub CLI (gh) not found", None
    except subprocess.TimeoutExpired:
        return False, "GitHub operation timed out", None
    except subprocess.SubprocessError as e:
        return False, f"GitHub operation failed: {e}", None

    if result.returncode != 0:
        return False, f"Failed to create PR: {result.stderr.strip()}", None

    pr_url = result.stdout.strip().splitlines()[-1] if result.stdout.strip() else ""
    return True, pr_url, parse_pr_number(pr_url)
