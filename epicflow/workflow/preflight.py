"""
Preflight checks gating lifecycle transitions.

Three independent checks on the repository, all of which must pass:

1. The working tree is clean (nothing staged, modified or untracked).
2. HEAD is on a branch, and that branch is not the default branch.
3. If the branch tracks a remote, it is not behind it. Being ahead is
   fine: unpushed commits are normal mid-epic, pushing happens at PR time.

The gate runs before any document is written or any tool is invoked.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from epicflow import git
from epicflow.lib.constants import (
    BRANCH_BEHIND_REMOTE,
    DETACHED_HEAD,
    DIRTY_WORKING_TREE,
    ON_DEFAULT_BRANCH,
)
from epicflow.lib.errors import PreflightFailed

logger = logging.getLogger(__name__)


@dataclass
class BranchState:
    """Repository state read fresh from git; never persisted."""
    branch: str | None  # None when HEAD is detached
    clean: bool
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    dirty_files: list[str] = field(default_factory=list)


@dataclass
class PreflightResult:
    reasons: list[str] = field(default_factory=list)
    details: dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.reasons

    def raise_for_failure(self) -> None:
        """Raise PreflightFailed for the first failing check, if any."""
        if self.reasons:
            reason = self.reasons[0]
            raise PreflightFailed(reason, self.details.get(reason, ""))


def read_branch_state(repo: Path, fetch: bool = False, remote: str = "origin") -> BranchState:
    """Read the current BranchState from git.

    With fetch=True the remote is fetched first so the behind count is
    current; a failed fetch is logged and the last known remote state used.
    """
    branch = git.get_current_branch(repo)
    dirty_files = git.get_changed_files(repo)
    clean = not dirty_files and not git.has_uncommitted_changes(repo)

    upstream = git.get_upstream(repo) if branch else None
    ahead = behind = 0
    if upstream:
        if fetch:
            result = git.fetch(repo, remote)
            if not result.success:
                logger.warning(f"[PREFLIGHT] fetch {remote} failed: {result.output}")
        counts = git.get_divergence_count(repo, upstream, "HEAD")
        if counts is not None:
            behind, ahead = counts

    return BranchState(
        branch=branch,
        clean=clean,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
        dirty_files=dirty_files,
    )


def check_preflight(state: BranchState, default_branch: str, ignore=()) -> PreflightResult:
    """Evaluate all checks against state; reasons are reported in check order.

    Changed files listed in ignore (repo-relative) do not make the tree dirty.
    """
    result = PreflightResult()

    ignored = set(ignore)
    dirty = [f for f in state.dirty_files if f not in ignored]
    if not state.clean and (dirty or not state.dirty_files):
        result.reasons.append(DIRTY_WORKING_TREE)
        shown = ", ".join(dirty[:5])
        more = f" (+{len(dirty) - 5} more)" if len(dirty) > 5 else ""
        result.details[DIRTY_WORKING_TREE] = f"uncommitted changes: {shown}{more}" if shown else "uncommitted changes"

    if state.branch is None:
        result.reasons.append(DETACHED_HEAD)
        result.details[DETACHED_HEAD] = "HEAD is not on a branch"
    elif state.branch == default_branch:
        result.reasons.append(ON_DEFAULT_BRANCH)
        result.details[ON_DEFAULT_BRANCH] = f"on '{default_branch}', switch to the epic branch"

    if state.upstream and state.behind > 0:
        result.reasons.append(BRANCH_BEHIND_REMOTE)
        result.details[BRANCH_BEHIND_REMOTE] = f"{state.behind} commit(s) behind {state.upstream}, pull first"

    for reason in result.reasons:
        logger.info(f"[PREFLIGHT] {reason}: {result.details[reason]}")
    return result


class PreflightChecker:
    """Reads branch state from git and gates transitions on it."""

    def __init__(self, repo: Path, default_branch: str, remote: str = "origin", fetch: bool = False):
        self.repo = repo
        self.default_branch = default_branch
        self.remote = remote
        self.fetch = fetch

    def read_state(self, fetch: bool | None = None) -> BranchState:
        return read_branch_state(self.repo, fetch=self.fetch if fetch is None else fetch, remote=self.remote)

    def check(self, ignore=()) -> PreflightResult:
        return check_preflight(self.read_state(), self.default_branch, ignore)

    def require(self, ignore=()) -> None:
        """Raises PreflightFailed unless every check passes."""
        self.check(ignore).raise_for_failure()

    def require_clean(self) -> None:
        """Only the clean-tree check; used before creating an epic branch."""
        result = check_preflight(self.read_state(fetch=False), self.default_branch)
        if DIRTY_WORKING_TREE in result.reasons:
            raise PreflightFailed(DIRTY_WORKING_TREE, result.details[DIRTY_WORKING_TREE])
