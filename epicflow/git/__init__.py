"""Git operations for epicflow.

This module provides clean interfaces for the git operations the epic
lifecycle needs.

Return type conventions:
- Functions returning GitResult: Caller must check .success before using output.
  Examples: stage_files(), commit(), fetch(), push_set_upstream()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: has_uncommitted_changes(), branch_exists()
- Functions returning parsed values: Return None/empty on failure.
  Examples: get_current_branch() -> None, get_changed_files() -> []
"""

from epicflow.git.runner import GitResult, run_git
from epicflow.git.status import (
    has_uncommitted_changes,
    get_changed_files,
    get_repo_root,
)
from epicflow.git.branch import (
    get_current_branch,
    branch_exists,
    create_branch,
    get_upstream,
    get_divergence_count,
    get_remote_default_branch,
)
from epicflow.git.commit import (
    stage_files,
    commit,
    has_staged_changes,
)
from epicflow.git.remote import (
    fetch,
    push_set_upstream,
)

__all__ = [
    # runner
    "GitResult",
    "run_git",
    # status
    "has_uncommitted_changes",
    "get_changed_files",
    "get_repo_root",
    # branch
    "get_current_branch",
    "branch_exists",
    "create_branch",
    "get_upstream",
    "get_divergence_count",
    "get_remote_default_branch",
    # commit
    "stage_files",
    "commit",
    "has_staged_changes",
    # remote
    "fetch",
    "push_set_upstream",
]
