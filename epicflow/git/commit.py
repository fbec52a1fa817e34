"""Git commit operations."""

from pathlib import Path

from epicflow.git.runner import run_git, GitResult


def stage_files(worktree: Path, files: list[str]) -> GitResult:
    """Stage specific files."""
    return run_git(["add", "--"] + files, worktree)


def commit(worktree: Path, message: str, files: list[str] | None = None) -> GitResult:
    """Create a commit with the given message.

    With files, only those paths are committed; anything else staged stays staged.
    """
    args = ["commit", "-m", message]
    if files:
        args += ["--"] + files
    return run_git(args, worktree)


def has_staged_changes(worktree: Path, files: list[str] | None = None) -> bool:
    """True if the index differs from HEAD (for files, when given)."""
    args = ["diff", "--cached", "--quiet"]
    if files:
        args += ["--"] + files
    result = run_git(args, worktree)
    return result.returncode == 1
