"""Git branch operations."""

from pathlib import Path

from epicflow.git.runner import run_git, GitResult


def get_current_branch(worktree: Path) -> str | None:
    """Get the current branch name, or None if detached HEAD."""
    result = run_git(["branch", "--show-current"], worktree)
    if result.success:
        return result.stdout.strip() or None
    return None


def branch_exists(repo: Path, branch: str) -> bool:
    """Check if a branch exists."""
    result = run_git(["show-ref", "--verify", f"refs/heads/{branch}"], repo)
    return result.success


def create_branch(repo: Path, branch: str, start_point: str = "HEAD") -> GitResult:
    """Create a branch at start_point and check it out."""
    return run_git(["checkout", "-b", branch, start_point], repo)


def get_upstream(worktree: Path) -> str | None:
    """Get the upstream ref of the current branch (e.g. "origin/epic/001-x"), or None."""
    result = run_git(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"],
        worktree,
    )
    if result.success:
        return result.stdout.strip() or None
    return None


def get_divergence_count(worktree: Path, ref1: str, ref2: str) -> tuple[int, int] | None:
    """
    Get how many commits ref1 and ref2 have diverged.

    Returns:
        Tuple of (commits_in_ref1_not_in_ref2, commits_in_ref2_not_in_ref1),
        or None on error.

    Example:
        get_divergence_count(repo, "origin/epic/003-x", "HEAD")
        -> (3, 5) means the upstream is 3 commits ahead, HEAD is 5 commits ahead
    """
    result = run_git(["rev-list", "--left-right", "--count", f"{ref1}...{ref2}"], worktree)
    if not result.success:
        return None
    parts = result.stdout.strip().split()
    if len(parts) != 2:
        return None
    try:
        return (int(parts[0]), int(parts[1]))
    except ValueError:
        return None


def get_remote_default_branch(repo: Path, remote: str = "origin") -> str | None:
    """Get the branch the remote's HEAD points to, or None if unknown."""
    result = run_git(["symbolic-ref", f"refs/remotes/{remote}/HEAD"], repo, timeout=5)
    if result.success and result.stdout.strip():
        # refs/remotes/origin/main -> main
        return result.stdout.strip().split(f"refs/remotes/{remote}/", 1)[-1]
    return None
