"""Git status operations."""

from pathlib import Path

from epicflow.git.runner import run_git


def has_uncommitted_changes(worktree: Path) -> bool:
    """Check if worktree has any uncommitted changes (staged, unstaged, or untracked)."""
    result = run_git(["status", "--porcelain"], worktree)
    return bool(result.stdout.strip())


def get_changed_files(worktree: Path) -> list[str]:
    """Get list of changed files (staged + unstaged + untracked).

    Uses -z for null-separated output to handle filenames with spaces/special chars.
    Returns empty list on git failure (e.g., not a repo).
    """
    result = run_git(["status", "--porcelain", "-z", "-uall"], worktree)
    if not result.success or not result.stdout:
        return []

    files = []
    # -z format: "XY filename\0" or "XY new\0old\0" for renames
    entries = result.stdout.split('\0')
    i = 0
    while i < len(entries):
        entry = entries[i]
        if len(entry) < 3:
            i += 1
            continue

        status = entry[:2]
        files.append(entry[3:])

        # Renames (R) and copies (C) carry the source path as an extra entry
        if status[0] in ('R', 'C'):
            i += 2
        else:
            i += 1

    return files


def get_repo_root(path: Path) -> Path | None:
    """Get the top-level directory of the repository containing path."""
    result = run_git(["rev-parse", "--show-toplevel"], path)
    if result.success and result.stdout.strip():
        return Path(result.stdout.strip())
    return None
