"""Tests for epicflow.git module."""

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

from epicflow.git.runner import run_git, GitResult
from epicflow.git.commit import commit, has_staged_changes
from epicflow.git.status import get_changed_files, get_repo_root, has_uncommitted_changes
from epicflow.git.branch import (
    branch_exists,
    get_current_branch,
    get_divergence_count,
    get_remote_default_branch,
    get_upstream,
)


def ok(stdout=""):
    return GitResult(returncode=0, stdout=stdout, stderr="")


def failed(stderr="fatal"):
    return GitResult(returncode=128, stdout="", stderr=stderr)


class TestGitResult:
    """Test GitResult dataclass."""

    def test_success_when_returncode_zero(self):
        assert GitResult(returncode=0, stdout="ok", stderr="").success is True

    def test_failure_when_returncode_nonzero(self):
        assert GitResult(returncode=1, stdout="", stderr="error").success is False

    def test_failure_when_timed_out(self):
        assert GitResult(returncode=0, stdout="ok", stderr="", timed_out=True).success is False

    def test_output_combines_streams(self):
        result = GitResult(returncode=1, stdout="out\n", stderr="  err\n")
        assert result.output == "out\nerr"


class TestRunGit:
    """Test run_git function."""

    @patch("epicflow.git.runner.subprocess.run")
    def test_returns_result_on_success(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="output", stderr="")
        result = run_git(["status"], Path("/tmp"))
        assert result.success
        assert result.stdout == "output"
        mock_run.assert_called_once()

    @patch("epicflow.git.runner.subprocess.run")
    def test_handles_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=30)
        result = run_git(["status"], Path("/tmp"))
        assert not result.success
        assert result.timed_out
        assert "timed out" in result.stderr

    @patch("epicflow.git.runner.subprocess.run")
    def test_missing_git(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        result = run_git(["status"], Path("/tmp"))
        assert result.returncode == 127
        assert not result.success

    @patch("epicflow.git.runner.subprocess.run")
    def test_passes_cwd_with_C_flag(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        run_git(["status", "--porcelain"], Path("/my/repo"))
        assert mock_run.call_args[0][0] == ["git", "-C", "/my/repo", "status", "--porcelain"]

    @patch("epicflow.git.runner.subprocess.run")
    def test_never_prompts(self, mock_run):
        mock_run.return_value = MagicMock(returncode=128, stdout="", stderr="could not read Username")
        result = run_git(["push", "-u", "origin", "epic/001-x"], Path("/repo"))
        assert mock_run.call_args[1]["env"]["GIT_TERMINAL_PROMPT"] == "0"
        assert result.output == "could not read Username"


class TestStatus:
    """Test status helpers."""

    @patch("epicflow.git.status.run_git")
    def test_clean(self, mock_git):
        mock_git.return_value = ok("")
        assert has_uncommitted_changes(Path("/repo")) is False
        assert get_changed_files(Path("/repo")) == []

    @patch("epicflow.git.status.run_git")
    def test_untracked_counts_as_dirty(self, mock_git):
        mock_git.return_value = ok("?? scratch.txt\n")
        assert has_uncommitted_changes(Path("/repo")) is True

    @patch("epicflow.git.status.run_git")
    def test_changed_files_with_spaces(self, mock_git):
        mock_git.return_value = ok(" M app/my file.py\0?? notes.md\0")
        assert get_changed_files(Path("/repo")) == ["app/my file.py", "notes.md"]

    @patch("epicflow.git.status.run_git")
    def test_changed_files_lists_untracked_files_individually(self, mock_git):
        mock_git.return_value = ok("?? docs/changelogs/001-x.md\0")
        get_changed_files(Path("/repo"))
        assert mock_git.call_args[0][0] == ["status", "--porcelain", "-z", "-uall"]

    @patch("epicflow.git.status.run_git")
    def test_rename_reports_new_name(self, mock_git):
        mock_git.return_value = ok("R  new.txt\0old.txt\0 M other.py\0")
        assert get_changed_files(Path("/repo")) == ["new.txt", "other.py"]

    @patch("epicflow.git.status.run_git")
    def test_changed_files_on_failure(self, mock_git):
        mock_git.return_value = failed("not a git repository")
        assert get_changed_files(Path("/repo")) == []

    @patch("epicflow.git.status.run_git")
    def test_repo_root(self, mock_git):
        mock_git.return_value = ok("/home/dev/shop\n")
        assert get_repo_root(Path("/home/dev/shop/app")) == Path("/home/dev/shop")

        mock_git.return_value = failed()
        assert get_repo_root(Path("/tmp")) is None


class TestBranch:
    """Test branch helpers."""

    @patch("epicflow.git.branch.run_git")
    def test_current_branch(self, mock_git):
        mock_git.return_value = ok("epic/001-x\n")
        assert get_current_branch(Path("/repo")) == "epic/001-x"

    @patch("epicflow.git.branch.run_git")
    def test_detached_head(self, mock_git):
        mock_git.return_value = ok("\n")
        assert get_current_branch(Path("/repo")) is None

    @patch("epicflow.git.branch.run_git")
    def test_branch_exists(self, mock_git):
        mock_git.return_value = failed()
        assert branch_exists(Path("/repo"), "epic/001-x") is False
        assert mock_git.call_args[0][0] == ["show-ref", "--verify", "refs/heads/epic/001-x"]

    @patch("epicflow.git.branch.run_git")
    def test_upstream(self, mock_git):
        mock_git.return_value = ok("origin/epic/001-x\n")
        assert get_upstream(Path("/repo")) == "origin/epic/001-x"

        mock_git.return_value = failed("no upstream configured")
        assert get_upstream(Path("/repo")) is None

    @patch("epicflow.git.branch.run_git")
    def test_divergence(self, mock_git):
        mock_git.return_value = ok("3\t5\n")
        assert get_divergence_count(Path("/repo"), "origin/main", "HEAD") == (3, 5)

        mock_git.return_value = ok("garbage\n")
        assert get_divergence_count(Path("/repo"), "origin/main", "HEAD") is None

    @patch("epicflow.git.branch.run_git")
    def test_remote_default_branch(self, mock_git):
        mock_git.return_value = ok("refs/remotes/origin/trunk\n")
        assert get_remote_default_branch(Path("/repo")) == "trunk"

        mock_git.return_value = failed()
        assert get_remote_default_branch(Path("/repo")) is None



class TestCommit:
    """Test commit helpers."""

    @patch("epicflow.git.commit.run_git")
    def test_has_staged_changes(self, mock_git):
        mock_git.return_value = GitResult(returncode=1, stdout="", stderr="")
        assert has_staged_changes(Path("/repo")) is True
        assert mock_git.call_args[0][0] == ["diff", "--cached", "--quiet"]

        mock_git.return_value = ok()
        assert has_staged_changes(Path("/repo")) is False

    @patch("epicflow.git.commit.run_git")
    def test_staged_check_failure_is_not_changes(self, mock_git):
        mock_git.return_value = failed("not a git repository")
        assert has_staged_changes(Path("/repo")) is False

    @patch("epicflow.git.commit.run_git")
    def test_commit_only_named_files(self, mock_git):
        mock_git.return_value = ok()
        commit(Path("/repo"), "docs: x", ["docs/a.md"])
        assert mock_git.call_args[0][0] == ["commit", "-m", "docs: x", "--", "docs/a.md"]

        has_staged_changes(Path("/repo"), ["docs/a.md"])
        assert mock_git.call_args[0][0] == ["diff", "--cached", "--quiet", "--", "docs/a.md"]
