"""Tests for epicflow.workflow.steps module."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from epicflow.git.runner import GitResult
from epicflow.lib.errors import ExternalStepFailed
from epicflow.lib.steps_config import StepsConfig
from epicflow.workflow.steps import SubprocessStepRunner, run_steps

from conftest import FakeRunner

OK = GitResult(returncode=0, stdout="", stderr="")


@pytest.fixture
def runner(tmp_path):
    return SubprocessStepRunner(tmp_path, StepsConfig(), timeout=5)


class TestRunSteps:
    """Tests for run_steps."""

    def test_runs_in_order(self):
        runner = FakeRunner()
        outcomes = run_steps(runner, ["tests", "lint", "typecheck"])

        assert [o.step for o in outcomes] == ["tests", "lint", "typecheck"]
        assert all(o.ok for o in outcomes)

    def test_fail_fast(self):
        runner = FakeRunner(fail={"lint"})

        with pytest.raises(ExternalStepFailed) as exc:
            run_steps(runner, ["tests", "lint", "typecheck"])

        assert exc.value.step == "lint"
        assert exc.value.output == "lint exploded"
        assert runner.steps == ["tests", "lint"]

    def test_passes_context(self):
        runner = FakeRunner()
        run_steps(runner, ["vcs.push"], {"branch": "epic/001-x"})
        assert runner.calls == [("vcs.push", {"branch": "epic/001-x"})]


class TestCheckSteps:
    """Tests for check steps run as subprocesses."""

    @patch("epicflow.workflow.steps.subprocess.run")
    def test_success(self, mock_run, runner, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="12 passed\n", stderr="")

        outcome = runner.run("tests")

        assert outcome.ok
        assert outcome.output == "12 passed"
        assert mock_run.call_args[0][0] == ["make", "test"]
        assert mock_run.call_args[1]["cwd"] == str(tmp_path)
        assert mock_run.call_args[1]["timeout"] == 5

    @patch("epicflow.workflow.steps.subprocess.run")
    def test_failure_keeps_output(self, mock_run, runner):
        mock_run.return_value = MagicMock(returncode=2, stdout="E501 line too long\n", stderr="make: *** Error 1\n")

        outcome = runner.run("lint")

        assert not outcome.ok
        assert outcome.returncode == 2
        assert "E501 line too long" in outcome.output
        assert "make: *** Error 1" in outcome.output

    @patch("epicflow.workflow.steps.subprocess.run")
    def test_timeout(self, mock_run, runner):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="make", timeout=5, output=b"partial")

        outcome = runner.run("typecheck")

        assert not outcome.ok
        assert outcome.timed_out
        assert "partial" in outcome.output
        assert "Timed out after 5s" in outcome.output

    @patch("epicflow.workflow.steps.subprocess.run")
    def test_command_not_found(self, mock_run, runner):
        mock_run.side_effect = FileNotFoundError()

        outcome = runner.run("tests")

        assert not outcome.ok
        assert outcome.returncode == 127
        assert "make" in outcome.output

    @patch("epicflow.workflow.steps.subprocess.run")
    def test_configured_command(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        config = StepsConfig(commands={"tests": "pytest -q {repo}/tests", "lint": "ruff check", "typecheck": "mypy ."})

        SubprocessStepRunner(tmp_path, config).run("tests")

        assert mock_run.call_args[0][0] == ["pytest", "-q", f"{tmp_path}/tests"]

    def test_unknown_step(self, runner):
        with pytest.raises(ValueError):
            runner.run("deploy")


class TestVcsSteps:
    """Tests for vcs.commit, vcs.push and pr.create."""

    @patch("epicflow.workflow.steps.git")
    def test_commit(self, mock_git, runner, tmp_path):
        mock_git.stage_files.return_value = OK
        mock_git.commit.return_value = GitResult(returncode=0, stdout="[epic/001-x abc123] docs", stderr="")

        outcome = runner.run("vcs.commit", {"paths": ["docs/a.md", Path("docs/b.md")], "message": "docs: x"})

        assert outcome.ok
        mock_git.stage_files.assert_called_once_with(tmp_path, ["docs/a.md", "docs/b.md"])
        mock_git.commit.assert_called_once_with(tmp_path, "docs: x", ["docs/a.md", "docs/b.md"])

    @patch("epicflow.workflow.steps.git")
    def test_commit_stage_failure(self, mock_git, runner):
        mock_git.stage_files.return_value = GitResult(returncode=128, stdout="", stderr="pathspec did not match")

        outcome = runner.run("vcs.commit", {"paths": ["nope.md"], "message": "docs: x"})

        assert not outcome.ok
        assert "pathspec" in outcome.output
        mock_git.commit.assert_not_called()

    @patch("epicflow.workflow.steps.git")
    def test_commit_with_nothing_staged_succeeds(self, mock_git, runner):
        mock_git.stage_files.return_value = OK
        mock_git.has_staged_changes.return_value = False

        outcome = runner.run("vcs.commit", {"paths": ["docs/a.md"], "message": "docs: x"})

        assert outcome.ok
        assert outcome.output == "nothing to commit"
        mock_git.commit.assert_not_called()

    def test_commit_needs_context(self, runner):
        with pytest.raises(ValueError):
            runner.run("vcs.commit", {"paths": ["a.md"]})

    @patch("epicflow.workflow.steps.git")
    def test_push(self, mock_git, tmp_path):
        mock_git.push_set_upstream.return_value = OK
        runner = SubprocessStepRunner(tmp_path, StepsConfig(), remote="upstream")

        outcome = runner.run("vcs.push", {"branch": "epic/001-x"})

        assert outcome.ok
        mock_git.push_set_upstream.assert_called_once_with(tmp_path, "upstream", "epic/001-x")

    @patch("epicflow.workflow.steps.git")
    def test_push_detached(self, mock_git, runner):
        mock_git.get_current_branch.return_value = None

        outcome = runner.run("vcs.push")

        assert not outcome.ok
        mock_git.push_set_upstream.assert_not_called()

    @patch("epicflow.workflow.steps.github.create_github_pr")
    def test_pr_create(self, mock_create, runner, tmp_path):
        mock_create.return_value = (True, "https://github.com/acme/shop/pull/3", 3)

        outcome = runner.run("pr.create", {
            "branch": "epic/001-x",
            "base": "main",
            "title": "Epic 1: X",
            "body": "Objective",
        })

        assert outcome.ok
        assert outcome.output == "https://github.com/acme/shop/pull/3"
        mock_create.assert_called_once_with(
            tmp_path,
            branch="epic/001-x",
            base_branch="main",
            title="Epic 1: X",
            body="Objective",
            remote="origin",
        )

    @patch("epicflow.workflow.steps.github.create_github_pr")
    def test_pr_create_failure(self, mock_create, runner):
        mock_create.return_value = (False, "Failed to create PR: already exists", None)

        outcome = runner.run("pr.create", {"branch": "epic/001-x", "base": "main", "title": "T"})

        assert not outcome.ok
        assert "already exists" in outcome.output
