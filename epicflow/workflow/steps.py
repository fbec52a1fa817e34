"""
External steps: the tools the lifecycle delegates to.

The lifecycle only sees StepRunner.run(step, context) -> StepOutcome, so
tests substitute a fake runner and never spawn processes.

Steps and the context keys they read:
    tests, lint, typecheck   (none) - commands from .epicflow/steps.yaml
    vcs.commit               paths, message
    vcs.push                 branch (defaults to the current branch)
    pr.create                branch, base, title, body
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from epicflow import git
from epicflow.lib import github
from epicflow.lib.constants import ALL_STEPS, CHECK_STEPS
from epicflow.lib.errors import ExternalStepFailed
from epicflow.lib.steps_config import StepsConfig, get_step_command

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """Result of one external step."""
    step: str
    ok: bool
    output: str = ""
    returncode: int = 0
    timed_out: bool = False


class StepRunner(Protocol):
    def run(self, step: str, context: dict[str, Any] | None = None) -> StepOutcome:
        ...


def _combine(stdout: str | None, stderr: str | None) -> str:
    return "\n".join(part.rstrip() for part in (stdout or "", stderr or "") if part.strip())


class SubprocessStepRunner:
    """Runs steps as real processes in the repository."""

    def __init__(
        self,
        repo: Path,
        steps_config: StepsConfig,
        timeout: int = 900,
        remote: str = "origin",
    ):
        self.repo = repo
        self.steps_config = steps_config
        self.timeout = timeout
        self.remote = remote

    def run(self, step: str, context: dict[str, Any] | None = None) -> StepOutcome:
        """Run one step.

        Raises:
            ValueError: for an unknown step or missing context key
        """
        context = context or {}
        if step not in ALL_STEPS:
            raise ValueError(f"Unknown step: {step}")

        if step in CHECK_STEPS:
            return self._run_check(step)
        if step == "vcs.commit":
            return self._commit(context)
        if step == "vcs.push":
            return self._push(context)
        return self._create_pr(context)

    def _run_check(self, step: str) -> StepOutcome:
        cmd = get_step_command(self.steps_config, step, {"repo": str(self.repo)})
        logger.debug(f"[STEP] {step}: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=str(self.repo),
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return StepOutcome(step, ok=False, output=f"Command not found: {cmd[0]}", returncode=127)
        except subprocess.TimeoutExpired as e:
            output = _combine(
                e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else e.stdout,
                e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else e.stderr,
            )
            return StepOutcome(
                step,
                ok=False,
                output=(output + "\n" if output else "") + f"Timed out after {self.timeout}s",
                returncode=-1,
                timed_out=True,
            )

        return StepOutcome(
            step,
            ok=result.returncode == 0,
            output=_combine(result.stdout, result.stderr),
            returncode=result.returncode,
        )

    def _commit(self, context: dict[str, Any]) -> StepOutcome:
        try:
            paths = [str(p) for p in context["paths"]]
            message = context["message"]
        except KeyError as e:
            raise ValueError(f"vcs.commit needs context key {e}") from None

        staged = git.stage_files(self.repo, paths)
        if not staged.success:
            return StepOutcome("vcs.commit", ok=False, output=staged.output, returncode=staged.returncode)
        if not git.has_staged_changes(self.repo, paths):
            logger.info(f"[STEP] vcs.commit: nothing to commit for {', '.join(paths)}")
            return StepOutcome("vcs.commit", ok=True, output="nothing to commit")

        result = git.commit(self.repo, message, paths)
        return StepOutcome(
            "vcs.commit",
            ok=result.success,
            output=result.output,
            returncode=result.returncode,
            timed_out=result.timed_out,
        )

    def _push(self, context: dict[str, Any]) -> StepOutcome:
        branch = context.get("branch") or git.get_current_branch(self.repo)
        if not branch:
            return StepOutcome("vcs.push", ok=False, output="HEAD is detached; nothing to push", returncode=1)

        result = git.push_set_upstream(self.repo, self.remote, branch)
        return StepOutcome(
            "vcs.push",
            ok=result.success,
            output=result.output,
            returncode=result.returncode,
            timed_out=result.timed_out,
        )

    def _create_pr(self, context: dict[str, Any]) -> StepOutcome:
        try:
            base = context["base"]
            title = context["title"]
        except KeyError as e:
            raise ValueError(f"pr.create needs context key {e}") from None

        branch = context.get("branch") or git.get_current_branch(self.repo)
        if not branch:
            return StepOutcome("pr.create", ok=False, output="HEAD is detached; no branch for a PR", returncode=1)

        ok, url_or_error, _ = github.create_github_pr(
            self.repo,
            branch=branch,
            base_branch=base,
            title=title,
            body=context.get("body", ""),
            remote=self.remote,
        )
        return StepOutcome("pr.create", ok=ok, output=url_or_error, returncode=0 if ok else 1)


def run_steps(
    runner: StepRunner,
    steps: list[str] | tuple[str, ...],
    context: dict[str, Any] | None = None,
) -> list[StepOutcome]:
    """Run steps strictly in order, stopping at the first failure.

    Returns the outcomes of all steps when every one succeeded.

    Raises:
        ExternalStepFailed: carrying the failing step's captured output.
            Steps after it are not run; steps before it are not undone.
    """
    outcomes = []
    for step in steps:
        logger.info(f"[STEP] {step}: running")
        outcome = runner.run(step, context)
        outcomes.append(outcome)
        if not outcome.ok:
            logger.info(f"[STEP] {step}: failed (exit {outcome.returncode})")
            raise ExternalStepFailed(step, outcome.output)
        logger.info(f"[STEP] {step}: ok")
    return outcomes
