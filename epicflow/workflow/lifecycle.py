"""
Epic lifecycle orchestration.

Sequences the preflight gate, external steps and document writes for each
lifecycle operation. Every operation runs strictly in order and stops at
the first failure. Nothing already done is rolled back, except the Status
line when its commit fails; every step is safe to repeat, so a failed
complete-epic is retried by running it again.

complete_epic order:
    1. read PRD                         MissingPRD
    2. validate transition              InvalidTransition
    3. preflight                        PreflightFailed
    4. locate PR link                   MissingInput
    5. tests, lint, typecheck           ExternalStepFailed
    6. changelog (an existing one is kept)
    7. learnings not already logged
    8. vcs.commit (changelog, learnings)
    9. PRD status -> Complete
   10. vcs.commit (PRD); Status restored if it fails
   11. vcs.push to the open PR, else pr.create
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from epicflow import git
from epicflow.documents.changelog import build_changelog
from epicflow.documents.prd import PRDDocument, build_prd, slugify
from epicflow.documents.store import DocumentStore
from epicflow.lib import github
from epicflow.lib.config import ProjectConfig
from epicflow.lib.constants import (
    CHECK_STEPS,
    DETACHED_HEAD,
    EPIC_NUMBER_WIDTH,
    ON_DEFAULT_BRANCH,
)
from epicflow.lib.errors import (
    AlreadyExists,
    ExternalStepFailed,
    MissingInput,
    PreflightFailed,
)
from epicflow.workflow.fsm import EpicFSM
from epicflow.workflow.preflight import PreflightChecker
from epicflow.workflow.state_machine import EpicStatus, InvalidTransition, transition
from epicflow.workflow.steps import StepOutcome, StepRunner, run_steps

logger = logging.getLogger(__name__)

PRFinder = Callable[[str], github.PullRequest | None]


@dataclass
class DocumentationResult:
    slug: str
    pr_url: str
    changelog_path: Path | None = None
    changelog_written: bool = False
    learnings_added: int = 0


@dataclass
class CompletionReport:
    slug: str
    pr_url: str
    steps: list[str] = field(default_factory=list)
    changelog_written: bool = False
    learnings_added: int = 0
    commit_message: str = ""


class EpicLifecycle:
    """Runs lifecycle operations for the epics of one repository."""

    def __init__(
        self,
        config: ProjectConfig,
        store: DocumentStore,
        runner: StepRunner,
        preflight: PreflightChecker,
        find_pr: PRFinder | None = None,
    ):
        self.config = config
        self.store = store
        self.runner = runner
        self.preflight = preflight
        self.find_pr = find_pr or (lambda branch: github.find_pr_for_branch(config.repo_path, branch))

    # ------------------------------------------------------------------
    # Helpers

    def branch_for(self, number: int, slug: str) -> str:
        return f"{self.config.branch_prefix}{number:0{EPIC_NUMBER_WIDTH}d}-{slug}"

    def _epic_branch(self, prd: PRDDocument) -> str:
        return prd.branch or self.branch_for(prd.number, prd.slug)

    def _resolve_pr_url(self, prd: PRDDocument, pr_url: str | None) -> str:
        """The caller's link, else the open PR for the epic branch.

        Raises:
            MissingInput: when neither is available; no placeholder is used
        """
        if pr_url and pr_url.strip():
            return pr_url.strip()

        existing = self.find_pr(self._epic_branch(prd))
        if existing and existing.url:
            logger.info(f"[LIFECYCLE] {prd.slug}: using PR #{existing.number} {existing.url}")
            return existing.url

        raise MissingInput(
            "pr_url",
            f"no open pull request for {self._epic_branch(prd)}; run create-pr or pass --pr-url",
        )

    def _repo_relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.config.repo_path))
        except ValueError:
            return str(path)

    # ------------------------------------------------------------------
    # Operations

    def create_epic(
        self,
        name: str,
        answers: dict | None = None,
        interview: Callable[[str], dict] | None = None,
    ) -> PRDDocument:
        """Create a Draft epic: number, interview, branch, PRD.

        answers are used as given; otherwise interview(title) is called once
        the preconditions hold. Nothing is written if any precondition fails.

        Raises:
            MissingInput: blank name, or a required PRD section unanswered
            AlreadyExists: the slug or its branch is taken
            PreflightFailed: the working tree is dirty
            ExternalStepFailed: git could not create the branch
        """
        if not name or not name.strip():
            raise MissingInput("name", "give the epic a name")
        title = name.strip()
        slug = slugify(title)

        if self.store.exists(slug):
            raise AlreadyExists(f"epic '{slug}'")

        self.preflight.require_clean()

        number = self.store.next_epic_number()
        branch = self.branch_for(number, slug)
        if git.branch_exists(self.config.repo_path, branch):
            raise AlreadyExists(f"branch '{branch}'")

        if answers is None:
            if interview is None:
                raise MissingInput("answers", "no answers file and no interactive terminal")
            answers = interview(title)

        prd = build_prd(answers, number=number, slug=slug, title=title, branch=branch)

        result = git.create_branch(self.config.repo_path, branch)
        if not result.success:
            raise ExternalStepFailed("vcs.branch", result.output)
        logger.info(f"[LIFECYCLE] {slug}: created branch {branch}")

        self.store.write_prd(prd)
        return prd

    def start_epic(self, slug: str) -> None:
        """Mark an epic In Progress. Starting an epic already In Progress is a no-op.

        Raises:
            MissingPRD: no PRD for slug
            InvalidTransition: the epic is already Complete
        """
        transition(self.store, slug, EpicStatus.IN_PROGRESS, reason="start")

    def run_checks(self) -> list[StepOutcome]:
        """tests, lint, typecheck in order; raises ExternalStepFailed on the first failure."""
        return run_steps(self.runner, CHECK_STEPS)

    def create_changelog(
        self,
        slug: str,
        pr_url: str | None = None,
        summary: str | None = None,
        key_changes: list[str] | None = None,
        force: bool = False,
    ) -> Path:
        """Write the changelog for an epic.

        Raises:
            MissingPRD: no PRD for slug (checked before anything else)
            AlreadyExists: changelog present and force not given
            MissingInput: no PR link supplied or found
        """
        path, _ = self._write_changelog(slug, pr_url, summary, key_changes, force)
        return path

    def check_changelog_target(self, slug: str, pr_url: str | None = None, force: bool = False) -> str:
        """Checks a changelog write makes before anything is written.

        Returns:
            The PR URL the changelog will link to

        Raises:
            MissingPRD, AlreadyExists, MissingInput: as create_changelog
        """
        prd = self.store.read_prd(slug)
        if self.store.changelog_exists(slug) and not force:
            raise AlreadyExists(f"{self.store.changelog_path(slug)} (use --force to overwrite)")
        return self._resolve_pr_url(prd, pr_url)

    def _write_changelog(self, slug, pr_url, summary, key_changes, force) -> tuple[Path, str]:
        url = self.check_changelog_target(slug, pr_url, force)
        prd = self.store.read_prd(slug)
        changelog = build_changelog(prd, url, summary=summary, key_changes=key_changes)
        return self.store.write_changelog(slug, changelog, force=force), url

    def document_epic(
        self,
        slug: str,
        pr_url: str | None = None,
        learnings: list[str] | None = None,
        summary: str | None = None,
        key_changes: list[str] | None = None,
        force: bool = False,
    ) -> DocumentationResult:
        """Changelog plus learnings for an epic.

        Raises:
            MissingPRD, AlreadyExists, MissingInput: as create_changelog
        """
        path, url = self._write_changelog(slug, pr_url, summary, key_changes, force)
        result = DocumentationResult(slug=slug, pr_url=url, changelog_path=path, changelog_written=True)

        result.learnings_added = self._add_learnings(learnings)
        return result

    def _add_learnings(self, learnings: list[str] | None) -> int:
        """Append the entries not already in the log; returns how many were added."""
        logged = {" ".join(e.split()) for e in self.store.read_learnings()}
        entries = []
        for entry in learnings or []:
            text = " ".join(entry.split())
            if text.startswith("- "):
                text = text[2:].lstrip()
            if text and text not in logged:
                entries.append(text)
                logged.add(text)
        if entries:
            self.store.append_learnings(entries)
        return len(entries)

    def check_completable(self, slug: str, pr_url: str | None = None) -> tuple[PRDDocument, str]:
        """Everything complete_epic checks before it runs a tool or writes a file.

        This epic's own documents may be left uncommitted by an earlier,
        interrupted complete-epic; they do not count as a dirty tree.

        Returns:
            The PRD and the PR URL the changelog will link to

        Raises:
            MissingPRD: no PRD for slug; nothing else attempted
            InvalidTransition: the epic is already Complete
            PreflightFailed: dirty tree, default branch, detached or behind remote
            MissingInput: no PR link supplied or found
        """
        prd = self.store.read_prd(slug)

        fsm = EpicFSM(self.store, slug)
        if not fsm.can("complete"):
            raise InvalidTransition(fsm.state, EpicStatus.COMPLETE, slug)

        own_documents = [
            self.store.prd_path(slug),
            self.store.changelog_path(slug),
            self.store.learnings_path,
        ]
        self.preflight.require(ignore=[self._repo_relative(p) for p in own_documents])
        return prd, self._resolve_pr_url(prd, pr_url)

    def complete_epic(
        self,
        slug: str,
        pr_url: str | None = None,
        learnings: list[str] | None = None,
        summary: str | None = None,
        key_changes: list[str] | None = None,
        force: bool = False,
    ) -> CompletionReport:
        """Move an epic to Complete.

        An existing changelog (e.g. from document-epic or an interrupted
        run) is kept unless force is given, and learnings already in the
        log are not added twice, so a failed run can be repeated from the
        top. The Status line is only rewritten once the documentation
        commit exists; if committing it fails the previous Status is put
        back. An open PR for the epic branch is updated by a push; without
        one (the link was passed by hand) a PR is opened.

        Raises:
            MissingPRD, InvalidTransition, PreflightFailed, MissingInput: see check_completable
            ExternalStepFailed: a check, a commit, the push or PR creation failed
        """
        prd, url = self.check_completable(slug, pr_url)
        report = CompletionReport(slug=slug, pr_url=url)

        for outcome in run_steps(self.runner, CHECK_STEPS):
            report.steps.append(outcome.step)

        if self.store.changelog_exists(slug) and not force:
            logger.info(f"[LIFECYCLE] {slug}: keeping existing changelog")
        else:
            changelog = build_changelog(prd, url, summary=summary, key_changes=key_changes)
            self.store.write_changelog(slug, changelog, force=True)
            report.changelog_written = True

        report.learnings_added = self._add_learnings(learnings)

        doc_paths = [self._repo_relative(self.store.changelog_path(slug))]
        if self.store.learnings_path.exists():
            doc_paths.append(self._repo_relative(self.store.learnings_path))
        run_steps(self.runner, ["vcs.commit"], {
            "paths": doc_paths,
            "message": f"docs: document epic {prd.number} {slug}",
        })
        report.steps.append("vcs.commit")

        fsm = EpicFSM(self.store, slug)
        fsm.complete()

        report.commit_message = f"docs: complete epic {prd.number} {slug}"
        try:
            run_steps(self.runner, ["vcs.commit"], {
                "paths": [self._repo_relative(self.store.prd_path(slug))],
                "message": report.commit_message,
            })
        except ExternalStepFailed:
            self.store.update_status(slug, prd.status)
            logger.info(f"[LIFECYCLE] {slug}: status commit failed, Status restored to {prd.status}")
            raise
        report.steps.append("vcs.commit")

        step, _ = self._publish(prd, self._epic_branch(prd))
        report.steps.append(step)

        logger.info(f"[LIFECYCLE] {slug}: complete")
        return report

    def _publish(self, prd: PRDDocument, branch: str) -> tuple[str, str]:
        """Push to the open PR for branch, or open one. Returns (step run, PR URL)."""
        existing = self.find_pr(branch)
        if existing and existing.url:
            run_steps(self.runner, ["vcs.push"], {"branch": branch})
            return "vcs.push", existing.url

        body = self.store.read_changelog_text(prd.slug) or prd.objective
        outcomes = run_steps(self.runner, ["pr.create"], {
            "branch": branch,
            "base": self.config.default_branch,
            "title": f"Epic {prd.number}: {prd.title}",
            "body": body,
        })
        return "pr.create", outcomes[-1].output.strip()

    def create_pr(self, slug: str | None = None) -> str:
        """Push the epic branch and open its PR (or just push when one is open).

        Without slug, the epic is the one whose branch is checked out.

        Returns:
            The PR URL

        Raises:
            MissingInput: no slug and the current branch belongs to no epic
            PreflightFailed: on the default branch or a detached HEAD
            ExternalStepFailed: push or PR creation failed
        """
        branch = git.get_current_branch(self.config.repo_path)
        if branch is None:
            raise PreflightFailed(DETACHED_HEAD, "HEAD is not on a branch")
        if branch == self.config.default_branch:
            raise PreflightFailed(ON_DEFAULT_BRANCH, f"on '{branch}', switch to the epic branch")

        if slug:
            prd = self.store.read_prd(slug)
        else:
            matches = [e for e in self.store.list_epics() if self._epic_branch(e) == branch]
            if not matches:
                raise MissingInput("slug", f"branch '{branch}' does not belong to a known epic")
            prd = matches[0]

        _, url = self._publish(prd, branch)
        return url
