"""Shared fixtures: a docs tree in tmp_path and fakes for the external steps."""

from pathlib import Path

import pytest

from epicflow.documents.prd import build_prd
from epicflow.documents.store import DocumentStore
from epicflow.lib.config import ProjectConfig
from epicflow.workflow.preflight import BranchState, PreflightChecker
from epicflow.workflow.steps import StepOutcome


ANSWERS = {
    "objective": "Let shoppers pay for their basket in one step.",
    "dependencies": ["payments-gateway"],
    "user_stories": ["As a shopper, I want to pay with a saved card, so that checkout is quick"],
    "tasks": ["Add checkout endpoint", "Add payment form"],
}


class FakeRunner:
    """Records every step; steps named in fail return a failed outcome."""

    def __init__(self, fail=(), outputs=None):
        self.calls = []
        self.fail = set(fail)
        self.outputs = outputs or {}

    def run(self, step, context=None):
        self.calls.append((step, context))
        if step in self.fail:
            return StepOutcome(step, ok=False, output=f"{step} exploded", returncode=1)
        return StepOutcome(step, ok=True, output=self.outputs.get(step, ""))

    @property
    def steps(self):
        return [step for step, _ in self.calls]


class StaticPreflight(PreflightChecker):
    """PreflightChecker over a fixed BranchState instead of git."""

    def __init__(self, state: BranchState, default_branch: str = "main"):
        super().__init__(Path("/nonexistent"), default_branch)
        self.state = state

    def read_state(self, fetch=None):
        return self.state


def clean_state(branch="epic/001-checkout-flow", **kwargs) -> BranchState:
    kwargs.setdefault("clean", True)
    return BranchState(branch=branch, **kwargs)


def snapshot(root: Path) -> dict:
    """Relative path -> bytes for every file under root."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def config(tmp_path):
    return ProjectConfig(
        repo_path=tmp_path,
        default_branch="main",
        docs_dir=tmp_path / "docs" / "epics",
        branch_prefix="epic/",
        remote="origin",
        step_timeout=60,
        fetch_before_check=False,
    )


@pytest.fixture
def store(config):
    return DocumentStore(config.docs_dir)


@pytest.fixture
def draft_epic(store):
    """Epic 1 'checkout-flow' in Draft."""
    prd = build_prd(
        ANSWERS,
        number=1,
        slug="checkout-flow",
        title="Checkout Flow",
        branch="epic/001-checkout-flow",
        created="2026-10-01",
    )
    store.write_prd(prd)
    return prd
