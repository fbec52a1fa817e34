"""Changelog documents, one per completed epic."""

from dataclasses import dataclass, field
from datetime import date

from epicflow.documents.prd import PRDDocument
from epicflow.lib.errors import MissingInput


@dataclass
class ChangelogDocument:
    title: str
    number: int
    date: str
    pr_url: str
    summary: str
    key_changes: list[str] = field(default_factory=list)

    def render(self) -> str:
        lines = [
            f"# Changelog: {self.title} (Epic {self.number})",
            "",
            f"**Date:** {self.date}",
            f"**PR:** {self.pr_url}",
            "",
            "## Summary",
            "",
            self.summary,
            "",
            "## Key Changes",
            "",
        ]
        lines.extend(f"- {change}" for change in self.key_changes)
        lines.append("")
        return "\n".join(lines)


def build_changelog(
    prd: PRDDocument,
    pr_url: str,
    summary: str | None = None,
    key_changes: list[str] | None = None,
    on: str | None = None,
) -> ChangelogDocument:
    """Build a changelog for an epic.

    The summary defaults to the PRD objective and the key changes to its
    completed tasks (all tasks when none are ticked).

    Raises:
        MissingInput: if pr_url is blank; a placeholder link is never written
    """
    if not pr_url or not pr_url.strip():
        raise MissingInput("pr_url", "pass --pr-url or open a pull request for the epic branch first")

    if not key_changes:
        done = [t.text for t in prd.tasks if t.done]
        key_changes = done or [t.text for t in prd.tasks]

    return ChangelogDocument(
        title=prd.title,
        number=prd.number,
        date=on or date.today().isoformat(),
        pr_url=pr_url.strip(),
        summary=(summary or "").strip() or prd.objective,
        key_changes=list(key_changes),
    )
