"""
PRD template engine and parser.

A PRD is semi-structured markdown: the heading text and section order are
fixed because changelog generation and status updates parse them back.

    # Epic 3: Checkout Flow

    **Status:** Draft
    **Created:** 2026-10-18
    **Branch:** epic/003-checkout-flow

    ## Objective
    ## Dependencies      (optional)
    ## Data Model        (optional)
    ## User Stories
    ## Tasks
    ## Open Questions    (optional)
"""

import re
from dataclasses import dataclass, field
from datetime import date

from epicflow.lib import validate
from epicflow.lib.constants import MAX_SLUG_LEN, SLUG_PATTERN
from epicflow.lib.errors import MissingInput

SECTION_OBJECTIVE = "Objective"
SECTION_DEPENDENCIES = "Dependencies"
SECTION_DATA_MODEL = "Data Model"
SECTION_USER_STORIES = "User Stories"
SECTION_TASKS = "Tasks"
SECTION_OPEN_QUESTIONS = "Open Questions"

SECTION_ORDER = [
    SECTION_OBJECTIVE,
    SECTION_DEPENDENCIES,
    SECTION_DATA_MODEL,
    SECTION_USER_STORIES,
    SECTION_TASKS,
    SECTION_OPEN_QUESTIONS,
]

# Answer keys required by build_prd, with the section each one fills
REQUIRED_ANSWERS = {
    "objective": SECTION_OBJECTIVE,
    "user_stories": SECTION_USER_STORIES,
    "tasks": SECTION_TASKS,
}

NONE_MARKER = "None"
STATUS_DRAFT = "Draft"

TITLE_RE = re.compile(r'^#\s+Epic\s+(\d+):\s*(.+?)\s*$')
META_RE = re.compile(r'^\*\*(\w[\w ]*):\*\*\s*(.*?)\s*$')
SECTION_RE = re.compile(r'^##\s+(.+?)\s*$')
TASK_RE = re.compile(r'^[-*]\s+\[([ xX])\]\s+(.+?)\s*$')
BULLET_RE = re.compile(r'^[-*]\s+(?:\[[ xX]\]\s+)?(.+?)\s*$')


@dataclass
class Task:
    text: str
    done: bool = False


@dataclass
class PRDDocument:
    """A parsed or freshly built PRD.

    dependencies is None when the section is absent, and an empty list when
    the section is present with the "- None" marker.
    """
    number: int
    slug: str
    title: str
    status: str
    created: str
    objective: str
    user_stories: list[str]
    tasks: list[Task]
    branch: str | None = None
    dependencies: list[str] | None = None
    data_model: str | None = None
    open_questions: list[str] = field(default_factory=list)

    def section_headings(self) -> list[str]:
        """Headings this document renders, in order."""
        present = {
            SECTION_OBJECTIVE: True,
            SECTION_DEPENDENCIES: self.dependencies is not None,
            SECTION_DATA_MODEL: bool(self.data_model),
            SECTION_USER_STORIES: True,
            SECTION_TASKS: True,
            SECTION_OPEN_QUESTIONS: bool(self.open_questions),
        }
        return [s for s in SECTION_ORDER if present[s]]

    def render(self) -> str:
        lines = [
            f"# Epic {self.number}: {self.title}",
            "",
            f"**Status:** {self.status}",
            f"**Created:** {self.created}",
        ]
        if self.branch:
            lines.append(f"**Branch:** {self.branch}")
        lines.append("")

        for heading in self.section_headings():
            lines.extend([f"## {heading}", ""])
            if heading == SECTION_OBJECTIVE:
                lines.append(self.objective)
            elif heading == SECTION_DEPENDENCIES:
                lines.extend(f"- {d}" for d in (self.dependencies or [NONE_MARKER]))
            elif heading == SECTION_DATA_MODEL:
                lines.append(self.data_model)
            elif heading == SECTION_USER_STORIES:
                lines.extend(f"- {s}" for s in self.user_stories)
            elif heading == SECTION_TASKS:
                lines.extend(f"- [{'x' if t.done else ' '}] {t.text}" for t in self.tasks)
            elif heading == SECTION_OPEN_QUESTIONS:
                lines.extend(f"- {q}" for q in self.open_questions)
            lines.append("")

        return "\n".join(lines)


def slugify(name: str) -> str:
    """Turn a human epic name into a slug ("Checkout Flow!" -> "checkout-flow").

    Raises:
        MissingInput: if nothing usable is left of the name
    """
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    slug = slug[:MAX_SLUG_LEN].rstrip('-')
    if not slug or not SLUG_PATTERN.match(slug):
        raise MissingInput("name", "epic name must contain letters or digits")
    return slug


def _as_items(value) -> list[str]:
    """Normalize an answer into list items.

    Accepts a list or a multi-line string; bullet and checkbox prefixes are
    stripped and blank lines dropped.
    """
    if value is None:
        return []
    raw = value if isinstance(value, list) else str(value).splitlines()
    items = []
    for entry in raw:
        entry = entry.strip()
        match = BULLET_RE.match(entry)
        if match:
            entry = match.group(1)
        if entry:
            items.append(entry)
    return items


def _as_text(value) -> str:
    return str(value).strip() if value is not None else ""


def build_prd(
    answers: dict,
    number: int,
    slug: str,
    title: str,
    branch: str | None = None,
    created: str | None = None,
) -> PRDDocument:
    """Build a Draft PRD from interview answers.

    Args:
        answers: section key -> free-form text (or list of items). Required:
            objective, user_stories, tasks. Optional: dependencies,
            data_model, open_questions.

    Raises:
        ValidationError: if answers contain unknown keys or wrong types
        MissingInput: if a required section is absent or blank
    """
    validate.validate(answers, "answers")

    for key, section in REQUIRED_ANSWERS.items():
        value = answers.get(key)
        empty = not _as_text(value) if key == "objective" else not _as_items(value)
        if empty:
            raise MissingInput(key, f"the '{section}' section is required")

    dependencies = None
    if "dependencies" in answers:
        dependencies = [d for d in _as_items(answers["dependencies"])
                        if d.lower() not in ("none", "n/a", "-")]

    return PRDDocument(
        number=number,
        slug=slug,
        title=title,
        status=STATUS_DRAFT,
        created=created or date.today().isoformat(),
        branch=branch,
        objective=_as_text(answers["objective"]),
        user_stories=_as_items(answers["user_stories"]),
        tasks=[Task(text=t) for t in _as_items(answers["tasks"])],
        dependencies=dependencies,
        data_model=_as_text(answers.get("data_model")) or None,
        open_questions=_as_items(answers.get("open_questions")),
    )


def _split_sections(lines: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    """Split into (preamble lines, heading -> body lines)."""
    preamble: list[str] = []
    sections: dict[str, list[str]] = {}
    current = None
    for line in lines:
        match = SECTION_RE.match(line)
        if match:
            current = match.group(1)
            sections[current] = []
        elif current is None:
            preamble.append(line)
        else:
            sections[current].append(line)
    return preamble, sections


def parse_prd(text: str, slug: str, number: int | None = None) -> PRDDocument:
    """Parse PRD markdown back into a PRDDocument.

    number falls back to the "# Epic N:" heading when not given. Unknown
    sections are ignored; missing ones parse as empty.

    Raises:
        ValueError: if there is no number in either place
    """
    preamble, sections = _split_sections(text.splitlines())

    title = slug.replace("-", " ").title()
    meta: dict[str, str] = {}
    for line in preamble:
        title_match = TITLE_RE.match(line)
        if title_match:
            if number is None:
                number = int(title_match.group(1))
            title = title_match.group(2)
            continue
        meta_match = META_RE.match(line)
        if meta_match:
            meta[meta_match.group(1).lower()] = meta_match.group(2)

    if number is None:
        raise ValueError(f"PRD for '{slug}' has no epic number")

    def body(heading: str) -> str:
        return "\n".join(sections.get(heading, [])).strip()

    tasks = []
    for line in sections.get(SECTION_TASKS, []):
        line = line.strip()
        task_match = TASK_RE.match(line)
        bullet_match = BULLET_RE.match(line)
        if task_match:
            tasks.append(Task(text=task_match.group(2), done=task_match.group(1).lower() == 'x'))
        elif bullet_match:
            tasks.append(Task(text=bullet_match.group(1)))

    dependencies = None
    if SECTION_DEPENDENCIES in sections:
        dependencies = [d for d in _as_items(body(SECTION_DEPENDENCIES)) if d != NONE_MARKER]

    return PRDDocument(
        number=number,
        slug=slug,
        title=title,
        status=meta.get("status", STATUS_DRAFT),
        created=meta.get("created", ""),
        branch=meta.get("branch") or None,
        objective=body(SECTION_OBJECTIVE),
        user_stories=_as_items(body(SECTION_USER_STORIES)),
        tasks=tasks,
        dependencies=dependencies,
        data_model=body(SECTION_DATA_MODEL) or None,
        open_questions=_as_items(body(SECTION_OPEN_QUESTIONS)),
    )


def set_status_line(text: str, status: str) -> str:
    """Rewrite the **Status:** line in PRD text, leaving everything else untouched.

    Adds the line under the title when the document has none.
    """
    lines = text.splitlines()
    for i, line in enumerate(lines):
        if SECTION_RE.match(line):
            break
        if line.startswith("**Status:**"):
            lines[i] = f"**Status:** {status}"
            return "\n".join(lines) + "\n"

    insert_at = 1 if lines and lines[0].startswith("# ") else 0
    lines[insert_at:insert_at] = ["", f"**Status:** {status}"] if insert_at else [f"**Status:** {status}"]
    return "\n".join(lines) + "\n"
