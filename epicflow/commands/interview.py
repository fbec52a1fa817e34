"""
Interactive PRD interview.

Asks one question per PRD section and returns the answers mapping that
build_prd() turns into a document. List sections take one item per line,
finished by an empty line.
"""

from pathlib import Path

import yaml

from epicflow.lib.errors import MissingInput


def prompt_bool(message: str, default: bool = False) -> bool:
    """Prompt user for yes/no answer."""
    default_str = "Y/n" if default else "y/N"
    try:
        value = input(f"{message} [{default_str}]: ").strip().lower()
        if not value:
            return default
        return value in ("y", "yes", "true", "1")
    except EOFError:
        return default


def prompt_list(message: str) -> list[str]:
    """Collect items, one per line, until an empty line (or EOF)."""
    print(f"{message} (one per line, empty line to finish)")
    items = []
    while True:
        try:
            value = input("  - ").strip()
        except EOFError:
            break
        if not value:
            break
        items.append(value)
    return items


def prompt_text(message: str) -> str:
    """Collect a multi-line paragraph until an empty line (or EOF)."""
    print(f"{message} (empty line to finish)")
    lines = []
    while True:
        try:
            value = input("  ").rstrip()
        except EOFError:
            break
        if not value:
            break
        lines.append(value)
    return "\n".join(lines)


def run_interview(title: str) -> dict:
    """Run the PRD interview for an epic.

    Returns:
        answers mapping with objective, dependencies, user_stories, tasks,
        and data_model / open_questions when given
    """
    print(f"\n=== New epic: {title} ===\n")

    answers: dict = {}
    answers["objective"] = prompt_text("Objective: what should this epic achieve?")

    print()
    answers["dependencies"] = prompt_list("Dependencies (other epics, services, packages)")

    print()
    if prompt_bool("Does this epic change the data model / schema?"):
        answers["data_model"] = prompt_text("Describe the schema changes")

    print()
    answers["user_stories"] = prompt_list("User stories (As a ..., I want ..., so that ...)")

    print()
    answers["tasks"] = prompt_list("Tasks")

    print()
    questions = prompt_list("Open questions")
    if questions:
        answers["open_questions"] = questions

    return answers


def load_answers(path: Path) -> dict:
    """Load answers from a YAML (or JSON) file.

    Raises:
        MissingInput: if the file is missing or is not a mapping
    """
    if not path.exists():
        raise MissingInput("answers", f"answers file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise MissingInput("answers", f"could not parse {path}: {e}") from None
    if not isinstance(data, dict):
        raise MissingInput("answers", f"{path} must contain a mapping of section -> answer")
    return data
