"""
epic create-changelog / document-epic - Write epic documentation.

create-changelog writes <docs_dir>/changelogs/<NNN>-<slug>.md.
document-epic does the same and appends learnings to the shared log.
"""

import sys

from epicflow.commands.interview import prompt_list
from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.workflow.lifecycle import EpicLifecycle


def collect_learnings(args) -> list[str]:
    """Learnings from --learning flags, or asked for on a terminal."""
    if args.learning:
        return list(args.learning)
    if sys.stdin.isatty():
        return prompt_list("Learnings from this epic")
    return []


def cmd_create_changelog(args, lifecycle: EpicLifecycle) -> int:
    try:
        path = lifecycle.create_changelog(
            args.slug,
            pr_url=args.pr_url,
            summary=args.summary,
            key_changes=args.change,
            force=args.force,
        )
    except EpicflowError as e:
        return report_error(e)

    print(f"Changelog written: {path}")
    return 0


def cmd_document_epic(args, lifecycle: EpicLifecycle) -> int:
    try:
        # Fail before asking for learnings when the changelog cannot be written
        lifecycle.check_changelog_target(args.slug, pr_url=args.pr_url, force=args.force)
        result = lifecycle.document_epic(
            args.slug,
            pr_url=args.pr_url,
            learnings=collect_learnings(args),
            summary=args.summary,
            key_changes=args.change,
            force=args.force,
        )
    except EpicflowError as e:
        return report_error(e)

    print(f"Changelog written: {result.changelog_path}")
    if result.learnings_added:
        print(f"Learnings appended: {result.learnings_added}")
    else:
        print("No learnings recorded")
    return 0
