"""
epic complete-epic - Move an epic to Complete.

Preflight, checks, changelog, learnings, commit, status update, status
commit, push. Stops at the first failing step and reports it; running the
command again resumes from the documents already written.
"""

from epicflow.commands.docs import collect_learnings
from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.workflow.lifecycle import EpicLifecycle


def cmd_complete_epic(args, lifecycle: EpicLifecycle) -> int:
    try:
        # Gate failures surface before the operator is asked for learnings
        lifecycle.check_completable(args.slug, pr_url=args.pr_url)
        report = lifecycle.complete_epic(
            args.slug,
            pr_url=args.pr_url,
            learnings=collect_learnings(args),
            summary=args.summary,
            key_changes=args.change,
            force=args.force,
        )
    except EpicflowError as e:
        return report_error(e)

    print(f"Epic '{report.slug}' complete")
    print(f"  Steps: {', '.join(report.steps)}")
    print(f"  Changelog: {'written' if report.changelog_written else 'kept existing'}")
    print(f"  Learnings appended: {report.learnings_added}")
    print(f"  Commit: {report.commit_message}")
    print(f"  PR: {report.pr_url}")
    return 0
