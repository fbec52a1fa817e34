"""
epic start - Mark an epic In Progress.

Optional: complete-epic also accepts a Draft epic.
"""

from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.workflow.lifecycle import EpicLifecycle


def cmd_start(args, lifecycle: EpicLifecycle) -> int:
    try:
        lifecycle.start_epic(args.slug)
    except EpicflowError as e:
        return report_error(e)

    print(f"Epic '{args.slug}' is In Progress")
    return 0
