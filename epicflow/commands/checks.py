"""
epic start-checks - Run tests, lint and typecheck in order.

Stops at the first failing tool and prints its raw output.
"""

from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.workflow.lifecycle import EpicLifecycle


def cmd_start_checks(args, lifecycle: EpicLifecycle) -> int:
    try:
        outcomes = lifecycle.run_checks()
    except EpicflowError as e:
        return report_error(e)

    for outcome in outcomes:
        print(f"  {outcome.step}: ok")
    print("All checks passed")
    return 0
