"""
epic create-pr - Push the epic branch and open its pull request.

When a PR is already open for the branch, only pushes.
"""

import sys

from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.lib.github import check_gh_available
from epicflow.workflow.lifecycle import EpicLifecycle


def cmd_create_pr(args, lifecycle: EpicLifecycle) -> int:
    ok, error = check_gh_available()
    if not ok:
        print(f"ERROR: {error}", file=sys.stderr)
        return 2

    try:
        url = lifecycle.create_pr(args.slug)
    except EpicflowError as e:
        return report_error(e)

    print(f"PR: {url}")
    return 0
