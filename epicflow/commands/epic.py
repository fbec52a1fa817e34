"""
epic create-epic - Create a new epic.

Creates:
- Git branch <prefix><NNN>-<slug> from the current HEAD
- PRD at <docs_dir>/prds/<NNN>-<slug>.md with Status: Draft
"""

import sys
from pathlib import Path

from epicflow.commands.interview import load_answers, run_interview
from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.lib.validate import ValidationError
from epicflow.workflow.lifecycle import EpicLifecycle


def cmd_create_epic(args, lifecycle: EpicLifecycle) -> int:
    """Create a new epic from an answers file or an interactive interview."""
    try:
        answers = load_answers(Path(args.answers)) if args.answers else None
        interview = run_interview if sys.stdin.isatty() else None
        prd = lifecycle.create_epic(args.name or "", answers=answers, interview=interview)
    except ValidationError as e:
        print(f"ERROR: Invalid answers: {e}", file=sys.stderr)
        return 2
    except EpicflowError as e:
        return report_error(e)

    print(f"Epic {prd.number} '{prd.slug}' created")
    print(f"  Branch: {prd.branch}")
    print(f"  PRD: {lifecycle.store.prd_path(prd.slug)}")
    return 0
