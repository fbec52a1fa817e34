"""Error and step output formatting for commands.

Separates display concerns from lifecycle logic.
"""

import sys

from epicflow.lib.errors import EpicflowError, ExternalStepFailed, MissingInput, PreflightFailed


def report_error(error: EpicflowError) -> int:
    """Print a lifecycle error for the operator and return its exit code."""
    print(f"ERROR: {error}", file=sys.stderr)

    if isinstance(error, ExternalStepFailed):
        if error.output:
            print(f"\n--- {error.step} output ---", file=sys.stderr)
            print(error.output, file=sys.stderr)
            print("---", file=sys.stderr)
        print(f"\nFix the {error.step} failure and re-run the command.", file=sys.stderr)
    elif isinstance(error, PreflightFailed):
        print("  Nothing was written and no tools were run.", file=sys.stderr)
    elif isinstance(error, MissingInput) and error.field == "pr_url":
        print("  A placeholder link is never written.", file=sys.stderr)

    return error.exit_code
