"""
epic list / status - Show epics and their lifecycle state.
"""

from epicflow.commands.output import report_error
from epicflow.lib.errors import EpicflowError
from epicflow.workflow.lifecycle import EpicLifecycle
from epicflow.workflow.state_machine import EpicStatus, can_transition, get_status


def cmd_list(args, lifecycle: EpicLifecycle) -> int:
    epics = lifecycle.store.list_epics()
    if not epics:
        print(f"No epics in {lifecycle.store.prds_dir}")
        return 0

    print(f"{'#':>4}  {'STATUS':<12} {'SLUG':<30} TITLE")
    for prd in epics:
        print(f"{prd.number:>4}  {prd.status:<12} {prd.slug:<30} {prd.title}")
    return 0


def cmd_status(args, lifecycle: EpicLifecycle) -> int:
    store = lifecycle.store
    try:
        prd = store.read_prd(args.slug)
        status = get_status(store, args.slug)
    except EpicflowError as e:
        return report_error(e)

    done = sum(1 for t in prd.tasks if t.done)
    print(f"Epic {prd.number}: {prd.title}")
    print(f"  Status: {status.label}")
    allowed = [s.label for s in EpicStatus if s != status and can_transition(store, args.slug, s)]
    print(f"  Next: {', '.join(allowed) if allowed else 'none'}")
    print(f"  Branch: {prd.branch or lifecycle.branch_for(prd.number, prd.slug)}")
    print(f"  Tasks: {done}/{len(prd.tasks)} done")
    print(f"  Changelog: {'yes' if store.changelog_exists(args.slug) else 'no'}")
    return 0
