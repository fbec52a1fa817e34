"""Epic status state machine using transitions library.

Usage:
    from epicflow.workflow.fsm import EpicFSM

    fsm = EpicFSM(store, "checkout-flow")
    if fsm.can("complete"):
        fsm.complete()  # Persists "**Status:** Complete" into the PRD
"""

import logging
from typing import Callable

from transitions import Machine

from epicflow.documents.store import DocumentStore
from epicflow.workflow.state_machine import EpicStatus, parse_status

logger = logging.getLogger(__name__)


STATES = [status.value for status in EpicStatus]

# Transitions only move forward; there is no reopen.
# Draft -> In Progress normally happens by hand (first implementation
# commit), so complete is also allowed straight from draft.
TRANSITIONS = [
    {"trigger": "start", "source": "draft", "dest": "in_progress"},
    {"trigger": "complete", "source": ["draft", "in_progress"], "dest": "complete"},
]


def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
        for source in sources:
            lookup.setdefault((source, t["dest"]), t["trigger"])
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class EpicFSM:
    """State machine for one epic's status.

    Wraps the transitions library with epic-specific logic:
    - Loads initial state from the PRD's Status line
    - Persists state changes back to the PRD
    - Logs all transitions
    """

    def __init__(
        self,
        store: DocumentStore,
        slug: str,
        on_transition: Callable[[str, str, str], None] | None = None,
    ):
        """Initialize FSM for an epic.

        Args:
            store: Document store holding the epic's PRD
            slug: Epic slug
            on_transition: Optional callback(from_state, to_state, trigger) called after transitions

        Raises:
            MissingPRD: if the epic has no PRD
        """
        self.store = store
        self.slug = slug
        self.on_transition = on_transition

        prd = store.read_prd(slug)
        status = parse_status(prd.status)
        if status is None:
            logger.warning(f"[FSM] {slug}: Unknown status '{prd.status}', treating as draft")
            status = EpicStatus.DRAFT

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=status.value,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    @property
    def status(self) -> EpicStatus:
        return EpicStatus(self.state)

    def on_state_change(self, event) -> None:
        """Callback after any state transition.

        Persists state to the PRD and logs the transition.
        """
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] {self.slug}: {from_state} -> {to_state} ({trigger})")

        self.store.update_status(self.slug, EpicStatus(to_state).label)

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)
