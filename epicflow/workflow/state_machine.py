"""Epic lifecycle states with explicit, forward-only transitions.

Thin layer over the FSM in fsm.py:
- EpicStatus enum for type safety and the labels written into PRDs
- transition() function that maps a target state to an FSM trigger
- Convenience functions for state queries

Usage:
    from epicflow.workflow.state_machine import transition, EpicStatus

    transition(store, "checkout-flow", EpicStatus.COMPLETE, reason="complete-epic")
"""

import logging
from enum import Enum

from epicflow.lib.errors import EpicflowError

logger = logging.getLogger(__name__)


class EpicStatus(Enum):
    """All valid epic states. Values match FSM state strings."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"

    @property
    def label(self) -> str:
        """Text used on the PRD's **Status:** line."""
        return _LABELS[self]


_LABELS = {
    EpicStatus.DRAFT: "Draft",
    EpicStatus.IN_PROGRESS: "In Progress",
    EpicStatus.COMPLETE: "Complete",
}


class InvalidTransition(EpicflowError):
    """Raised when attempting an invalid state transition."""

    def __init__(self, from_state: str, to_state: EpicStatus, slug: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.slug = slug
        super().__init__(
            f"Invalid transition: {from_state} -> {to_state.value}"
            + (f" (epic: {slug})" if slug else "")
        )


def parse_status(status_str: str | None) -> EpicStatus | None:
    """Parse a PRD status label ("In Progress", "in_progress", ...) into EpicStatus.

    Returns None if status is unknown.
    """
    if status_str is None:
        return None
    key = "".join(ch for ch in status_str.lower() if ch.isalnum())
    for state in EpicStatus:
        if key == state.value.replace("_", ""):
            return state
    return None


def transition(store, slug: str, to_state: EpicStatus, reason: str = "") -> None:
    """Transition an epic to a new state with validation.

    Uses the FSM for validation and state persistence.

    Raises:
        MissingPRD: if the epic has no PRD
        InvalidTransition: If the transition is not allowed
    """
    from transitions import MachineError
    from epicflow.workflow.fsm import EpicFSM, TRIGGER_FOR

    reason_str = f" ({reason})" if reason else ""

    fsm = EpicFSM(store, slug)
    current_state = fsm.state

    # Self-transition is a no-op
    if current_state == to_state.value:
        logger.debug(f"[STATE] {slug}: already in {to_state.value}, no-op")
        return

    trigger = TRIGGER_FOR.get((current_state, to_state.value))
    if trigger is None:
        raise InvalidTransition(current_state, to_state, slug)

    try:
        logger.info(f"[STATE] {slug}: {current_state} -> {to_state.value}{reason_str}")
        getattr(fsm, trigger)()
    except MachineError as e:
        raise InvalidTransition(current_state, to_state, slug) from e


def get_status(store, slug: str) -> EpicStatus:
    """Get current epic status (unknown labels read as draft).

    Raises:
        MissingPRD: if the epic has no PRD
    """
    from epicflow.workflow.fsm import EpicFSM
    return EpicFSM(store, slug).status


def can_transition(store, slug: str, to_state: EpicStatus) -> bool:
    """Check if a transition to the given state is valid.

    Self-transitions count as valid (they are no-ops).
    """
    from epicflow.workflow.fsm import EpicFSM, TRIGGER_FOR

    current_state = EpicFSM(store, slug).state
    if current_state == to_state.value:
        return True
    return (current_state, to_state.value) in TRIGGER_FOR
