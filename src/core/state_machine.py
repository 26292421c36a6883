"""
Lead status state machine.

The transition table below is the only place that decides which status
changes are legal. Every code path that writes a lead's status consults it
first via ``ensure_transition``.
"""

from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Tuple

from src.core.exceptions import LeadStateTransitionError
from src.models.enums import LeadStatus


# from_status -> allowed next statuses, in presentation order
LEAD_STATE_TRANSITIONS: Mapping[LeadStatus, Tuple[LeadStatus, ...]] = MappingProxyType({
    LeadStatus.PENDING: (LeadStatus.CALLING, LeadStatus.DROPPED),
    LeadStatus.CALLING: (LeadStatus.ANSWERED, LeadStatus.DROPPED, LeadStatus.PENDING),
    LeadStatus.ANSWERED: (LeadStatus.QUALIFIED, LeadStatus.DROPPED),
    LeadStatus.QUALIFIED: (),
    LeadStatus.DROPPED: (),
})


def can_transition_to(from_status: LeadStatus, to_status: LeadStatus) -> bool:
    """Return True if ``to_status`` is directly reachable from ``from_status``."""
    return to_status in LEAD_STATE_TRANSITIONS[from_status]


def get_valid_transitions(from_status: LeadStatus) -> List[LeadStatus]:
    """Statuses reachable from ``from_status``. Empty for terminal states."""
    return list(LEAD_STATE_TRANSITIONS[from_status])


def is_terminal_state(status: LeadStatus) -> bool:
    return not LEAD_STATE_TRANSITIONS[status]


def terminal_states() -> FrozenSet[LeadStatus]:
    return frozenset(status for status in LeadStatus if is_terminal_state(status))


def ensure_transition(from_status: LeadStatus, to_status: LeadStatus) -> None:
    """
    Raise if the move is illegal.

    Raises:
        LeadStateTransitionError: carrying both endpoints and the legal
            alternatives for ``from_status``.
    """
    if not can_transition_to(from_status, to_status):
        raise LeadStateTransitionError(
            from_status,
            to_status,
            get_valid_transitions(from_status)
        )


def next_status_after_failed_call(call_attempts: int, max_attempts: int) -> LeadStatus:
    """
    Retry policy for a call that was not answered.

    The lead is dropped once it has used up ``max_attempts`` calls,
    otherwise it goes back to pending for another try.
    """
    if call_attempts >= max_attempts:
        return LeadStatus.DROPPED
    return LeadStatus.PENDING
