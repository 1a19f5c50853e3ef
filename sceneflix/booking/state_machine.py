# sceneflix/booking/state_machine.py
from __future__ import annotations

from enum import Enum

from sceneflix.errors import InvalidStateTransitionError


class BookingState(str, Enum):
    SELECTING = "SELECTING"
    CONFIRMING = "CONFIRMING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class BookingStateMachine:
    """
    Legal transitions of one checkout attempt.
    CONFIRMED has no outgoing edge: a confirmed attempt cannot book again.
    """

    _ALLOWED_TRANSITIONS: dict[BookingState, frozenset[BookingState]] = {
        BookingState.SELECTING: frozenset({BookingState.CONFIRMING}),
        BookingState.CONFIRMING: frozenset({BookingState.CONFIRMED, BookingState.FAILED}),
        BookingState.FAILED: frozenset({BookingState.CONFIRMING}),
        BookingState.CONFIRMED: frozenset(),
    }

    @classmethod
    def can_transition(cls, from_state: BookingState, to_state: BookingState) -> bool:
        return to_state in cls._ALLOWED_TRANSITIONS.get(from_state, frozenset())

    @classmethod
    def validate_transition(cls, from_state: BookingState, to_state: BookingState) -> None:
        if not cls.can_transition(from_state, to_state):
            raise InvalidStateTransitionError(
                from_state=from_state.value,
                to_state=to_state.value,
            )

    @classmethod
    def is_terminal(cls, state: BookingState) -> bool:
        return not cls._ALLOWED_TRANSITIONS.get(state)

    @classmethod
    def allows_selection(cls, state: BookingState) -> bool:
        """Ticket type / quantity may change only before or after a failed confirm."""
        return state in (BookingState.SELECTING, BookingState.FAILED)
