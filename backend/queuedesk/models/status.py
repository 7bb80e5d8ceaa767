"""
Ticket status enumeration and the transition table that guards it.

Pure logic: nothing here reads or writes storage. The allocation engine
validates every status change through `TicketStateMachine.transition`
before persisting it.
"""

from __future__ import annotations

from enum import Enum

from queuedesk.core.errors import InvalidTransition


class TicketStatus(str, Enum):
    """Supported states of a queue ticket."""

    WAITING = "waiting"
    CALLED = "called"
    PROCESSING = "processing"
    DONE = "done"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    RELEASED = "released"
    RESET = "reset"


class TicketStateMachine:
    """Validate ticket lifecycle transitions."""

    _TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
        TicketStatus.WAITING: frozenset(
            {TicketStatus.CALLED, TicketStatus.PROCESSING, TicketStatus.RELEASED, TicketStatus.RESET}
        ),
        TicketStatus.CALLED: frozenset({TicketStatus.DONE, TicketStatus.SKIPPED, TicketStatus.RESET}),
        TicketStatus.PROCESSING: frozenset({TicketStatus.DONE, TicketStatus.RESET}),
        TicketStatus.DONE: frozenset(),
        TicketStatus.CANCELLED: frozenset(),
        TicketStatus.SKIPPED: frozenset(),
        TicketStatus.RELEASED: frozenset(),
        TicketStatus.RESET: frozenset(),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.WAITING

    @classmethod
    def can_transition(cls, current: TicketStatus, requested: TicketStatus) -> bool:
        return requested in cls._TRANSITIONS[current]

    @classmethod
    def transition(cls, current: TicketStatus, requested: TicketStatus) -> TicketStatus:
        """Return the new status, or raise InvalidTransition."""
        if not cls.can_transition(current, requested):
            raise InvalidTransition(current, requested)
        return requested

    @classmethod
    def is_terminal(cls, status: TicketStatus) -> bool:
        return not cls._TRANSITIONS[status]

    @classmethod
    def resettable(cls) -> list[TicketStatus]:
        """Statuses that a counter reset forces to RESET."""
        return [status for status in TicketStatus if cls.can_transition(status, TicketStatus.RESET)]
