"""
Allocation engine: ticket issuance and lifecycle under concurrent access.

CONCURRENCY STRATEGY: Row Lock + Compare-and-Set inside one transaction
=======================================================================

Problem:
  Two customers claim a ticket at the same counter simultaneously.
  Both read current_queue=4, both write 5, both receive ticket number 5.
  Result: a duplicated number, and capacity silently exceeded.

Solution:
  Every issuance runs in a single transaction that re-reads the counter
  and then writes it conditionally:

  1. SELECT ... FROM counters WHERE id = :id AND is_active AND deleted_at IS NULL
     FOR UPDATE
  2. UPDATE counters SET current_queue = :seen + 1
     WHERE id = :id AND current_queue = :seen AND current_queue < max_queue
       AND is_active AND deleted_at IS NULL
  3. If rows_affected == 0, another transaction moved the counter first:
     re-read and try again (bounded by ALLOCATION_MAX_RETRIES)
  4. INSERT the ticket with number = :seen + 1

  On PostgreSQL the row lock serializes issuers of one counter, so step 3
  practically never fires. On SQLite FOR UPDATE is ignored and the
  conditional UPDATE alone prevents double issuance.

  Status changes follow the same pattern on tickets.status:
  UPDATE tickets SET status = :new WHERE id = :id AND status = :expected.
  Candidate tickets for call/advance are selected with FOR UPDATE SKIP
  LOCKED so concurrent callers at one counter take different tickets.

Capacity:
  current_queue counts tickets issued since the last reset. Releasing a
  ticket does not hand capacity back; only reset_counters does.

Every public operation opens its own `transaction(db)`. Domain errors
(NotFound, CapacityExceeded, InvalidTransition) roll the whole operation
back and are never retried here. The optional change hook runs once per
affected tag after a successful commit.
"""

from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.core.config import get_settings
from queuedesk.core.errors import CapacityExceeded, InvalidTransition, NotFound, StorageError
from queuedesk.core.logging import get_logger
from queuedesk.core.metrics import (
    counter_resets,
    record_issue_attempt,
    record_retry,
    record_transition,
    ticket_issue_latency,
)
from queuedesk.db.session import transaction
from queuedesk.models.counter import Counter
from queuedesk.models.status import TicketStateMachine, TicketStatus
from queuedesk.models.ticket import Ticket
from queuedesk.repositories import counter_repository, ticket_repository

logger = get_logger(__name__)

ChangeHook = Callable[[str], Awaitable[None]]
CounterSelector = Callable[[], Awaitable[Optional[Counter]]]

COUNTERS_TAG = "counters"
TICKETS_TAG = "tickets"


class AllocationEngine:
    """
    Atomic claim/issue/advance/reset operations over one AsyncSession.

    Holds no counter or ticket state between calls; build one per request.
    """

    def __init__(
        self,
        db: AsyncSession,
        on_change: Optional[ChangeHook] = None,
        max_retries: Optional[int] = None,
    ):
        self.db = db
        self._on_change = on_change
        if max_retries is None:
            max_retries = get_settings().ALLOCATION_MAX_RETRIES
        self._max_retries = max_retries

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def issue_ticket(self, counter_id: int) -> Ticket:
        """Issue the next ticket number of a specific counter."""
        with ticket_issue_latency.time():
            async with transaction(self.db):
                ticket = await self._issue(
                    lambda: counter_repository.get_active_counter(self.db, counter_id, for_update=True),
                    not_found=f"Counter {counter_id} not found",
                )
        await self._notify(TICKETS_TAG, COUNTERS_TAG)
        return ticket

    async def claim_ticket(self) -> Ticket:
        """
        Issue a ticket at the least-loaded active counter.

        Ties go to the lowest counter id. A full counter is reported as
        CapacityExceeded even if another counter has room: selection stays
        deterministic.
        """
        with ticket_issue_latency.time():
            async with transaction(self.db):
                ticket = await self._issue(
                    lambda: counter_repository.find_least_loaded_counter(self.db, for_update=True),
                    not_found="No active counters available",
                )
        await self._notify(TICKETS_TAG, COUNTERS_TAG)
        return ticket

    async def _issue(self, select_counter: CounterSelector, not_found: str) -> Ticket:
        for attempt in range(1, self._max_retries + 1):
            counter = await select_counter()

            if counter is None:
                record_issue_attempt("not_found")
                raise NotFound(not_found)

            if counter.is_full:
                record_issue_attempt("full")
                logger.warning(
                    "ticket_issue_rejected",
                    counter_id=counter.id,
                    current_queue=counter.current_queue,
                    max_queue=counter.max_queue,
                    reason="capacity_exceeded",
                )
                raise CapacityExceeded(counter.id, counter.max_queue)

            seen = counter.current_queue
            if await counter_repository.advance_queue_number(self.db, counter.id, seen):
                await self.db.refresh(counter)
                ticket = await ticket_repository.add_ticket(self.db, counter, seen + 1)
                record_issue_attempt("issued")
                logger.info(
                    "ticket_issued",
                    ticket_id=ticket.id,
                    counter_id=counter.id,
                    number=ticket.number,
                    attempt=attempt,
                )
                return ticket

            record_retry("counter")
            logger.info(
                "ticket_issue_retry",
                counter_id=counter.id,
                attempt=attempt,
                reason="queue_number_conflict",
            )

        logger.error("ticket_issue_exhausted", attempts=self._max_retries)
        raise StorageError("Ticket issuance failed due to high demand. Please try again.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def release_ticket(self, ticket_id: int) -> Ticket:
        """Customer gives up a waiting ticket. Capacity is not returned."""
        async with transaction(self.db):
            ticket = await self._load_ticket(ticket_id)
            ticket = await self._transition(ticket, TicketStatus.RELEASED)
        await self._notify(TICKETS_TAG)
        return ticket

    async def call_next(self, counter_id: int) -> Optional[Ticket]:
        """
        Call the oldest waiting ticket. An empty queue returns None.

        Tickets already called at this counter are left as they are, so
        repeated calls can leave several called tickets; skip_current skips
        the oldest of them and mark the rest done through update_ticket_status.
        """
        async with transaction(self.db):
            ticket = await self._take_oldest(counter_id, TicketStatus.WAITING, TicketStatus.CALLED)
        if ticket is not None:
            await self._notify(TICKETS_TAG)
        return ticket

    async def skip_current(self, counter_id: int) -> Optional[Ticket]:
        """Skip the called ticket and call the next one, both or neither."""
        async with transaction(self.db):
            current = await ticket_repository.find_oldest_ticket(
                self.db, counter_id, TicketStatus.CALLED, for_update=True
            )
            if current is not None:
                await self._transition(current, TicketStatus.SKIPPED)
            ticket = await self._take_oldest(counter_id, TicketStatus.WAITING, TicketStatus.CALLED)
        if current is not None or ticket is not None:
            await self._notify(TICKETS_TAG)
        return ticket

    async def advance_counter(self, counter_id: int) -> Optional[Ticket]:
        """Move the oldest waiting ticket straight to processing, bypassing the call step."""
        async with transaction(self.db):
            ticket = await self._take_oldest(counter_id, TicketStatus.WAITING, TicketStatus.PROCESSING)
        if ticket is not None:
            await self._notify(TICKETS_TAG)
        return ticket

    async def update_ticket_status(self, ticket_id: int, status: TicketStatus) -> Ticket:
        """Administrative status change, validated like any other transition."""
        async with transaction(self.db):
            ticket = await self._load_ticket(ticket_id)
            ticket = await self._transition(ticket, status)
        await self._notify(TICKETS_TAG)
        return ticket

    async def delete_ticket(self, ticket_id: int) -> None:
        """Physically remove a ticket nobody has been served on yet."""
        async with transaction(self.db):
            ticket = await self._load_ticket(ticket_id)
            if not await ticket_repository.delete_ticket_if(self.db, ticket.id, TicketStatus.WAITING):
                raise InvalidTransition(
                    ticket.status,
                    message=f"Only waiting tickets can be deleted (ticket {ticket_id} is {ticket.status.value})",
                )
        logger.info("ticket_deleted", ticket_id=ticket_id, counter_id=ticket.counter_id)
        await self._notify(TICKETS_TAG)

    async def reset_counters(self, counter_id: Optional[int] = None) -> list[int]:
        """
        Reset one counter, or every active counter when counter_id is None.

        Waiting, called and processing tickets become RESET; finished
        tickets keep their status for auditing. current_queue goes back to
        0. All targeted counters reset together or not at all.
        """
        async with transaction(self.db):
            counters = await counter_repository.find_active_counters(self.db, counter_id, for_update=True)
            if not counters:
                raise NotFound(
                    f"Counter {counter_id} not found" if counter_id is not None
                    else "No active counters found to reset"
                )

            counter_ids = [c.id for c in counters]
            tickets_reset = await ticket_repository.reset_tickets(
                self.db, counter_ids, TicketStateMachine.resettable()
            )
            await counter_repository.reset_queue_numbers(self.db, counter_ids)

        counter_resets.inc(len(counter_ids))
        record_transition(TicketStatus.RESET.value, tickets_reset)
        logger.info("counters_reset", counter_ids=counter_ids, tickets_reset=tickets_reset)
        await self._notify(TICKETS_TAG, COUNTERS_TAG)
        return counter_ids

    # ------------------------------------------------------------------
    # Helpers (run inside the caller's transaction)
    # ------------------------------------------------------------------

    async def _load_ticket(self, ticket_id: int) -> Ticket:
        ticket = await ticket_repository.get_ticket(self.db, ticket_id)
        if ticket is None:
            raise NotFound(f"Ticket {ticket_id} not found")
        return ticket

    async def _transition(self, ticket: Ticket, requested: TicketStatus) -> Ticket:
        """Validate and apply one status change, re-reading on a lost race."""
        for attempt in range(1, self._max_retries + 1):
            current = ticket.status
            TicketStateMachine.transition(current, requested)

            if await ticket_repository.compare_and_set_status(self.db, ticket.id, current, requested):
                await self.db.refresh(ticket)
                record_transition(requested.value)
                logger.info(
                    "ticket_status_changed",
                    ticket_id=ticket.id,
                    counter_id=ticket.counter_id,
                    from_status=current.value,
                    to_status=requested.value,
                )
                return ticket

            record_retry("ticket")
            logger.info("ticket_transition_retry", ticket_id=ticket.id, attempt=attempt)
            ticket = await self._load_ticket(ticket.id)

        raise StorageError(f"Ticket {ticket.id} kept changing concurrently. Please try again.")

    async def _take_oldest(
        self,
        counter_id: int,
        from_status: TicketStatus,
        to_status: TicketStatus,
    ) -> Optional[Ticket]:
        TicketStateMachine.transition(from_status, to_status)

        for attempt in range(1, self._max_retries + 1):
            ticket = await ticket_repository.find_oldest_ticket(
                self.db, counter_id, from_status, for_update=True
            )
            if ticket is None:
                logger.debug("queue_empty", counter_id=counter_id, status=from_status.value)
                return None

            if await ticket_repository.compare_and_set_status(self.db, ticket.id, from_status, to_status):
                await self.db.refresh(ticket)
                record_transition(to_status.value)
                logger.info(
                    "ticket_status_changed",
                    ticket_id=ticket.id,
                    counter_id=counter_id,
                    number=ticket.number,
                    from_status=from_status.value,
                    to_status=to_status.value,
                )
                return ticket

            record_retry("ticket")
            logger.info("ticket_take_retry", counter_id=counter_id, ticket_id=ticket.id, attempt=attempt)

        raise StorageError(f"Counter {counter_id} queue kept changing concurrently. Please try again.")

    async def _notify(self, *tags: str) -> None:
        if self._on_change is None:
            return
        for tag in tags:
            try:
                await self._on_change(tag)
            except Exception as e:
                # The operation is already committed; a stale cache expires on its own TTL
                logger.error("change_hook_failed", tag=tag, error=str(e))
