"""
Tests for counter resets: one counter or all of them, in one transaction.
"""

import pytest

from queuedesk.core.errors import NotFound
from queuedesk.models.counter import Counter
from queuedesk.models.status import TicketStatus
from queuedesk.models.ticket import Ticket
from queuedesk.services.allocation_service import AllocationEngine

PENDING = [TicketStatus.WAITING, TicketStatus.CALLED, TicketStatus.PROCESSING]
FINISHED = [TicketStatus.DONE, TicketStatus.RELEASED, TicketStatus.SKIPPED, TicketStatus.CANCELLED]


@pytest.fixture
def seeded(make_counter, make_ticket):
    """Counter 1 at 3 issued, counter 2 at 5 issued, each with mixed tickets."""

    async def _seed():
        first = await make_counter(name="One", max_queue=10, current_queue=3)
        second = await make_counter(name="Two", max_queue=10, current_queue=5)
        tickets = {first.id: [], second.id: []}
        for counter, statuses in (
            (first, [TicketStatus.DONE, TicketStatus.CALLED, TicketStatus.WAITING]),
            (second, PENDING + [TicketStatus.RELEASED, TicketStatus.SKIPPED, TicketStatus.CANCELLED]),
        ):
            for number, status in enumerate(statuses, start=1):
                tickets[counter.id].append(await make_ticket(counter, number, status))
        return first, second, tickets

    return _seed


@pytest.mark.asyncio
async def test_reset_all_counters(db_session, seeded, fetch):
    first, second, tickets = await seeded()

    reset_ids = await AllocationEngine(db_session).reset_counters()

    assert reset_ids == [first.id, second.id]
    for counter in (first, second):
        assert (await fetch(Counter, counter.id)).current_queue == 0
        for original in tickets[counter.id]:
            stored = await fetch(Ticket, original.id)
            if original.status in PENDING:
                assert stored.status == TicketStatus.RESET
            else:
                assert stored.status == original.status


@pytest.mark.asyncio
async def test_reset_single_counter_leaves_others_alone(db_session, seeded, fetch):
    first, second, tickets = await seeded()

    await AllocationEngine(db_session).reset_counters(second.id)

    assert (await fetch(Counter, second.id)).current_queue == 0
    assert (await fetch(Counter, first.id)).current_queue == 3
    for original in tickets[first.id]:
        assert (await fetch(Ticket, original.id)).status == original.status


@pytest.mark.asyncio
async def test_reset_restarts_numbering(db_session, make_counter):
    counter = await make_counter(max_queue=2)
    engine = AllocationEngine(db_session)
    await engine.issue_ticket(counter.id)
    await engine.issue_ticket(counter.id)

    await engine.reset_counters(counter.id)
    ticket = await engine.issue_ticket(counter.id)

    assert ticket.number == 1


@pytest.mark.asyncio
async def test_reset_skips_inactive_counters(db_session, make_counter, make_ticket, fetch):
    active = await make_counter(name="Active", current_queue=1)
    inactive = await make_counter(name="Paused", current_queue=2, is_active=False)
    waiting = await make_ticket(inactive, 1)

    assert await AllocationEngine(db_session).reset_counters() == [active.id]
    assert (await fetch(Counter, inactive.id)).current_queue == 2
    assert (await fetch(Ticket, waiting.id)).status == TicketStatus.WAITING


@pytest.mark.asyncio
async def test_reset_unknown_counter_is_not_found(db_session, make_counter):
    await make_counter()

    with pytest.raises(NotFound):
        await AllocationEngine(db_session).reset_counters(777)


@pytest.mark.asyncio
async def test_reset_with_no_active_counters_is_not_found(db_session, make_counter):
    await make_counter(deleted=True)

    with pytest.raises(NotFound):
        await AllocationEngine(db_session).reset_counters()


@pytest.mark.asyncio
async def test_reset_notifies_both_listings(db_session, make_counter, recording_hook, recorded_changes):
    await make_counter()

    await AllocationEngine(db_session, on_change=recording_hook).reset_counters()

    assert recorded_changes == ["tickets", "counters"]
