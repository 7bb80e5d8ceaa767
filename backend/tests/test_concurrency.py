"""
Concurrency scenarios: many sessions racing for the same counter.

Every task uses its own session (its own SQLite connection), the way
concurrent request handlers would.
"""

import asyncio

import pytest
from sqlalchemy import select

from queuedesk.core.errors import CapacityExceeded
from queuedesk.models.counter import Counter
from queuedesk.models.status import TicketStatus
from queuedesk.models.ticket import Ticket
from queuedesk.services.allocation_service import AllocationEngine


async def _issue(session_factory, counter_id):
    async with session_factory() as session:
        try:
            ticket = await AllocationEngine(session).issue_ticket(counter_id)
        except CapacityExceeded:
            return None
        return ticket.number


@pytest.mark.asyncio
async def test_concurrent_issue_hands_out_each_number_once(session_factory, make_counter, fetch):
    counter = await make_counter(max_queue=5)

    results = await asyncio.gather(*(_issue(session_factory, counter.id) for _ in range(12)))

    issued = sorted(n for n in results if n is not None)
    assert issued == [1, 2, 3, 4, 5]
    assert results.count(None) == 7
    assert (await fetch(Counter, counter.id)).current_queue == 5


@pytest.mark.asyncio
async def test_concurrent_claims_spread_without_duplicates(session_factory, make_counter):
    await make_counter(name="A", max_queue=3)
    await make_counter(name="B", max_queue=3)

    async def claim():
        async with session_factory() as session:
            try:
                ticket = await AllocationEngine(session).claim_ticket()
            except CapacityExceeded:
                return None
            return ticket.counter_id, ticket.number

    results = [r for r in await asyncio.gather(*(claim() for _ in range(6))) if r is not None]

    assert len(results) == len(set(results))
    async with session_factory() as session:
        rows = (await session.execute(select(Ticket.counter_id, Ticket.number))).all()
    assert sorted(rows) == sorted(results)


@pytest.mark.asyncio
async def test_concurrent_calls_never_call_the_same_ticket(session_factory, make_counter, make_ticket):
    counter = await make_counter()
    for number in range(1, 4):
        await make_ticket(counter, number)

    async def call():
        async with session_factory() as session:
            ticket = await AllocationEngine(session).call_next(counter.id)
            return ticket.id if ticket else None

    results = await asyncio.gather(*(call() for _ in range(5)))

    called = [r for r in results if r is not None]
    assert len(called) == 3
    assert len(set(called)) == 3
    async with session_factory() as session:
        statuses = (await session.execute(select(Ticket.status))).scalars().all()
    assert set(statuses) == {TicketStatus.CALLED}
