"""
Tests for per-status ticket counts.
"""

import pytest

from queuedesk.models.status import TicketStatus
from queuedesk.services.stats_service import count_by_status


@pytest.mark.asyncio
async def test_count_by_status(db_session, make_counter, make_ticket):
    counter = await make_counter()
    for number, status in enumerate(
        [TicketStatus.WAITING, TicketStatus.WAITING, TicketStatus.CALLED, TicketStatus.DONE], start=1
    ):
        await make_ticket(counter, number, status)

    assert await count_by_status(db_session) == {
        "waiting": 2,
        "called": 1,
        "processing": 0,
        "skipped": 0,
        "done": 1,
    }


@pytest.mark.asyncio
async def test_untracked_statuses_are_not_reported(db_session, make_counter, make_ticket):
    counter = await make_counter()
    await make_ticket(counter, 1, TicketStatus.RESET)
    await make_ticket(counter, 2, TicketStatus.RELEASED)
    await make_ticket(counter, 3, TicketStatus.CANCELLED)

    counts = await count_by_status(db_session)

    assert set(counts) == {"waiting", "called", "processing", "skipped", "done"}
    assert all(value == 0 for value in counts.values())


@pytest.mark.asyncio
async def test_count_by_status_on_empty_store(db_session):
    assert await count_by_status(db_session) == {
        "waiting": 0,
        "called": 0,
        "processing": 0,
        "skipped": 0,
        "done": 0,
    }
