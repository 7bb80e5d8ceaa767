"""
Ticket store.
"""

from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.models.counter import Counter
from queuedesk.models.status import TicketStateMachine, TicketStatus
from queuedesk.models.ticket import Ticket
from queuedesk.repositories.pagination import Page, paginate


async def get_ticket(db: AsyncSession, ticket_id: int) -> Optional[Ticket]:
    result = await db.execute(
        select(Ticket)
        .where(Ticket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_oldest_ticket(
    db: AsyncSession,
    counter_id: int,
    status: TicketStatus,
    *,
    for_update: bool = False,
) -> Optional[Ticket]:
    """
    Oldest ticket of a counter in the given status, by created_at then id.

    With `for_update`, rows locked by another caller are skipped so two
    concurrent callers never pick the same ticket on PostgreSQL.
    """
    query = (
        select(Ticket)
        .where(Ticket.counter_id == counter_id, Ticket.status == status)
        .order_by(Ticket.created_at.asc(), Ticket.id.asc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update(skip_locked=True, of=Ticket)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def add_ticket(db: AsyncSession, counter: Counter, number: int) -> Ticket:
    ticket = Ticket(counter=counter, number=number, status=TicketStateMachine.initial_state())
    db.add(ticket)
    await db.flush()
    await db.refresh(ticket)
    return ticket


async def compare_and_set_status(
    db: AsyncSession,
    ticket_id: int,
    expected: TicketStatus,
    new: TicketStatus,
) -> bool:
    """Write `new` only if the stored status is still `expected`."""
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status == expected)
        .values(status=new)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def reset_tickets(
    db: AsyncSession,
    counter_ids: Sequence[int],
    statuses: Sequence[TicketStatus],
) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.counter_id.in_(counter_ids), Ticket.status.in_(statuses))
        .values(status=TicketStatus.RESET)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def delete_ticket_if(db: AsyncSession, ticket_id: int, expected: TicketStatus) -> bool:
    result = await db.execute(
        delete(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status == expected)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def list_tickets(
    db: AsyncSession,
    page: int,
    limit: int,
    counter_id: Optional[int] = None,
) -> Page[Ticket]:
    query = select(Ticket).order_by(Ticket.created_at.asc(), Ticket.id.asc())
    if counter_id is not None:
        query = query.where(Ticket.counter_id == counter_id)
    return await paginate(db, query, page, limit)


async def status_counts(db: AsyncSession) -> dict[TicketStatus, int]:
    result = await db.execute(select(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status))
    return {status: count for status, count in result.all()}
