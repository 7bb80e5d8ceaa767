"""
Read-side ticket queries. Mutations go through the allocation engine.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.core.errors import NotFound
from queuedesk.models.ticket import Ticket
from queuedesk.repositories import ticket_repository
from queuedesk.repositories.pagination import Page


async def get_ticket(db: AsyncSession, ticket_id: int) -> Ticket:
    ticket = await ticket_repository.get_ticket(db, ticket_id)
    if not ticket:
        raise NotFound(f"Ticket {ticket_id} not found")
    return ticket


async def list_tickets(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    counter_id: Optional[int] = None,
) -> Page[Ticket]:
    """Tickets oldest first, with counter names joined in."""
    return await ticket_repository.list_tickets(db, page, limit, counter_id)
