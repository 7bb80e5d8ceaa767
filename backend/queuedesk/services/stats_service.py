"""
Ticket counts per status for the admin dashboard.

The shape is fixed: dashboards expect exactly these keys, so statuses
outside TRACKED_STATUSES are left out and missing ones report 0.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.models.status import TicketStatus
from queuedesk.repositories import ticket_repository

TRACKED_STATUSES = (
    TicketStatus.WAITING,
    TicketStatus.CALLED,
    TicketStatus.PROCESSING,
    TicketStatus.SKIPPED,
    TicketStatus.DONE,
)


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    counts = await ticket_repository.status_counts(db)
    return {status.value: counts.get(status, 0) for status in TRACKED_STATUSES}
