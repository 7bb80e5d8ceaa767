"""
Ticket endpoints: issuance at a given counter, calling, skipping and
administrative status changes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.api.deps import get_allocation_engine
from queuedesk.core.config import get_settings
from queuedesk.core.logging import get_logger
from queuedesk.db.session import get_db
from queuedesk.schemas.common import MessageResponse
from queuedesk.schemas.ticket import (
    StatusCountsResponse,
    TicketCreate,
    TicketEnvelope,
    TicketListResponse,
    TicketResponse,
    TicketStatusUpdate,
)
from queuedesk.services import ticket_service
from queuedesk.services.allocation_service import TICKETS_TAG, AllocationEngine
from queuedesk.services.cache_service import get_cached_listing, set_cached_listing
from queuedesk.services.stats_service import count_by_status

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/", response_model=TicketListResponse)
async def list_tickets_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    counter_id: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """List tickets oldest first, optionally for one counter."""
    cached = await get_cached_listing(TICKETS_TAG, page=page, limit=limit, counter_id=counter_id)
    if cached:
        logger.info("tickets_list_cache_hit", page=page, counter_id=counter_id)
        cached["cached"] = True
        return TicketListResponse(**cached)

    result = await ticket_service.list_tickets(db, page, limit, counter_id)

    response_data = {
        "status": True,
        "message": "Tickets retrieved successfully",
        "data": [TicketResponse.model_validate(t).model_dump(mode="json") for t in result.items],
        "pagination": result.pagination(),
        "cached": False,
    }
    await set_cached_listing(TICKETS_TAG, response_data, page=page, limit=limit, counter_id=counter_id)

    return TicketListResponse(**response_data)


@router.post("/", response_model=TicketEnvelope, status_code=status.HTTP_201_CREATED)
async def issue_ticket_endpoint(
    ticket_data: TicketCreate,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Issue the next number at a specific counter. 429 when the counter is full."""
    ticket = await engine.issue_ticket(ticket_data.counter_id)
    return TicketEnvelope(message="Ticket created successfully", data=TicketResponse.model_validate(ticket))


@router.get("/metrics", response_model=StatusCountsResponse)
async def ticket_metrics_endpoint(db: AsyncSession = Depends(get_db)):
    counts = await count_by_status(db)
    return StatusCountsResponse(message="Ticket metrics retrieved successfully", data=counts)


@router.post("/next/{counter_id}", response_model=TicketEnvelope)
async def call_next_endpoint(counter_id: int, engine: AllocationEngine = Depends(get_allocation_engine)):
    ticket = await engine.call_next(counter_id)
    if ticket is None:
        return TicketEnvelope(message="No waiting ticket found for this counter")
    return TicketEnvelope(message=f"Ticket {ticket.number} called", data=TicketResponse.model_validate(ticket))


@router.post("/skip/{counter_id}", response_model=TicketEnvelope)
async def skip_current_endpoint(counter_id: int, engine: AllocationEngine = Depends(get_allocation_engine)):
    """Skip the ticket being called and call the next one."""
    ticket = await engine.skip_current(counter_id)
    if ticket is None:
        return TicketEnvelope(message="Current ticket skipped; no waiting ticket left")
    return TicketEnvelope(message=f"Ticket {ticket.number} called", data=TicketResponse.model_validate(ticket))


@router.get("/{ticket_id}", response_model=TicketEnvelope)
async def get_ticket_endpoint(ticket_id: int, db: AsyncSession = Depends(get_db)):
    ticket = await ticket_service.get_ticket(db, ticket_id)
    return TicketEnvelope(message="Ticket retrieved successfully", data=TicketResponse.model_validate(ticket))


@router.patch("/{ticket_id}/status", response_model=TicketEnvelope)
async def update_ticket_status_endpoint(
    ticket_id: int,
    status_data: TicketStatusUpdate,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    ticket = await engine.update_ticket_status(ticket_id, status_data.status)
    return TicketEnvelope(
        message=f"Ticket status updated to {ticket.status.value}",
        data=TicketResponse.model_validate(ticket),
    )


@router.delete("/{ticket_id}", response_model=MessageResponse)
async def delete_ticket_endpoint(ticket_id: int, engine: AllocationEngine = Depends(get_allocation_engine)):
    """Permanently delete a ticket that is still waiting."""
    await engine.delete_ticket(ticket_id)
    return MessageResponse(message="Ticket deleted permanently")
