"""
Customer-facing endpoints: claim a ticket, give it back, watch the board.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.api.deps import get_allocation_engine
from queuedesk.db.session import get_db
from queuedesk.schemas.common import MessageResponse
from queuedesk.schemas.counter import CounterListResponse, CounterResponse
from queuedesk.schemas.ticket import TicketEnvelope, TicketResponse
from queuedesk.services.allocation_service import AllocationEngine
from queuedesk.services.counter_service import list_current_counters

router = APIRouter(prefix="/public", tags=["Public"])


@router.post("/claim", response_model=TicketEnvelope, status_code=status.HTTP_201_CREATED)
async def claim_ticket(engine: AllocationEngine = Depends(get_allocation_engine)):
    """
    Take a ticket at the least-busy active counter.

    Returns 429 when that counter has already issued its maximum number of
    tickets since the last reset.
    """
    ticket = await engine.claim_ticket()
    return TicketEnvelope(message="Ticket claimed successfully", data=TicketResponse.model_validate(ticket))


@router.patch("/release/{ticket_id}", response_model=MessageResponse)
async def release_ticket(ticket_id: int, engine: AllocationEngine = Depends(get_allocation_engine)):
    """Give up a waiting ticket. Only waiting tickets can be released."""
    await engine.release_ticket(ticket_id)
    return MessageResponse(message=f"Ticket {ticket_id} released")


@router.get("/current", response_model=CounterListResponse)
async def current_counters(db: AsyncSession = Depends(get_db)):
    """Active counters with their current queue position."""
    counters = await list_current_counters(db)
    return CounterListResponse(
        message="Current counter status retrieved successfully",
        data=[CounterResponse.model_validate(c) for c in counters],
    )
