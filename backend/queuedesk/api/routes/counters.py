"""
Counter administration endpoints with Redis caching on the listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.api.deps import get_allocation_engine
from queuedesk.core.config import get_settings
from queuedesk.core.logging import get_logger
from queuedesk.db.session import get_db
from queuedesk.schemas.common import MessageResponse
from queuedesk.schemas.counter import (
    CounterCreate,
    CounterEnvelope,
    CounterListResponse,
    CounterResponse,
    CounterStatusUpdate,
    CounterUpdate,
    ResetRequest,
)
from queuedesk.schemas.ticket import TicketEnvelope, TicketResponse
from queuedesk.services import counter_service
from queuedesk.services.allocation_service import COUNTERS_TAG, TICKETS_TAG, AllocationEngine
from queuedesk.services.cache_service import get_cached_listing, invalidate_cache, set_cached_listing

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/counters", tags=["Counters"])


async def invalidate_counter_listings() -> None:
    """Ticket listings embed counter names, so both tags go stale together."""
    await invalidate_cache(COUNTERS_TAG)
    await invalidate_cache(TICKETS_TAG)


@router.get("/", response_model=CounterListResponse)
async def list_counters_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """
    List non-deleted counters with pagination.
    Cached in Redis; evicted whenever a counter or its queue number changes.
    """
    cached = await get_cached_listing(COUNTERS_TAG, page=page, limit=limit)
    if cached:
        logger.info("counters_list_cache_hit", page=page)
        cached["cached"] = True
        return CounterListResponse(**cached)

    result = await counter_service.list_counters(db, page, limit)

    response_data = {
        "status": True,
        "message": "Counters retrieved successfully",
        "data": [CounterResponse.model_validate(c).model_dump(mode="json") for c in result.items],
        "pagination": result.pagination(),
        "cached": False,
    }
    await set_cached_listing(COUNTERS_TAG, response_data, page=page, limit=limit)

    return CounterListResponse(**response_data)


@router.post("/", response_model=CounterEnvelope, status_code=status.HTTP_201_CREATED)
async def create_counter_endpoint(counter_data: CounterCreate, db: AsyncSession = Depends(get_db)):
    counter = await counter_service.create_counter(db, counter_data)
    await invalidate_cache(COUNTERS_TAG)
    return CounterEnvelope(message="Counter created successfully", data=CounterResponse.model_validate(counter))


@router.post("/reset", response_model=MessageResponse)
async def reset_counters_endpoint(
    reset_data: Optional[ResetRequest] = None,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """
    Reset one counter (body `{"counter_id": n}`) or every active counter.
    Pending tickets become `reset`; served, skipped and released tickets are kept.
    """
    counter_id = reset_data.counter_id if reset_data else None
    await engine.reset_counters(counter_id)
    message = f"Counter {counter_id} has been reset." if counter_id else "All active counters have been reset."
    return MessageResponse(message=message)


@router.get("/{counter_id}", response_model=CounterEnvelope)
async def get_counter_endpoint(counter_id: int, db: AsyncSession = Depends(get_db)):
    counter = await counter_service.get_counter(db, counter_id)
    return CounterEnvelope(message="Counter retrieved successfully", data=CounterResponse.model_validate(counter))


@router.put("/{counter_id}", response_model=CounterEnvelope)
async def update_counter_endpoint(
    counter_id: int,
    counter_data: CounterUpdate,
    db: AsyncSession = Depends(get_db),
):
    counter = await counter_service.update_counter(db, counter_id, counter_data)
    await invalidate_counter_listings()
    return CounterEnvelope(message="Counter updated successfully", data=CounterResponse.model_validate(counter))


@router.patch("/{counter_id}/status", response_model=MessageResponse)
async def update_counter_status_endpoint(
    counter_id: int,
    status_data: CounterStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    await counter_service.update_counter_status(db, counter_id, status_data.status)
    await invalidate_counter_listings()
    return MessageResponse(message=f"Counter status updated to {status_data.status.value}")


@router.delete("/{counter_id}", response_model=MessageResponse)
async def delete_counter_endpoint(counter_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete: the counter stops issuing and disappears from listings."""
    await counter_service.delete_counter(db, counter_id)
    await invalidate_counter_listings()
    return MessageResponse(message="Counter deleted successfully")


@router.post("/{counter_id}/next", response_model=TicketEnvelope)
async def advance_counter_endpoint(counter_id: int, engine: AllocationEngine = Depends(get_allocation_engine)):
    """Move the oldest waiting ticket straight to processing."""
    ticket = await engine.advance_counter(counter_id)
    if ticket is None:
        return TicketEnvelope(message="No waiting ticket found for this counter")
    return TicketEnvelope(message="Next ticket is now processing", data=TicketResponse.model_validate(ticket))
