"""
Pydantic schemas for ticket-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from queuedesk.models.status import TicketStatus
from queuedesk.schemas.common import PaginationResponse


class TicketCreate(BaseModel):
    counter_id: int = Field(..., ge=1)


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class TicketResponse(BaseModel):
    id: int
    counter_id: int
    counter_name: Optional[str] = None
    number: int
    status: TicketStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketEnvelope(BaseModel):
    status: bool = True
    message: str
    data: Optional[TicketResponse] = None


class TicketListResponse(BaseModel):
    status: bool = True
    message: str
    data: list[TicketResponse]
    pagination: PaginationResponse
    cached: bool = False


class StatusCounts(BaseModel):
    waiting: int = 0
    called: int = 0
    processing: int = 0
    skipped: int = 0
    done: int = 0


class StatusCountsResponse(BaseModel):
    status: bool = True
    message: str
    data: StatusCounts
