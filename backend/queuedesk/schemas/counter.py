"""
Pydantic schemas for counter-related request/response validation.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from queuedesk.core.config import get_settings
from queuedesk.schemas.common import PaginationResponse


class CounterStatusAction(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISABLE = "disable"


class CounterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    max_queue: int = Field(default_factory=lambda: get_settings().DEFAULT_MAX_QUEUE, ge=1, le=100000)


class CounterUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    max_queue: Optional[int] = Field(None, ge=1, le=100000)

    @model_validator(mode="after")
    def require_one_field(self) -> "CounterUpdate":
        if self.name is None and self.max_queue is None:
            raise ValueError("At least one of 'name' or 'max_queue' is required")
        return self


class CounterStatusUpdate(BaseModel):
    status: CounterStatusAction


class CounterResponse(BaseModel):
    id: int
    name: str
    current_queue: int
    max_queue: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CounterEnvelope(BaseModel):
    status: bool = True
    message: str
    data: CounterResponse


class CounterListResponse(BaseModel):
    status: bool = True
    message: str
    data: list[CounterResponse]
    pagination: Optional[PaginationResponse] = None
    cached: bool = False


class ResetRequest(BaseModel):
    counter_id: Optional[int] = Field(None, ge=1)
