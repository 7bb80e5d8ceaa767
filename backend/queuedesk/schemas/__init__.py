from queuedesk.schemas.common import PaginationResponse, MessageResponse, ErrorResponse
from queuedesk.schemas.counter import (
    CounterCreate, CounterUpdate, CounterStatusUpdate, CounterResponse,
    CounterEnvelope, CounterListResponse, ResetRequest,
)
from queuedesk.schemas.ticket import (
    TicketCreate, TicketStatusUpdate, TicketResponse, TicketEnvelope,
    TicketListResponse, StatusCountsResponse,
)

__all__ = [
    "PaginationResponse", "MessageResponse", "ErrorResponse",
    "CounterCreate", "CounterUpdate", "CounterStatusUpdate", "CounterResponse",
    "CounterEnvelope", "CounterListResponse", "ResetRequest",
    "TicketCreate", "TicketStatusUpdate", "TicketResponse", "TicketEnvelope",
    "TicketListResponse", "StatusCountsResponse",
]
