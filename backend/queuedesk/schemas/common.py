"""
Response envelope shared by every endpoint: {status, message, data, pagination}.
"""

from pydantic import BaseModel


class PaginationResponse(BaseModel):
    total: int
    current_page: int
    per_page: int
    total_page: int


class MessageResponse(BaseModel):
    status: bool = True
    message: str


class ErrorResponse(BaseModel):
    status: bool = False
    message: str
