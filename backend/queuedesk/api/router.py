"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from queuedesk.api.routes import counters, public, tickets

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(public.router)
api_router.include_router(counters.router)
api_router.include_router(tickets.router)
