"""
Request-scoped dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.db.session import get_db
from queuedesk.services.allocation_service import AllocationEngine
from queuedesk.services.cache_service import invalidate_cache


def get_allocation_engine(db: AsyncSession = Depends(get_db)) -> AllocationEngine:
    """Engine bound to this request's session, evicting cached listings on change."""
    return AllocationEngine(db, on_change=invalidate_cache)
