"""
Async engine, session factory and the transaction scope used by services.

One AsyncSession per request (FastAPI dependency `get_db`). Services never
commit ad hoc: every mutating operation runs inside `transaction(db)`, which
commits on success and rolls back on any exception, including task
cancellation when a request deadline aborts the handler.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from queuedesk.core.config import get_settings
from queuedesk.core.errors import StorageError
from queuedesk.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    pool_options = {}
    if not settings.DATABASE_URL.startswith("sqlite"):
        pool_options = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **pool_options)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Commit everything done inside the block, or nothing.

    Storage failures are re-raised as StorageError; domain errors pass
    through untouched after the rollback.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("transaction_failed", error=str(exc), error_type=type(exc).__name__)
        raise StorageError("Storage operation failed") from exc
    except BaseException:
        await db.rollback()
        raise
