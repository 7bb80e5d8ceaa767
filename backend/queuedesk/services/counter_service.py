"""
Counter administration: create, rename, resize, activate and soft-delete.

Never touches current_queue; that belongs to the allocation engine.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.core.errors import NotFound, ValidationFailed
from queuedesk.core.logging import get_logger
from queuedesk.db.base import utcnow
from queuedesk.db.session import transaction
from queuedesk.models.counter import Counter
from queuedesk.repositories import counter_repository
from queuedesk.repositories.pagination import Page
from queuedesk.schemas.counter import CounterCreate, CounterStatusAction, CounterUpdate

logger = get_logger(__name__)


async def create_counter(db: AsyncSession, counter_data: CounterCreate) -> Counter:
    async with transaction(db):
        counter = await counter_repository.add_counter(db, counter_data.name, counter_data.max_queue)

    logger.info("counter_created", counter_id=counter.id, name=counter.name, max_queue=counter.max_queue)
    return counter


async def get_counter(db: AsyncSession, counter_id: int) -> Counter:
    """Get a single non-deleted counter by ID."""
    counter = await counter_repository.get_counter(db, counter_id)
    if not counter:
        raise NotFound(f"Counter {counter_id} not found")
    return counter


async def list_counters(db: AsyncSession, page: int = 1, limit: int = 10) -> Page[Counter]:
    return await counter_repository.list_counters(db, page, limit)


async def list_current_counters(db: AsyncSession) -> list[Counter]:
    """Active counters for the public board."""
    return await counter_repository.find_active_counters(db)


async def update_counter(db: AsyncSession, counter_id: int, counter_data: CounterUpdate) -> Counter:
    """
    Rename or resize a counter.
    Shrinking max_queue below the numbers already issued is rejected.
    """
    async with transaction(db):
        counter = await get_counter(db, counter_id)

        if counter_data.max_queue is not None and counter_data.max_queue < counter.current_queue:
            raise ValidationFailed(
                f"max_queue ({counter_data.max_queue}) cannot be lower than "
                f"current_queue ({counter.current_queue})"
            )

        if counter_data.name is not None:
            counter.name = counter_data.name
        if counter_data.max_queue is not None:
            counter.max_queue = counter_data.max_queue
        await db.flush()
        await db.refresh(counter)

    logger.info("counter_updated", counter_id=counter.id, name=counter.name, max_queue=counter.max_queue)
    return counter


async def update_counter_status(db: AsyncSession, counter_id: int, action: CounterStatusAction) -> Counter:
    """`active` / `inactive` toggle issuing; `disable` soft-deletes."""
    async with transaction(db):
        counter = await get_counter(db, counter_id)
        if action == CounterStatusAction.ACTIVE:
            counter.is_active = True
        elif action == CounterStatusAction.INACTIVE:
            counter.is_active = False
        else:
            counter.deleted_at = utcnow()
        await db.flush()

    logger.info("counter_status_updated", counter_id=counter_id, action=action.value)
    return counter


async def delete_counter(db: AsyncSession, counter_id: int) -> None:
    """Soft delete. Tickets keep referencing the counter row."""
    await update_counter_status(db, counter_id, CounterStatusAction.DISABLE)
