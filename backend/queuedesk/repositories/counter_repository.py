"""
Counter store.

Reads used by the allocation engine always re-read the row
(`populate_existing`) so an identity-mapped Counter never carries a stale
`current_queue` across calls. `for_update=True` adds SELECT ... FOR UPDATE;
SQLite ignores it and relies on `advance_queue_number` instead.
"""

from typing import Optional, Sequence

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from queuedesk.models.counter import Counter
from queuedesk.repositories.pagination import Page, paginate


def _authoritative(query: Select, for_update: bool) -> Select:
    query = query.execution_options(populate_existing=True)
    if for_update:
        query = query.with_for_update()
    return query


def _available():
    return (Counter.is_active.is_(True), Counter.deleted_at.is_(None))


async def get_counter(db: AsyncSession, counter_id: int) -> Optional[Counter]:
    """Non-deleted counter by id, active or not."""
    result = await db.execute(
        _authoritative(select(Counter).where(Counter.id == counter_id, Counter.deleted_at.is_(None)), False)
    )
    return result.scalar_one_or_none()


async def get_active_counter(db: AsyncSession, counter_id: int, *, for_update: bool = False) -> Optional[Counter]:
    result = await db.execute(
        _authoritative(select(Counter).where(Counter.id == counter_id, *_available()), for_update)
    )
    return result.scalar_one_or_none()


async def find_least_loaded_counter(db: AsyncSession, *, for_update: bool = False) -> Optional[Counter]:
    """Active counter with the smallest current_queue; first registered wins ties."""
    query = (
        select(Counter)
        .where(*_available())
        .order_by(Counter.current_queue.asc(), Counter.id.asc())
        .limit(1)
    )
    result = await db.execute(_authoritative(query, for_update))
    return result.scalar_one_or_none()


async def find_active_counters(
    db: AsyncSession,
    counter_id: Optional[int] = None,
    *,
    for_update: bool = False,
) -> list[Counter]:
    query = select(Counter).where(*_available()).order_by(Counter.id.asc())
    if counter_id is not None:
        query = query.where(Counter.id == counter_id)
    result = await db.execute(_authoritative(query, for_update))
    return list(result.scalars().all())


async def list_counters(db: AsyncSession, page: int, limit: int) -> Page[Counter]:
    query = select(Counter).where(Counter.deleted_at.is_(None)).order_by(Counter.id.asc())
    return await paginate(db, query, page, limit)


async def add_counter(db: AsyncSession, name: str, max_queue: int) -> Counter:
    counter = Counter(name=name, max_queue=max_queue, current_queue=0, is_active=True)
    db.add(counter)
    await db.flush()
    await db.refresh(counter)
    return counter


async def advance_queue_number(db: AsyncSession, counter_id: int, seen: int) -> bool:
    """
    Compare-and-set current_queue from `seen` to `seen + 1`.

    Applies only while the counter is still available, still below
    capacity and still at the value the caller read. Returns False when a
    concurrent writer got there first.
    """
    result = await db.execute(
        update(Counter)
        .where(
            Counter.id == counter_id,
            Counter.current_queue == seen,
            Counter.current_queue < Counter.max_queue,
            *_available(),
        )
        .values(current_queue=seen + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def reset_queue_numbers(db: AsyncSession, counter_ids: Sequence[int]) -> int:
    result = await db.execute(
        update(Counter)
        .where(Counter.id.in_(counter_ids))
        .values(current_queue=0)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
