"""
Counter model: a service point with bounded ticket-issuing capacity.

Key design decisions:
- `current_queue` is the highest ticket number issued since the last reset,
  not the number of tickets still pending. Releasing a ticket does not
  give capacity back; only a reset does.
- Counters are never physically removed. `deleted_at` marks a soft delete
  and every allocation query filters on it.
- CHECK constraints keep 0 <= current_queue <= max_queue at the DB level.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index, CheckConstraint

from queuedesk.db.base import Base, TimestampMixin


class Counter(Base, TimestampMixin):
    __tablename__ = "counters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    max_queue = Column(Integer, nullable=False, default=99)
    current_queue = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("max_queue > 0", name="check_max_queue_positive"),
        CheckConstraint("current_queue >= 0", name="check_current_queue_non_negative"),
        CheckConstraint("current_queue <= max_queue", name="check_current_lte_max"),
        # Claim picks the least-loaded active counter
        Index("ix_counters_active_load", "is_active", "current_queue", "id"),
    )

    @property
    def is_full(self) -> bool:
        return self.current_queue >= self.max_queue

    def __repr__(self) -> str:
        return f"<Counter(id={self.id}, name={self.name}, queue={self.current_queue}/{self.max_queue})>"
