"""
Ticket model: one queue entry bound to a counter.

Key design decisions:
- `number` is unique per counter only between resets, so there is no
  unique constraint on (counter_id, number); the engine guarantees it.
- Status is a closed enum stored as a string with a CHECK constraint.
- Composite index on (counter_id, status, created_at) serves "oldest
  waiting ticket for this counter".
"""

from sqlalchemy import Column, Integer, ForeignKey, Index, Enum
from sqlalchemy.orm import relationship

from queuedesk.db.base import Base, TimestampMixin
from queuedesk.models.status import TicketStatus


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    counter_id = Column(Integer, ForeignKey("counters.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    status = Column(
        Enum(
            TicketStatus,
            name="ticket_status",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
            validate_strings=True,
        ),
        nullable=False,
        default=TicketStatus.WAITING,
    )

    counter = relationship("Counter", lazy="joined", innerjoin=True)

    __table_args__ = (
        Index("ix_tickets_counter_status_created", "counter_id", "status", "created_at"),
    )

    @property
    def counter_name(self) -> str | None:
        return self.counter.name if self.counter is not None else None

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, counter={self.counter_id}, number={self.number}, status={self.status})>"
