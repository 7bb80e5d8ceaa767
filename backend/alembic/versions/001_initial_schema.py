"""Initial schema: counters and tickets with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TICKET_STATUSES = ("waiting", "called", "processing", "done", "cancelled", "skipped", "released", "reset")


def upgrade() -> None:
    # Counters table
    op.create_table(
        "counters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("max_queue", sa.Integer(), nullable=False, server_default=sa.text("99")),
        sa.Column("current_queue", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("max_queue > 0", name="check_max_queue_positive"),
        sa.CheckConstraint("current_queue >= 0", name="check_current_queue_non_negative"),
        sa.CheckConstraint("current_queue <= max_queue", name="check_current_lte_max"),
    )
    op.create_index("ix_counters_id", "counters", ["id"])
    # Claim scans active counters ordered by load, then id
    op.create_index("ix_counters_active_load", "counters", ["is_active", "current_queue", "id"])

    # Tickets table
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("counter_id", sa.Integer(), sa.ForeignKey("counters.id"), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'waiting'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in TICKET_STATUSES) + ")",
            name="ticket_status",
        ),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_counter_id", "tickets", ["counter_id"])
    # "Oldest waiting ticket of counter N" for call/skip/advance
    op.create_index("ix_tickets_counter_status_created", "tickets", ["counter_id", "status", "created_at"])


def downgrade() -> None:
    op.drop_table("tickets")
    op.drop_table("counters")
