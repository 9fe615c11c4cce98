"""Scheduling schema: weekly_schedule, date_overrides, bookings.

Revision ID: 001_scheduling
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_scheduling"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_HOLDS_SLOT = sa.text("status NOT IN ('rejected', 'cancelled')")


def upgrade() -> None:
    op.create_table(
        "weekly_schedule",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("time_slots", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_schedule_day_of_week"),
    )
    op.create_index(op.f("ix_weekly_schedule_day_of_week"), "weekly_schedule", ["day_of_week"], unique=True)

    op.create_table(
        "date_overrides",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("blocked_times", sa.JSON(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_date_overrides_day"), "date_overrides", ["day"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("slot_time", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("municipality", sa.String(), nullable=False),
        sa.Column("project_type", sa.String(), nullable=True),
        sa.Column("property_type", sa.String(), nullable=True),
        sa.Column("property_age", sa.String(), nullable=True),
        sa.Column("priorities", sa.JSON(), nullable=False),
        sa.Column("material_preference", sa.String(), nullable=True),
        sa.Column("budget", sa.String(), nullable=True),
        sa.Column("timing", sa.String(), nullable=True),
        sa.Column("subsidy_interest", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payment_spread", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("motivation", sa.String(), nullable=True),
        sa.Column("message", sa.String(), nullable=True),
        sa.Column("admin_notes", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bookings_reference"), "bookings", ["reference"], unique=True)
    op.create_index(op.f("ix_bookings_slot_date"), "bookings", ["slot_date"], unique=False)
    op.create_index(op.f("ix_bookings_status"), "bookings", ["status"], unique=False)
    op.create_index(
        "uq_bookings_slot_active",
        "bookings",
        ["slot_date", "slot_time"],
        unique=True,
        postgresql_where=_HOLDS_SLOT,
        sqlite_where=_HOLDS_SLOT,
    )


def downgrade() -> None:
    op.drop_index("uq_bookings_slot_active", table_name="bookings")
    op.drop_index(op.f("ix_bookings_status"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_slot_date"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_reference"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_index(op.f("ix_date_overrides_day"), table_name="date_overrides")
    op.drop_table("date_overrides")
    op.drop_index(op.f("ix_weekly_schedule_day_of_week"), table_name="weekly_schedule")
    op.drop_table("weekly_schedule")
