"""Add notification preference and device token tables.

Revision ID: 4e1b7c2a9d30
Revises:
Create Date: 2026-10-17 09:12:41.220417
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "4e1b7c2a9d30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "user_notification_preferences",
    sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("meal_reminders", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.Column("weekly_reports", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.Column("meal_reminder_time", sa.Time(), nullable=True),
    sa.Column("weekly_report_day", sa.SmallInteger(), nullable=True),
    sa.Column("weekly_report_time", sa.Time(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("weekly_report_day BETWEEN 0 AND 6", name="ck_user_notification_preferences_weekday"),
    sa.PrimaryKeyConstraint("user_id"),
  )
  op.create_table(
    "user_notification_tokens",
    sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("fcm_token", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_user_notification_tokens_user_id"), "user_notification_tokens", ["user_id"], unique=False)
  op.create_index("ux_user_notification_tokens_fcm_token", "user_notification_tokens", ["fcm_token"], unique=True)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ux_user_notification_tokens_fcm_token", table_name="user_notification_tokens")
  op.drop_index(op.f("ix_user_notification_tokens_user_id"), table_name="user_notification_tokens")
  op.drop_table("user_notification_tokens")
  op.drop_table("user_notification_preferences")
