"""SQLAlchemy models for notification preferences and device tokens."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, SmallInteger, Text, Time, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from notifier.core.database import Base


class UserNotificationPreference(Base):
  """Per-user notification switches and schedule."""

  __tablename__ = "user_notification_preferences"
  __table_args__ = (CheckConstraint("weekly_report_day BETWEEN 0 AND 6", name="ck_user_notification_preferences_weekday"),)

  user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
  meal_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
  weekly_reports: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
  meal_reminder_time: Mapped[datetime.time | None] = mapped_column(Time, nullable=True)
  # 0 = Sunday, matching the mobile client.
  weekly_report_day: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
  weekly_report_time: Mapped[datetime.time | None] = mapped_column(Time, nullable=True)
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class UserNotificationToken(Base):
  """A device push registration token; unique across users."""

  __tablename__ = "user_notification_tokens"
  __table_args__ = (Index("ux_user_notification_tokens_fcm_token", "fcm_token", unique=True),)

  id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
  user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True, nullable=False)
  fcm_token: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
