"""Repository helpers for notification preferences and device tokens."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from notifier.core.database import get_session_factory
from notifier.notifications.contracts import DeviceToken, NotificationPreference, NotificationRepository
from notifier.notifications.recipients import MEAL_REMINDER, WEEKLY_REPORT
from notifier.schema.notifications import UserNotificationPreference, UserNotificationToken


def _as_uuid(user_id: str) -> uuid.UUID | None:
  try:
    return uuid.UUID(str(user_id))
  except ValueError:
    return None


class PostgresNotificationRepository(NotificationRepository):
  """Read preferences and tokens from Postgres and prune invalid tokens."""

  async def get_preference(self, user_id: str) -> NotificationPreference | None:
    """Return the user's preference row, or None when absent."""
    session_factory = get_session_factory()
    user_uuid = _as_uuid(user_id)
    if session_factory is None or user_uuid is None:
      return None

    async with session_factory() as session:
      return await self._get_preference_with_session(session=session, user_id=user_uuid)

  async def _get_preference_with_session(self, *, session: AsyncSession, user_id: uuid.UUID) -> NotificationPreference | None:
    row = await session.get(UserNotificationPreference, user_id)
    if row is None:
      return None
    return NotificationPreference(user_id=str(row.user_id), meal_reminders_enabled=bool(row.meal_reminders), weekly_reports_enabled=bool(row.weekly_reports))

  async def list_tokens(self, user_id: str) -> list[DeviceToken]:
    """List all device tokens registered for a user."""
    session_factory = get_session_factory()
    user_uuid = _as_uuid(user_id)
    if session_factory is None or user_uuid is None:
      return []

    async with session_factory() as session:
      return await self._list_tokens_with_session(session=session, user_id=user_uuid)

  async def _list_tokens_with_session(self, *, session: AsyncSession, user_id: uuid.UUID) -> list[DeviceToken]:
    stmt = select(UserNotificationToken.fcm_token).where(UserNotificationToken.user_id == user_id).order_by(UserNotificationToken.created_at)
    result = await session.execute(stmt)
    return [DeviceToken(user_id=str(user_id), push_token=token) for token in result.scalars().all()]

  async def delete_token(self, token: str) -> None:
    """Delete a token regardless of owner; absent tokens are a no-op."""
    session_factory = get_session_factory()
    if session_factory is None:
      return

    async with session_factory() as session:
      await self._delete_token_with_session(session=session, token=token)

  async def _delete_token_with_session(self, *, session: AsyncSession, token: str) -> None:
    stmt = delete(UserNotificationToken).where(UserNotificationToken.fcm_token == token)
    await session.execute(stmt)
    await session.commit()

  async def list_due_user_ids(self, *, notification_type: str, slot_time: datetime.time, weekday: int) -> list[str]:
    """Return users whose schedule for ``notification_type`` falls on this slot."""
    session_factory = get_session_factory()
    if session_factory is None:
      return []

    async with session_factory() as session:
      return await self._list_due_user_ids_with_session(session=session, notification_type=notification_type, slot_time=slot_time, weekday=weekday)

  async def _list_due_user_ids_with_session(self, *, session: AsyncSession, notification_type: str, slot_time: datetime.time, weekday: int) -> list[str]:
    table = UserNotificationPreference
    if notification_type == MEAL_REMINDER:
      stmt = select(table.user_id).where(table.meal_reminders.is_(True), table.meal_reminder_time == slot_time)
    elif notification_type == WEEKLY_REPORT:
      stmt = select(table.user_id).where(table.weekly_reports.is_(True), table.weekly_report_day == weekday, table.weekly_report_time == slot_time)
    else:
      return []

    result = await session.execute(stmt)
    return [str(user_id) for user_id in result.scalars().all()]
