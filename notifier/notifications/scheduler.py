"""Minute-slot scheduler for meal reminders and weekly reports."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any

from notifier.notifications.contracts import NotificationRepository, NotifierError
from notifier.notifications.recipients import MEAL_REMINDER, WEEKLY_REPORT
from notifier.notifications.service import NotificationDispatchService, NotificationRequest, NotificationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledDispatch:
  type: str
  user_id: str
  result: NotificationResult | None = None
  error: str | None = None

  def to_response(self) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": self.type, "userId": self.user_id}
    if self.result is not None:
      payload["result"] = self.result.to_response()
    if self.error is not None:
      payload["error"] = self.error
    return payload


@dataclass(frozen=True)
class ScheduleReport:
  dispatches: list[ScheduledDispatch] = field(default_factory=list)

  def to_response(self) -> dict[str, Any]:
    return {"success": True, "sent": len(self.dispatches), "results": [dispatch.to_response() for dispatch in self.dispatches]}


def schedule_slot(now: datetime.datetime) -> tuple[datetime.time, int]:
  """Return the UTC minute slot and weekday (0 = Sunday) for ``now``."""
  if now.tzinfo is None:
    now = now.replace(tzinfo=datetime.UTC)
  utc = now.astimezone(datetime.UTC)
  return datetime.time(utc.hour, utc.minute), (utc.weekday() + 1) % 7


class NotificationScheduler:
  """Send every notification whose configured time matches the current minute."""

  def __init__(self, *, repository: NotificationRepository, service: NotificationDispatchService) -> None:
    self._repository = repository
    self._service = service

  async def run_due(self, now: datetime.datetime) -> ScheduleReport:
    slot_time, weekday = schedule_slot(now)
    dispatches: list[ScheduledDispatch] = []

    for notification_type in (MEAL_REMINDER, WEEKLY_REPORT):
      user_ids = await self._repository.list_due_user_ids(notification_type=notification_type, slot_time=slot_time, weekday=weekday)
      logger.info("Scheduled notifications due type=%s slot=%s weekday=%d users=%d", notification_type, slot_time.isoformat(), weekday, len(user_ids))
      for user_id in user_ids:
        dispatches.append(await self._dispatch(notification_type, user_id))

    return ScheduleReport(dispatches=dispatches)

  async def _dispatch(self, notification_type: str, user_id: str) -> ScheduledDispatch:
    try:
      result = await self._service.handle(NotificationRequest(type=notification_type, user_id=user_id))
    except NotifierError as exc:
      logger.error("Scheduled notification failed type=%s user_id=%s: %s", notification_type, user_id, exc)
      return ScheduledDispatch(type=notification_type, user_id=user_id, error=str(exc))
    except Exception as exc:  # noqa: BLE001
      logger.error("Scheduled notification failed type=%s user_id=%s: %s", notification_type, user_id, exc, exc_info=True)
      return ScheduledDispatch(type=notification_type, user_id=user_id, error=str(exc))

    return ScheduledDispatch(type=notification_type, user_id=user_id, result=result)
