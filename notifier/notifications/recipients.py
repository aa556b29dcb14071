"""Preference gating and target enumeration for a notification request."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from notifier.notifications.contracts import DeviceToken, NotificationPreference, NotificationRepository

logger = logging.getLogger(__name__)

MEAL_REMINDER = "meal_reminder"
WEEKLY_REPORT = "weekly_report"

GATED_DISABLED = "Notifications disabled"
GATED_NO_TOKENS = "No tokens found"


@dataclass(frozen=True)
class Recipients:
  tokens: list[DeviceToken]


@dataclass(frozen=True)
class Gated:
  """A deliberate no-op: nothing should be sent for this request."""

  reason: str


def preference_allows(preference: NotificationPreference, notification_type: str) -> bool:
  if notification_type == MEAL_REMINDER:
    return preference.meal_reminders_enabled
  if notification_type == WEEKLY_REPORT:
    return preference.weekly_reports_enabled
  return False


class RecipientResolver:
  """Read preferences and device tokens for one user."""

  def __init__(self, *, repository: NotificationRepository) -> None:
    self._repository = repository

  async def resolve(self, user_id: str, notification_type: str) -> Recipients | Gated:
    preference = await self._repository.get_preference(user_id)
    if preference is None or not preference_allows(preference, notification_type):
      logger.info("Notification gated user_id=%s type=%s reason=disabled", user_id, notification_type)
      return Gated(GATED_DISABLED)

    tokens = await self._repository.list_tokens(user_id)
    if not tokens:
      logger.info("Notification gated user_id=%s type=%s reason=no_tokens", user_id, notification_type)
      return Gated(GATED_NO_TOKENS)

    return Recipients(tokens=list(tokens))
