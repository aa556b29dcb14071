from __future__ import annotations

import pytest

from notifier.notifications.contracts import DeviceToken, NotificationPreference
from notifier.notifications.recipients import GATED_DISABLED, GATED_NO_TOKENS, Gated, RecipientResolver, Recipients, preference_allows
from tests.support import FakeNotificationRepository

USER_ID = "9a0e6b52-3c1d-4f7a-8e2b-5d4c3b2a1f00"


@pytest.mark.parametrize(
  ("meal", "weekly", "notification_type", "expected"),
  [
    (True, False, "meal_reminder", True),
    (False, True, "meal_reminder", False),
    (False, True, "weekly_report", True),
    (True, False, "weekly_report", False),
    (True, True, "promo", False),
  ],
)
def test_preference_allows(meal, weekly, notification_type, expected):
  preference = NotificationPreference(user_id=USER_ID, meal_reminders_enabled=meal, weekly_reports_enabled=weekly)

  assert preference_allows(preference, notification_type) is expected


@pytest.mark.anyio
async def test_resolve_returns_all_tokens():
  preference = NotificationPreference(user_id=USER_ID, meal_reminders_enabled=True, weekly_reports_enabled=False)
  repo = FakeNotificationRepository(preferences={USER_ID: preference}, tokens={USER_ID: ["android-1", "ios-1"]})

  resolution = await RecipientResolver(repository=repo).resolve(USER_ID, "meal_reminder")

  assert resolution == Recipients(tokens=[DeviceToken(user_id=USER_ID, push_token="android-1"), DeviceToken(user_id=USER_ID, push_token="ios-1")])


@pytest.mark.anyio
async def test_resolve_gates_missing_preferences():
  resolution = await RecipientResolver(repository=FakeNotificationRepository(tokens={USER_ID: ["android-1"]})).resolve(USER_ID, "meal_reminder")

  assert resolution == Gated(GATED_DISABLED)


@pytest.mark.anyio
async def test_resolve_gates_disabled_type():
  preference = NotificationPreference(user_id=USER_ID, meal_reminders_enabled=True, weekly_reports_enabled=False)
  repo = FakeNotificationRepository(preferences={USER_ID: preference}, tokens={USER_ID: ["android-1"]})

  assert await RecipientResolver(repository=repo).resolve(USER_ID, "weekly_report") == Gated(GATED_DISABLED)


@pytest.mark.anyio
async def test_resolve_gates_users_without_tokens():
  preference = NotificationPreference(user_id=USER_ID, meal_reminders_enabled=True, weekly_reports_enabled=True)
  repo = FakeNotificationRepository(preferences={USER_ID: preference})

  assert await RecipientResolver(repository=repo).resolve(USER_ID, "weekly_report") == Gated(GATED_NO_TOKENS)
