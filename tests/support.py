"""Test doubles and decoding helpers shared across the suite."""

from __future__ import annotations

import base64
import json

from notifier.notifications.contracts import DeviceToken, NotificationPreference

FCM_AUDIENCE = "https://fcm.googleapis.com/"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
ISSUER = "notifier@macrobalance-test.iam.gserviceaccount.com"
PROJECT_ID = "macrobalance-test"


class FakeNotificationRepository:
  """In-memory stand-in for the Postgres repository."""

  def __init__(self, *, preferences: dict[str, NotificationPreference] | None = None, tokens: dict[str, list[str]] | None = None, due: dict[str, list[str]] | None = None) -> None:
    self.preferences = dict(preferences or {})
    self.tokens = {user_id: list(values) for user_id, values in (tokens or {}).items()}
    self.due = dict(due or {})
    self.deleted: list[str] = []
    self.due_queries: list[tuple[str, object, int]] = []

  async def get_preference(self, user_id: str) -> NotificationPreference | None:
    return self.preferences.get(user_id)

  async def list_tokens(self, user_id: str) -> list[DeviceToken]:
    return [DeviceToken(user_id=user_id, push_token=token) for token in self.tokens.get(user_id, [])]

  async def delete_token(self, token: str) -> None:
    self.deleted.append(token)
    for values in self.tokens.values():
      if token in values:
        values.remove(token)

  async def list_due_user_ids(self, *, notification_type: str, slot_time, weekday: int) -> list[str]:
    self.due_queries.append((notification_type, slot_time, weekday))
    return list(self.due.get(notification_type, []))


def b64url_decode(segment: str) -> bytes:
  return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def decode_segment(segment: str) -> dict:
  return json.loads(b64url_decode(segment))
