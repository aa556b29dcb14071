"""Notification orchestration for a single send request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from notifier.notifications.contracts import PushContent, UnsupportedNotificationTypeError
from notifier.notifications.dispatcher import PushDispatcher
from notifier.notifications.push_sender import CLICK_ACTION
from notifier.notifications.recipients import MEAL_REMINDER, WEEKLY_REPORT, Gated, RecipientResolver
from notifier.push.assertions import AssertionProvider
from notifier.push.service_account import ServiceAccount

logger = logging.getLogger(__name__)

NOTIFICATION_COPY: dict[str, tuple[str, str]] = {
  MEAL_REMINDER: ("Time to Log Your Meal", "Don't forget to record what you've eaten in MacroBalance!"),
  WEEKLY_REPORT: ("Weekly Nutrition Report", "Check out your progress this week in meeting your nutrition goals!"),
}

PUSH_DISABLED = "Push delivery disabled"


@dataclass(frozen=True)
class NotificationRequest:
  type: str
  user_id: str


@dataclass(frozen=True)
class NotificationResult:
  """Caller-facing outcome of a send request."""

  success: bool
  sent: int = 0
  failed: int = 0
  message: str | None = None

  def to_response(self) -> dict[str, Any]:
    if self.success:
      return {"success": True, "sent": self.sent, "failed": self.failed}
    return {"success": False, "message": self.message}


def build_content(notification_type: str) -> PushContent:
  """Return the fixed copy for ``notification_type``."""
  try:
    title, body = NOTIFICATION_COPY[notification_type]
  except KeyError as exc:
    raise UnsupportedNotificationTypeError(notification_type) from exc
  return PushContent(title=title, body=body, data={"type": notification_type, "click_action": CLICK_ACTION})


class NotificationDispatchService:
  """Validate, gate, sign once and fan out one notification request."""

  def __init__(self, *, resolver: RecipientResolver, service_account: Callable[[], ServiceAccount], assertions: AssertionProvider, dispatcher: PushDispatcher, push_enabled: bool = True) -> None:
    self._resolver = resolver
    self._service_account = service_account
    self._assertions = assertions
    self._dispatcher = dispatcher
    self._push_enabled = push_enabled

  async def handle(self, request: NotificationRequest, *, cancel_event: asyncio.Event | None = None) -> NotificationResult:
    """Send ``request`` to every registered device of the user."""
    content = build_content(request.type)
    if not self._push_enabled:
      logger.info("Push delivery disabled; skipping user_id=%s type=%s", request.user_id, request.type)
      return NotificationResult(success=False, message=PUSH_DISABLED)

    resolution = await self._resolver.resolve(request.user_id, request.type)
    if isinstance(resolution, Gated):
      return NotificationResult(success=False, message=resolution.reason)

    # Credential problems surface here, before any send is attempted.
    account = self._service_account()
    assertion = await self._assertions.get_assertion()

    summary = await self._dispatcher.dispatch_all(assertion=assertion, project_id=account.project_id, content=content, tokens=resolution.tokens, cancel_event=cancel_event)
    logger.info("Notification request done user_id=%s type=%s sent=%d failed=%d", request.user_id, request.type, summary.sent_count, summary.failed_count)
    return NotificationResult(success=True, sent=summary.sent_count, failed=summary.failed_count)
