"""Routes for sending and scheduling push notifications."""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import logging
import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from notifier.api.deps import get_notification_scheduler, get_notification_service, require_task_secret
from notifier.notifications.scheduler import NotificationScheduler
from notifier.notifications.service import NotificationDispatchService, NotificationRequest

router = APIRouter(dependencies=[Depends(require_task_secret)])
logger = logging.getLogger(__name__)

_DISCONNECT_POLL_SECONDS = 0.5


class SendNotificationRequest(BaseModel):
  """Inbound send request; ``type`` is checked by the service, not here."""

  type: str = Field(min_length=1, max_length=64)
  user_id: uuid.UUID = Field(alias="userId")
  model_config = ConfigDict(populate_by_name=True)


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
  while not cancel_event.is_set():
    if await request.is_disconnected():
      logger.info("Client disconnected; no further push sends will start")
      cancel_event.set()
      return
    await asyncio.sleep(_DISCONNECT_POLL_SECONDS)


@router.post("/send-notifications")
async def send_notifications(payload: SendNotificationRequest, request: Request, service: Annotated[NotificationDispatchService, Depends(get_notification_service)]) -> dict[str, Any]:
  """Send one notification to every registered device of a user."""
  cancel_event = asyncio.Event()
  watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
  try:
    result = await service.handle(NotificationRequest(type=payload.type, user_id=str(payload.user_id)), cancel_event=cancel_event)
  finally:
    watcher.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await watcher

  return result.to_response()


@router.post("/schedule-notifications")
async def schedule_notifications(scheduler: Annotated[NotificationScheduler, Depends(get_notification_scheduler)]) -> dict[str, Any]:
  """Send every reminder and report due in the current UTC minute."""
  report = await scheduler.run_due(datetime.datetime.now(datetime.UTC))
  return report.to_response()
