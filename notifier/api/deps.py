"""Shared FastAPI dependencies for internal auth and service wiring."""

from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from notifier.config import Settings, get_settings
from notifier.notifications.factory import build_notification_scheduler, build_notification_service
from notifier.notifications.scheduler import NotificationScheduler
from notifier.notifications.service import NotificationDispatchService

logger = logging.getLogger(__name__)


def require_task_secret(settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_notifier_task_secret: str | None = Header(default=None)) -> None:
  """Allow only callers presenting the shared internal secret."""
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")

  shared_secret_valid = secrets.compare_digest((x_notifier_task_secret or "").encode(), settings.task_secret.encode())
  bearer_valid = secrets.compare_digest((authorization or "").encode(), f"Bearer {settings.task_secret}".encode())
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized call to an internal notification endpoint")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationDispatchService:
  """Build the dispatch service once per process so the assertion cache survives requests."""
  return build_notification_service(get_settings())


def get_notification_scheduler(service: Annotated[NotificationDispatchService, Depends(get_notification_service)]) -> NotificationScheduler:
  return build_notification_scheduler(service=service)
