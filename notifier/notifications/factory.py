"""Factory helpers for notification services."""

from __future__ import annotations

import functools
import time

from notifier.config import Settings
from notifier.notifications.contracts import NotificationRepository, PushSender
from notifier.notifications.dispatcher import PushDispatcher
from notifier.notifications.push_sender import FcmConfig, FcmPushSender, get_shared_client
from notifier.notifications.recipients import RecipientResolver
from notifier.notifications.scheduler import NotificationScheduler
from notifier.notifications.service import NotificationDispatchService
from notifier.notifications.token_repo import PostgresNotificationRepository
from notifier.push.assertions import AssertionProvider, Clock, InMemoryTokenCache
from notifier.push.service_account import load_service_account


def build_notification_service(settings: Settings, *, repository: NotificationRepository | None = None, sender: PushSender | None = None, clock: Clock = time.time) -> NotificationDispatchService:
  """Construct the dispatch service based on environment configuration."""
  repository = repository or PostgresNotificationRepository()

  if sender is None:
    sender = FcmPushSender(config=FcmConfig(base_url=settings.fcm_base_url, timeout_seconds=settings.fcm_timeout_seconds), client=get_shared_client(settings.fcm_timeout_seconds))

  # Loaded on first non-gated request, then reused for the life of the process.
  service_account = functools.cache(lambda: load_service_account(settings))
  cache = InMemoryTokenCache() if settings.assertion_cache_enabled else None
  assertions = AssertionProvider(credential_loader=lambda: service_account().credential, clock=clock, cache=cache, refresh_margin_seconds=settings.assertion_refresh_margin_seconds)

  return NotificationDispatchService(
    resolver=RecipientResolver(repository=repository),
    service_account=service_account,
    assertions=assertions,
    dispatcher=PushDispatcher(sender=sender, token_repo=repository, max_concurrency=settings.fcm_max_concurrency),
    push_enabled=settings.push_enabled,
  )


def build_notification_scheduler(*, service: NotificationDispatchService, repository: NotificationRepository | None = None) -> NotificationScheduler:
  return NotificationScheduler(repository=repository or PostgresNotificationRepository(), service=service)
