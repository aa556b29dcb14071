"""Contracts for push notification dispatch."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
  from notifier.push.credentials import SignedAssertion


@dataclass(frozen=True)
class NotificationPreference:
  """Per-user notification switches owned by the persistence layer."""

  user_id: str
  meal_reminders_enabled: bool
  weekly_reports_enabled: bool


@dataclass(frozen=True)
class DeviceToken:
  """A push registration token issued to one of the user's devices."""

  user_id: str
  push_token: str


@dataclass(frozen=True)
class PushContent:
  """Represents the user-visible part of a push message."""

  title: str
  body: str
  data: dict[str, str]


class DispatchStatus(str, Enum):
  SENT = "sent"
  FAILED = "failed"


class FailureKind(str, Enum):
  PERMANENT_TOKEN = "permanent_token"
  TRANSIENT = "transient"
  UNREACHABLE = "unreachable"
  CANCELLED = "cancelled"


@dataclass(frozen=True)
class DispatchOutcome:
  """Result of delivering one message to one device token."""

  token: str
  status: DispatchStatus
  failure_reason: Any | None = None
  failure_kind: FailureKind | None = None
  pruned: bool = False


@dataclass(frozen=True)
class DispatchSummary:
  """Aggregated outcome of one fan-out pass."""

  sent_count: int
  failed_count: int
  failures: list[DispatchOutcome] = field(default_factory=list)
  pruned_count: int = 0


class NotifierError(Exception):
  """Base class for all notifier failures."""


class ConfigError(NotifierError):
  """Raised when service configuration is missing or malformed."""


class CredentialError(ConfigError):
  """Raised when a service-account credential cannot be used for signing."""


class InvalidKeyError(CredentialError):
  """Raised when the private key is not a PKCS8 PEM-encoded RSA key."""


class InvalidCredentialConfigError(CredentialError):
  """Raised when issuer, audience or scope are missing."""


class RequestError(NotifierError):
  """Raised for caller-correctable request problems."""


class UnsupportedNotificationTypeError(RequestError):
  """Raised when the request names a notification type we do not send."""

  def __init__(self, notification_type: str) -> None:
    super().__init__(f"Invalid notification type: {notification_type!r}")
    self.notification_type = notification_type


class NotificationProviderError(NotifierError):
  """Exception raised when the messaging provider rejects or fails a send."""

  def __init__(self, message: str, *, status_code: int | None = None, reason: Any | None = None) -> None:
    super().__init__(message)
    self.status_code = status_code
    self.reason = reason


class PermanentTokenError(NotificationProviderError):
  """Exception raised when the provider reports the device token as gone for good."""


class TransientSendError(NotificationProviderError):
  """Exception raised for provider-side or network failures worth retrying later."""


class ProviderConnectionError(TransientSendError):
  """Exception raised when a send never reached the provider (timeout, DNS, refused)."""


class ProviderUnreachableError(NotifierError):
  """Raised when not a single send in a batch could reach the provider."""

  def __init__(self, summary: DispatchSummary) -> None:
    super().__init__(f"Messaging provider unreachable for all {summary.failed_count} device token(s)")
    self.summary = summary


class NotificationRepository(Protocol):
  """Persistence contract for preferences and device tokens."""

  async def get_preference(self, user_id: str) -> NotificationPreference | None:
    """Return the user's preference row, if any."""

  async def list_tokens(self, user_id: str) -> list[DeviceToken]:
    """Return every registered device token for the user."""

  async def delete_token(self, token: str) -> None:
    """Delete a device token; deleting an unknown token is not an error."""

  async def list_due_user_ids(self, *, notification_type: str, slot_time: datetime.time, weekday: int) -> list[str]:
    """Return users whose schedule for ``notification_type`` matches the slot."""


class PushSender(Protocol):
  """Delivery contract for sending push notifications."""

  async def send(self, *, token: str, content: PushContent, assertion: SignedAssertion, project_id: str) -> None:
    """Send one message or raise a ``NotificationProviderError``."""
