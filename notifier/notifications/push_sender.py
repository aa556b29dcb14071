"""Push notification delivery implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from notifier.notifications.contracts import PermanentTokenError, ProviderConnectionError, PushContent, PushSender, TransientSendError
from notifier.push.credentials import SignedAssertion

logger = logging.getLogger(__name__)

# Provider statuses meaning the registration token will never succeed again.
PERMANENT_TOKEN_STATUSES = frozenset({"INVALID_ARGUMENT", "NOT_FOUND"})
ANDROID_CHANNEL_ID = "meal_reminders"
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


@dataclass(frozen=True)
class FcmConfig:
  """Endpoint settings for the FCM HTTP v1 API."""

  base_url: str = "https://fcm.googleapis.com"
  timeout_seconds: float = 10.0

  def send_url(self, project_id: str) -> str:
    return f"{self.base_url.rstrip('/')}/v1/projects/{project_id}/messages:send"


_shared_client: httpx.AsyncClient | None = None


def get_shared_client(timeout_seconds: float) -> httpx.AsyncClient:
  """Return the process-wide provider client, creating it on first use."""
  global _shared_client
  if _shared_client is None or _shared_client.is_closed:
    _shared_client = httpx.AsyncClient(timeout=timeout_seconds, trust_env=False)
  return _shared_client


async def close_shared_client() -> None:
  """Close pooled provider connections on shutdown."""
  global _shared_client
  if _shared_client is not None:
    await _shared_client.aclose()
  _shared_client = None


def token_preview(token: str) -> str:
  """Shorten a push token for logs."""
  return f"{token[:8]}..." if len(token) > 8 else token


def build_fcm_message(token: str, content: PushContent) -> dict[str, Any]:
  """Build the v1 ``messages:send`` body for a single device."""
  return {
    "message": {
      "token": token,
      "notification": {"title": content.title, "body": content.body},
      "android": {"priority": "HIGH", "notification": {"sound": "default", "channel_id": ANDROID_CHANNEL_ID}},
      "apns": {"payload": {"aps": {"sound": "default", "badge": 1, "content-available": 1}}},
      "data": {key: str(value) for key, value in content.data.items()},
    }
  }


def _error_status(response: httpx.Response) -> tuple[str | None, Any]:
  """Return the provider error status and the parsed (or raw) error body."""
  try:
    body = response.json()
  except ValueError:
    return None, response.text

  error = body.get("error") if isinstance(body, dict) else None
  status = error.get("status") if isinstance(error, dict) else None
  return (status if isinstance(status, str) else None), body


class FcmPushSender(PushSender):
  """``httpx`` backed sender for FCM HTTP v1."""

  def __init__(self, *, config: FcmConfig, client: httpx.AsyncClient | None = None) -> None:
    self._config = config
    self._client = client

  async def _post(self, url: str, *, payload: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
    if self._client is not None:
      return await self._client.post(url, json=payload, headers=headers, timeout=self._config.timeout_seconds)

    async with httpx.AsyncClient(timeout=self._config.timeout_seconds, trust_env=False) as client:
      return await client.post(url, json=payload, headers=headers)

  async def send(self, *, token: str, content: PushContent, assertion: SignedAssertion, project_id: str) -> None:
    """Send one message, raising a classified error on rejection."""
    url = self._config.send_url(project_id)
    headers = {"Authorization": f"Bearer {assertion.token}", "Content-Type": "application/json"}

    try:
      response = await self._post(url, payload=build_fcm_message(token, content), headers=headers)
    except httpx.TimeoutException as exc:
      raise ProviderConnectionError(f"Push send timed out after {self._config.timeout_seconds}s", reason=str(exc)) from exc
    except httpx.RequestError as exc:
      raise ProviderConnectionError(f"Push send could not reach provider: {exc}", reason=str(exc)) from exc

    if response.is_success:
      logger.debug("Push delivered token=%s", token_preview(token))
      return

    status, body = _error_status(response)
    if status in PERMANENT_TOKEN_STATUSES:
      raise PermanentTokenError(f"Push token rejected (status={status})", status_code=response.status_code, reason=body)

    raise TransientSendError(f"Push delivery failed (http={response.status_code} status={status or 'unknown'})", status_code=response.status_code, reason=body)

