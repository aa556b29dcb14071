"""Load the messaging provider's service account from configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from notifier.config import Settings
from notifier.notifications.contracts import ConfigError, InvalidCredentialConfigError
from notifier.push.credentials import ServiceAccountCredential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceAccount:
  """Signing credential plus the project that owns the send endpoint."""

  credential: ServiceAccountCredential
  project_id: str


def _read_raw(settings: Settings) -> str:
  if settings.firebase_service_account:
    return settings.firebase_service_account

  if settings.firebase_service_account_json_path:
    path = Path(settings.firebase_service_account_json_path)
    try:
      return path.read_text(encoding="utf-8")
    except OSError as exc:
      raise ConfigError(f"Cannot read service account file at {path}") from exc

  raise ConfigError("FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_JSON_PATH must be set to send push notifications.")


def parse_service_account(raw: str, *, audience_url: str, scope: str) -> ServiceAccount:
  """Parse a provider service-account JSON document."""
  try:
    document: Any = json.loads(raw)
  except json.JSONDecodeError as exc:
    raise ConfigError("Service account is not valid JSON") from exc

  if not isinstance(document, dict):
    raise ConfigError("Service account JSON must be an object")

  missing = [name for name in ("client_email", "private_key", "project_id") if not isinstance(document.get(name), str) or not document[name].strip()]
  if missing:
    raise InvalidCredentialConfigError(f"Service account is missing string field(s): {', '.join(missing)}")

  credential = ServiceAccountCredential(issuer_email=document["client_email"].strip(), private_key_pem=document["private_key"], audience_url=audience_url, scope=scope)
  return ServiceAccount(credential=credential, project_id=document["project_id"].strip())


def load_service_account(settings: Settings) -> ServiceAccount:
  """Resolve the service account from inline JSON or a file path."""
  account = parse_service_account(_read_raw(settings), audience_url=settings.fcm_audience, scope=settings.fcm_scope)
  logger.info("Loaded service account issuer=%s project_id=%s", account.credential.issuer_email, account.project_id)
  return account
