"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from notifier.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_FCM_BASE_URL = "https://fcm.googleapis.com"
DEFAULT_FCM_AUDIENCE = "https://fcm.googleapis.com/"
DEFAULT_FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the notifier service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  pg_dsn: str | None
  pg_connect_timeout: int
  task_secret: str | None
  push_enabled: bool
  firebase_service_account: str | None
  firebase_service_account_json_path: str | None
  fcm_base_url: str
  fcm_audience: str
  fcm_scope: str
  fcm_timeout_seconds: float
  fcm_max_concurrency: int
  assertion_cache_enabled: bool
  assertion_refresh_margin_seconds: int


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ()

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
  if "*" in origins:
    raise ValueError("NOTIFIER_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _pg_dsn() -> str | None:
  return _optional_str(os.getenv("NOTIFIER_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("NOTIFIER_ENV", "development").lower()
  debug = _parse_bool(os.getenv("NOTIFIER_DEBUG"))

  log_max_bytes = int(os.getenv("NOTIFIER_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("NOTIFIER_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("NOTIFIER_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NOTIFIER_LOG_BACKUP_COUNT must be zero or a positive integer.")

  pg_connect_timeout = int(os.getenv("NOTIFIER_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("NOTIFIER_PG_CONNECT_TIMEOUT must be a positive integer.")

  fcm_timeout_seconds = float(os.getenv("NOTIFIER_FCM_TIMEOUT_SECONDS", "10"))
  if fcm_timeout_seconds <= 0:
    raise ValueError("NOTIFIER_FCM_TIMEOUT_SECONDS must be positive.")

  fcm_max_concurrency = int(os.getenv("NOTIFIER_FCM_MAX_CONCURRENCY", "10"))
  if fcm_max_concurrency <= 0:
    raise ValueError("NOTIFIER_FCM_MAX_CONCURRENCY must be a positive integer.")

  # Margin must stay below the one-hour assertion lifetime.
  assertion_refresh_margin_seconds = int(os.getenv("NOTIFIER_ASSERTION_REFRESH_MARGIN_SECONDS", "300"))
  if not 0 <= assertion_refresh_margin_seconds < 3600:
    raise ValueError("NOTIFIER_ASSERTION_REFRESH_MARGIN_SECONDS must be between 0 and 3599.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("NOTIFIER_ALLOWED_ORIGINS")),
    log_dir=(os.getenv("NOTIFIER_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    pg_dsn=_pg_dsn(),
    pg_connect_timeout=pg_connect_timeout,
    task_secret=_optional_str(os.getenv("NOTIFIER_TASK_SECRET")),
    push_enabled=_parse_bool(os.getenv("NOTIFIER_PUSH_ENABLED"), default=True),
    firebase_service_account=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    fcm_base_url=(_optional_str(os.getenv("NOTIFIER_FCM_BASE_URL")) or DEFAULT_FCM_BASE_URL).rstrip("/"),
    fcm_audience=_optional_str(os.getenv("NOTIFIER_FCM_AUDIENCE")) or DEFAULT_FCM_AUDIENCE,
    fcm_scope=_optional_str(os.getenv("NOTIFIER_FCM_SCOPE")) or DEFAULT_FCM_SCOPE,
    fcm_timeout_seconds=fcm_timeout_seconds,
    fcm_max_concurrency=fcm_max_concurrency,
    assertion_cache_enabled=_parse_bool(os.getenv("NOTIFIER_ASSERTION_CACHE_ENABLED"), default=True),
    assertion_refresh_margin_seconds=assertion_refresh_margin_seconds,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring the web-runtime configuration."""
  debug = _parse_bool(os.getenv("NOTIFIER_DEBUG"))
  pg_connect_timeout = int(os.getenv("NOTIFIER_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("NOTIFIER_PG_CONNECT_TIMEOUT must be a positive integer.")

  return DatabaseSettings(debug=debug, pg_dsn=_pg_dsn(), pg_connect_timeout=pg_connect_timeout)
