from __future__ import annotations

import os

import pytest

from notifier.config import DEFAULT_FCM_AUDIENCE, DEFAULT_FCM_BASE_URL, DEFAULT_FCM_SCOPE, get_database_settings, get_settings
from notifier.utils.env import load_env_file

ENV_VARS = (
  "NOTIFIER_ENV",
  "NOTIFIER_DEBUG",
  "NOTIFIER_ALLOWED_ORIGINS",
  "NOTIFIER_PG_DSN",
  "DATABASE_URL",
  "NOTIFIER_TASK_SECRET",
  "NOTIFIER_PUSH_ENABLED",
  "FIREBASE_SERVICE_ACCOUNT",
  "FIREBASE_SERVICE_ACCOUNT_JSON_PATH",
  "NOTIFIER_FCM_BASE_URL",
  "NOTIFIER_FCM_MAX_CONCURRENCY",
  "NOTIFIER_ASSERTION_CACHE_ENABLED",
  "NOTIFIER_ASSERTION_REFRESH_MARGIN_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch):
  for name in ENV_VARS:
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  get_database_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()
  get_database_settings.cache_clear()


def test_defaults(clean_env):
  settings = get_settings()

  assert settings.environment == "development"
  assert settings.debug is False
  assert settings.allowed_origins == ()
  assert settings.task_secret is None
  assert settings.push_enabled is True
  assert settings.fcm_base_url == DEFAULT_FCM_BASE_URL
  assert settings.fcm_audience == DEFAULT_FCM_AUDIENCE
  assert settings.fcm_scope == DEFAULT_FCM_SCOPE
  assert settings.fcm_max_concurrency == 10
  assert settings.assertion_cache_enabled is True
  assert settings.assertion_refresh_margin_seconds == 300


def test_overrides(clean_env):
  clean_env.setenv("NOTIFIER_DEBUG", "yes")
  clean_env.setenv("NOTIFIER_ALLOWED_ORIGINS", "https://app.example.com, https://admin.example.com")
  clean_env.setenv("NOTIFIER_TASK_SECRET", "  s3cret  ")
  clean_env.setenv("NOTIFIER_PUSH_ENABLED", "false")
  clean_env.setenv("NOTIFIER_FCM_BASE_URL", "https://fcm.test/")
  clean_env.setenv("NOTIFIER_ASSERTION_CACHE_ENABLED", "0")

  settings = get_settings()

  assert settings.debug is True
  assert settings.allowed_origins == ("https://app.example.com", "https://admin.example.com")
  assert settings.task_secret == "s3cret"
  assert settings.push_enabled is False
  assert settings.fcm_base_url == "https://fcm.test"
  assert settings.assertion_cache_enabled is False


def test_database_url_fallback(clean_env):
  clean_env.setenv("DATABASE_URL", "postgresql://db/notifier")

  assert get_settings().pg_dsn == "postgresql://db/notifier"
  assert get_database_settings().pg_dsn == "postgresql://db/notifier"

  get_settings.cache_clear()
  clean_env.setenv("NOTIFIER_PG_DSN", "postgresql://primary/notifier")
  assert get_settings().pg_dsn == "postgresql://primary/notifier"


@pytest.mark.parametrize(
  ("name", "value"),
  [
    ("NOTIFIER_ALLOWED_ORIGINS", "*"),
    ("NOTIFIER_FCM_MAX_CONCURRENCY", "0"),
    ("NOTIFIER_ASSERTION_REFRESH_MARGIN_SECONDS", "3600"),
  ],
)
def test_invalid_values_are_rejected(clean_env, name, value):
  clean_env.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_load_env_file_does_not_override_by_default(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text("# comment\nNOTIFIER_TEST_A=from-file\nexport NOTIFIER_TEST_B='quoted value'\nNOTIFIER_TEST_C=\"x\"\n", encoding="utf-8")
  monkeypatch.setenv("NOTIFIER_TEST_A", "from-env")
  monkeypatch.delenv("NOTIFIER_TEST_B", raising=False)
  monkeypatch.delenv("NOTIFIER_TEST_C", raising=False)

  load_env_file(env_file)

  assert os.environ["NOTIFIER_TEST_A"] == "from-env"
  assert os.environ["NOTIFIER_TEST_B"] == "quoted value"
  assert os.environ["NOTIFIER_TEST_C"] == "x"
  os.environ.pop("NOTIFIER_TEST_B")
  os.environ.pop("NOTIFIER_TEST_C")
