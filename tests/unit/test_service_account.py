from __future__ import annotations

import json
from dataclasses import replace

import pytest

from notifier.config import get_settings
from notifier.notifications.contracts import ConfigError, InvalidCredentialConfigError
from notifier.push.service_account import load_service_account, parse_service_account
from tests.support import FCM_AUDIENCE, FCM_SCOPE, ISSUER, PROJECT_ID


def test_parse_service_account_builds_credential(service_account_json):
  account = parse_service_account(service_account_json, audience_url=FCM_AUDIENCE, scope=FCM_SCOPE)

  assert account.project_id == PROJECT_ID
  assert account.credential.issuer_email == ISSUER
  assert account.credential.audience_url == FCM_AUDIENCE
  assert account.credential.scope == FCM_SCOPE


@pytest.mark.parametrize("field", ["client_email", "private_key", "project_id"])
def test_parse_service_account_requires_fields(service_account_json, field):
  document = json.loads(service_account_json)
  document.pop(field)

  with pytest.raises(InvalidCredentialConfigError) as exc_info:
    parse_service_account(json.dumps(document), audience_url=FCM_AUDIENCE, scope=FCM_SCOPE)

  assert field in str(exc_info.value)


@pytest.mark.parametrize("raw", ["{not json", "[]", "\"text\""])
def test_parse_service_account_rejects_malformed_documents(raw):
  with pytest.raises(ConfigError):
    parse_service_account(raw, audience_url=FCM_AUDIENCE, scope=FCM_SCOPE)


def test_load_service_account_prefers_inline_json(service_account_json, tmp_path):
  path = tmp_path / "unused.json"
  settings = replace(get_settings(), firebase_service_account=service_account_json, firebase_service_account_json_path=str(path))

  account = load_service_account(settings)

  assert account.project_id == PROJECT_ID


def test_load_service_account_reads_file(service_account_json, tmp_path):
  path = tmp_path / "service-account.json"
  path.write_text(service_account_json, encoding="utf-8")
  settings = replace(get_settings(), firebase_service_account=None, firebase_service_account_json_path=str(path))

  account = load_service_account(settings)

  assert account.credential.issuer_email == ISSUER


def test_load_service_account_missing_file_is_config_error(tmp_path):
  settings = replace(get_settings(), firebase_service_account=None, firebase_service_account_json_path=str(tmp_path / "missing.json"))

  with pytest.raises(ConfigError):
    load_service_account(settings)


def test_load_service_account_requires_configuration():
  settings = replace(get_settings(), firebase_service_account=None, firebase_service_account_json_path=None)

  with pytest.raises(ConfigError):
    load_service_account(settings)


@pytest.mark.parametrize(("field", "value"), [("project_id", 12345), ("client_email", ["a@b"]), ("private_key", None)])
def test_parse_service_account_rejects_non_string_fields(service_account_json, field, value):
  document = json.loads(service_account_json)
  document[field] = value

  with pytest.raises(InvalidCredentialConfigError) as exc_info:
    parse_service_account(json.dumps(document), audience_url=FCM_AUDIENCE, scope=FCM_SCOPE)

  assert field in str(exc_info.value)
