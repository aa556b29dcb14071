"""Shared fixtures: signing keys, service accounts and assertions."""

from __future__ import annotations

import json

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from notifier.push.credentials import ServiceAccountCredential, SignedAssertion
from tests.support import FCM_AUDIENCE, FCM_SCOPE, ISSUER, PROJECT_ID


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
  return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
  return rsa_private_key.private_bytes(encoding=serialization.Encoding.PEM, format=serialization.PrivateFormat.PKCS8, encryption_algorithm=serialization.NoEncryption()).decode("ascii")


@pytest.fixture
def credential(private_key_pem) -> ServiceAccountCredential:
  return ServiceAccountCredential(issuer_email=ISSUER, private_key_pem=private_key_pem, audience_url=FCM_AUDIENCE, scope=FCM_SCOPE)


@pytest.fixture
def service_account_json(private_key_pem) -> str:
  return json.dumps({"type": "service_account", "project_id": PROJECT_ID, "client_email": ISSUER, "private_key": private_key_pem})


@pytest.fixture
def dummy_assertion() -> SignedAssertion:
  return SignedAssertion(header={"alg": "RS256", "typ": "JWT"}, payload={"iat": 1_700_000_000, "exp": 1_700_003_600}, signature=b"sig", token="header.payload.sig")
