"""Reuse of signed bearer assertions across requests."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from notifier.push.credentials import ServiceAccountCredential, SignedAssertion, mint

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]
Clock = Callable[[], float]
Signer = Callable[[ServiceAccountCredential, float], SignedAssertion]


class TokenCache(Protocol):
  """Storage for minted assertions keyed by credential identity."""

  def get(self, key: CacheKey) -> SignedAssertion | None:
    """Return the stored assertion for ``key``, if any."""

  def set(self, key: CacheKey, assertion: SignedAssertion) -> None:
    """Store ``assertion`` under ``key``."""


class InMemoryTokenCache(TokenCache):
  """Process-local cache; one entry per credential identity."""

  def __init__(self) -> None:
    self._entries: dict[CacheKey, SignedAssertion] = {}

  def get(self, key: CacheKey) -> SignedAssertion | None:
    return self._entries.get(key)

  def set(self, key: CacheKey, assertion: SignedAssertion) -> None:
    self._entries[key] = assertion


def cache_key(credential: ServiceAccountCredential) -> CacheKey:
  return (credential.issuer_email, credential.audience_url, credential.scope)


class AssertionProvider:
  """Hand out bearer assertions, minting only when the cached one is near expiry.

  Without a cache every call mints a fresh assertion. With a cache, a stored
  assertion is returned while more than ``refresh_margin_seconds`` remain before
  its ``exp``; concurrent callers that miss the cache share a single mint.
  """

  def __init__(self, *, credential_loader: Callable[[], ServiceAccountCredential], clock: Clock = time.time, cache: TokenCache | None = None, refresh_margin_seconds: int = 300, signer: Signer = mint) -> None:
    self._credential_loader = credential_loader
    self._clock = clock
    self._cache = cache
    self._refresh_margin_seconds = refresh_margin_seconds
    self._signer = signer
    self._credential: ServiceAccountCredential | None = None
    self._lock = asyncio.Lock()

  def credential(self) -> ServiceAccountCredential:
    """Load the service-account credential on first use."""
    if self._credential is None:
      self._credential = self._credential_loader()
    return self._credential

  def _fresh(self, assertion: SignedAssertion | None, now: float) -> bool:
    return assertion is not None and assertion.expires_at - now > self._refresh_margin_seconds

  async def get_assertion(self) -> SignedAssertion:
    credential = self.credential()
    if self._cache is None:
      return self._signer(credential, self._clock())

    key = cache_key(credential)
    cached = self._cache.get(key)
    if self._fresh(cached, self._clock()):
      return cached  # type: ignore[return-value]

    async with self._lock:
      # Another waiter may have refreshed the entry while we queued on the lock.
      cached = self._cache.get(key)
      now = self._clock()
      if self._fresh(cached, now):
        return cached  # type: ignore[return-value]

      assertion = self._signer(credential, now)
      self._cache.set(key, assertion)
      logger.info("Minted provider assertion issuer=%s expires_at=%s", credential.issuer_email, assertion.expires_at)
      return assertion
