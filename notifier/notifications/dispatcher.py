"""Fan-out of one push message to every device token of a user."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from notifier.notifications.contracts import DeviceToken, DispatchOutcome, DispatchStatus, DispatchSummary, FailureKind, NotificationProviderError, NotificationRepository, PermanentTokenError, ProviderConnectionError, ProviderUnreachableError, PushContent, PushSender
from notifier.notifications.push_sender import token_preview
from notifier.push.credentials import SignedAssertion

logger = logging.getLogger(__name__)


class PushDispatcher:
  """Deliver a message to each token in isolation and classify the results."""

  def __init__(self, *, sender: PushSender, token_repo: NotificationRepository, max_concurrency: int = 10) -> None:
    if max_concurrency <= 0:
      raise ValueError("max_concurrency must be positive")
    self._sender = sender
    self._token_repo = token_repo
    self._max_concurrency = max_concurrency

  async def dispatch_all(self, *, assertion: SignedAssertion, project_id: str, content: PushContent, tokens: Sequence[DeviceToken], cancel_event: asyncio.Event | None = None) -> DispatchSummary:
    """Send ``content`` to every token and return the aggregated summary.

    Partial failure never raises. ``ProviderUnreachableError`` is raised only
    when the batch is non-empty and no send reached the provider at all.
    """
    semaphore = asyncio.Semaphore(self._max_concurrency)

    async def _deliver(device: DeviceToken) -> DispatchOutcome:
      async with semaphore:
        # Sends not yet started are skipped once the caller has gone away.
        if cancel_event is not None and cancel_event.is_set():
          return DispatchOutcome(token=device.push_token, status=DispatchStatus.FAILED, failure_reason="dispatch cancelled", failure_kind=FailureKind.CANCELLED)
        return await self._deliver_one(device=device, assertion=assertion, project_id=project_id, content=content)

    outcomes = await asyncio.gather(*(_deliver(device) for device in tokens))
    summary = _summarize(outcomes)
    logger.info("Push dispatch finished tokens=%d sent=%d failed=%d pruned=%d", len(outcomes), summary.sent_count, summary.failed_count, summary.pruned_count)

    if outcomes and all(outcome.failure_kind is FailureKind.UNREACHABLE for outcome in outcomes):
      raise ProviderUnreachableError(summary)

    return summary

  async def _deliver_one(self, *, device: DeviceToken, assertion: SignedAssertion, project_id: str, content: PushContent) -> DispatchOutcome:
    token = device.push_token
    try:
      await self._sender.send(token=token, content=content, assertion=assertion, project_id=project_id)
    except PermanentTokenError as exc:
      logger.warning("Push token permanently invalid token=%s status_code=%s; pruning", token_preview(token), exc.status_code)
      pruned = await self._prune(token)
      return DispatchOutcome(token=token, status=DispatchStatus.FAILED, failure_reason=exc.reason, failure_kind=FailureKind.PERMANENT_TOKEN, pruned=pruned)
    except ProviderConnectionError as exc:
      logger.error("Push send did not reach provider token=%s: %s", token_preview(token), exc)
      return DispatchOutcome(token=token, status=DispatchStatus.FAILED, failure_reason=str(exc), failure_kind=FailureKind.UNREACHABLE)
    except NotificationProviderError as exc:
      logger.error("Push notification delivery failed (provider error) token=%s: %s", token_preview(token), exc)
      return DispatchOutcome(token=token, status=DispatchStatus.FAILED, failure_reason=exc.reason if exc.reason is not None else str(exc), failure_kind=FailureKind.TRANSIENT)
    except Exception as exc:  # noqa: BLE001
      logger.error("Push notification delivery failed token=%s: %s", token_preview(token), exc, exc_info=True)
      return DispatchOutcome(token=token, status=DispatchStatus.FAILED, failure_reason=str(exc), failure_kind=FailureKind.TRANSIENT)

    return DispatchOutcome(token=token, status=DispatchStatus.SENT)

  async def _prune(self, token: str) -> bool:
    """Delete ``token`` and report whether the delete went through."""
    try:
      await self._token_repo.delete_token(token)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed deleting invalid push token token=%s error=%s", token_preview(token), exc, exc_info=True)
      return False
    return True


def _summarize(outcomes: Sequence[DispatchOutcome]) -> DispatchSummary:
  failures = [outcome for outcome in outcomes if outcome.status is DispatchStatus.FAILED]
  pruned = sum(1 for outcome in failures if outcome.pruned)
  return DispatchSummary(sent_count=len(outcomes) - len(failures), failed_count=len(failures), failures=failures, pruned_count=pruned)
