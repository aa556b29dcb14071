import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notifier.config import get_settings
from notifier.core.database import dispose_engine
from notifier.core.logging import initialize_logging
from notifier.notifications.push_sender import close_shared_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging on startup and release database and provider connections on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("notifier.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # File logging is optional; stdout logging via uvicorn still works.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  if not settings.task_secret:
    logger.warning("NOTIFIER_TASK_SECRET is not set; notification endpoints will reject every request.")
  if not (settings.firebase_service_account or settings.firebase_service_account_json_path):
    logger.warning("No service account configured; non-gated notification requests will fail.")

  logger.info("Startup complete environment=%s push_enabled=%s", settings.environment, settings.push_enabled)
  yield

  await dispose_engine()
  await close_shared_client()
