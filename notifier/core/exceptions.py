import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notifier.notifications.contracts import ConfigError, NotifierError, ProviderUnreachableError, RequestError

logger = logging.getLogger("notifier.core.exceptions")


def _error_payload(message: str, *, request_id: str | None = None, details: Any | None = None) -> dict[str, Any]:
  payload: dict[str, Any] = {"error": message}
  if details is not None:
    payload["details"] = details
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Drop raw input values so bodies never reach logs or responses."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key not in {"input", "ctx", "url"}}
    scrubbed["loc"] = [str(part) for part in scrubbed.get("loc", ())]
    sanitized.append(scrubbed)
  return sanitized


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


async def notifier_exception_handler(request: Request, exc: NotifierError) -> JSONResponse:
  """Translate domain errors into ``{"error": ...}`` responses."""
  request_id = _request_id(request)
  if isinstance(exc, RequestError):
    logger.warning("Rejected request request_id=%s path=%s error=%s", request_id, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(str(exc), request_id=request_id))

  if isinstance(exc, ProviderUnreachableError):
    logger.error("Provider unreachable request_id=%s path=%s error=%s", request_id, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=_error_payload(str(exc), request_id=request_id))

  if isinstance(exc, ConfigError):
    # Key material never goes into the response.
    logger.error("Configuration error request_id=%s path=%s error_type=%s error=%s", request_id, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Push notification credentials are not configured correctly", request_id=request_id))

  logger.error("Notifier error request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload(str(exc), request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Report malformed request bodies without echoing their content."""
  request_id = _request_id(request)
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger.warning("Request validation failed request_id=%s path=%s errors=%s", request_id, request.url.path, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload("Invalid request body", request_id=request_id, details=sanitized_errors))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  request_id = _request_id(request)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
  """Render HTTP errors in the same ``{"error": ...}`` shape as domain errors."""
  request_id = _request_id(request)
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(str(exc.detail), request_id=request_id), headers=getattr(exc, "headers", None))
