from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from notifier import __version__
from notifier.api.routes import notifications
from notifier.config import get_settings
from notifier.core.exceptions import global_exception_handler, http_exception_handler, notifier_exception_handler, request_validation_exception_handler
from notifier.core.lifespan import lifespan
from notifier.core.middleware import RequestLoggingMiddleware
from notifier.notifications.contracts import NotifierError

settings = get_settings()

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=False, allow_methods=["POST", "OPTIONS"], allow_headers=["authorization", "x-client-info", "apikey", "content-type"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(NotifierError, notifier_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(notifications.router, prefix="/functions/v1", tags=["notifications"])
