import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException


def _sanitize_validation_errors(errors: Any) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  # Strip payload values so logs are useful without leaking tokens.
  for error in errors:
    sanitized.append({key: str(value) if key == "loc" else value for key, value in error.items() if key in {"type", "loc", "msg"}})

  return sanitized


def _with_request_id(response: PlainTextResponse, request: Request) -> PlainTextResponse:
  # Attach a request id so callers can correlate failures to server logs.
  request_id = getattr(request.state, "request_id", None)
  if request_id:
    response.headers["X-Request-ID"] = request_id
  return response


async def global_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
  """Global exception handler to catch unhandled errors."""
  logger = logging.getLogger("uvicorn.error")
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return _with_request_id(PlainTextResponse("Internal Server Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR), request)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
  """Answer malformed or wrongly typed bodies with a plain-text 400."""
  request_id = getattr(request.state, "request_id", None)
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, _sanitize_validation_errors(exc.errors()))
  return _with_request_id(PlainTextResponse("Invalid request body", status_code=status.HTTP_400_BAD_REQUEST), request)


async def http_exception_handler(request: Request, exc: HTTPException) -> PlainTextResponse:
  """Render HTTPExceptions as plain text, logging 5xx and optionally 4xx."""
  from pushrelay.config import get_settings

  settings = get_settings()
  request_id = getattr(request.state, "request_id", None)
  logger = logging.getLogger("uvicorn.error")
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)
  elif settings.log_http_4xx:
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)

  response = PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None))
  return _with_request_id(response, request)
