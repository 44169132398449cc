"""HTTP error mapping for the relay API.

Every error body has the shape `{"detail": ..., "requestId": ...}`. Raw request input and
push key material never appear in responses or logs.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.notifications.contracts import SubscriptionValidationError

logger = logging.getLogger("uvicorn.error")

_REDACTED_DETAIL_KEYS = {"input", "body", "payload", "content", "keys"}


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


def _coerce_json_safe(value: Any) -> Any:
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  if isinstance(value, BaseException):
    return f"{type(value).__name__}: {value}" if str(value) else type(value).__name__
  return str(value)


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  payload: dict[str, Any] = {"detail": detail}
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Drop `input` from pydantic errors (top level and ctx) and make the rest JSON-safe."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    ctx = scrubbed.get("ctx")
    if isinstance(ctx, dict):
      scrubbed["ctx"] = {key: value for key, value in ctx.items() if key != "input"}
    sanitized.append(_coerce_json_safe(scrubbed))
  return sanitized


def _sanitize_http_detail(detail: Any) -> Any:
  if isinstance(detail, dict):
    return {key: _sanitize_http_detail(value) for key, value in detail.items() if key not in _REDACTED_DETAIL_KEYS}
  if isinstance(detail, list):
    return [_sanitize_http_detail(item) for item in detail]
  return detail


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Last-resort handler; the traceback goes to logs only."""
  request_id = _request_id(request)
  logger.error("Unhandled exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Malformed request bodies are client errors and map to 400."""
  request_id = _request_id(request)
  errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Request validation failed request_id=%s %s %s errors=%s", request_id, request.method, request.url.path, errors)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(errors, request_id=request_id))


async def subscription_validation_exception_handler(request: Request, exc: SubscriptionValidationError) -> JSONResponse:
  request_id = _request_id(request)
  logger.warning("Invalid subscription request_id=%s missing=%s", request_id, ",".join(exc.missing))
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(str(exc), request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Keep caller-facing details; replace 500 details with a generic message."""
  request_id = _request_id(request)
  if exc.status_code == 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  if exc.status_code > 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, _sanitize_http_detail(exc.detail))
  elif get_settings().log_http_4xx:
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, _sanitize_http_detail(exc.detail))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail, request_id=request_id), headers=getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
  app.add_exception_handler(Exception, global_exception_handler)
  app.add_exception_handler(HTTPException, http_exception_handler)
  app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
  app.add_exception_handler(SubscriptionValidationError, subscription_validation_exception_handler)
