import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.config import get_settings

logger = logging.getLogger("app.core.middleware")

# Push key material and donor contact details never reach the logs.
_SENSITIVE_KEYS = {"p256dh", "auth", "keys", "authorization", "cookie", "secret", "token", "contactnumber", "contactname", "phone"}
_STRIPPED_RESPONSE_HEADERS = ("x-powered-by", "server")


def _redact_sensitive_keys(data: Any) -> Any:
  if isinstance(data, dict):
    return {key: "***" if key.lower() in _SENSITIVE_KEYS else _redact_sensitive_keys(value) for key, value in data.items()}
  if isinstance(data, list):
    return [_redact_sensitive_keys(item) for item in data]
  return data


def _format_body_for_log(body: bytes, content_type: str | None, max_bytes: int) -> str:
  """Render a JSON request body for logs with sensitive keys masked."""
  if not body:
    return "<empty>"
  if "json" not in (content_type or "").lower():
    return f"<non-json body {len(body)} bytes>"
  # Oversized bodies are cut rather than parsed so partial JSON is never misreported.
  if len(body) > max_bytes:
    return f"<json body {len(body)} bytes, over {max_bytes} byte log limit>"

  try:
    parsed = json.loads(body)
  except ValueError:
    return "<unparsable json body>"
  return json.dumps(_redact_sensitive_keys(parsed), ensure_ascii=True)


async def _drain_body(receive: Receive) -> bytes:
  chunks: list[bytes] = []
  while True:
    message = await receive()
    if message["type"] != "http.request":
      break
    chunks.append(message.get("body", b""))
    if not message.get("more_body", False):
      break
  return b"".join(chunks)


def _replay(body: bytes) -> Receive:
  """Hand the drained body to downstream handlers exactly once."""
  delivered = False

  async def receive() -> Message:
    nonlocal delivered
    if delivered:
      return {"type": "http.request", "body": b"", "more_body": False}
    delivered = True
    return {"type": "http.request", "body": body, "more_body": False}

  return receive


class RequestLoggingMiddleware:
  """Assign a request id, log method/path/status/latency and optionally the redacted body."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id
    method, path = scope.get("method", "UNKNOWN"), scope.get("path", "")
    started = time.perf_counter()
    logger.info("Incoming request request_id=%s %s %s", request_id, method, path)

    if settings.log_http_bodies:
      body = await _drain_body(receive)
      logger.info("Request body request_id=%s body=%s", request_id, _format_body_for_log(body, Headers(scope=scope).get("content-type"), settings.log_http_body_bytes))
      receive = _replay(body)

    status_code = 0

    async def send_with_request_id(message: Message) -> None:
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
        headers = MutableHeaders(scope=message)
        headers.setdefault("x-request-id", request_id)
      await send(message)

    try:
      await self.app(scope, receive, send_with_request_id)
    finally:
      logger.info("Response request_id=%s %s %s status=%s (took %.2fms)", request_id, method, path, status_code, (time.perf_counter() - started) * 1000)


class SecurityHeadersMiddleware:
  """Strip headers that fingerprint the server stack."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_without_fingerprints(message: Message) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        for name in _STRIPPED_RESPONSE_HEADERS:
          if name in headers:
            del headers[name]
      await send(message)

    await self.app(scope, receive, send_without_fingerprints)
