"""Push notification delivery implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus

from pywebpush import WebPushException, webpush

from app.notifications.contracts import InvalidPushSubscriptionError, PushSender, Subscription, TransientPushProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VapidConfig:
  """Configuration required to sign Web Push requests."""

  public_key: str
  private_key: str
  sub: str


class WebPushSender(PushSender):
  """`pywebpush` backed sender that classifies provider failures."""

  def __init__(self, *, vapid_config: VapidConfig, timeout_seconds: float = 10.0) -> None:
    self._vapid_config = vapid_config
    self._timeout_seconds = timeout_seconds

  def send(self, subscription: Subscription, payload: str) -> None:
    """Send one VAPID-signed Web Push request; a single attempt per call."""
    subscription_info = {"endpoint": subscription.endpoint, "keys": {"p256dh": subscription.keys.p256dh, "auth": subscription.keys.auth}}

    try:
      webpush(subscription_info=subscription_info, data=payload, vapid_private_key=self._vapid_config.private_key, vapid_claims={"sub": self._vapid_config.sub}, timeout=self._timeout_seconds)
    except WebPushException as exc:
      status_code = _extract_status_code(exc)

      if status_code in {HTTPStatus.GONE, HTTPStatus.NOT_FOUND}:
        raise InvalidPushSubscriptionError(f"Push subscription is invalid (status={int(status_code)})") from exc

      raise TransientPushProviderError(f"Push delivery failed (status={int(status_code) if status_code else 'unknown'})") from exc
    except Exception as exc:  # noqa: BLE001
      # Network errors, timeouts and malformed key material surface from requests/cryptography.
      raise TransientPushProviderError(f"Push delivery failed ({type(exc).__name__}: {exc})") from exc

    logger.debug("Notification sent successfully endpoint=%s", subscription.endpoint)


class NullPushSender(PushSender):
  """No-op push sender used when push notifications are disabled or unconfigured."""

  def send(self, subscription: Subscription, payload: str) -> None:
    """Drop the notification while recording a debug log."""
    logger.debug("Push notifications disabled; dropping push endpoint=%s", subscription.endpoint)


def _extract_status_code(exc: WebPushException) -> int | None:
  """Extract an HTTP status code from a pywebpush exception when available."""
  response = getattr(exc, "response", None)
  if response is None:
    return None

  status = getattr(response, "status_code", None)
  if isinstance(status, int):
    return status

  return None
