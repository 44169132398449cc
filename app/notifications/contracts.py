"""Contracts for push subscriptions, notifications and delivery outcomes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

# Target marker meaning "every subscriber"; also the tag for subscribers that accept everything.
MATCH_ALL = "*"


@dataclass(frozen=True)
class SubscriptionKeys:
  """Browser-provided key material for Web Push encryption."""

  p256dh: str
  auth: str


@dataclass(frozen=True)
class Subscription:
  """One client's push delivery channel, keyed by endpoint."""

  endpoint: str
  keys: SubscriptionKeys
  attribute: str | None = None

  def to_document(self) -> dict[str, Any]:
    """Serialize into the persisted record shape."""
    document: dict[str, Any] = {"endpoint": self.endpoint, "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth}}
    if self.attribute is not None:
      document["attribute"] = self.attribute
    return document

  @classmethod
  def from_document(cls, document: Mapping[str, Any]) -> Subscription:
    """Build a subscription from a persisted record, raising on missing fields."""
    keys = document.get("keys") or {}
    return build_subscription(endpoint=document.get("endpoint"), p256dh=keys.get("p256dh"), auth=keys.get("auth"), attribute=document.get("attribute"))


@dataclass(frozen=True)
class Notification:
  """Ephemeral push content produced by a trigger source or an operator."""

  title: str
  body: str
  target_attribute: str | None = None
  data: dict[str, str] = field(default_factory=dict)

  @property
  def is_broadcast(self) -> bool:
    return self.target_attribute is None or self.target_attribute == MATCH_ALL


class DeliveryStatus(str, Enum):
  DELIVERED = "delivered"
  FAILED = "failed"


@dataclass(frozen=True)
class DeliveryOutcome:
  """Result of one delivery attempt to one endpoint."""

  endpoint: str
  status: DeliveryStatus
  reason: str | None = None

  @classmethod
  def delivered(cls, endpoint: str) -> DeliveryOutcome:
    return cls(endpoint=endpoint, status=DeliveryStatus.DELIVERED)

  @classmethod
  def failed(cls, endpoint: str, reason: str) -> DeliveryOutcome:
    return cls(endpoint=endpoint, status=DeliveryStatus.FAILED, reason=reason)

  @property
  def should_evict(self) -> bool:
    """Any failure evicts; transport errors and expired subscriptions are not distinguished."""
    return self.status is DeliveryStatus.FAILED


@dataclass(frozen=True)
class BroadcastReport:
  """Summary of a single broadcast pass."""

  attempted: int
  delivered: int
  evicted: tuple[str, ...]


class RegistrationStatus(str, Enum):
  ACCEPTED = "accepted"
  ALREADY_EXISTS = "already_exists"


class NotificationError(Exception):
  """Base class for all notification failures."""


class SubscriptionValidationError(NotificationError):
  """Raised when a registration request is missing required fields."""

  def __init__(self, missing: Sequence[str]) -> None:
    self.missing = tuple(missing)
    super().__init__(f"Invalid subscription: Missing required fields ({', '.join(self.missing)})")


class SubscriptionStorageError(NotificationError):
  """Raised when the durable subscription store cannot be read or written."""


class NotificationProviderError(NotificationError):
  """Exception raised when the push provider returns a delivery error."""


class InvalidPushSubscriptionError(NotificationProviderError):
  """Exception raised when a push subscription endpoint is expired or invalid."""


class TransientPushProviderError(NotificationProviderError):
  """Exception raised for push provider failures that are not tied to an expired endpoint."""


class PushSender(Protocol):
  """Delivery contract for sending push notifications."""

  def send(self, subscription: Subscription, payload: str) -> None:
    """Send a serialized payload to one subscription synchronously, raising on failure."""


class SubscriptionStore(Protocol):
  """Durable mirror of the subscriber set."""

  async def persist(self, subscription: Subscription) -> None: ...

  async def load_all(self) -> list[Subscription]: ...

  async def delete_by_endpoint(self, endpoint: str) -> None: ...


def _clean(value: Any) -> str | None:
  if not isinstance(value, str):
    return None
  stripped = value.strip()
  return stripped or None


def build_subscription(*, endpoint: Any, p256dh: Any, auth: Any, attribute: Any = None) -> Subscription:
  """Validate field presence and build a subscription."""
  fields = {"endpoint": _clean(endpoint), "keys.p256dh": _clean(p256dh), "keys.auth": _clean(auth)}
  missing = [name for name, value in fields.items() if value is None]
  if missing:
    raise SubscriptionValidationError(missing)

  return Subscription(endpoint=fields["endpoint"], keys=SubscriptionKeys(p256dh=fields["keys.p256dh"], auth=fields["keys.auth"]), attribute=_clean(attribute))
