"""Test configuration for importing the application package."""

from __future__ import annotations

import os

# Settings are read at import time by app.main; keep collaborators off during tests.
os.environ.setdefault("RELAY_ENV", "test")
os.environ.setdefault("RELAY_ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("RELAY_SCHEDULER_ENABLED", "false")
os.environ.setdefault("RELAY_DONOR_WATCH_ENABLED", "false")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from app.notifications.contracts import Subscription, SubscriptionKeys, SubscriptionStorageError  # noqa: E402
from app.notifications.delivery import DeliveryEngine  # noqa: E402
from app.notifications.registry import SubscriberRegistry  # noqa: E402
from app.notifications.service import NotificationService  # noqa: E402


class InMemoryStore:
  """Subscription store double that records calls and can be told to fail."""

  def __init__(self, rows: list[Subscription] | None = None) -> None:
    self.rows: list[Subscription] = list(rows or [])
    self.persisted: list[str] = []
    self.deleted: list[str] = []
    self.fail_writes = False
    self.fail_reads = False

  async def persist(self, subscription: Subscription) -> None:
    if self.fail_writes:
      raise SubscriptionStorageError("store unavailable")
    self.persisted.append(subscription.endpoint)
    self.rows.append(subscription)

  async def load_all(self) -> list[Subscription]:
    if self.fail_reads:
      raise SubscriptionStorageError("store unavailable")
    return list(self.rows)

  async def delete_by_endpoint(self, endpoint: str) -> None:
    if self.fail_writes:
      raise SubscriptionStorageError("store unavailable")
    self.deleted.append(endpoint)
    self.rows = [row for row in self.rows if row.endpoint != endpoint]


class RecordingSender:
  """Push sender double that records payloads and fails for configured endpoints."""

  def __init__(self, failing: set[str] | None = None) -> None:
    self.failing = set(failing or ())
    self.calls: list[tuple[str, str]] = []

  def send(self, subscription: Subscription, payload: str) -> None:
    self.calls.append((subscription.endpoint, payload))
    if subscription.endpoint in self.failing:
      raise RuntimeError("push service rejected the request")

  @property
  def endpoints(self) -> list[str]:
    return [endpoint for endpoint, _ in self.calls]


def make_subscription(endpoint: str = "https://push.example/1", *, attribute: str | None = None, p256dh: str = "k1", auth: str = "a1") -> Subscription:
  return Subscription(endpoint=endpoint, keys=SubscriptionKeys(p256dh=p256dh, auth=auth), attribute=attribute)


@pytest.fixture
def store() -> InMemoryStore:
  return InMemoryStore()


@pytest.fixture
def registry(store: InMemoryStore) -> SubscriberRegistry:
  return SubscriberRegistry(store=store)


@pytest.fixture
def sender() -> RecordingSender:
  return RecordingSender()


@pytest.fixture
def engine(registry: SubscriberRegistry, sender: RecordingSender) -> DeliveryEngine:
  return DeliveryEngine(registry=registry, push_sender=sender)


@pytest.fixture
def event_repo() -> MagicMock:
  repo = MagicMock()
  repo.list_all = AsyncMock(return_value=[])
  repo.delete = AsyncMock()
  return repo


@pytest.fixture
def notification_service(registry: SubscriberRegistry, engine: DeliveryEngine) -> NotificationService:
  return NotificationService(registry=registry, engine=engine)


@pytest.fixture
def subscription_factory():
  return make_subscription


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"
