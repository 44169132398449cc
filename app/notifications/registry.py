"""In-memory subscriber registry mirrored to an optional durable store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.notifications.contracts import MATCH_ALL, RegistrationStatus, Subscription, SubscriptionStorageError, SubscriptionStore, build_subscription
from app.notifications.endpoints import is_valid_endpoint

logger = logging.getLogger(__name__)


def matches_target(subscription: Subscription, target: str | None) -> bool:
  """Decide whether a subscription receives a notification aimed at `target`.

  Untagged subscribers and subscribers tagged with the match-all marker receive every
  notification. Tagged subscribers receive broadcasts and notifications aimed at their tag.
  """
  if target is None or target == MATCH_ALL:
    return True

  if subscription.attribute is None or subscription.attribute == MATCH_ALL:
    return True

  return subscription.attribute == target.strip()


class SubscriberRegistry:
  """Owns the authoritative subscriber set.

  All mutations of the in-memory map happen between suspension points so interleaved tasks never
  observe a half-applied change; readers always receive tuple snapshots rather than live views.
  Store writes for one endpoint run one at a time, so memory and the store agree on its final state.
  """

  def __init__(self, *, store: SubscriptionStore | None = None) -> None:
    self._store = store
    self._subscriptions: dict[str, Subscription] = {}
    # endpoint -> (lock, number of tasks holding or waiting on it)
    self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

  def __len__(self) -> int:
    return len(self._subscriptions)

  def __contains__(self, endpoint: object) -> bool:
    return endpoint in self._subscriptions

  @asynccontextmanager
  async def _serialized(self, endpoint: str) -> AsyncIterator[None]:
    lock, users = self._locks.get(endpoint, (None, 0))
    lock = lock or asyncio.Lock()
    self._locks[endpoint] = (lock, users + 1)
    try:
      async with lock:
        yield
    finally:
      lock, users = self._locks[endpoint]
      if users == 1:
        del self._locks[endpoint]
      else:
        self._locks[endpoint] = (lock, users - 1)

  async def hydrate(self) -> int:
    """Load persisted subscriptions into memory before serving traffic."""
    if self._store is None:
      return 0

    try:
      stored = await self._store.load_all()
    except SubscriptionStorageError as exc:
      # Degrade to an empty registry so startup never blocks on the store.
      logger.error("Subscription hydration failed; starting with zero subscribers: %s", exc)
      return 0

    for subscription in stored:
      self._subscriptions.setdefault(subscription.endpoint, subscription)

    logger.info("Hydrated subscriber registry count=%s", len(self._subscriptions))
    return len(self._subscriptions)

  async def register(self, subscription: Subscription) -> RegistrationStatus:
    """Add a subscription unless its endpoint is already registered."""
    # Re-validate here so callers constructing Subscription directly cannot bypass presence checks.
    subscription = build_subscription(endpoint=subscription.endpoint, p256dh=subscription.keys.p256dh, auth=subscription.keys.auth, attribute=subscription.attribute)

    async with self._serialized(subscription.endpoint):
      if subscription.endpoint in self._subscriptions:
        logger.info("Subscription already exists endpoint=%s", subscription.endpoint)
        return RegistrationStatus.ALREADY_EXISTS

      if self._store is not None:
        try:
          await self._store.persist(subscription)
        except SubscriptionStorageError as exc:
          logger.error("Failed persisting subscription endpoint=%s; keeping it in memory only: %s", subscription.endpoint, exc)

      self._subscriptions[subscription.endpoint] = subscription
      logger.info("New subscription added endpoint=%s attribute=%s", subscription.endpoint, subscription.attribute)
      return RegistrationStatus.ACCEPTED

  def list_all(self) -> tuple[Subscription, ...]:
    return tuple(self._subscriptions.values())

  def list_matching(self, target: str | None = MATCH_ALL) -> tuple[Subscription, ...]:
    return tuple(subscription for subscription in self._subscriptions.values() if matches_target(subscription, target))

  async def remove(self, endpoint: str) -> None:
    """Remove an endpoint from memory and the store; unknown endpoints are a no-op."""
    async with self._serialized(endpoint):
      removed = self._subscriptions.pop(endpoint, None)
      if removed is not None:
        logger.info("Subscription removed endpoint=%s", endpoint)

      if self._store is None:
        return

      # Delete even when absent in memory to clear duplicate or stale persisted rows.
      try:
        await self._store.delete_by_endpoint(endpoint)
      except SubscriptionStorageError as exc:
        logger.error("Failed deleting persisted subscription endpoint=%s: %s", endpoint, exc)

  async def prune_invalid(self) -> int:
    """Remove every subscription whose endpoint is not a well-formed absolute URL."""
    invalid = [subscription.endpoint for subscription in self.list_all() if not is_valid_endpoint(subscription.endpoint)]
    for endpoint in invalid:
      await self.remove(endpoint)
    return len(invalid)
