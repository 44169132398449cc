"""Fan-out delivery of notifications to registered subscribers."""

from __future__ import annotations

import asyncio
import json
import logging

from starlette.concurrency import run_in_threadpool

from app.notifications.contracts import MATCH_ALL, BroadcastReport, DeliveryOutcome, DeliveryStatus, Notification, PushSender, Subscription
from app.notifications.registry import SubscriberRegistry

logger = logging.getLogger(__name__)


def serialize_payload(notification: Notification) -> str:
  """Serialize the push payload delivered to service workers."""
  payload: dict[str, object] = {"title": notification.title, "body": notification.body}
  if not notification.is_broadcast:
    payload["attribute"] = notification.target_attribute
  if notification.data:
    payload["data"] = dict(notification.data)
  return json.dumps(payload)


class DeliveryEngine:
  """Broadcasts a notification to every matching subscriber and evicts failed endpoints."""

  def __init__(self, *, registry: SubscriberRegistry, push_sender: PushSender) -> None:
    self._registry = registry
    self._push_sender = push_sender

  async def broadcast(self, notification: Notification, target: str | None = MATCH_ALL) -> BroadcastReport:
    """Deliver one pass to a snapshot of subscribers matching `target`."""
    if target is None:
      target = MATCH_ALL

    # Snapshot first so registrations and evictions during the pass never change what we iterate.
    unique: dict[str, Subscription] = {}
    for subscription in self._registry.list_matching(target):
      unique.setdefault(subscription.endpoint, subscription)

    if not unique:
      logger.info("Broadcast skipped; no subscribers match target=%s title=%s", target, notification.title)
      return BroadcastReport(attempted=0, delivered=0, evicted=())

    payload = serialize_payload(notification)
    logger.info("Sending notification target=%s recipients=%s payload=%s", target, len(unique), payload)

    # Issue every attempt without waiting on the previous one; each attempt never raises.
    outcomes = await asyncio.gather(*(self._attempt(subscription, payload) for subscription in unique.values()))

    delivered = sum(1 for outcome in outcomes if outcome.status is DeliveryStatus.DELIVERED)
    evicted = tuple(outcome.endpoint for outcome in outcomes if outcome.should_evict)
    logger.info("Broadcast complete title=%s attempted=%s delivered=%s evicted=%s", notification.title, len(outcomes), delivered, len(evicted))
    return BroadcastReport(attempted=len(outcomes), delivered=delivered, evicted=evicted)

  async def _attempt(self, subscription: Subscription, payload: str) -> DeliveryOutcome:
    try:
      await run_in_threadpool(self._push_sender.send, subscription, payload)
    except Exception as exc:  # noqa: BLE001
      outcome = DeliveryOutcome.failed(subscription.endpoint, f"{type(exc).__name__}: {exc}")
    else:
      return DeliveryOutcome.delivered(subscription.endpoint)

    logger.warning("Push delivery failed endpoint=%s reason=%s", subscription.endpoint, outcome.reason)
    if outcome.should_evict:
      await self._registry.remove(subscription.endpoint)
    return outcome
