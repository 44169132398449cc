"""Notification orchestration for donor and event triggers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from app.notifications.contracts import BroadcastReport, Notification, RegistrationStatus, Subscription
from app.notifications.delivery import DeliveryEngine
from app.notifications.registry import SubscriberRegistry
from app.notifications.templates import render_event_digest, render_event_reminder, render_new_donor
from app.services.event_schedule import due_on
from app.storage.events_repo import EventRepository

logger = logging.getLogger(__name__)


class NotificationService:
  """Reacts to trigger sources and operator requests by broadcasting pushes."""

  def __init__(self, *, registry: SubscriberRegistry, engine: DeliveryEngine, event_repo: EventRepository | None = None, event_digest_mode: str = "per_event") -> None:
    self.registry = registry
    self._engine = engine
    self._event_repo = event_repo
    self._event_digest_mode = event_digest_mode
    self._pending: set[asyncio.Task[BroadcastReport]] = set()

  async def register(self, subscription: Subscription) -> RegistrationStatus:
    return await self.registry.register(subscription)

  async def broadcast(self, notification: Notification) -> BroadcastReport:
    return await self._engine.broadcast(notification, notification.target_attribute)

  def dispatch(self, notification: Notification) -> asyncio.Task[BroadcastReport]:
    """Schedule a broadcast in the background so callers are never blocked by delivery."""
    task = asyncio.create_task(self.broadcast(notification))
    # Hold a reference until completion so the task is not garbage collected mid-pass.
    self._pending.add(task)
    task.add_done_callback(self._pending.discard)
    task.add_done_callback(self._log_task_error)
    return task

  @staticmethod
  def _log_task_error(task: asyncio.Task[BroadcastReport]) -> None:
    """Log background task exceptions to avoid silent delivery failures."""
    if task.cancelled():
      return
    try:
      _ = task.result()
    except Exception as exc:  # noqa: BLE001
      logger.error("Background push dispatch task failed: %s", exc, exc_info=True)

  async def drain(self) -> None:
    """Wait for in-flight background broadcasts to finish."""
    if self._pending:
      await asyncio.gather(*list(self._pending), return_exceptions=True)

  async def on_record_added(self, record: Mapping[str, Any]) -> BroadcastReport:
    """Handle a donor added to the store."""
    logger.info("New donor added: %s, Blood Group: %s", record.get("name"), record.get("bloodGroup"))
    return await self.broadcast(render_new_donor(record))

  async def on_scheduled_check(self, now: datetime | None = None) -> int:
    """Notify subscribers about events happening today; returns the number of due events."""
    if self._event_repo is None:
      logger.warning("Scheduled event check skipped; no event repository configured.")
      return 0

    today = (now or datetime.now()).date()
    logger.info("Checking events for: %s", today.isoformat())
    events = due_on(await self._event_repo.list_all(), today)
    if not events:
      return 0

    if self._event_digest_mode == "digest":
      notifications = [render_event_digest([event.data for event in events])]
    else:
      notifications = [render_event_reminder(event.data) for event in events]

    for notification in notifications:
      logger.info("Sending event notification: %s", notification.body)
      await self.broadcast(notification)
    return len(events)
