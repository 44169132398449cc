"""Maintenance services for scheduled background cleanup tasks."""

from __future__ import annotations

import logging
from datetime import date

from app.notifications.registry import SubscriberRegistry
from app.services.event_schedule import is_past
from app.storage.events_repo import EventRepository

logger = logging.getLogger(__name__)


class MaintenanceSweeper:
  """Periodically evicts subscriptions whose endpoints are not valid URLs."""

  def __init__(self, *, registry: SubscriberRegistry) -> None:
    self._registry = registry

  async def run(self) -> int:
    removed = await self._registry.prune_invalid()
    logger.info("Subscriptions cleaned up. removed=%s current_subscribers=%s", removed, len(self._registry))
    return removed


async def purge_past_events(event_repo: EventRepository, *, today: date | None = None) -> int:
  """Delete events dated before today.

  How/Why:
    - Reminders only look at today's events, so older rows are dead weight for every check.
    - Events with unparsable dates are kept for operators to fix by hand.
  """
  today = today or date.today()
  deleted = 0
  for record in await event_repo.list_all():
    if not is_past(record.data, today):
      continue
    logger.info("Deleting past event: %s (%s)", record.data.get("name"), record.data.get("date"))
    await event_repo.delete(record.id)
    deleted += 1
  return deleted
