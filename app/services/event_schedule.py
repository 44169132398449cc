"""Date matching for scheduled event reminders and cleanup."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from typing import Any

from app.storage.firestore_repo import StoredRecord

logger = logging.getLogger(__name__)


def parse_event_date(raw: Any) -> date | None:
  """Parse a stored event date (`YYYY-MM-DD` or an ISO timestamp) into a calendar date."""
  if isinstance(raw, datetime):
    return raw.date()
  if isinstance(raw, date):
    return raw
  if not isinstance(raw, str) or not raw.strip():
    return None

  value = raw.strip()
  try:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
  except ValueError:
    pass
  try:
    return date.fromisoformat(value[:10])
  except ValueError:
    return None


def parse_event_time(raw: Any) -> time | None:
  """Parse a stored `HH:MM` event time."""
  if not isinstance(raw, str):
    return None

  hours, sep, minutes = raw.strip().partition(":")
  if not sep:
    return None
  try:
    return time(hour=int(hours), minute=int(minutes[:2]))
  except ValueError:
    return None


def event_occurrence(event: Mapping[str, Any]) -> datetime | None:
  """Combine an event's date and time into a naive server-local datetime."""
  name = event.get("name")
  event_time = parse_event_time(event.get("time"))
  if event_time is None:
    logger.info("Skipping event %r (time not available or invalid)", name)
    return None

  event_date = parse_event_date(event.get("date"))
  if event_date is None:
    logger.info("Skipping event %r (date not available or invalid)", name)
    return None

  return datetime.combine(event_date, event_time)


def due_on(events: Iterable[StoredRecord], day: date) -> list[StoredRecord]:
  """Return events whose date and time fall on the given calendar day."""
  due: list[StoredRecord] = []
  for record in events:
    occurrence = event_occurrence(record.data)
    if occurrence is not None and occurrence.date() == day:
      due.append(record)
  return due


def is_past(event: Mapping[str, Any], today: date) -> bool:
  """Return True when the event's date is strictly before today; unparsable dates are kept."""
  event_date = parse_event_date(event.get("date"))
  return event_date is not None and event_date < today
