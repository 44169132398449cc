"""Render push notification content for each trigger."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from app.notifications.contracts import MATCH_ALL, Notification


def _text(value: Any, default: str = "unknown") -> str:
  if value is None:
    return default
  text = str(value).strip()
  return text or default


def render_new_donor(record: Mapping[str, Any]) -> Notification:
  """Announce a new donor to subscribers of the donor's blood group."""
  blood_group = record.get("bloodGroup")
  target = blood_group.strip() if isinstance(blood_group, str) and blood_group.strip() else MATCH_ALL
  body = f"A new donor with blood group {_text(blood_group)} is available! Contact: {_text(record.get('contactName'))} - {_text(record.get('contactNumber'))}"
  return Notification(title="New Donor Added", body=body, target_attribute=target)


def render_event_reminder(event: Mapping[str, Any]) -> Notification:
  return Notification(title="Upcoming Event", body=f"Reminder: {_text(event.get('name'))} is today at {_text(event.get('time'))}!")


def render_event_digest(events: Sequence[Mapping[str, Any]]) -> Notification:
  """Summarize every event due today in one notification."""
  lines = [f"{_text(event.get('name'))} at {_text(event.get('time'))}" for event in events]
  return Notification(title="Upcoming Events Today", body="Reminder: " + "; ".join(lines))


def render_manual(*, title: str, message: str, blood_group: str | None = None) -> Notification:
  target = blood_group.strip() if blood_group and blood_group.strip() else MATCH_ALL
  return Notification(title=title, body=message, target_attribute=target)


def render_advertisement(*, title: str, body: str, link: str) -> Notification:
  return Notification(title=title, body=body, data={"link": link})
