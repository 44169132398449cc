"""Repository for club event records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.storage.firestore_repo import FirestoreRecordRepository, StoredRecord


@dataclass(frozen=True)
class EventEntry:
  """Event fields as accepted from operators."""

  name: str
  image_url: str
  description: str
  register_link: str
  date: str
  time: str
  club: str
  status: str = "active"

  def to_document(self) -> dict[str, Any]:
    return {
      "name": self.name,
      "imageUrl": self.image_url,
      "description": self.description,
      "registerLink": self.register_link,
      "date": self.date,
      "time": self.time,
      "club": self.club,
      "status": self.status,
    }


class EventRepository(FirestoreRecordRepository):
  """Persist events in the `events` collection."""

  async def add(self, entry: EventEntry) -> str:
    return await self._add(entry.to_document())

  async def search_by_name(self, name: str) -> list[StoredRecord]:
    return await self._where_equal("name", name)

  async def update(self, event_id: str, entry: EventEntry) -> None:
    await self._update(event_id, entry.to_document())
