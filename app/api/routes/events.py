"""Club event record management."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_event_repo
from app.storage.events_repo import EventEntry, EventRepository
from app.storage.firestore_repo import RecordNotFoundError, RecordStoreError

logger = logging.getLogger(__name__)

router = APIRouter()


class EventRequest(BaseModel):
  name: str = Field(min_length=1)
  image_url: str = Field(min_length=1, alias="imageUrl")
  description: str = Field(min_length=1)
  register_link: str = Field(min_length=1, alias="registerLink")
  date: str = Field(min_length=1)
  time: str = Field(min_length=1)
  club: str = Field(min_length=1)
  status: str | None = None
  model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

  def to_entry(self) -> EventEntry:
    return EventEntry(
      name=self.name, image_url=self.image_url, description=self.description, register_link=self.register_link, date=self.date, time=self.time, club=self.club, status=self.status or "active"
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_event(payload: EventRequest, repo: EventRepository = Depends(get_event_repo)) -> dict[str, str]:  # noqa: B008
  try:
    event_id = await repo.add(payload.to_entry())
  except RecordStoreError as exc:
    logger.error("Error adding event: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add event") from exc
  return {"id": event_id, "message": "Event added successfully"}


@router.get("/search/{name}")
async def search_events(name: str, repo: EventRepository = Depends(get_event_repo)) -> list[dict[str, Any]]:  # noqa: B008
  """Return every event whose name matches exactly."""
  try:
    events = await repo.search_by_name(name)
  except RecordStoreError as exc:
    logger.error("Error fetching event by name: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch event") from exc

  if not events:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
  return [event.as_payload() for event in events]


@router.put("/{event_id}")
async def update_event(event_id: str, payload: EventRequest, repo: EventRepository = Depends(get_event_repo)) -> dict[str, str]:  # noqa: B008
  try:
    await repo.update(event_id, payload.to_entry())
  except RecordNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found") from exc
  except RecordStoreError as exc:
    logger.error("Error updating event: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update event") from exc
  return {"message": "Event updated successfully"}


@router.delete("/{event_id}")
async def delete_event(event_id: str, repo: EventRepository = Depends(get_event_repo)) -> dict[str, str]:  # noqa: B008
  try:
    await repo.delete(event_id)
  except RecordStoreError as exc:
    logger.error("Error deleting event: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete event") from exc
  return {"message": "Event deleted successfully"}
