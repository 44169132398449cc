from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from app.storage.donors_repo import DonorEntry, DonorRepository
from app.storage.events_repo import EventEntry, EventRepository
from app.storage.firestore_repo import RecordNotFoundError, RecordStoreError
from google.api_core.exceptions import NotFound


def _document(doc_id: str, data: dict) -> MagicMock:
  document = MagicMock()
  document.id = doc_id
  document.to_dict.return_value = data
  return document


def _donor() -> DonorEntry:
  return DonorEntry(name="Asha", blood_group="O-", contact_number="98765", contact_name="Ravi", case_type="Surgery")


@pytest.mark.anyio
async def test_add_donor_returns_generated_id():
  client = MagicMock()
  reference = MagicMock()
  reference.id = "generated-id"
  client.collection.return_value.add.return_value = (object(), reference)
  repo = DonorRepository(client=client, collection="donors")

  donor_id = await repo.add(_donor())

  assert donor_id == "generated-id"
  client.collection.return_value.add.assert_called_once_with({"name": "Asha", "bloodGroup": "O-", "contactNumber": "98765", "contactName": "Ravi", "case": "Surgery"})


@pytest.mark.anyio
async def test_find_by_contact_number_limits_to_first_match():
  client = MagicMock()
  query = client.collection.return_value.where.return_value
  query.limit.return_value.stream.return_value = [_document("d1", {"name": "Asha"})]
  repo = DonorRepository(client=client, collection="donors")

  donor = await repo.find_by_contact_number("98765")

  assert donor is not None
  assert donor.as_payload() == {"id": "d1", "name": "Asha"}
  query.limit.assert_called_once_with(1)
  assert client.collection.return_value.where.call_args.kwargs["filter"].field_path == "contactNumber"


@pytest.mark.anyio
async def test_find_by_contact_number_returns_none_without_match():
  client = MagicMock()
  client.collection.return_value.where.return_value.limit.return_value.stream.return_value = []

  assert await DonorRepository(client=client, collection="donors").find_by_contact_number("0") is None


@pytest.mark.anyio
async def test_update_missing_record_raises_not_found():
  client = MagicMock()
  client.collection.return_value.document.return_value.update.side_effect = NotFound("no document")
  repo = DonorRepository(client=client, collection="donors")

  with pytest.raises(RecordNotFoundError):
    await repo.update("missing", _donor())


@pytest.mark.anyio
async def test_sdk_errors_surface_as_record_store_errors():
  client = MagicMock()
  client.collection.return_value.document.return_value.delete.side_effect = RuntimeError("unavailable")
  client.collection.return_value.stream.side_effect = RuntimeError("unavailable")
  repo = EventRepository(client=client, collection="events")

  with pytest.raises(RecordStoreError):
    await repo.delete("e1")
  with pytest.raises(RecordStoreError):
    await repo.list_all()


@pytest.mark.anyio
async def test_search_events_by_name_returns_all_matches():
  client = MagicMock()
  client.collection.return_value.where.return_value.stream.return_value = [_document("e1", {"name": "Drive"}), _document("e2", {"name": "Drive"})]
  repo = EventRepository(client=client, collection="events")

  events = await repo.search_by_name("Drive")

  assert [event.id for event in events] == ["e1", "e2"]
  client.collection.return_value.where.return_value.limit.assert_not_called()


@pytest.mark.anyio
async def test_update_event_writes_camel_case_document():
  client = MagicMock()
  repo = EventRepository(client=client, collection="events")
  entry = EventEntry(name="Drive", image_url="https://img.example/1.png", description="d", register_link="https://reg.example", date="2026-10-18", time="10:00", club="NSS")

  await repo.update("e1", entry)

  client.collection.return_value.document.assert_called_once_with("e1")
  document = client.collection.return_value.document.return_value.update.call_args.args[0]
  assert document["imageUrl"] == "https://img.example/1.png"
  assert document["status"] == "active"
