from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from app.api.deps import get_donor_repo, get_event_repo
from app.main import app
from app.storage.firestore_repo import RecordNotFoundError, RecordStoreError, StoredRecord
from fastapi.testclient import TestClient

_DONOR = {"name": "Asha", "bloodGroup": "O-", "contactNumber": "9876543210", "contactName": "Ravi", "caseType": "Surgery"}
_EVENT = {"name": "Blood Drive", "imageUrl": "https://img.example/1.png", "description": "Annual drive", "registerLink": "https://reg.example", "date": "2026-10-18", "time": "10:00", "club": "NSS"}


@pytest.fixture
def donor_repo():
  repo = MagicMock()
  repo.add = AsyncMock(return_value="donor-1")
  repo.find_by_contact_number = AsyncMock(return_value=None)
  repo.update = AsyncMock()
  repo.delete = AsyncMock()
  app.dependency_overrides[get_donor_repo] = lambda: repo
  try:
    yield repo
  finally:
    app.dependency_overrides.clear()


@pytest.fixture
def events_repo():
  repo = MagicMock()
  repo.add = AsyncMock(return_value="event-1")
  repo.search_by_name = AsyncMock(return_value=[])
  repo.update = AsyncMock()
  repo.delete = AsyncMock()
  app.dependency_overrides[get_event_repo] = lambda: repo
  try:
    yield repo
  finally:
    app.dependency_overrides.clear()


def test_add_donor_stores_entry(donor_repo):
  response = TestClient(app).post("/bloodbank/donors", json=_DONOR)

  assert response.status_code == 201
  assert response.json() == {"id": "donor-1", "message": "Donor added successfully"}
  entry = donor_repo.add.await_args.args[0]
  assert entry.to_document() == {"name": "Asha", "bloodGroup": "O-", "contactNumber": "9876543210", "contactName": "Ravi", "case": "Surgery"}


def test_add_donor_accepts_numeric_contact_number(donor_repo):
  response = TestClient(app).post("/bloodbank/donors", json={**_DONOR, "contactNumber": 9876543210})

  assert response.status_code == 201
  assert donor_repo.add.await_args.args[0].contact_number == "9876543210"


def test_add_donor_missing_fields_returns_400(donor_repo):
  payload = dict(_DONOR)
  payload.pop("bloodGroup")

  response = TestClient(app).post("/bloodbank/donors", json=payload)

  assert response.status_code == 400
  donor_repo.add.assert_not_awaited()


def test_add_donor_store_failure_returns_500(donor_repo):
  donor_repo.add.side_effect = RecordStoreError("firestore unavailable")

  response = TestClient(app).post("/bloodbank/donors", json=_DONOR)

  assert response.status_code == 500
  assert response.json()["detail"] == "Internal Server Error"


def test_get_donor_by_contact_number(donor_repo):
  donor_repo.find_by_contact_number.return_value = StoredRecord(id="donor-1", data={"name": "Asha", "contactNumber": "9876543210"})

  response = TestClient(app).get("/bloodbank/donors/9876543210")

  assert response.status_code == 200
  assert response.json() == {"id": "donor-1", "name": "Asha", "contactNumber": "9876543210"}
  donor_repo.find_by_contact_number.assert_awaited_once_with("9876543210")


def test_get_unknown_donor_returns_404(donor_repo):
  response = TestClient(app).get("/bloodbank/donors/000")

  assert response.status_code == 404
  assert response.json()["detail"] == "Donor not found"


def test_update_missing_donor_returns_404(donor_repo):
  donor_repo.update.side_effect = RecordNotFoundError("missing")

  response = TestClient(app).put("/bloodbank/donors/nope", json=_DONOR)

  assert response.status_code == 404


def test_update_and_delete_donor(donor_repo):
  client = TestClient(app)

  updated = client.put("/bloodbank/donors/donor-1", json=_DONOR)
  deleted = client.delete("/bloodbank/donors/donor-1")

  assert updated.json() == {"message": "Donor updated successfully"}
  assert deleted.json() == {"message": "Donor deleted successfully"}
  donor_repo.delete.assert_awaited_once_with("donor-1")


def test_add_event_defaults_status_to_active(events_repo):
  response = TestClient(app).post("/events", json=_EVENT)

  assert response.status_code == 201
  assert response.json() == {"id": "event-1", "message": "Event added successfully"}
  document = events_repo.add.await_args.args[0].to_document()
  assert document["status"] == "active"
  assert document["registerLink"] == "https://reg.example"


def test_search_events_by_name(events_repo):
  events_repo.search_by_name.return_value = [StoredRecord(id="event-1", data={"name": "Blood Drive"})]

  response = TestClient(app).get("/events/search/Blood Drive")

  assert response.status_code == 200
  assert response.json() == [{"id": "event-1", "name": "Blood Drive"}]
  events_repo.search_by_name.assert_awaited_once_with("Blood Drive")


def test_search_events_without_match_returns_404(events_repo):
  response = TestClient(app).get("/events/search/Unknown")

  assert response.status_code == 404
  assert response.json()["detail"] == "Event not found"


def test_update_missing_event_returns_404(events_repo):
  events_repo.update.side_effect = RecordNotFoundError("missing")

  response = TestClient(app).put("/events/nope", json=_EVENT)

  assert response.status_code == 404


def test_delete_event_store_failure_returns_500(events_repo):
  events_repo.delete.side_effect = RecordStoreError("firestore unavailable")

  response = TestClient(app).delete("/events/event-1")

  assert response.status_code == 500


def test_record_routes_return_503_without_record_store():
  response = TestClient(app).get("/events/search/anything")

  assert response.status_code == 503
  assert response.json()["detail"] == "Record store is not configured."
