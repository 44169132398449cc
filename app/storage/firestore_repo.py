"""Shared Firestore repository helpers for operator-managed records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from google.api_core.exceptions import NotFound
from google.cloud.firestore import Client as FirestoreClient
from google.cloud.firestore_v1.base_query import FieldFilter
from starlette.concurrency import run_in_threadpool


class RecordStoreError(RuntimeError):
  """Raised when the record store cannot complete an operation."""


class RecordNotFoundError(RecordStoreError):
  """Raised when a record id does not exist."""


@dataclass(frozen=True)
class StoredRecord:
  """A Firestore document id paired with its field data."""

  id: str
  data: dict[str, Any]

  def as_payload(self) -> dict[str, Any]:
    return {"id": self.id, **self.data}


class FirestoreRecordRepository:
  """CRUD over a single Firestore collection, run off the event loop."""

  def __init__(self, *, client: FirestoreClient, collection: str) -> None:
    self._client = client
    self._collection = collection

  async def _add(self, fields: dict[str, Any]) -> str:
    return await run_in_threadpool(self._add_sync, fields)

  def _add_sync(self, fields: dict[str, Any]) -> str:
    try:
      _, reference = self._client.collection(self._collection).add(fields)
    except Exception as exc:  # noqa: BLE001
      raise RecordStoreError(f"Failed to add {self._collection} record: {exc}") from exc
    return reference.id

  async def _update(self, record_id: str, fields: dict[str, Any]) -> None:
    await run_in_threadpool(self._update_sync, record_id, fields)

  def _update_sync(self, record_id: str, fields: dict[str, Any]) -> None:
    try:
      self._client.collection(self._collection).document(record_id).update(fields)
    except NotFound as exc:
      raise RecordNotFoundError(f"{self._collection} record {record_id} not found") from exc
    except Exception as exc:  # noqa: BLE001
      raise RecordStoreError(f"Failed to update {self._collection} record: {exc}") from exc

  async def delete(self, record_id: str) -> None:
    """Delete a record by id; deleting a missing id succeeds."""
    await run_in_threadpool(self._delete_sync, record_id)

  def _delete_sync(self, record_id: str) -> None:
    try:
      self._client.collection(self._collection).document(record_id).delete()
    except Exception as exc:  # noqa: BLE001
      raise RecordStoreError(f"Failed to delete {self._collection} record: {exc}") from exc

  async def _where_equal(self, field: str, value: Any, *, limit: int | None = None) -> list[StoredRecord]:
    return await run_in_threadpool(self._where_equal_sync, field, value, limit)

  def _where_equal_sync(self, field: str, value: Any, limit: int | None) -> list[StoredRecord]:
    try:
      query = self._client.collection(self._collection).where(filter=FieldFilter(field, "==", value))
      if limit is not None:
        query = query.limit(limit)
      return [StoredRecord(id=document.id, data=document.to_dict() or {}) for document in query.stream()]
    except Exception as exc:  # noqa: BLE001
      raise RecordStoreError(f"Failed to query {self._collection} records: {exc}") from exc

  async def list_all(self) -> list[StoredRecord]:
    return await run_in_threadpool(self._list_all_sync)

  def _list_all_sync(self) -> list[StoredRecord]:
    try:
      return [StoredRecord(id=document.id, data=document.to_dict() or {}) for document in self._client.collection(self._collection).stream()]
    except Exception as exc:  # noqa: BLE001
      raise RecordStoreError(f"Failed to list {self._collection} records: {exc}") from exc
