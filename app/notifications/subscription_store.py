"""Firestore persistence for push subscriptions."""

from __future__ import annotations

import hashlib
import logging

from google.cloud.firestore import Client as FirestoreClient
from google.cloud.firestore_v1.base_query import FieldFilter
from starlette.concurrency import run_in_threadpool

from app.notifications.contracts import NotificationError, Subscription, SubscriptionStorageError, SubscriptionStore

logger = logging.getLogger(__name__)


def document_id_for(endpoint: str) -> str:
  """Derive a stable Firestore document id; endpoints contain `/` and exceed id limits."""
  return hashlib.sha256(endpoint.encode("utf-8")).hexdigest()


class FirestoreSubscriptionStore(SubscriptionStore):
  """Persist subscriptions as one Firestore document per endpoint."""

  def __init__(self, *, client: FirestoreClient, collection: str = "subscriptions") -> None:
    self._client = client
    self._collection = collection

  async def persist(self, subscription: Subscription) -> None:
    await run_in_threadpool(self._persist_sync, subscription)

  def _persist_sync(self, subscription: Subscription) -> None:
    # Keyed by endpoint hash so repeated persists overwrite instead of duplicating rows.
    try:
      self._client.collection(self._collection).document(document_id_for(subscription.endpoint)).set(subscription.to_document())
    except Exception as exc:  # noqa: BLE001
      raise SubscriptionStorageError(f"Failed to persist subscription: {exc}") from exc

  async def load_all(self) -> list[Subscription]:
    return await run_in_threadpool(self._load_all_sync)

  def _load_all_sync(self) -> list[Subscription]:
    try:
      documents = list(self._client.collection(self._collection).stream())
    except Exception as exc:  # noqa: BLE001
      raise SubscriptionStorageError(f"Failed to load subscriptions: {exc}") from exc

    subscriptions: list[Subscription] = []
    for document in documents:
      try:
        subscriptions.append(Subscription.from_document(document.to_dict() or {}))
      except NotificationError as exc:
        # Skip malformed rows rather than failing the whole hydration.
        logger.warning("Skipping malformed persisted subscription id=%s: %s", document.id, exc)
    return subscriptions

  async def delete_by_endpoint(self, endpoint: str) -> None:
    await run_in_threadpool(self._delete_by_endpoint_sync, endpoint)

  def _delete_by_endpoint_sync(self, endpoint: str) -> None:
    # Query by field rather than id so rows written by older clients are removed too.
    try:
      query = self._client.collection(self._collection).where(filter=FieldFilter("endpoint", "==", endpoint))
      for document in query.stream():
        document.reference.delete()
    except Exception as exc:  # noqa: BLE001
      raise SubscriptionStorageError(f"Failed to delete subscription: {exc}") from exc


class NullSubscriptionStore(SubscriptionStore):
  """Store used when durability is disabled; the registry stays process-local."""

  async def persist(self, subscription: Subscription) -> None:
    return None

  async def load_all(self) -> list[Subscription]:
    return []

  async def delete_by_endpoint(self, endpoint: str) -> None:
    return None
