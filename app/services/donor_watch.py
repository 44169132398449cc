"""Firestore change-feed watcher that reports newly added donors."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from concurrent.futures import Future
from typing import Any

from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

RecordAddedHandler = Callable[[Mapping[str, Any]], Awaitable[Any]]


class DonorWatcher:
  """Bridge Firestore snapshot callbacks (SDK thread) onto the service event loop."""

  def __init__(self, *, client: FirestoreClient, collection: str, on_record_added: RecordAddedHandler) -> None:
    self._client = client
    self._collection = collection
    self._on_record_added = on_record_added
    self._loop: asyncio.AbstractEventLoop | None = None
    self._watch: Any = None
    self._primed = False

  def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Begin listening; must be called from the event loop that should run the handler."""
    self._loop = loop or asyncio.get_running_loop()
    self._primed = False
    self._watch = self._client.collection(self._collection).on_snapshot(self._on_snapshot)
    logger.info("Listening for new records collection=%s", self._collection)

  def stop(self) -> None:
    if self._watch is not None:
      self._watch.unsubscribe()
      self._watch = None
      logger.info("Stopped listening collection=%s", self._collection)

  def _on_snapshot(self, _snapshot: Any, changes: list[Any], _read_time: Any) -> None:
    # The first callback lists every existing document as ADDED; only later additions are new.
    if not self._primed:
      self._primed = True
      logger.debug("Initial snapshot skipped collection=%s documents=%s", self._collection, len(changes))
      return

    if self._loop is None:
      return

    for change in changes:
      if getattr(change.type, "name", None) != "ADDED":
        continue
      record = change.document.to_dict() or {}
      future = asyncio.run_coroutine_threadsafe(self._on_record_added(record), self._loop)
      future.add_done_callback(_log_future_error)


def _log_future_error(future: Future[Any]) -> None:
  if future.cancelled():
    return
  exc = future.exception()
  if exc is not None:
    logger.error("New record handler failed: %s", exc, exc_info=exc)
