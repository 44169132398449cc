from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from app.services.donor_watch import DonorWatcher


def _change(kind: str, data: dict) -> SimpleNamespace:
  document = MagicMock()
  document.to_dict.return_value = data
  return SimpleNamespace(type=SimpleNamespace(name=kind), document=document)


@pytest.mark.anyio
async def test_watcher_skips_initial_snapshot_and_bridges_additions():
  received: list[dict] = []
  done = asyncio.Event()

  async def _handler(record):
    received.append(dict(record))
    done.set()

  client = MagicMock()
  watcher = DonorWatcher(client=client, collection="donors", on_record_added=_handler)
  watcher.start()
  callback = client.collection.return_value.on_snapshot.call_args.args[0]

  # Firestore invokes snapshot callbacks from its own thread.
  await asyncio.to_thread(callback, None, [_change("ADDED", {"name": "Existing"})], None)
  await asyncio.to_thread(callback, None, [_change("MODIFIED", {"name": "Edited"}), _change("ADDED", {"name": "Asha", "bloodGroup": "O-"})], None)
  await asyncio.wait_for(done.wait(), timeout=2)

  assert received == [{"name": "Asha", "bloodGroup": "O-"}]
  client.collection.assert_called_with("donors")


@pytest.mark.anyio
async def test_watcher_stop_unsubscribes_once():
  client = MagicMock()
  watcher = DonorWatcher(client=client, collection="donors", on_record_added=MagicMock())
  watcher.start()
  watch = client.collection.return_value.on_snapshot.return_value

  watcher.stop()
  watcher.stop()

  watch.unsubscribe.assert_called_once_with()


@pytest.mark.anyio
async def test_watcher_logs_handler_failures(caplog):
  done = asyncio.Event()

  async def _handler(record):
    done.set()
    raise RuntimeError("broadcast failed")

  client = MagicMock()
  watcher = DonorWatcher(client=client, collection="donors", on_record_added=_handler)
  watcher.start()
  callback = client.collection.return_value.on_snapshot.call_args.args[0]

  await asyncio.to_thread(callback, None, [], None)
  await asyncio.to_thread(callback, None, [_change("ADDED", {"name": "Asha"})], None)
  await asyncio.wait_for(done.wait(), timeout=2)
  # Let the concurrent future's done callback run.
  for _ in range(5):
    await asyncio.sleep(0.01)

  assert "New record handler failed" in caplog.text
