from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from app.config import get_settings
from app.core.lifespan import lifespan
from app.notifications.factory import build_push_sender, build_relay
from app.notifications.push_sender import NullPushSender, WebPushSender
from app.notifications.subscription_store import FirestoreSubscriptionStore, NullSubscriptionStore
from fastapi import FastAPI


def test_push_sender_requires_enabled_and_configured_vapid():
  settings = get_settings()

  assert isinstance(build_push_sender(replace(settings, push_notifications_enabled=False)), NullPushSender)
  assert isinstance(build_push_sender(replace(settings, push_notifications_enabled=True, push_vapid_public_key="pub", push_vapid_private_key=None, push_vapid_sub="mailto:a@b.c")), NullPushSender)
  enabled = replace(settings, push_notifications_enabled=True, push_vapid_public_key="pub", push_vapid_private_key="priv", push_vapid_sub="mailto:a@b.c")
  assert isinstance(build_push_sender(enabled), WebPushSender)


def test_build_relay_without_firestore_runs_in_memory():
  components = build_relay(get_settings(), firestore_client=None)

  assert isinstance(components.service.registry._store, NullSubscriptionStore)
  assert components.donor_repo is None
  assert components.event_repo is None


def test_build_relay_with_firestore_wires_store_and_repositories():
  settings = replace(get_settings(), subscriptions_persisted=True)

  components = build_relay(settings, firestore_client=MagicMock())

  assert isinstance(components.service.registry._store, FirestoreSubscriptionStore)
  assert components.donor_repo is not None
  assert components.event_repo is not None


def test_build_relay_respects_persistence_toggle():
  settings = replace(get_settings(), subscriptions_persisted=False)

  components = build_relay(settings, firestore_client=MagicMock())

  assert isinstance(components.service.registry._store, NullSubscriptionStore)
  assert components.event_repo is not None


@pytest.mark.anyio
async def test_lifespan_exposes_service_and_drains_on_shutdown(monkeypatch):
  monkeypatch.setattr("app.core.lifespan.initialize_logging", lambda settings: None)
  monkeypatch.setattr("app.core.lifespan.get_firestore_client", lambda settings: None)
  app = FastAPI()

  async with lifespan(app):
    service = app.state.notification_service
    assert len(service.registry) == 0
    assert app.state.donor_repo is None
    assert app.state.event_repo is None

  assert not service._pending
