"""Factory helpers for notification services."""

from __future__ import annotations

from dataclasses import dataclass

from google.cloud.firestore import Client as FirestoreClient

from app.config import Settings
from app.notifications.contracts import PushSender
from app.notifications.delivery import DeliveryEngine
from app.notifications.push_sender import NullPushSender, VapidConfig, WebPushSender
from app.notifications.registry import SubscriberRegistry
from app.notifications.service import NotificationService
from app.notifications.subscription_store import FirestoreSubscriptionStore, NullSubscriptionStore
from app.services.maintenance import MaintenanceSweeper
from app.storage.donors_repo import DonorRepository
from app.storage.events_repo import EventRepository


@dataclass(frozen=True)
class RelayComponents:
  """Everything the HTTP layer and the trigger sources need."""

  service: NotificationService
  sweeper: MaintenanceSweeper
  donor_repo: DonorRepository | None
  event_repo: EventRepository | None


def build_push_sender(settings: Settings) -> PushSender:
  """Use Web Push only when it is enabled and fully configured."""
  if settings.push_notifications_enabled and settings.push_vapid_public_key and settings.push_vapid_private_key and settings.push_vapid_sub:
    return WebPushSender(vapid_config=VapidConfig(public_key=settings.push_vapid_public_key, private_key=settings.push_vapid_private_key, sub=settings.push_vapid_sub), timeout_seconds=settings.push_timeout_seconds)
  return NullPushSender()


def build_relay(settings: Settings, *, firestore_client: FirestoreClient | None, push_sender: PushSender | None = None) -> RelayComponents:
  """Construct the notification core based on environment configuration."""
  # Mirror subscriptions durably only when Firestore is reachable and persistence is on.
  if firestore_client is not None and settings.subscriptions_persisted:
    store = FirestoreSubscriptionStore(client=firestore_client, collection=settings.subscriptions_collection)
  else:
    store = NullSubscriptionStore()

  donor_repo = DonorRepository(client=firestore_client, collection=settings.donors_collection) if firestore_client is not None else None
  event_repo = EventRepository(client=firestore_client, collection=settings.events_collection) if firestore_client is not None else None

  registry = SubscriberRegistry(store=store)
  engine = DeliveryEngine(registry=registry, push_sender=push_sender or build_push_sender(settings))
  service = NotificationService(registry=registry, engine=engine, event_repo=event_repo, event_digest_mode=settings.event_digest_mode)
  return RelayComponents(service=service, sweeper=MaintenanceSweeper(registry=registry), donor_repo=donor_repo, event_repo=event_repo)
