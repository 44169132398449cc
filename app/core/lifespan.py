import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.core.env_contract import EnvContractError, validate_runtime_env_or_raise
from app.core.firebase import get_firestore_client
from app.core.logging import initialize_logging
from app.notifications.factory import build_relay
from app.services.donor_watch import DonorWatcher
from app.services.scheduler import RelayScheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Wire the notification core and start its trigger sources."""
  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  try:
    initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
    # Enforce startup env contracts before app dependencies are initialized.
    validate_runtime_env_or_raise(logger=logger)
  except EnvContractError:
    # Fail-fast when required startup configuration is missing or invalid.
    logger.error("Environment contract failed; refusing to start the service.", exc_info=True)
    raise
  except Exception:
    # Log initialization failures but allow the app to continue starting.
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  # Firestore is optional locally; without it the relay runs in-memory with no record endpoints.
  firestore_client = get_firestore_client(settings)
  relay = build_relay(settings, firestore_client=firestore_client)

  # Hydrate before serving so the first broadcast sees every persisted subscriber.
  await relay.service.registry.hydrate()

  app.state.notification_service = relay.service
  app.state.donor_repo = relay.donor_repo
  app.state.event_repo = relay.event_repo

  watcher: DonorWatcher | None = None
  if settings.donor_watch_enabled and firestore_client is not None:
    watcher = DonorWatcher(client=firestore_client, collection=settings.donors_collection, on_record_added=relay.service.on_record_added)
    try:
      watcher.start()
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to start donor watcher: %s", exc, exc_info=True)
      watcher = None

  scheduler: RelayScheduler | None = None
  if settings.scheduler_enabled:
    scheduler = RelayScheduler(settings=settings, service=relay.service, sweeper=relay.sweeper, event_repo=relay.event_repo)
    try:
      scheduler.start()
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to start scheduler: %s", exc, exc_info=True)
      scheduler = None

  try:
    yield
  finally:
    if scheduler is not None:
      scheduler.shutdown()
    if watcher is not None:
      watcher.stop()
    # In-flight broadcasts run to completion; there is no mid-pass cancellation.
    await relay.service.drain()
    logger.info("Shutdown complete.")
