"""Firebase Admin bootstrap and Firestore client access."""

import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _credential(settings: Settings) -> credentials.Base:
  if settings.firebase_service_account_json_path:
    return credentials.Certificate(settings.firebase_service_account_json_path)
  # Cloud Run and local `gcloud auth application-default login` both resolve here.
  return credentials.ApplicationDefault()


def initialize_firebase(settings: Settings | None = None) -> bool:
  """Initialize the default Firebase app once; returns whether Firestore can be used."""
  if firebase_admin._apps:
    return True

  settings = settings or get_settings()
  if not settings.firebase_project_id:
    logger.warning("FIREBASE_PROJECT_ID not set; subscribers stay in memory and record endpoints are disabled.")
    return False

  try:
    firebase_admin.initialize_app(_credential(settings), {"projectId": settings.firebase_project_id})
  except Exception as exc:  # noqa: BLE001
    logger.error("Failed to initialize Firebase Admin SDK project=%s: %s", settings.firebase_project_id, exc)
    return False

  logger.info("Firebase Admin SDK initialized project=%s", settings.firebase_project_id)
  return True


def get_firestore_client(settings: Settings | None = None) -> FirestoreClient | None:
  """Return a Firestore client, or None when Firebase is unavailable."""
  if not initialize_firebase(settings):
    return None

  try:
    return firestore.client()
  except Exception as exc:  # noqa: BLE001
    logger.error("Failed to create Firestore client: %s", exc)
    return None
