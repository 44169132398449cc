"""Shared FastAPI dependencies for the relay components created at startup."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.notifications.service import NotificationService
from app.storage.donors_repo import DonorRepository
from app.storage.events_repo import EventRepository


def get_notification_service(request: Request) -> NotificationService:
  service = getattr(request.app.state, "notification_service", None)
  if service is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Notification service is not ready.")
  return service


def get_donor_repo(request: Request) -> DonorRepository:
  repo = getattr(request.app.state, "donor_repo", None)
  if repo is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Record store is not configured.")
  return repo


def get_event_repo(request: Request) -> EventRepository:
  repo = getattr(request.app.state, "event_repo", None)
  if repo is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Record store is not configured.")
  return repo
