"""Routes for push subscription registration and operator-triggered sends."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_notification_service
from app.notifications.contracts import RegistrationStatus, build_subscription
from app.notifications.service import NotificationService
from app.notifications.templates import render_advertisement, render_manual

logger = logging.getLogger(__name__)

router = APIRouter()


class PushSubscriptionKeys(BaseModel):
  """Browser-provided key material; presence is enforced by the registry."""

  p256dh: str | None = None
  auth: str | None = None
  model_config = ConfigDict(extra="ignore")


class PushSubscriptionPayload(BaseModel):
  """Standard browser push subscription object, optionally tagged with a blood group."""

  endpoint: str | None = None
  expiration_time: int | None = Field(default=None, alias="expirationTime")
  keys: PushSubscriptionKeys | None = None
  blood_group: str | None = Field(default=None, alias="bloodGroup")
  model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SubscribeRequest(PushSubscriptionPayload):
  """Accept both `{subscription: {...}}` and the flattened subscription object."""

  subscription: PushSubscriptionPayload | None = None

  def resolved(self) -> PushSubscriptionPayload:
    return self.subscription if self.subscription is not None else self

  def resolved_blood_group(self) -> str | None:
    nested = self.subscription.blood_group if self.subscription is not None else None
    return nested or self.blood_group


class SendNotificationRequest(BaseModel):
  title: str | None = None
  message: str | None = None
  blood_group: str | None = Field(default=None, alias="bloodGroup")
  model_config = ConfigDict(populate_by_name=True)


class SendAdRequest(BaseModel):
  title: str | None = None
  body: str | None = None
  link: str | None = None


class MessageResponse(BaseModel):
  message: str


def _present(*values: str | None) -> bool:
  return all(value is not None and value.strip() for value in values)


@router.post("/subscribe", status_code=status.HTTP_201_CREATED, response_model=MessageResponse, responses={200: {"model": MessageResponse}, 400: {"description": "Missing required fields"}})
async def subscribe(payload: SubscribeRequest, service: NotificationService = Depends(get_notification_service)) -> JSONResponse:  # noqa: B008
  """Register a browser push subscription; re-registering an endpoint is a no-op."""
  resolved = payload.resolved()
  keys = resolved.keys or PushSubscriptionKeys()
  # Raises SubscriptionValidationError (400) before any registry mutation.
  subscription = build_subscription(endpoint=resolved.endpoint, p256dh=keys.p256dh, auth=keys.auth, attribute=payload.resolved_blood_group())

  outcome = await service.register(subscription)
  if outcome is RegistrationStatus.ALREADY_EXISTS:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "Subscription already exists."})

  return JSONResponse(status_code=status.HTTP_201_CREATED, content={"message": "Subscribed successfully!"})


@router.post("/send-notification", response_model=MessageResponse)
async def send_notification(payload: SendNotificationRequest, service: NotificationService = Depends(get_notification_service)) -> MessageResponse:  # noqa: B008
  """Broadcast an operator message without waiting for delivery outcomes."""
  if not _present(payload.title, payload.message):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and message are required")

  logger.info("Sending manual notification: %s - %s", payload.title, payload.message)
  service.dispatch(render_manual(title=payload.title.strip(), message=payload.message.strip(), blood_group=payload.blood_group))
  return MessageResponse(message="Notification sent successfully!")


@router.post("/send-ad", response_model=MessageResponse)
async def send_ad(payload: SendAdRequest, service: NotificationService = Depends(get_notification_service)) -> MessageResponse:  # noqa: B008
  """Broadcast an advertisement carrying a link to every subscriber."""
  if not _present(payload.title, payload.body, payload.link):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title, body and link are required")

  logger.info("Sending advertisement: %s", payload.title)
  service.dispatch(render_advertisement(title=payload.title.strip(), body=payload.body.strip(), link=payload.link.strip()))
  return MessageResponse(message="Advertisement sent successfully!")
