from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import get_notification_service
from app.api.routes import donors, events, push
from app.config import get_settings
from app.core.exceptions import register_exception_handlers
from app.core.lifespan import lifespan
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.notifications.service import NotificationService

settings = get_settings()

app = FastAPI(title="Donor Push Relay", lifespan=lifespan, docs_url=None if settings.environment in {"production", "prod"} else "/docs", redoc_url=None)

app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=True, allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])

register_exception_handlers(app)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check(service: NotificationService = Depends(get_notification_service)) -> dict[str, str | int]:  # noqa: B008
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0", "subscribers": len(service.registry)}


app.include_router(push.router, tags=["push"])
app.include_router(donors.router, prefix="/bloodbank", tags=["donors"])
app.include_router(events.router, prefix="/events", tags=["events"])
