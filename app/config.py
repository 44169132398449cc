"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

EVENT_DIGEST_MODES = ("per_event", "digest")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the relay service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  push_notifications_enabled: bool
  push_vapid_public_key: str | None
  push_vapid_private_key: str | None
  push_vapid_sub: str | None
  push_timeout_seconds: float
  subscriptions_persisted: bool
  subscriptions_collection: str
  donors_collection: str
  events_collection: str
  event_check_times: tuple[tuple[int, int], ...]
  event_digest_mode: str
  event_cleanup_time: tuple[int, int]
  subscription_sweep_seconds: int
  scheduler_enabled: bool
  donor_watch_enabled: bool


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("RELAY_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("RELAY_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("RELAY_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def parse_clock_time(raw: str, *, name: str) -> tuple[int, int]:
  """Parse an `HH:MM` wall-clock value into an (hour, minute) pair."""
  hours, sep, minutes = raw.strip().partition(":")
  if not sep or not hours.isdigit() or not minutes.isdigit():
    raise ValueError(f"{name} must use HH:MM format, got {raw!r}.")

  hour, minute = int(hours), int(minutes)
  if not (0 <= hour <= 23 and 0 <= minute <= 59):
    raise ValueError(f"{name} must be a valid time of day, got {raw!r}.")

  return hour, minute


def _parse_clock_times(raw: str | None, *, name: str, default: str) -> tuple[tuple[int, int], ...]:
  values = [item for item in (raw or default).split(",") if item.strip()]
  if not values:
    raise ValueError(f"{name} must include at least one HH:MM time.")

  # Keep the schedule stable and free of duplicate ticks.
  return tuple(sorted({parse_clock_time(item, name=name) for item in values}))


def _positive_int(raw: str | None, *, name: str, default: int) -> int:
  value = int(raw) if raw not in (None, "") else default
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("RELAY_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("RELAY_DEBUG"))

  log_max_bytes = _positive_int(os.getenv("RELAY_LOG_MAX_BYTES"), name="RELAY_LOG_MAX_BYTES", default=5242880)  # 5MB default

  log_backup_count = int(os.getenv("RELAY_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("RELAY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("RELAY_LOG_HTTP_4XX"))
  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_bodies = _parse_bool(os.getenv("RELAY_LOG_HTTP_BODIES"))
  log_http_body_bytes = _positive_int(os.getenv("RELAY_LOG_HTTP_BODY_BYTES"), name="RELAY_LOG_HTTP_BODY_BYTES", default=2048)

  push_notifications_enabled = _parse_bool(os.getenv("RELAY_PUSH_NOTIFICATIONS_ENABLED"))
  push_vapid_public_key = _optional_str(os.getenv("RELAY_PUSH_VAPID_PUBLIC_KEY"))
  push_vapid_private_key = _optional_str(os.getenv("RELAY_PUSH_VAPID_PRIVATE_KEY"))
  push_vapid_sub = _optional_str(os.getenv("RELAY_PUSH_VAPID_SUB"))
  push_timeout_seconds = float(os.getenv("RELAY_PUSH_TIMEOUT_SECONDS", "10"))
  if push_timeout_seconds <= 0:
    raise ValueError("RELAY_PUSH_TIMEOUT_SECONDS must be positive.")

  # Validate push configuration only when push notifications are enabled.
  if push_notifications_enabled:
    if not push_vapid_public_key:
      raise ValueError("RELAY_PUSH_VAPID_PUBLIC_KEY must be set when push notifications are enabled.")

    if not push_vapid_private_key:
      raise ValueError("RELAY_PUSH_VAPID_PRIVATE_KEY must be set when push notifications are enabled.")

    if not push_vapid_sub:
      raise ValueError("RELAY_PUSH_VAPID_SUB must be set when push notifications are enabled.")

    if not (push_vapid_sub.startswith("mailto:") or push_vapid_sub.startswith("https://")):
      raise ValueError("RELAY_PUSH_VAPID_SUB must start with 'mailto:' or 'https://'.")

  event_digest_mode = (os.getenv("RELAY_EVENT_DIGEST_MODE") or "per_event").strip().lower()
  if event_digest_mode not in EVENT_DIGEST_MODES:
    raise ValueError("RELAY_EVENT_DIGEST_MODE must be 'per_event' or 'digest'.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("RELAY_ALLOWED_ORIGINS")),
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    push_notifications_enabled=push_notifications_enabled,
    push_vapid_public_key=push_vapid_public_key,
    push_vapid_private_key=push_vapid_private_key,
    push_vapid_sub=push_vapid_sub,
    push_timeout_seconds=push_timeout_seconds,
    subscriptions_persisted=_parse_bool(os.getenv("RELAY_SUBSCRIPTIONS_PERSISTED"), default=True),
    subscriptions_collection=(os.getenv("RELAY_SUBSCRIPTIONS_COLLECTION") or "subscriptions").strip(),
    donors_collection=(os.getenv("RELAY_DONORS_COLLECTION") or "donors").strip(),
    events_collection=(os.getenv("RELAY_EVENTS_COLLECTION") or "events").strip(),
    event_check_times=_parse_clock_times(os.getenv("RELAY_EVENT_CHECK_TIMES"), name="RELAY_EVENT_CHECK_TIMES", default="09:00,16:30"),
    event_digest_mode=event_digest_mode,
    event_cleanup_time=parse_clock_time(os.getenv("RELAY_EVENT_CLEANUP_TIME") or "01:00", name="RELAY_EVENT_CLEANUP_TIME"),
    subscription_sweep_seconds=_positive_int(os.getenv("RELAY_SUBSCRIPTION_SWEEP_SECONDS"), name="RELAY_SUBSCRIPTION_SWEEP_SECONDS", default=3600),
    scheduler_enabled=_parse_bool(os.getenv("RELAY_SCHEDULER_ENABLED"), default=True),
    donor_watch_enabled=_parse_bool(os.getenv("RELAY_DONOR_WATCH_ENABLED"), default=True),
  )


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
