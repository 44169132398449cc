"""Clock-driven triggers for event reminders, subscription sweeps and event cleanup."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.config import Settings
from app.notifications.service import NotificationService
from app.services.maintenance import MaintenanceSweeper, purge_past_events
from app.storage.events_repo import EventRepository

logger = logging.getLogger(__name__)


class RelayScheduler:
  """Own the APScheduler instance and the jobs that call into the notification core."""

  def __init__(self, *, settings: Settings, service: NotificationService, sweeper: MaintenanceSweeper, event_repo: EventRepository | None, scheduler: AsyncIOScheduler | None = None) -> None:
    self._settings = settings
    self._service = service
    self._sweeper = sweeper
    self._event_repo = event_repo
    self._scheduler = scheduler or AsyncIOScheduler(job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 300})
    self._configured = False

  @property
  def scheduler(self) -> AsyncIOScheduler:
    return self._scheduler

  def configure(self) -> None:
    """Register every job once; safe to call before the event loop starts."""
    if self._configured:
      return

    if self._event_repo is not None:
      for hour, minute in self._settings.event_check_times:
        self._scheduler.add_job(self.run_event_check, CronTrigger(hour=hour, minute=minute), id=f"event-check-{hour:02d}{minute:02d}", replace_existing=True)

      cleanup_hour, cleanup_minute = self._settings.event_cleanup_time
      self._scheduler.add_job(self.run_event_cleanup, CronTrigger(hour=cleanup_hour, minute=cleanup_minute), id="event-cleanup", replace_existing=True)

    self._scheduler.add_job(self.run_subscription_sweep, IntervalTrigger(seconds=self._settings.subscription_sweep_seconds), id="subscription-sweep", replace_existing=True)
    self._configured = True

  def start(self) -> None:
    self.configure()
    self._scheduler.start()
    logger.info("Scheduler started jobs=%s", [job.id for job in self._scheduler.get_jobs()])

  def shutdown(self) -> None:
    if self._scheduler.running:
      self._scheduler.shutdown(wait=False)
      logger.info("Scheduler stopped.")

  async def run_event_check(self) -> None:
    logger.info("Running scheduled event notification check")
    try:
      due = await self._service.on_scheduled_check()
    except Exception as exc:  # noqa: BLE001
      logger.error("Scheduled event check failed: %s", exc, exc_info=True)
      return
    logger.info("Scheduled event check complete due_events=%s", due)

  async def run_subscription_sweep(self) -> None:
    try:
      await self._sweeper.run()
    except Exception as exc:  # noqa: BLE001
      logger.error("Subscription sweep failed: %s", exc, exc_info=True)

  async def run_event_cleanup(self) -> None:
    if self._event_repo is None:
      return
    logger.info("Running past event cleanup")
    try:
      deleted = await purge_past_events(self._event_repo)
    except Exception as exc:  # noqa: BLE001
      logger.error("Error deleting past events: %s", exc, exc_info=True)
      return
    logger.info("Past event cleanup complete deleted=%s", deleted)
