import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pushrelay.config import get_settings
from pushrelay.core.logging import initialize_logging
from pushrelay.jobs.reminders import build_reminder_scheduler
from pushrelay.notifications.factory import build_dispatch_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, Firebase clients and the reminder scheduler for the process."""
  settings = get_settings()
  logger = logging.getLogger("pushrelay.core.lifespan")

  initialize_logging(settings)
  if not settings.push_configured:
    logger.warning("FIREBASE_SERVICE_ACCOUNT is not set; push delivery is disabled and token storage is unavailable.")

  # Build clients once per process; routes read the service from app state.
  service = build_dispatch_service(settings)
  app.state.dispatch_service = service

  scheduler = None
  if settings.scheduler_enabled:
    scheduler = build_reminder_scheduler(service)
    scheduler.start()
    logger.info("Reminder scheduler started.")
  else:
    logger.info("Reminder scheduler disabled via RELAY_SCHEDULER_ENABLED.")

  logger.info("Startup complete env=%s port=%s", settings.environment, settings.port)

  try:
    yield
  finally:
    if scheduler is not None and scheduler.running:
      scheduler.shutdown(wait=False)
