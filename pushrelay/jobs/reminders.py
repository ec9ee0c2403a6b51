"""Daily reminder broadcast scheduled on a fixed UTC cron expression."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from pushrelay.notifications.service import DispatchService

logger = logging.getLogger(__name__)

DAILY_REMINDER_CRON = "0 9 * * *"
DAILY_REMINDER_JOB_ID = "daily_reminder"
DAILY_REMINDER_TOPIC = "freelancers"
DAILY_REMINDER_TITLE = "Good Morning!"
DAILY_REMINDER_BODY = "Check your daily updates"
DAILY_REMINDER_SCREEN = "HomeScreen"
DAILY_REMINDER_TYPE = "DAILY_REMINDER"


async def send_daily_reminder(service: DispatchService) -> bool:
  """Broadcast the fixed morning reminder to the freelancers topic."""
  logger.info("Sending daily reminder to all %s...", DAILY_REMINDER_TOPIC)
  return await service.send_to_topic(topic=DAILY_REMINDER_TOPIC, title=DAILY_REMINDER_TITLE, body=DAILY_REMINDER_BODY, screen=DAILY_REMINDER_SCREEN, type=DAILY_REMINDER_TYPE)


def build_reminder_scheduler(service: DispatchService) -> AsyncIOScheduler:
  """Create an unstarted scheduler with the daily reminder job registered."""
  scheduler = AsyncIOScheduler(timezone="UTC")
  scheduler.add_job(send_daily_reminder, CronTrigger.from_crontab(DAILY_REMINDER_CRON, timezone="UTC"), args=[service], id=DAILY_REMINDER_JOB_ID, replace_existing=True)
  return scheduler
