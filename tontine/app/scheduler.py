"""
scheduler.py — In-process timer for the reminder scans (APScheduler).

Runs the same scans as the CLI commands on PAYMENT_REMINDER_CRON (daily at
09:00) and URGENT_REMINDER_CRON (every 12 hours). The app factory starts it
only when SCHEDULER_ENABLED is set. Enable it in a single process; every
process that starts a scheduler sends its own reminders.
"""

from __future__ import annotations

import atexit
import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import Flask

from tontine.app.extensions import db
from tontine.app.services import reminder_service

logger = logging.getLogger(__name__)

PAYMENT_REMINDER_JOB_ID = "payment_reminders"
URGENT_REMINDER_JOB_ID = "urgent_reminders"


def run_payment_reminders(app: Flask) -> None:
    with app.app_context():
        report = reminder_service.send_payment_reminders(db.session)
    logger.info("Scheduled payment reminders finished: %s", report)


def run_urgent_reminders(app: Flask) -> None:
    with app.app_context():
        report = reminder_service.send_urgent_reminders(db.session)
    logger.info("Scheduled urgent reminders finished: %s", report)


def build_scheduler(app: Flask) -> BackgroundScheduler:
    """Returns a scheduler with both reminder jobs added but not started."""
    scheduler = BackgroundScheduler()
    jobs = (
        (PAYMENT_REMINDER_JOB_ID, run_payment_reminders, app.config["PAYMENT_REMINDER_CRON"]),
        (URGENT_REMINDER_JOB_ID, run_urgent_reminders, app.config["URGENT_REMINDER_CRON"]),
    )
    for job_id, func, crontab in jobs:
        scheduler.add_job(
            func,
            CronTrigger.from_crontab(crontab),
            args=[app],
            id=job_id,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            misfire_grace_time=300,
        )
    return scheduler


def init_scheduler(app: Flask) -> BackgroundScheduler | None:
    """
    Starts the reminder scheduler for `app` and returns it, or returns None
    when it should not run here.

    Skipped when SCHEDULER_ENABLED is off, under TESTING, and in the debug
    reloader's watcher process (only the child with WERKZEUG_RUN_MAIN=true
    serves requests).
    """
    if not app.config.get("SCHEDULER_ENABLED") or app.config.get("TESTING"):
        return None
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return None

    scheduler = build_scheduler(app)
    scheduler.start()
    atexit.register(lambda: scheduler.shutdown(wait=False))
    app.extensions["reminder_scheduler"] = scheduler
    logger.info(
        "Reminder scheduler started: %s",
        ", ".join(job.id for job in scheduler.get_jobs()),
    )
    return scheduler
