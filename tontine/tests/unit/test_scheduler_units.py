"""
Unit tests for the in-process reminder scheduler.

The scheduler is built but never started except where start() is patched,
so no background thread outlives a test.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger
from flask import Flask, has_app_context

from tontine.app import scheduler as reminder_scheduler

MODULE = "tontine.app.scheduler"


@pytest.fixture
def app():
    app = Flask(__name__)
    app.config.update(
        SCHEDULER_ENABLED=True,
        PAYMENT_REMINDER_CRON="0 9 * * *",
        URGENT_REMINDER_CRON="0 */12 * * *",
    )
    return app


def _fields(trigger: CronTrigger) -> dict[str, str]:
    return {f.name: str(f) for f in trigger.fields}


def test_both_reminder_jobs_are_registered(app):
    scheduler = reminder_scheduler.build_scheduler(app)

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {
        reminder_scheduler.PAYMENT_REMINDER_JOB_ID,
        reminder_scheduler.URGENT_REMINDER_JOB_ID,
    }

    daily = jobs[reminder_scheduler.PAYMENT_REMINDER_JOB_ID]
    assert isinstance(daily.trigger, CronTrigger)
    assert _fields(daily.trigger)["hour"] == "9"
    assert _fields(daily.trigger)["minute"] == "0"
    assert daily.func is reminder_scheduler.run_payment_reminders
    assert daily.args == (app,)

    urgent = jobs[reminder_scheduler.URGENT_REMINDER_JOB_ID]
    assert _fields(urgent.trigger)["hour"] == "*/12"
    assert urgent.func is reminder_scheduler.run_urgent_reminders


def test_schedule_comes_from_config(app):
    app.config["PAYMENT_REMINDER_CRON"] = "30 7 * * *"

    scheduler = reminder_scheduler.build_scheduler(app)
    job = scheduler.get_job(reminder_scheduler.PAYMENT_REMINDER_JOB_ID)

    assert _fields(job.trigger)["hour"] == "7"
    assert _fields(job.trigger)["minute"] == "30"


def test_not_started_when_disabled(app):
    app.config["SCHEDULER_ENABLED"] = False
    with patch(f"{MODULE}.build_scheduler") as mock_build:
        assert reminder_scheduler.init_scheduler(app) is None
    mock_build.assert_not_called()


def test_not_started_under_testing(app):
    app.config["TESTING"] = True
    with patch(f"{MODULE}.build_scheduler") as mock_build:
        assert reminder_scheduler.init_scheduler(app) is None
    mock_build.assert_not_called()


def test_not_started_in_reloader_watcher(app, monkeypatch):
    app.config["DEBUG"] = True
    monkeypatch.delenv("WERKZEUG_RUN_MAIN", raising=False)
    with patch(f"{MODULE}.build_scheduler") as mock_build:
        assert reminder_scheduler.init_scheduler(app) is None
    mock_build.assert_not_called()


@patch(f"{MODULE}.atexit.register")
def test_started_and_stored_on_app(mock_atexit, app):
    fake = MagicMock()
    fake.get_jobs.return_value = []
    with patch(f"{MODULE}.build_scheduler", return_value=fake):
        started = reminder_scheduler.init_scheduler(app)

    assert started is fake
    fake.start.assert_called_once()
    mock_atexit.assert_called_once()
    assert app.extensions["reminder_scheduler"] is fake


@patch(f"{MODULE}.db")
@patch(f"{MODULE}.reminder_service")
def test_jobs_run_scans_inside_app_context(mock_service, mock_db, app):
    seen = []
    mock_service.send_payment_reminders.side_effect = (
        lambda session: seen.append(("payment", session, has_app_context()))
    )
    mock_service.send_urgent_reminders.side_effect = (
        lambda session: seen.append(("urgent", session, has_app_context()))
    )

    reminder_scheduler.run_payment_reminders(app)
    reminder_scheduler.run_urgent_reminders(app)

    assert seen == [
        ("payment", mock_db.session, True),
        ("urgent", mock_db.session, True),
    ]
    assert not has_app_context()
