"""
cli.py — Flask CLI commands for the reminder scans.

    flask --app "tontine.app:create_app('production')" send-reminders
    flask --app "tontine.app:create_app('production')" send-urgent-reminders

Cron can call these directly; otherwise set SCHEDULER_ENABLED and the app
runs the same scans on its own timer (see scheduler.py).
"""

from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext

from tontine.app.extensions import db
from tontine.app.services import reminder_service


@click.command("send-reminders")
@with_appcontext
def send_reminders_command() -> None:
    """Send reminders for every unpaid payment."""
    report = reminder_service.send_payment_reminders(db.session)
    click.echo(
        f"Scanned {report.scanned} unpaid payments: "
        f"{report.push_sent} push sent, {report.push_failed} push failed, "
        f"{report.email_sent} email sent, {report.email_failed} email failed."
    )


@click.command("send-urgent-reminders")
@with_appcontext
def send_urgent_reminders_command() -> None:
    """Send urgent reminders for cycles ending within 24 hours."""
    report = reminder_service.send_urgent_reminders(db.session)
    click.echo(
        f"Scanned {report.scanned} unpaid payments in cycles ending soon: "
        f"{report.push_sent} push sent, {report.push_failed} push failed."
    )


def register_commands(app: Flask) -> None:
    app.cli.add_command(send_reminders_command)
    app.cli.add_command(send_urgent_reminders_command)
