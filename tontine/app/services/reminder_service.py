"""
services/reminder_service.py — Scheduled payment reminders.

Two scans, each run from a Flask CLI command (cron) or by the in-process
scheduler (scheduler.py):

  send_payment_reminders  — every unpaid payment whose user has notifications
                            enabled; push (valid Expo token) and/or email
                            (when MAIL_SERVER is configured).
  send_urgent_reminders   — unpaid payments in active cycles whose end_date
                            falls within the next 24 hours; push only.

A failed delivery is logged by the transport and counted; it never stops
the scan. The scans only read, so there is nothing to commit.

Layer rules:
  - No Flask imports here; the transports read app config themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tontine.app.models.cycle import Cycle, CycleStatus
from tontine.app.models.payment import Payment
from tontine.app.models.user import User
from tontine.app.notifications.mailer import email_enabled, send_payment_reminder_email
from tontine.app.notifications.push import send_push_notification

logger = logging.getLogger(__name__)

PAYMENT_REMINDER_TITLE = "Tontine Payment Reminder"
URGENT_REMINDER_TITLE = "Urgent Payment Reminder"
URGENT_WINDOW = timedelta(hours=24)


@dataclass
class ReminderReport:
    scanned: int = 0
    push_sent: int = 0
    push_failed: int = 0
    email_sent: int = 0
    email_failed: int = 0


def _unpaid_payments_stmt():
    return (
        select(Payment)
        .join(User, Payment.user_id == User.id)
        .join(Cycle, Payment.cycle_id == Cycle.id)
        .options(
            selectinload(Payment.user),
            selectinload(Payment.cycle).selectinload(Cycle.group),
        )
        .where(
            Payment.paid.is_(False),
            User.notifications_enabled.is_(True),
        )
        .order_by(Payment.id.asc())
    )


def _push(report: ReminderReport, token: str, title: str, body: str, data: dict) -> None:
    if send_push_notification(token, title, body, data):
        report.push_sent += 1
    else:
        report.push_failed += 1


def send_payment_reminders(session: Session) -> ReminderReport:
    """Reminds every member with an outstanding payment."""
    report = ReminderReport()
    send_mail = email_enabled()

    for payment in session.execute(_unpaid_payments_stmt()).scalars().all():
        report.scanned += 1
        user = payment.user
        cycle = payment.cycle
        group_name = cycle.group.name

        if user.push_token:
            _push(
                report,
                user.push_token,
                PAYMENT_REMINDER_TITLE,
                f"You owe {payment.amount} for cycle #{cycle.cycle_index} in {group_name}.",
                {
                    "type": "payment_reminder",
                    "cycleId": cycle.id,
                    "groupId": cycle.group_id,
                    "paymentId": payment.id,
                },
            )
        else:
            logger.debug("User %s has no push token; skipping push.", user.id)

        if send_mail:
            delivered = send_payment_reminder_email(
                user.email,
                user.name,
                group_name,
                payment.amount,
                cycle.cycle_index,
                cycle.end_date,
            )
            if delivered:
                report.email_sent += 1
            else:
                report.email_failed += 1

    logger.info("Payment reminders: %s", report)
    return report


def send_urgent_reminders(session: Session, now: datetime | None = None) -> ReminderReport:
    """Pushes a last call for payments in active cycles ending within 24 hours."""
    now = now or datetime.now(timezone.utc)
    report = ReminderReport()

    stmt = _unpaid_payments_stmt().where(
        Cycle.status == CycleStatus.ACTIVE,
        Cycle.end_date >= now,
        Cycle.end_date <= now + URGENT_WINDOW,
    )

    for payment in session.execute(stmt).scalars().all():
        report.scanned += 1
        user = payment.user
        cycle = payment.cycle
        if not user.push_token:
            continue

        _push(
            report,
            user.push_token,
            URGENT_REMINDER_TITLE,
            f"Your payment for {cycle.group.name} (Cycle #{cycle.cycle_index}) "
            f"is due within 24 hours.",
            {
                "type": "urgent_payment_reminder",
                "cycleId": cycle.id,
                "groupName": cycle.group.name,
                "amount": str(payment.amount),
            },
        )

    logger.info("Urgent reminders: %s", report)
    return report
