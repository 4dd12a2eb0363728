"""
notifications/mailer.py — Email delivery for payment reminders (Flask-Mail).

Disabled when MAIL_SERVER is empty: send_email() logs and returns False.
Transport settings (MAIL_PORT, MAIL_USE_TLS, MAIL_USE_SSL, credentials) are
read by the `mail` extension from app config.
"""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime
from decimal import Decimal
from html import escape

from flask import current_app
from flask_mail import Message

from tontine.app.extensions import mail

logger = logging.getLogger(__name__)


def email_enabled() -> bool:
    return bool(current_app.config.get("MAIL_SERVER"))


def send_email(to_email: str, subject: str, text_body: str, html_body: str | None = None) -> bool:
    if not email_enabled():
        logger.info("Email not sent (MAIL_SERVER not configured): subject=%s", subject)
        return False

    msg = Message(
        subject=subject,
        recipients=[to_email],
        body=text_body,
        html=html_body,
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Email send failed: subject=%s", subject)
        return False
    return True


def send_payment_reminder_email(
        to_email: str,
        user_name: str | None,
        group_name: str,
        amount: Decimal,
        cycle_index: int,
        due_date: datetime | None = None,
) -> bool:
    subject = f"Payment Reminder: {group_name} Cycle #{cycle_index}"
    due = due_date.strftime("%Y-%m-%d") if due_date is not None else "the end of the cycle"
    greeting = user_name or "there"

    text_body = (
        f"Hello {greeting},\n\n"
        f"This is a reminder that your payment of {amount} for {group_name} "
        f"(Cycle #{cycle_index}) is due by {due}.\n\n"
        "Please log in to the Tontine App to make your payment.\n\n"
        "Thank you,\n"
        "The Tontine App Team\n"
    )
    safe_group = escape(group_name)
    safe_greeting = escape(greeting)
    html_body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #4CAF50;">Payment Reminder</h2>'
        f"<p>Hello {safe_greeting},</p>"
        "<p>This is a reminder that your payment for the following group is due:</p>"
        f"<p><strong>Group:</strong> {safe_group}<br>"
        f"<strong>Cycle:</strong> #{cycle_index}<br>"
        f"<strong>Amount Due:</strong> {amount}<br>"
        f"<strong>Due By:</strong> {due}</p>"
        "<p>If you've already made this payment, please disregard this message.</p>"
        "</div>"
    )
    return send_email(to_email, subject, text_body, html_body)
