"""
notifications/push.py — Expo push notification client.

Sends one message per call to the Expo push HTTP API. Delivery problems are
logged and reported as False; nothing here raises into the caller's loop.

Push tokens are never written to the log.
"""

from __future__ import annotations

import logging
import re

import requests
from flask import current_app

logger = logging.getLogger(__name__)

_EXPO_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[.+\]$")


def is_expo_push_token(token: str | None) -> bool:
    return bool(token) and _EXPO_TOKEN_RE.match(token) is not None


def send_push_notification(
        token: str,
        title: str,
        body: str,
        data: dict | None = None,
) -> bool:
    """
    Delivers a single push notification.

    Returns True when Expo accepted the message, False otherwise (invalid
    token, transport error, or an error ticket in the response).
    """
    if not is_expo_push_token(token):
        logger.warning("Skipping push %r: not a valid Expo push token.", title)
        return False

    message = {
        "to": token,
        "sound": "default",
        "title": title,
        "body": body,
        "data": data or {},
    }

    try:
        r = requests.post(
            current_app.config["EXPO_PUSH_URL"],
            json=[message],
            headers={"Accept": "application/json"},
            timeout=current_app.config.get("PUSH_TIMEOUT_SECONDS", 10),
        )
        r.raise_for_status()
        tickets = r.json().get("data", [])
    except (requests.RequestException, ValueError):
        logger.exception("Push %r could not be delivered.", title)
        return False

    # A single message may come back as one ticket object rather than a list.
    if isinstance(tickets, dict):
        tickets = [tickets]

    failed = [t for t in tickets if t.get("status") == "error"]
    if failed:
        logger.warning(
            "Push %r rejected by Expo: %s",
            title,
            failed[0].get("message", "unknown error"),
        )
        return False

    return True
