"""
serializers.py — ORM object → plain dict converters for JSON output.

Pure data-shaping: no DB access, no logic. Keys are camelCase because that is
the mobile client's wire format; monetary amounts stay Decimal and are turned
into strings by the app's JSON provider.

The password hash never appears in any of these projections.
"""

from __future__ import annotations

from datetime import datetime


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_user(user) -> dict:
    """Full profile — only ever returned to the user themself."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "notificationsEnabled": user.notifications_enabled,
        "createdAt": _iso(user.created_at),
    }


def serialize_user_summary(user) -> dict:
    """Projection nested inside memberships, cycles and payments."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
    }


def serialize_group(group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "contribution": group.contribution,
        "frequency": group.frequency,
        "maxMembers": group.max_members,
        "createdAt": _iso(group.created_at),
        "updatedAt": _iso(group.updated_at),
    }


def serialize_membership(
        membership,
        include_user: bool = True,
        include_group: bool = False,
) -> dict:
    data = {
        "id": membership.id,
        "userId": membership.user_id,
        "groupId": membership.group_id,
        "role": membership.role.value,
        "joinedAt": _iso(membership.joined_at),
    }
    if include_user:
        data["user"] = serialize_user_summary(membership.user)
    if include_group:
        data["group"] = serialize_group(membership.group)
    return data


def serialize_cycle(cycle, include_recipient: bool = False) -> dict:
    data = {
        "id": cycle.id,
        "groupId": cycle.group_id,
        "cycleIndex": cycle.cycle_index,
        "startDate": _iso(cycle.start_date),
        "endDate": _iso(cycle.end_date),
        "recipientUserId": cycle.recipient_user_id,
        "status": cycle.status.value,
        "createdAt": _iso(cycle.created_at),
    }
    if include_recipient:
        data["recipient"] = (
            serialize_user_summary(cycle.recipient)
            if cycle.recipient is not None
            else None
        )
    return data


def serialize_payment(payment, nested: bool = False) -> dict:
    data = {
        "id": payment.id,
        "cycleId": payment.cycle_id,
        "userId": payment.user_id,
        "amount": payment.amount,
        "paid": payment.paid,
        "paidAt": _iso(payment.paid_at),
    }
    if nested:
        data["user"] = serialize_user_summary(payment.user)
        data["cycle"] = serialize_cycle(payment.cycle)
    return data
