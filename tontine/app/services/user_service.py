"""
services/user_service.py — Profile, settings and account operations.

Every operation on /users/<id> is self-only: the path id must equal the
authenticated caller, otherwise FORBIDDEN (403). Looking a user up by phone
is open to any authenticated user so admins can find people to invite.

Account deletion order: payments → recipient references on cycles (set to
NULL) → memberships → user, inside the request transaction.

Layer rules:
  - No Flask imports beyond what auth_service needs for password hashing.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.cycle import Cycle
from tontine.app.models.membership import Membership
from tontine.app.models.payment import Payment
from tontine.app.models.user import User
from tontine.app.serializers import serialize_user, serialize_user_summary
from tontine.app.services.auth_service import hash_password, verify_password


# ── Private helpers ────────────────────────────────────────────────────────

def _require_self(user_id: int, caller_id: int) -> None:
    if user_id != caller_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You may only access your own account.",
            403,
        )


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return user


# ── Public service functions ───────────────────────────────────────────────

def get_user(user_id: int, caller_id: int, session: Session) -> dict:
    """
    Returns the caller's own profile.

    Raises:
      AppError(FORBIDDEN, 403)      — user_id is not the caller
      AppError(USER_NOT_FOUND, 404) — account deleted after the token was issued
    """
    _require_self(user_id, caller_id)
    return serialize_user(_get_user_or_404(user_id, session))


def find_by_phone(phone: str, session: Session) -> dict:
    user = session.execute(
        select(User).where(User.phone == phone).order_by(User.id.asc())
    ).scalars().first()
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"No user is registered with phone number '{phone}'.",
            404,
            field="phone",
        )
    return serialize_user_summary(user)


def update_profile(user_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """Writes name and/or phone; absent keys are left untouched."""
    _require_self(user_id, caller_id)
    user = _get_user_or_404(user_id, session)

    for field in ("name", "phone"):
        if field in data:
            setattr(user, field, data[field])

    session.flush()
    return serialize_user(user)


def change_password(
        user_id: int,
        caller_id: int,
        current_password: str,
        new_password: str,
        session: Session,
) -> None:
    """
    Raises:
      AppError(FORBIDDEN, 403)
      AppError(INVALID_CREDENTIALS, 401) — current password does not match
    """
    _require_self(user_id, caller_id)
    user = _get_user_or_404(user_id, session)

    if not verify_password(current_password, user.password_hash):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The current password is incorrect.",
            401,
            field="currentPassword",
        )

    user.password_hash = hash_password(new_password)
    session.flush()


def update_settings(
        user_id: int,
        caller_id: int,
        notifications_enabled: bool,
        session: Session,
) -> dict:
    _require_self(user_id, caller_id)
    user = _get_user_or_404(user_id, session)

    user.notifications_enabled = notifications_enabled
    session.flush()
    return {"notificationsEnabled": user.notifications_enabled}


def set_push_token(caller_id: int, push_token: str | None, session: Session) -> None:
    """Stores (or clears, with None) the Expo push token of the caller."""
    user = _get_user_or_404(caller_id, session)
    user.push_token = push_token
    session.flush()


def delete_account(user_id: int, caller_id: int, session: Session) -> None:
    """Deletes the caller's account and everything that references it."""
    _require_self(user_id, caller_id)
    _get_user_or_404(user_id, session)

    session.execute(delete(Payment).where(Payment.user_id == user_id))
    session.execute(
        update(Cycle)
        .where(Cycle.recipient_user_id == user_id)
        .values(recipient_user_id=None)
    )
    session.execute(delete(Membership).where(Membership.user_id == user_id))
    session.execute(delete(User).where(User.id == user_id))
    session.flush()
