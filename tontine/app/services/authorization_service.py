"""
services/authorization_service.py — Membership-based permission checks.

A user's capability over a group is decided entirely by their Membership row:
  - no row          → FORBIDDEN (403) for everything group-scoped
  - role = member   → read access
  - role = admin    → read + mutate

Every service that touches group-scoped data calls into this module instead
of re-implementing the lookup.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Existence checks come first, so a missing group is 404 for everyone.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.group import Group
from tontine.app.models.membership import Membership, MembershipRole


def get_group_or_404(group_id: int, session: Session) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND (404)."""
    group = session.get(Group, group_id)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def get_membership(group_id: int, user_id: int, session: Session) -> Membership | None:
    """Returns the (user, group) membership row, or None."""
    return session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()


def require_member(group_id: int, user_id: int, session: Session) -> Membership:
    """
    Raises FORBIDDEN (403) if user_id is not a member of group_id.
    Non-members receive 403, not 404.
    """
    membership = get_membership(group_id, user_id, session)
    if membership is None:
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of group {group_id}.",
            403,
        )
    return membership


def require_admin(group_id: int, user_id: int, session: Session) -> Membership:
    """Raises FORBIDDEN (403) unless user_id holds an admin membership in group_id."""
    membership = get_membership(group_id, user_id, session)
    if membership is None or membership.role != MembershipRole.ADMIN:
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"Only an admin of group {group_id} may do this.",
            403,
        )
    return membership


def is_admin(group_id: int, user_id: int, session: Session) -> bool:
    membership = get_membership(group_id, user_id, session)
    return membership is not None and membership.role == MembershipRole.ADMIN
