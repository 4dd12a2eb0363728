"""
services/membership_service.py — Adding, listing, re-roling and removing members.

Authorization rules:
  - Adding a member:     group admin only
  - Changing a role:     group admin only
  - Removing a member:   the member themself, or a group admin
  - Listing memberships: restricted to groups the caller belongs to

Removing a member also deletes their payments in every cycle of that group
and clears them as recipient of any of its cycles,
before the membership row itself, in the same transaction.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.cycle import Cycle
from tontine.app.models.membership import Membership, MembershipRole
from tontine.app.models.payment import Payment
from tontine.app.models.user import User
from tontine.app.services.authorization_service import (
    get_group_or_404,
    get_membership,
    is_admin,
    require_admin,
    require_member,
)


# ── Private helpers ────────────────────────────────────────────────────────

def _parse_role(role: str | None) -> MembershipRole:
    """Maps the wire value to MembershipRole; None means the default role."""
    if role is None:
        return MembershipRole.MEMBER
    try:
        return MembershipRole(role)
    except ValueError:
        raise AppError(
            ErrorCode.INVALID_ROLE,
            f"Role must be one of: {', '.join(r.value for r in MembershipRole)}.",
            400,
            field="role",
        )


def _get_membership_or_404(membership_id: int, session: Session) -> Membership:
    membership = session.get(Membership, membership_id)
    if membership is None:
        raise AppError(
            ErrorCode.MEMBERSHIP_NOT_FOUND,
            f"Membership {membership_id} does not exist.",
            404,
        )
    return membership


def _count_members(group_id: int, session: Session) -> int:
    return session.execute(
        select(func.count(Membership.id)).where(Membership.group_id == group_id)
    ).scalar_one()


# ── Public service functions ───────────────────────────────────────────────

def add_member(
        group_id: int,
        target_user_id: int,
        caller_id: int,
        session: Session,
        role: str | None = None,
) -> Membership:
    """
    Adds a user to a group. Only a group admin may call this.

    Raises:
      AppError(GROUP_NOT_FOUND, 404)  — group does not exist
      AppError(FORBIDDEN, 403)        — caller is not an admin of the group
      AppError(INVALID_ROLE, 400)     — role is not admin/member
      AppError(USER_NOT_FOUND, 404)   — target user does not exist
      AppError(ALREADY_MEMBER, 409)   — user is already in the group
      AppError(GROUP_FULL, 422)       — group already has max_members members
    """
    group = get_group_or_404(group_id, session)
    require_admin(group_id, caller_id, session)
    parsed_role = _parse_role(role)

    target_user = session.get(User, target_user_id)
    if target_user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {target_user_id} does not exist.",
            404,
        )

    if get_membership(group_id, target_user_id, session) is not None:
        raise AppError(
            ErrorCode.ALREADY_MEMBER,
            f"User {target_user_id} is already a member of group {group_id}.",
            409,
        )

    if group.max_members is not None and _count_members(group_id, session) >= group.max_members:
        raise AppError(
            ErrorCode.GROUP_FULL,
            f"Group {group_id} already has the maximum of {group.max_members} members.",
            422,
        )

    membership = Membership(
        user_id=target_user_id,
        group_id=group_id,
        role=parsed_role,
    )
    session.add(membership)
    session.flush()
    return membership


def list_memberships(
        caller_id: int,
        session: Session,
        user_id: int | None = None,
        group_id: int | None = None,
) -> list[Membership]:
    """
    Returns memberships matching the optional filters, limited to groups the
    caller is a member of. Filtering by a group the caller is not in is 403.
    """
    if group_id is not None:
        get_group_or_404(group_id, session)
        require_member(group_id, caller_id, session)

    caller_groups = select(Membership.group_id).where(Membership.user_id == caller_id)

    stmt = (
        select(Membership)
        .options(selectinload(Membership.user), selectinload(Membership.group))
        .where(Membership.group_id.in_(caller_groups))
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
    )
    if user_id is not None:
        stmt = stmt.where(Membership.user_id == user_id)
    if group_id is not None:
        stmt = stmt.where(Membership.group_id == group_id)

    return list(session.execute(stmt).scalars().all())


def update_role(
        membership_id: int,
        role: str,
        caller_id: int,
        session: Session,
) -> Membership:
    """Changes a membership's role. Caller must be an admin of that group."""
    membership = _get_membership_or_404(membership_id, session)
    require_admin(membership.group_id, caller_id, session)

    membership.role = _parse_role(role)
    session.flush()
    return membership


def remove_member(membership_id: int, caller_id: int, session: Session) -> None:
    """
    Removes a membership and the member's payments in that group's cycles,
    and unassigns them from any cycle of the group they were due to receive.

    Raises:
      AppError(MEMBERSHIP_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) — caller is neither the member nor a group admin
    """
    membership = _get_membership_or_404(membership_id, session)
    group_id = membership.group_id
    member_id = membership.user_id

    if caller_id != member_id and not is_admin(group_id, caller_id, session):
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You may only remove yourself from a group unless you are an admin.",
            403,
        )

    cycle_ids = list(
        session.execute(
            select(Cycle.id).where(Cycle.group_id == group_id)
        ).scalars().all()
    )
    if cycle_ids:
        session.execute(
            delete(Payment).where(
                Payment.user_id == member_id,
                Payment.cycle_id.in_(cycle_ids),
            )
        )
        session.execute(
            update(Cycle)
            .where(Cycle.group_id == group_id, Cycle.recipient_user_id == member_id)
            .values(recipient_user_id=None)
        )

    session.delete(membership)
    session.flush()
