"""
services/group_service.py — Group (savings circle) business logic.

Authorization rules:
  - Creating a group:  any authenticated user; the creator becomes its admin
  - Reading a group:   members only (FORBIDDEN 403 for everyone else)
  - Updating/deleting: admins only

Deletion order: payments of every cycle → cycles → memberships → group.
All of it happens inside the request transaction, so a failure part-way
leaves nothing deleted.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from tontine.app.models.cycle import Cycle
from tontine.app.models.group import Group
from tontine.app.models.membership import Membership, MembershipRole
from tontine.app.models.payment import Payment
from tontine.app.serializers import serialize_group, serialize_membership
from tontine.app.services.authorization_service import (
    get_group_or_404,
    require_admin,
    require_member,
)

# Columns a PUT /groups/<id> body may touch.
_UPDATABLE_FIELDS = ("name", "description", "contribution", "frequency", "max_members")


# ── Public service functions ───────────────────────────────────────────────

def create_group(data: dict, creator_id: int, session: Session) -> dict:
    """
    Creates a new group and an admin membership for its creator.

    Args:
        data:       validated CreateGroupSchema output (snake_case keys).
        creator_id: the authenticated user, passed by the route as a plain int.

    Returns: group dict with the caller's role attached.
    """
    group = Group(
        name=data["name"],
        description=data.get("description"),
        contribution=data.get("contribution"),
        frequency=data.get("frequency"),
        max_members=data.get("max_members"),
    )
    session.add(group)
    session.flush()  # populate group.id before creating membership

    membership = Membership(
        user_id=creator_id,
        group_id=group.id,
        role=MembershipRole.ADMIN,
    )
    session.add(membership)
    session.flush()

    result = serialize_group(group)
    result["role"] = MembershipRole.ADMIN.value
    result["memberCount"] = 1
    return result


def list_groups(user_id: int, session: Session) -> list[dict]:
    """
    Returns every group the user belongs to, oldest first, each with the
    caller's role and the group's current member count.
    """
    member_counts = (
        select(
            Membership.group_id.label("group_id"),
            func.count(Membership.id).label("member_count"),
        )
        .group_by(Membership.group_id)
        .subquery()
    )

    stmt = (
        select(Group, Membership.role, member_counts.c.member_count)
        .join(Membership, Group.id == Membership.group_id)
        .join(member_counts, member_counts.c.group_id == Group.id)
        .where(Membership.user_id == user_id)
        .order_by(Group.created_at.asc(), Group.id.asc())
    )

    result = []
    for group, role, member_count in session.execute(stmt).all():
        item = serialize_group(group)
        item["role"] = role.value
        item["memberCount"] = member_count
        result.append(item)
    return result


def get_group(group_id: int, caller_id: int, session: Session) -> dict:
    """
    Returns full group details including memberships with nested users.

    Raises GROUP_NOT_FOUND (404) before FORBIDDEN (403).
    """
    group = get_group_or_404(group_id, session)
    caller_membership = require_member(group_id, caller_id, session)

    memberships = session.execute(
        select(Membership)
        .options(selectinload(Membership.user))
        .where(Membership.group_id == group_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
    ).scalars().all()

    result = serialize_group(group)
    result["role"] = caller_membership.role.value
    result["memberships"] = [serialize_membership(m) for m in memberships]
    return result


def update_group(group_id: int, caller_id: int, data: dict, session: Session) -> dict:
    """
    Applies a partial update. Only keys present in `data` are written, so an
    explicit null clears an optional column while an absent key leaves it.
    """
    group = get_group_or_404(group_id, session)
    require_admin(group_id, caller_id, session)

    for field in _UPDATABLE_FIELDS:
        if field in data:
            setattr(group, field, data[field])

    session.flush()
    return serialize_group(group)


def delete_group(group_id: int, caller_id: int, session: Session) -> None:
    """
    Deletes a group and everything hanging off it.

    Raises:
      AppError(GROUP_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)  — caller is not an admin of the group
    """
    get_group_or_404(group_id, session)
    require_admin(group_id, caller_id, session)

    cycle_ids = list(
        session.execute(
            select(Cycle.id).where(Cycle.group_id == group_id)
        ).scalars().all()
    )

    if cycle_ids:
        session.execute(delete(Payment).where(Payment.cycle_id.in_(cycle_ids)))
    session.execute(delete(Cycle).where(Cycle.group_id == group_id))
    session.execute(delete(Membership).where(Membership.group_id == group_id))
    session.execute(delete(Group).where(Group.id == group_id))
    session.flush()
