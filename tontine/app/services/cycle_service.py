"""
services/cycle_service.py — Cycle business logic and payment fan-out.

Creating a cycle snapshots the group's memberships at that instant and writes
one unpaid Payment per member, all in the caller's transaction:

    cycle  = Cycle(group, index, dates, recipient, status)
    amount = group.contribution, or DEFAULT_CONTRIBUTION when unset
    for each membership: Payment(cycle, member, amount, paid=False)

Members who join later get no retroactive payment for existing cycles.
Creation is not idempotent: repeating the same index yields a second cycle
and a second set of payments.

Authorization rules:
  - Create, update, delete, auto-assign: group admin only
  - List, get:                           group members

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.cycle import Cycle, CycleStatus
from tontine.app.models.membership import Membership
from tontine.app.models.payment import Payment
from tontine.app.serializers import serialize_cycle
from tontine.app.services.authorization_service import (
    get_group_or_404,
    get_membership,
    require_admin,
    require_member,
)

# Per-member amount when the group has no contribution set.
DEFAULT_CONTRIBUTION = Decimal("100.00")


# ── Private helpers ────────────────────────────────────────────────────────

def _get_cycle_or_404(cycle_id: int, session: Session) -> Cycle:
    """Returns the Cycle or raises CYCLE_NOT_FOUND (404)."""
    cycle = session.get(Cycle, cycle_id)
    if cycle is None:
        raise AppError(
            ErrorCode.CYCLE_NOT_FOUND,
            f"Cycle {cycle_id} does not exist.",
            404,
        )
    return cycle


def _parse_status(status: str | None) -> CycleStatus:
    if status is None:
        return CycleStatus.ACTIVE
    try:
        return CycleStatus(status)
    except ValueError:
        raise AppError(
            ErrorCode.INVALID_STATUS,
            f"Status must be one of: {', '.join(s.value for s in CycleStatus)}.",
            400,
            field="status",
        )


def _validate_recipient(group_id: int, recipient_user_id: int | None, session: Session) -> None:
    """
    Raises RECIPIENT_NOT_MEMBER (400) if a recipient is given but is not a
    member of the group. None is always accepted.
    """
    if recipient_user_id is None:
        return
    if get_membership(group_id, recipient_user_id, session) is None:
        raise AppError(
            ErrorCode.RECIPIENT_NOT_MEMBER,
            f"User {recipient_user_id} is not a member of group {group_id}.",
            400,
            field="recipientUserId",
        )


def _get_memberships(group_id: int, session: Session) -> list[Membership]:
    """Current memberships, oldest first (user id breaks joined_at ties)."""
    stmt = (
        select(Membership)
        .where(Membership.group_id == group_id)
        .order_by(Membership.joined_at.asc(), Membership.user_id.asc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Public service functions ───────────────────────────────────────────────

def create_cycle(group_id: int, data: dict, caller_id: int, session: Session) -> Cycle:
    """
    Creates a cycle and fans out one unpaid payment per current member.

    Args:
        data: validated CreateCycleSchema output — cycle_index (required),
              start_date, end_date, recipient_user_id, status (optional).

    Raises:
      AppError(GROUP_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)             — caller is not a group admin
      AppError(INVALID_STATUS, 400)
      AppError(RECIPIENT_NOT_MEMBER, 400)

    Returns: the new Cycle with its payments attached.
    """
    group = get_group_or_404(group_id, session)
    require_admin(group_id, caller_id, session)

    status = _parse_status(data.get("status"))
    recipient_user_id = data.get("recipient_user_id")
    _validate_recipient(group_id, recipient_user_id, session)

    cycle = Cycle(
        group_id=group_id,
        cycle_index=data["cycle_index"],
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
        recipient_user_id=recipient_user_id,
        status=status,
    )
    session.add(cycle)
    session.flush()  # populate cycle.id before writing payments

    amount = group.contribution if group.contribution is not None else DEFAULT_CONTRIBUTION

    for membership in _get_memberships(group_id, session):
        session.add(Payment(
            cycle_id=cycle.id,
            user_id=membership.user_id,
            amount=amount,
            paid=False,
        ))

    session.flush()
    return cycle


def list_cycles(group_id: int, caller_id: int, session: Session) -> list[Cycle]:
    """Returns the group's cycles ordered by cycle_index. Members only."""
    get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    stmt = (
        select(Cycle)
        .where(Cycle.group_id == group_id)
        .order_by(Cycle.cycle_index.asc(), Cycle.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def get_cycle(cycle_id: int, caller_id: int, session: Session) -> dict:
    """
    Returns the cycle with its recipient and a payment summary:
    paidCount / totalCount over the cycle's payments.
    """
    cycle = _get_cycle_or_404(cycle_id, session)
    require_member(cycle.group_id, caller_id, session)

    paid_count, total_count = session.execute(
        select(
            func.count(Payment.id).filter(Payment.paid.is_(True)),
            func.count(Payment.id),
        ).where(Payment.cycle_id == cycle_id)
    ).one()

    result = serialize_cycle(cycle, include_recipient=True)
    result["paidCount"] = paid_count or 0
    result["totalCount"] = total_count or 0
    return result


def update_cycle(cycle_id: int, data: dict, caller_id: int, session: Session) -> Cycle:
    """
    Updates recipient and/or status. Only keys present in `data` are applied;
    an explicit None recipient clears it. Status may move in any direction.
    Validation happens before any write, so a rejected update changes nothing.
    """
    cycle = _get_cycle_or_404(cycle_id, session)
    require_admin(cycle.group_id, caller_id, session)

    if "status" in data:
        status = _parse_status(data["status"])
    if "recipient_user_id" in data:
        _validate_recipient(cycle.group_id, data["recipient_user_id"], session)

    if "recipient_user_id" in data:
        cycle.recipient_user_id = data["recipient_user_id"]
    if "status" in data:
        cycle.status = status

    session.flush()
    return cycle


def delete_cycle(cycle_id: int, caller_id: int, session: Session) -> None:
    """Deletes a cycle's payments, then the cycle. Admins only."""
    cycle = _get_cycle_or_404(cycle_id, session)
    require_admin(cycle.group_id, caller_id, session)

    session.execute(delete(Payment).where(Payment.cycle_id == cycle_id))
    session.execute(delete(Cycle).where(Cycle.id == cycle_id))
    session.flush()


def auto_assign_recipient(cycle_id: int, caller_id: int, session: Session) -> Cycle:
    """
    Assigns the cycle's recipient to the member who has received the fewest
    payouts in this group so far. Ties go to the earliest joiner, then the
    lowest user id. Cycles are the only history, so the count excludes this
    cycle and re-running the assignment is stable.

    Raises:
      AppError(CYCLE_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)    — caller is not a group admin
      AppError(NO_MEMBERS, 422)   — the group has no members
    """
    cycle = _get_cycle_or_404(cycle_id, session)
    require_admin(cycle.group_id, caller_id, session)

    memberships = _get_memberships(cycle.group_id, session)
    if not memberships:
        raise AppError(
            ErrorCode.NO_MEMBERS,
            f"Group {cycle.group_id} has no members to assign.",
            422,
        )

    received = dict(
        session.execute(
            select(Cycle.recipient_user_id, func.count(Cycle.id))
            .where(
                Cycle.group_id == cycle.group_id,
                Cycle.recipient_user_id.is_not(None),
                Cycle.id != cycle_id,
            )
            .group_by(Cycle.recipient_user_id)
        ).all()
    )

    # min() keeps the first of equal keys, and memberships are already in
    # tie-break order.
    chosen = min(memberships, key=lambda m: received.get(m.user_id, 0))

    cycle.recipient_user_id = chosen.user_id
    session.flush()
    return cycle
