"""
services/payment_service.py — Marking payments and listing them per cycle.

Authorization rules:
  - Mark paid:  the payment's own user, or an admin of the owning group
  - List:       members of the cycle's group

Marking is not guarded against repeats: a second call keeps paid = True and
overwrites paid_at with the new time.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.cycle import Cycle
from tontine.app.models.payment import Payment
from tontine.app.services.authorization_service import is_admin, require_member


def _get_payment_or_404(payment_id: int, session: Session) -> Payment:
    payment = session.get(Payment, payment_id)
    if payment is None:
        raise AppError(
            ErrorCode.PAYMENT_NOT_FOUND,
            f"Payment {payment_id} does not exist.",
            404,
        )
    return payment


def mark_paid(payment_id: int, caller_id: int, session: Session) -> Payment:
    """
    Sets paid = True and paid_at = now (UTC).

    Raises:
      AppError(PAYMENT_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) — caller is neither the payer nor a group admin
    """
    payment = _get_payment_or_404(payment_id, session)

    if payment.user_id != caller_id:
        group_id = payment.cycle.group_id
        if not is_admin(group_id, caller_id, session):
            raise AppError(
                ErrorCode.FORBIDDEN,
                "Only the member who owes this payment or a group admin may mark it paid.",
                403,
            )

    payment.paid = True
    payment.paid_at = datetime.now(timezone.utc)
    session.flush()
    return payment


def list_for_cycle(cycle_id: int, caller_id: int, session: Session) -> list[Payment]:
    """Returns every payment of a cycle with user and cycle loaded."""
    cycle = session.get(Cycle, cycle_id)
    if cycle is None:
        raise AppError(
            ErrorCode.CYCLE_NOT_FOUND,
            f"Cycle {cycle_id} does not exist.",
            404,
        )
    require_member(cycle.group_id, caller_id, session)

    stmt = (
        select(Payment)
        .options(selectinload(Payment.user), selectinload(Payment.cycle))
        .where(Payment.cycle_id == cycle_id)
        .order_by(Payment.id.asc())
    )
    return list(session.execute(stmt).scalars().all())
