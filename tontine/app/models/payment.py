"""
models/payment.py — Payment table definition.

A payment is one member's obligation for one cycle. The amount is copied from
the group's contribution when the cycle is created and never recomputed.

(cycle_id, user_id) is expected to be unique. Only the cycle fan-out writes
payment rows, so this is not a DB constraint.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Numeric, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tontine.app.extensions import db


class Payment(db.Model):
    __tablename__ = "payments"

    __table_args__ = (
        # The reminder scan filters on paid = false.
        Index("idx_payments_paid", "paid"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    cycle_id: Mapped[int] = mapped_column(
        ForeignKey("cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # NUMERIC(12, 2). Never Float.
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    cycle: Mapped["Cycle"] = relationship(  # noqa: F821
        "Cycle",
        back_populates="payments",
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="payments",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Payment id={self.id} "
            f"cycle_id={self.cycle_id} "
            f"user_id={self.user_id} "
            f"amount={self.amount} "
            f"paid={self.paid}>"
        )
