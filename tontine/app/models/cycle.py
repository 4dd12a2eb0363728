"""
models/cycle.py — Cycle table definition.

One cycle is one round of the rotating payout. No business logic here.

Key design points:
  - cycle_index is supplied by the caller and is NOT unique per group;
    nothing checks monotonicity either.
  - status has no transition rules: an admin may write either value at any time.
  - recipient_user_id is ON DELETE SET NULL — deleting an account leaves the
    cycle in place without a recipient.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tontine.app.extensions import db
from tontine.app.models.membership import _enum_values


class CycleStatus(str, enum.Enum):
    ACTIVE    = "active"
    COMPLETED = "completed"


class Cycle(db.Model):
    __tablename__ = "cycles"

    id: Mapped[int] = mapped_column(primary_key=True)

    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 1-based by convention; not validated.
    cycle_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    recipient_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    status: Mapped[CycleStatus] = mapped_column(
        Enum(
            CycleStatus,
            name="cycle_status_enum",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=CycleStatus.ACTIVE,
        server_default=CycleStatus.ACTIVE.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    group: Mapped["Group"] = relationship(  # noqa: F821
        "Group",
        back_populates="cycles",
    )

    recipient: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="cycles_received",
        foreign_keys=[recipient_user_id],
    )

    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="cycle",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Payment.id",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Cycle id={self.id} "
            f"group_id={self.group_id} "
            f"index={self.cycle_index} "
            f"status={self.status}>"
        )
