"""
models/group.py — Group (savings circle) table definition.

No business logic. No imports from services or routes.

FK policy: memberships and cycles reference groups with ON DELETE CASCADE.
group_service.delete_group() still removes dependents explicitly, in order,
inside the request transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tontine.app.extensions import db


class Group(db.Model):
    # 'groups' is a reserved word in some SQL dialects; SQLAlchemy handles quoting.
    __tablename__ = "groups"

    __table_args__ = (
        # Also enforced by the marshmallow schema.
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Per-cycle contribution. NULL means cycle_service falls back to its
    # default amount when fanning out payments.
    contribution: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )

    # Free-form label ("weekly", "monthly", or a custom string).
    frequency: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    max_members: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["Membership"]] = relationship(  # noqa: F821
        "Membership",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Membership.joined_at",
    )

    cycles: Mapped[list["Cycle"]] = relationship(  # noqa: F821
        "Cycle",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Cycle.cycle_index",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Group id={self.id} name={self.name!r}>"
