"""Initial schema — users, groups, memberships, cycles, payments.

Revision: 001_initial_schema
Created:  2026-10-17

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  Tables in FK dependency order (users → groups → memberships → cycles
  → payments), then indexes.

Enums are VARCHAR + CHECK (non-native), matching the models, so the same
schema works on PostgreSQL and SQLite.

ON DELETE policies:
  memberships.user_id / group_id  → CASCADE
  cycles.group_id                 → CASCADE
  cycles.recipient_user_id        → SET NULL  (cycle survives its recipient)
  payments.cycle_id / user_id     → CASCADE
The services still delete dependents explicitly, in order, inside the
request transaction; the FK rules are the backstop.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:

    # ── Step 1: users ──────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("push_token", sa.String(255), nullable=True),
        sa.Column(
            "notifications_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
    )

    # ── Step 2: groups ─────────────────────────────────────────────────────

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contribution", sa.Numeric(12, 2), nullable=True),
        sa.Column("frequency", sa.String(50), nullable=True),
        sa.Column("max_members", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.CheckConstraint("LENGTH(TRIM(name)) > 0", name="ck_groups_name_nonempty"),
    )

    # ── Step 3: memberships ────────────────────────────────────────────────

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_memberships_user"),
            nullable=False,
        ),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_memberships_group"),
            nullable=False,
        ),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default="member",
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_memberships"),
        sa.UniqueConstraint("user_id", "group_id", name="uq_memberships_user_group"),
        sa.CheckConstraint("role IN ('admin', 'member')", name="membership_role_enum"),
    )

    # ── Step 4: cycles ─────────────────────────────────────────────────────

    op.create_table(
        "cycles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_cycles_group"),
            nullable=False,
        ),
        sa.Column("cycle_index", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "recipient_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_cycles_recipient"),
            nullable=True,
        ),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_cycles"),
        sa.CheckConstraint("status IN ('active', 'completed')", name="cycle_status_enum"),
    )

    # ── Step 5: payments ───────────────────────────────────────────────────

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "cycle_id",
            sa.Integer(),
            sa.ForeignKey("cycles.id", ondelete="CASCADE", name="fk_payments_cycle"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_payments_user"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "paid",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )

    # ── Step 6: indexes ────────────────────────────────────────────────────

    op.create_index("ix_users_phone",          "users",       ["phone"])
    op.create_index("ix_memberships_user_id",  "memberships", ["user_id"])
    op.create_index("ix_memberships_group_id", "memberships", ["group_id"])
    op.create_index("ix_cycles_group_id",      "cycles",      ["group_id"])
    op.create_index("ix_payments_cycle_id",    "payments",    ["cycle_id"])
    op.create_index("ix_payments_user_id",     "payments",    ["user_id"])
    # The reminder scan filters on paid = false.
    op.create_index("idx_payments_paid",       "payments",    ["paid"])


def downgrade() -> None:
    """Drops everything in reverse dependency order."""
    op.drop_index("idx_payments_paid",       table_name="payments")
    op.drop_index("ix_payments_user_id",     table_name="payments")
    op.drop_index("ix_payments_cycle_id",    table_name="payments")
    op.drop_index("ix_cycles_group_id",      table_name="cycles")
    op.drop_index("ix_memberships_group_id", table_name="memberships")
    op.drop_index("ix_memberships_user_id",  table_name="memberships")
    op.drop_index("ix_users_phone",          table_name="users")

    op.drop_table("payments")
    op.drop_table("cycles")
    op.drop_table("memberships")
    op.drop_table("groups")
    op.drop_table("users")
