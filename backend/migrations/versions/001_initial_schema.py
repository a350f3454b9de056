"""Initial schema — users, groups, memberships, expenses, splits.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only: never edit this file once it has been applied to a database.
Schema changes go in a new revision.

Creation order:
  users → groups → memberships → expenses → splits

References between users, groups and expenses are plain id columns with no
foreign key: a member id or payer id may outlive its user. Only the owned
rows cascade:
  memberships.group_id → groups.id    ON DELETE CASCADE
  splits.expense_id    → expenses.id  ON DELETE CASCADE
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None

_ID = sa.String(24)


def upgrade() -> None:
    # ── users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", _ID, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("mobile_number", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("mobile_number", name="uq_users_mobile_number"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
    )

    # ── groups ─────────────────────────────────────────────────────────────
    op.create_table(
        "groups",
        sa.Column("id", _ID, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("creator_id", _ID, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
    )

    # ── memberships ────────────────────────────────────────────────────────
    op.create_table(
        "memberships",
        sa.Column("group_id", _ID, nullable=False),
        sa.Column("user_id", _ID, nullable=False),
        sa.PrimaryKeyConstraint("group_id", "user_id", name="pk_memberships"),
        sa.ForeignKeyConstraint(
            ["group_id"], ["groups.id"],
            name="fk_memberships_group_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])

    # ── expenses ───────────────────────────────────────────────────────────
    op.create_table(
        "expenses",
        sa.Column("id", _ID, nullable=False),
        sa.Column("group_id", _ID, nullable=False),
        sa.Column("paid_by", _ID, nullable=False),
        sa.Column("created_by", _ID, nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("description", sa.String(255), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
    )
    op.create_index("ix_expenses_group_id", "expenses", ["group_id"])
    op.create_index("ix_expenses_created_by", "expenses", ["created_by"])

    # ── splits ─────────────────────────────────────────────────────────────
    op.create_table(
        "splits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("expense_id", _ID, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("user_id", _ID, nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_splits"),
        sa.ForeignKeyConstraint(
            ["expense_id"], ["expenses.id"],
            name="fk_splits_expense_id",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("amount >= 0", name="ck_splits_amount_non_negative"),
    )
    op.create_index("ix_splits_expense_id", "splits", ["expense_id"])


def downgrade() -> None:
    """Drops every table in reverse dependency order. Destroys all data."""
    op.drop_index("ix_splits_expense_id", table_name="splits")
    op.drop_table("splits")

    op.drop_index("ix_expenses_created_by", table_name="expenses")
    op.drop_index("ix_expenses_group_id", table_name="expenses")
    op.drop_table("expenses")

    op.drop_index("ix_memberships_user_id", table_name="memberships")
    op.drop_table("memberships")

    op.drop_table("groups")
    op.drop_table("users")
