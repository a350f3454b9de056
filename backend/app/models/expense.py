"""
models/expense.py — Expense table definition.

No business logic. No imports from services or routes.

Key design points:
  - `amount` is a currency-less float, non-negative.
  - group_id, paid_by and created_by are plain references. Whether the payer
    and split users belong to the group is only checked under the "strict"
    validation policy (expense_service.py).
  - Delete is physical; splits go with their expense.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.clock import utcnow
from backend.app.extensions import db
from backend.app.ids import OBJECT_ID_LENGTH, new_object_id
from backend.app.models.split import Split


class Expense(db.Model):
    __tablename__ = "expenses"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        primary_key=True,
        default=new_object_id,
    )

    group_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        nullable=False,
        index=True,   # list by group
    )

    # Who advanced the money.
    paid_by: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        nullable=False,
    )

    # Who logged the entry. Sign-in returns expenses by this column.
    created_by: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        nullable=False,
        index=True,
    )

    amount: Mapped[float] = mapped_column(
        Float,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Refreshed on every update, including empty patches.
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    split: Mapped[list[Split]] = relationship(
        Split,
        back_populates="expense",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Split.position",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Expense id={self.id} "
            f"group_id={self.group_id} "
            f"amount={self.amount}>"
        )
