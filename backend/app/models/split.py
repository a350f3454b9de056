"""
models/split.py — One entry of an expense's split list.

No business logic. No independent lifecycle: rows are written and replaced
through Expense.split and deleted with their expense.

`position` keeps the list in submission order. `user_id` carries no foreign key.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.ids import OBJECT_ID_LENGTH


class Split(db.Model):
    __tablename__ = "splits"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_splits_amount_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    expense_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)

    user_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        nullable=False,
    )

    amount: Mapped[float] = mapped_column(Float, nullable=False)

    # ── Relationships ──────────────────────────────────────────────────────

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="split",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Split expense_id={self.expense_id} "
            f"user_id={self.user_id} "
            f"amount={self.amount}>"
        )
