"""
models/membership.py — Group member set.

One row per (group, user). Owned by Group: rows are created together with the
group and removed with it.

user_id carries no foreign key. A member id whose user record is gone is a
dangling reference that readers skip (see aggregation_service).
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.ids import OBJECT_ID_LENGTH


class Membership(db.Model):
    __tablename__ = "memberships"

    # Composite key: a user can only appear once in a group's member set.
    group_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        primary_key=True,
        index=True,   # "groups containing user X" lookups
    )

    # ── Relationships ──────────────────────────────────────────────────────

    group: Mapped["Group"] = relationship(  # noqa: F821
        "Group",
        back_populates="memberships",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Membership group_id={self.group_id} "
            f"user_id={self.user_id}>"
        )
