"""
models/group.py — Group table definition.

No business logic. No imports from services or routes.

A group owns its member set (Membership rows, cascade-deleted with the
group). `creator_id` is always one of the member ids; group_service writes
both in the same insert. Membership does not change after creation.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.clock import utcnow
from backend.app.extensions import db
from backend.app.ids import OBJECT_ID_LENGTH, new_object_id
from backend.app.models.membership import Membership


class Group(db.Model):
    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        primary_key=True,
        default=new_object_id,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Plain reference; the store enforces no foreign key to users.
    creator_id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list[Membership]] = relationship(
        Membership,
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def member_ids(self) -> list[str]:
        """User ids in the member set. Order is not significant."""
        return [m.user_id for m in self.memberships]

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Group id={self.id} name={self.name!r}>"
