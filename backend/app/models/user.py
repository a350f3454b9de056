"""
models/user.py — User table definition.

No business logic. No imports from services or routes.

A user's groups are not stored here: Membership rows owned by Group are the
only record of membership, and the user's group list is derived by query.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.clock import utcnow
from backend.app.extensions import db
from backend.app.ids import OBJECT_ID_LENGTH, new_object_id


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(OBJECT_ID_LENGTH),
        primary_key=True,
        default=new_object_id,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Two independent uniqueness domains; registration is blocked by a match
    # on either one.
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    mobile_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
    )

    # bcrypt output, salt embedded. Never serialised.
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} email={self.email!r}>"
