"""
services/group_service.py — Group creation and member resolution.

Rules enforced here:
  - The creator must resolve to a registered user (INVALID_CREATOR, 400).
  - The creator is always a member, whether or not their email is also in
    the member list.
  - Member emails that do not resolve are dropped. This is a deliberate
    best-effort policy: the dropped emails are returned as warnings so the
    caller can see them, but they never fail the request.
  - The member set holds each user id once.

Groups are immutable after creation: there is no add/remove member operation.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility; only flush here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode, WarningCode, make_warning
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.user import User
from backend.app.services.serialization import group_to_dict

logger = logging.getLogger(__name__)


@dataclass
class MemberResolution:
    """Outcome of resolving member emails: ids found, inputs skipped."""

    member_ids: list[str] = field(default_factory=list)
    skipped_emails: list[str] = field(default_factory=list)


# ── Private helpers ────────────────────────────────────────────────────────

def _find_user_id_by_email(email: str, session: Session) -> str | None:
    return session.execute(
        select(User.id).where(User.email == email)
    ).scalar_one_or_none()


def _resolve_creator(creator_email: str, session: Session) -> str:
    """Returns the creator's user id or raises INVALID_CREATOR (400)."""
    creator_id = _find_user_id_by_email(creator_email, session)
    if creator_id is None:
        raise AppError(
            ErrorCode.INVALID_CREATOR,
            "The group creator does not match any registered user.",
            400,
            field="creator_email",
        )
    return creator_id


def _resolve_members(
        member_emails: list[str],
        creator_id: str,
        session: Session,
) -> MemberResolution:
    """
    Resolves each email on its own and builds the member set.

    The creator id is added first so it is present even when the creator's
    email is missing from `member_emails`. Repeated emails and emails of
    users already in the set do not add a second entry. Each distinct
    unresolvable email is reported once in `skipped_emails`.
    """
    resolution = MemberResolution(member_ids=[creator_id])
    seen_ids = {creator_id}
    seen_emails: set[str] = set()

    for email in member_emails:
        if email in seen_emails:
            continue
        seen_emails.add(email)

        user_id = _find_user_id_by_email(email, session)
        if user_id is None:
            resolution.skipped_emails.append(email)
            continue
        if user_id not in seen_ids:
            seen_ids.add(user_id)
            resolution.member_ids.append(user_id)

    return resolution


def _unresolved_email_warnings(skipped_emails: list[str]) -> list[dict]:
    return [
        make_warning(
            WarningCode.UNRESOLVED_MEMBER_EMAIL,
            f"No registered user has the email '{email}'; it was not added.",
            email=email,
        )
        for email in skipped_emails
    ]


# ── Public service functions ───────────────────────────────────────────────

def create_group(
        name: str,
        creator_email: str,
        member_emails: list[str],
        session: Session,
) -> tuple[dict, list[dict]]:
    """
    Creates a group with its resolved member set.

    All reads happen before the single insert, so a failure leaves nothing
    behind. A membership change between resolution and insert is not
    detected.

    Raises:
      AppError(INVALID_CREATOR, 400) — creator email does not resolve

    Returns:
        (group dict, warnings) — one UNRESOLVED_MEMBER_EMAIL warning per
        dropped email.
    """
    creator_id = _resolve_creator(creator_email, session)
    resolution = _resolve_members(member_emails, creator_id, session)

    group = Group(name=name, creator_id=creator_id)
    group.memberships = [
        Membership(user_id=user_id) for user_id in resolution.member_ids
    ]
    session.add(group)
    session.flush()

    if resolution.skipped_emails:
        logger.info(
            "Group %s created without %d unresolved member email(s)",
            group.id,
            len(resolution.skipped_emails),
        )

    return group_to_dict(group), _unresolved_email_warnings(resolution.skipped_emails)
