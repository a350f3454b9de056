"""
services/aggregation_service.py — The signed-in user's cross-entity view.

Given a user id, builds:
  groups      — every group whose member set contains the user
  expenses    — every expense the user LOGGED (created_by). Expenses where the
                user is only the payer or appears in the split are excluded.
  co_members  — every other member of those groups, once each, resolved to a
                user record

Member ids that no longer resolve to a user are skipped and reported as
UNRESOLVED_CO_MEMBER warnings; they never fail the sign-in. Store errors are
not caught here: they abort the whole sign-in.

The reads are independent queries with no snapshot across them; under
concurrent writes the view may mix slightly different points in time.

Layer rules:
  - No Flask imports. Read-only; nothing is flushed.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.errors import WarningCode, make_warning
from backend.app.models.expense import Expense
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.user import User
from backend.app.services.serialization import (
    expense_to_dict,
    group_to_dict,
    user_to_dict,
)

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _fetch_groups_for_user(user_id: str, session: Session) -> list[Group]:
    stmt = (
        select(Group)
        .join(Membership, Group.id == Membership.group_id)
        .where(Membership.user_id == user_id)
        .options(selectinload(Group.memberships))
    )
    return list(session.execute(stmt).scalars().all())


def _fetch_expenses_created_by(user_id: str, session: Session) -> list[Expense]:
    stmt = (
        select(Expense)
        .where(Expense.created_by == user_id)
        .options(selectinload(Expense.split))
    )
    return list(session.execute(stmt).scalars().all())


def _collect_co_member_ids(groups, user_id: str) -> list[str]:
    """
    Union of the member ids of `groups`, minus `user_id`.

    A user who shares several groups with `user_id` appears once. The result
    keeps first-seen order.
    """
    seen: set[str] = set()
    co_member_ids: list[str] = []
    for group in groups:
        for member_id in group.member_ids:
            if member_id == user_id or member_id in seen:
                continue
            seen.add(member_id)
            co_member_ids.append(member_id)
    return co_member_ids


def _resolve_users(user_ids: list[str], session: Session) -> tuple[list[User], list[str]]:
    """
    Loads the users for `user_ids`.

    Returns (users in the order of `user_ids`, ids with no user record).
    """
    if not user_ids:
        return [], []

    rows = session.execute(
        select(User).where(User.id.in_(user_ids))
    ).scalars().all()
    by_id = {user.id: user for user in rows}

    users = [by_id[uid] for uid in user_ids if uid in by_id]
    missing = [uid for uid in user_ids if uid not in by_id]
    return users, missing


def _unresolved_co_member_warnings(missing_ids: list[str]) -> list[dict]:
    return [
        make_warning(
            WarningCode.UNRESOLVED_CO_MEMBER,
            f"Group member {uid} has no user record and was left out.",
            user_id=uid,
        )
        for uid in missing_ids
    ]


# ── Public service functions ───────────────────────────────────────────────

def build_member_view(user_id: str, session: Session) -> tuple[dict, list[dict]]:
    """
    Assembles the groups / expenses / co-members view for `user_id`.

    Returns:
        ({"groups": [...], "expenses": [...], "co_members": [...]}, warnings)
    """
    groups = _fetch_groups_for_user(user_id, session)
    expenses = _fetch_expenses_created_by(user_id, session)

    co_member_ids = _collect_co_member_ids(groups, user_id)
    co_members, missing_ids = _resolve_users(co_member_ids, session)

    if missing_ids:
        logger.warning(
            "User %s shares groups with %d member id(s) that no longer resolve",
            user_id,
            len(missing_ids),
        )

    view = {
        "groups": [group_to_dict(g) for g in groups],
        "expenses": [expense_to_dict(e) for e in expenses],
        "co_members": [user_to_dict(u) for u in co_members],
    }
    return view, _unresolved_co_member_warnings(missing_ids)
