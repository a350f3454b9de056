"""
services/expense_service.py — Expense CRUD and the validation policy.

Contracts:
  - Create: assigns id, created_at and modified_at; stores the submitted
    amount, group, payer, creator and split list as given.
  - Get:    EXPENSE_NOT_FOUND (404) if missing or if the id is malformed.
  - Update: field-level merge: absent fields are left alone, a present
    `split` replaces the whole list. modified_at is refreshed on every call
    and never moves backwards. No content is returned.
  - Delete: physical. Succeeds whether or not a row matched.
  - List:   all expenses of a group, in store order.

Validation policy:
  The payer and split users are NOT required to belong to the group, and the
  split amounts are NOT required to add up to the total, unless the app is
  configured with the "strict" policy. Each policy is a tuple of validators
  run against the final expense state before the write; a validator raises
  AppError (400) naming the rule it checks.

    permissive  → ()                        (default)
    strict      → group exists, payer is a member,
                  every split user is a member, split sum == amount

Layer rules:
  - No Flask imports. The route passes the policy name from app config.
  - Commits are the route's responsibility; only flush here.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backend.app.clock import as_utc, utcnow
from backend.app.errors import AppError, ErrorCode
from backend.app.ids import normalize_object_id
from backend.app.models.expense import Expense
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.split import Split
from backend.app.services.serialization import expense_to_dict

logger = logging.getLogger(__name__)

# Split sums are compared to the total with half a cent of slack: amounts
# are floats, so 0.1 + 0.2 must still match 0.3.
SPLIT_SUM_TOLERANCE = 0.005

PATCHABLE_FIELDS = ("group_id", "paid_by", "amount", "description", "split")


# ── Private helpers ────────────────────────────────────────────────────────

def _require_id(raw_id: str, field: str) -> str:
    """Returns the normalised id or raises INVALID_ID (400)."""
    expense_id = normalize_object_id(raw_id)
    if expense_id is None:
        raise AppError(
            ErrorCode.INVALID_ID,
            f"'{raw_id}' is not a valid identifier.",
            400,
            field=field,
        )
    return expense_id


def _get_expense_or_404(expense_id: str, session: Session) -> Expense:
    """Returns the Expense or raises EXPENSE_NOT_FOUND (404)."""
    expense = session.get(Expense, expense_id)
    if expense is None:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {expense_id} does not exist.",
            404,
        )
    return expense


def _get_member_ids(group_id: str, session: Session) -> list[str]:
    """Returns the user ids of a group's member set."""
    stmt = select(Membership.user_id).where(Membership.group_id == group_id)
    return list(session.execute(stmt).scalars().all())


def _build_split_rows(split_data: list[dict]) -> list[Split]:
    return [
        Split(position=index, user_id=s["user_id"], amount=s["amount"])
        for index, s in enumerate(split_data)
    ]


def _next_modified_at(previous: datetime | None) -> datetime:
    """now, or the previous stamp if the clock went backwards."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and previous > now:
        return previous
    return now


# ── Validators ─────────────────────────────────────────────────────────────
#
# Signature: (state, session) -> None, raising AppError on violation.
# `state` is the full expense as it would be written:
#   {"group_id", "paid_by", "amount", "split": [{"user_id", "amount"}], ...}
# ──────────────────────────────────────────────────────────────────────────

def _validate_group_exists(state: dict, session: Session) -> None:
    if session.get(Group, state["group_id"]) is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {state['group_id']} does not exist.",
            400,
            field="group_id",
        )


def _validate_payer_is_member(state: dict, session: Session) -> None:
    member_ids = _get_member_ids(state["group_id"], session)
    if state["paid_by"] not in member_ids:
        raise AppError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"User {state['paid_by']} is not a member of group {state['group_id']}.",
            400,
            field="paid_by",
        )


def _validate_split_users_are_members(state: dict, session: Session) -> None:
    """Raises SPLIT_USER_NOT_MEMBER for the first split user not in the group."""
    member_set = set(_get_member_ids(state["group_id"], session))
    for entry in state["split"]:
        if entry["user_id"] not in member_set:
            raise AppError(
                ErrorCode.SPLIT_USER_NOT_MEMBER,
                f"User {entry['user_id']} is not a member of group {state['group_id']}.",
                400,
                field="split",
            )


def _validate_split_sum(state: dict, session: Session) -> None:
    total = math.fsum(entry["amount"] for entry in state["split"])
    if not math.isclose(total, state["amount"], rel_tol=0.0, abs_tol=SPLIT_SUM_TOLERANCE):
        raise AppError(
            ErrorCode.SPLIT_SUM_MISMATCH,
            f"Split amounts ({total:g}) do not equal expense amount ({state['amount']:g}).",
            400,
            field="split",
        )


Validator = Callable[[dict, Session], None]

VALIDATION_POLICIES: dict[str, tuple[Validator, ...]] = {
    "permissive": (),
    "strict": (
        _validate_group_exists,
        _validate_payer_is_member,
        _validate_split_users_are_members,
        _validate_split_sum,
    ),
}


def _run_policy(policy: str, state: dict, session: Session) -> None:
    try:
        validators = VALIDATION_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown expense validation policy: {policy!r}") from None
    for validator in validators:
        validator(state, session)


def _state_of(expense: Expense) -> dict:
    return {
        "group_id": expense.group_id,
        "paid_by": expense.paid_by,
        "amount": expense.amount,
        "description": expense.description,
        "split": [{"user_id": s.user_id, "amount": s.amount} for s in expense.split],
    }


# ── Public service functions ───────────────────────────────────────────────

def create_expense(
        data: dict,
        session: Session,
        policy: str = "permissive",
) -> dict:
    """
    Records a new expense.

    Args:
        data:   Validated dict from CreateExpenseSchema.
        policy: Name of the validation policy (see module docstring).

    Returns:
        The created expense dict, including id and both timestamps.
    """
    state = {
        "group_id": data["group_id"],
        "paid_by": data["paid_by"],
        "amount": data["amount"],
        "description": data.get("description", ""),
        "split": data.get("split") or [],
    }
    _run_policy(policy, state, session)

    now = utcnow()
    expense = Expense(
        group_id=state["group_id"],
        paid_by=state["paid_by"],
        created_by=data["created_by"],
        amount=state["amount"],
        description=state["description"],
        created_at=now,
        modified_at=now,
    )
    expense.split = _build_split_rows(state["split"])
    session.add(expense)
    session.flush()

    return expense_to_dict(expense)


def get_expense(raw_id: str, session: Session) -> dict:
    """
    Returns a single expense.

    A malformed id cannot match any record, so it is reported the same way as
    a missing one: EXPENSE_NOT_FOUND (404).
    """
    expense_id = normalize_object_id(raw_id)
    if expense_id is None:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {raw_id} does not exist.",
            404,
        )
    return expense_to_dict(_get_expense_or_404(expense_id, session))


def update_expense(
        raw_id: str,
        patch: dict,
        session: Session,
        policy: str = "permissive",
) -> None:
    """
    Merges `patch` into an existing expense.

    Only keys present in `patch` are written; a present `split` replaces the
    whole list. modified_at is refreshed even for an empty patch.

    Raises:
        AppError(INVALID_ID, 400)        — malformed id
        AppError(EXPENSE_NOT_FOUND, 404) — no expense with that id
        AppError(400)                    — a policy validator rejected the merged state
    """
    expense_id = _require_id(raw_id, "id")
    expense = _get_expense_or_404(expense_id, session)

    merged = _state_of(expense)
    merged.update({k: v for k, v in patch.items() if k in PATCHABLE_FIELDS})
    _run_policy(policy, merged, session)

    for key in ("group_id", "paid_by", "amount", "description"):
        if key in patch:
            setattr(expense, key, patch[key])
    if "split" in patch:
        expense.split = _build_split_rows(patch["split"])

    expense.modified_at = _next_modified_at(expense.modified_at)
    session.flush()


def delete_expense(raw_id: str, session: Session) -> None:
    """
    Physically deletes an expense and its split rows.

    Deleting an id that matches nothing is not an error.

    Raises:
        AppError(INVALID_ID, 400) — malformed id
    """
    expense_id = _require_id(raw_id, "id")

    session.execute(delete(Split).where(Split.expense_id == expense_id))
    result = session.execute(delete(Expense).where(Expense.id == expense_id))
    session.flush()

    if result.rowcount == 0:
        logger.debug("Delete of expense %s matched no row", expense_id)


def list_expenses_by_group(raw_group_id: str, session: Session) -> list[dict]:
    """
    Returns every expense whose group_id matches. No ordering is guaranteed.

    Raises:
        AppError(INVALID_ID, 400) — malformed group id
    """
    group_id = _require_id(raw_group_id, "group_id")
    stmt = select(Expense).where(Expense.group_id == group_id)
    return [expense_to_dict(e) for e in session.execute(stmt).scalars().all()]
