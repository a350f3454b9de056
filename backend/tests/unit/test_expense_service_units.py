"""
Unit tests for expense_service: id handling, the validation policies and the
modified_at clock. DB-free; the session is a MagicMock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.services import expense_service

GROUP = "65a1f0c2e4b0a1b2c3d4e5f6"
ALICE = "65a1f0c2e4b0a1b2c3d4e501"
BOB = "65a1f0c2e4b0a1b2c3d4e502"
CAROL = "65a1f0c2e4b0a1b2c3d4e503"


def _state(**overrides) -> dict:
    state = {
        "group_id": GROUP,
        "paid_by": ALICE,
        "amount": 30.0,
        "description": "Dinner",
        "split": [
            {"user_id": ALICE, "amount": 15.0},
            {"user_id": BOB, "amount": 15.0},
        ],
    }
    state.update(overrides)
    return state


# ── _require_id ────────────────────────────────────────────────────────────

def test_require_id_normalises():
    assert expense_service._require_id(GROUP.upper(), "group_id") == GROUP


def test_require_id_raises_invalid_id_with_field():
    with pytest.raises(AppError) as exc_info:
        expense_service._require_id("not-an-id", "group_id")

    err = exc_info.value
    assert err.code == ErrorCode.INVALID_ID
    assert err.http_status == 400
    assert err.field == "group_id"


# ── Validators ─────────────────────────────────────────────────────────────

def test_validate_group_exists_raises_when_missing():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        expense_service._validate_group_exists(_state(), session)

    assert exc_info.value.code == ErrorCode.GROUP_NOT_FOUND


@patch("backend.app.services.expense_service._get_member_ids", return_value=[BOB])
def test_validate_payer_is_member_raises(mock_members):
    with pytest.raises(AppError) as exc_info:
        expense_service._validate_payer_is_member(_state(), MagicMock())

    assert exc_info.value.code == ErrorCode.PAYER_NOT_MEMBER
    assert exc_info.value.field == "paid_by"


@patch("backend.app.services.expense_service._get_member_ids", return_value=[ALICE, BOB])
def test_validate_split_users_are_members_raises_for_outsider(mock_members):
    state = _state(split=[{"user_id": ALICE, "amount": 10.0}, {"user_id": CAROL, "amount": 20.0}])

    with pytest.raises(AppError) as exc_info:
        expense_service._validate_split_users_are_members(state, MagicMock())

    assert exc_info.value.code == ErrorCode.SPLIT_USER_NOT_MEMBER
    assert CAROL in exc_info.value.message


def test_validate_split_sum_accepts_float_noise():
    state = _state(amount=0.3, split=[
        {"user_id": ALICE, "amount": 0.1},
        {"user_id": BOB, "amount": 0.2},
    ])
    expense_service._validate_split_sum(state, MagicMock())


def test_validate_split_sum_rejects_mismatch():
    with pytest.raises(AppError) as exc_info:
        expense_service._validate_split_sum(_state(amount=31.0), MagicMock())

    assert exc_info.value.code == ErrorCode.SPLIT_SUM_MISMATCH


def test_validate_split_sum_rejects_empty_split_for_positive_amount():
    with pytest.raises(AppError):
        expense_service._validate_split_sum(_state(split=[]), MagicMock())


# ── Policies ───────────────────────────────────────────────────────────────

def test_permissive_policy_checks_nothing():
    session = MagicMock()

    expense_service._run_policy("permissive", _state(amount=999.0), session)

    session.get.assert_not_called()
    session.execute.assert_not_called()


def test_strict_policy_runs_every_validator_in_order():
    calls = []
    validators = tuple(
        (lambda name: (lambda state, session: calls.append(name)))(name)
        for name in ("group", "payer", "split_users", "sum")
    )
    with patch.dict(expense_service.VALIDATION_POLICIES, {"strict": validators}):
        expense_service._run_policy("strict", _state(), MagicMock())

    assert calls == ["group", "payer", "split_users", "sum"]


def test_unknown_policy_raises_value_error():
    with pytest.raises(ValueError):
        expense_service._run_policy("lenient", _state(), MagicMock())


# ── _next_modified_at ──────────────────────────────────────────────────────

def test_next_modified_at_is_now_when_previous_is_older():
    previous = datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert expense_service._next_modified_at(previous) > previous


def test_next_modified_at_never_goes_backwards():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert expense_service._next_modified_at(future) == future


def test_next_modified_at_accepts_naive_previous():
    naive_future = (datetime.now(timezone.utc) + timedelta(hours=1)).replace(tzinfo=None)
    result = expense_service._next_modified_at(naive_future)
    assert result == naive_future.replace(tzinfo=timezone.utc)


# ── Public functions ───────────────────────────────────────────────────────

def test_get_expense_with_malformed_id_is_not_found():
    session = MagicMock()

    with pytest.raises(AppError) as exc_info:
        expense_service.get_expense("zzz", session)

    assert exc_info.value.code == ErrorCode.EXPENSE_NOT_FOUND
    assert exc_info.value.http_status == 404
    session.get.assert_not_called()


def test_update_expense_on_missing_record_is_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        expense_service.update_expense(GROUP, {"amount": 5.0}, session)

    assert exc_info.value.code == ErrorCode.EXPENSE_NOT_FOUND
    session.flush.assert_not_called()


def test_update_expense_merges_only_present_fields():
    created = datetime(2026, 1, 1, tzinfo=timezone.utc)
    expense = SimpleNamespace(
        group_id=GROUP,
        paid_by=ALICE,
        amount=30.0,
        description="Dinner",
        split=[],
        modified_at=created,
    )
    session = MagicMock()
    session.get.return_value = expense

    expense_service.update_expense(GROUP, {"description": "Lunch"}, session)

    assert expense.description == "Lunch"
    assert expense.amount == 30.0
    assert expense.paid_by == ALICE
    assert expense.modified_at > created
    session.flush.assert_called_once()


def test_delete_expense_with_malformed_id_raises_invalid_id():
    session = MagicMock()

    with pytest.raises(AppError) as exc_info:
        expense_service.delete_expense("nope", session)

    assert exc_info.value.code == ErrorCode.INVALID_ID
    session.execute.assert_not_called()


def test_delete_expense_of_unknown_id_succeeds():
    session = MagicMock()
    session.execute.return_value.rowcount = 0

    expense_service.delete_expense(GROUP, session)

    assert session.execute.call_count == 2


def test_list_expenses_with_malformed_group_id_raises_invalid_id():
    with pytest.raises(AppError) as exc_info:
        expense_service.list_expenses_by_group("bad", MagicMock())

    assert exc_info.value.code == ErrorCode.INVALID_ID
    assert exc_info.value.field == "group_id"
