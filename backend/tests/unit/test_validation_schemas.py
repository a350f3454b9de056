"""
tests/unit/test_validation_schemas.py — Unit tests for the marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Field-level rules (type, length, id format, non-negative amounts) are
    enforced by the schemas
  - Cross-entity rules (membership, split sums) are NOT checked here; they
    belong to the expense validation policy in the service layer

No database, no Flask application context: the schemas inherit from
marshmallow.Schema directly.
"""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from backend.app.errors import ErrorCode
from backend.app.schemas.auth_schema import (
    EmailLookupSchema,
    MobileNumberLookupSchema,
    RegisterSchema,
    SignInSchema,
)
from backend.app.schemas.expense_schema import (
    CreateExpenseSchema,
    PatchExpenseSchema,
    SplitInputSchema,
)
from backend.app.schemas.group_schema import CreateGroupSchema

GROUP_ID = "65a1f0c2e4b0a1b2c3d4e5f6"
ALICE_ID = "65a1f0c2e4b0a1b2c3d4e501"
BOB_ID = "65a1f0c2e4b0a1b2c3d4e502"


# ═══════════════════════════════════════════════════════════════════════════
# RegisterSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestRegisterSchema:

    def _load(self, **overrides):
        payload = {
            "name": "Alice",
            "email": "alice@example.com",
            "mobile_number": "+919876543210",
            "password": "Secure123",
        }
        payload.update(overrides)
        return RegisterSchema().load(payload)

    def test_valid_payload(self):
        result = self._load()
        assert result["name"] == "Alice"
        assert result["email"] == "alice@example.com"
        assert result["mobile_number"] == "+919876543210"

    def test_password_is_load_only(self):
        dumped = RegisterSchema().dump({"name": "A", "email": "a@b.co", "password": "x"})
        assert "password" not in dumped

    def test_blank_name_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load(name="   ")
        assert "name" in exc.value.messages

    def test_name_too_long_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load(name="a" * 101)
        assert "name" in exc.value.messages

    def test_invalid_email_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load(email="not-an-email")
        assert "email" in exc.value.messages

    @pytest.mark.parametrize("number", ["12345", "98-7654-3210", "phone", "+" + "1" * 16])
    def test_malformed_mobile_number_raises(self, number):
        with pytest.raises(ValidationError) as exc:
            self._load(mobile_number=number)
        assert "mobile_number" in exc.value.messages

    @pytest.mark.parametrize("password", ["Short1", "allletters", "12345678"])
    def test_weak_password_raises(self, password):
        with pytest.raises(ValidationError) as exc:
            self._load(password=password)
        assert "password" in exc.value.messages

    def test_password_over_72_bytes_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load(password="a1" * 37)
        assert "password" in exc.value.messages

    def test_missing_fields_are_reported(self):
        with pytest.raises(ValidationError) as exc:
            RegisterSchema().load({})
        assert set(exc.value.messages) == {"name", "email", "mobile_number", "password"}


# ═══════════════════════════════════════════════════════════════════════════
# Sign-in and lookups
# ═══════════════════════════════════════════════════════════════════════════

class TestSignInAndLookupSchemas:

    def test_signin_does_not_check_email_format(self):
        result = SignInSchema().load({"email": "whatever", "password": "pw"})
        assert result == {"email": "whatever", "password": "pw"}

    def test_signin_requires_password(self):
        with pytest.raises(ValidationError) as exc:
            SignInSchema().load({"email": "a@b.com"})
        assert "password" in exc.value.messages

    def test_email_lookup_rejects_empty(self):
        with pytest.raises(ValidationError):
            EmailLookupSchema().load({"email": ""})

    def test_mobile_lookup_requires_parameter(self):
        with pytest.raises(ValidationError) as exc:
            MobileNumberLookupSchema().load({})
        assert "mobile_number" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# CreateGroupSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateGroupSchema:

    def test_member_emails_default_to_empty_list(self):
        result = CreateGroupSchema().load({"name": "Trip", "creator_email": "a@b.com"})
        assert result["member_emails"] == []

    def test_member_emails_are_not_format_checked(self):
        result = CreateGroupSchema().load({
            "name": "Trip",
            "creator_email": "a@b.com",
            "member_emails": ["not-an-email", "a@b.com"],
        })
        assert result["member_emails"] == ["not-an-email", "a@b.com"]

    def test_blank_name_raises(self):
        with pytest.raises(ValidationError) as exc:
            CreateGroupSchema().load({"name": " ", "creator_email": "a@b.com"})
        assert "name" in exc.value.messages

    def test_creator_email_required(self):
        with pytest.raises(ValidationError) as exc:
            CreateGroupSchema().load({"name": "Trip"})
        assert "creator_email" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Expense schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateExpenseSchema:

    def _payload(self, **overrides) -> dict:
        payload = {
            "group_id": GROUP_ID,
            "paid_by": ALICE_ID,
            "created_by": ALICE_ID,
            "amount": 30.0,
            "description": "Dinner",
            "split": [
                {"user_id": ALICE_ID, "amount": 15.0},
                {"user_id": BOB_ID, "amount": 15.0},
            ],
        }
        payload.update(overrides)
        return payload

    def test_valid_payload(self):
        result = CreateExpenseSchema().load(self._payload())
        assert result["amount"] == 30.0
        assert result["split"][1] == {"user_id": BOB_ID, "amount": 15.0}

    def test_ids_are_lower_cased(self):
        result = CreateExpenseSchema().load(self._payload(group_id=GROUP_ID.upper()))
        assert result["group_id"] == GROUP_ID

    def test_unbalanced_split_is_accepted(self):
        result = CreateExpenseSchema().load(self._payload(amount=100.0))
        assert result["amount"] == 100.0

    def test_description_and_split_default(self):
        payload = self._payload()
        del payload["description"]
        del payload["split"]
        result = CreateExpenseSchema().load(payload)
        assert result["description"] == ""
        assert result["split"] == []

    def test_malformed_id_raises_invalid_id(self):
        with pytest.raises(ValidationError) as exc:
            CreateExpenseSchema().load(self._payload(paid_by="xyz"))
        assert exc.value.messages["paid_by"] == [ErrorCode.INVALID_ID]

    def test_negative_amount_raises(self):
        with pytest.raises(ValidationError) as exc:
            CreateExpenseSchema().load(self._payload(amount=-1))
        assert "amount" in exc.value.messages

    def test_nan_amount_raises(self):
        with pytest.raises(ValidationError) as exc:
            CreateExpenseSchema().load(self._payload(amount="NaN"))
        assert "amount" in exc.value.messages

    def test_split_entry_with_bad_user_id_raises(self):
        with pytest.raises(ValidationError) as exc:
            CreateExpenseSchema().load(self._payload(split=[{"user_id": "nope", "amount": 1}]))
        assert exc.value.messages["split"][0]["user_id"] == [ErrorCode.INVALID_ID]


class TestSplitInputSchema:

    def test_negative_split_amount_raises(self):
        with pytest.raises(ValidationError) as exc:
            SplitInputSchema().load({"user_id": ALICE_ID, "amount": -0.01})
        assert "amount" in exc.value.messages


class TestPatchExpenseSchema:

    def test_empty_patch_is_valid(self):
        assert PatchExpenseSchema().load({}) == {}

    def test_only_present_fields_are_loaded(self):
        result = PatchExpenseSchema().load({"description": "Lunch"})
        assert result == {"description": "Lunch"}

    def test_created_by_is_not_patchable(self):
        with pytest.raises(ValidationError) as exc:
            PatchExpenseSchema().load({"created_by": ALICE_ID})
        assert "created_by" in exc.value.messages

    def test_timestamps_are_not_patchable(self):
        with pytest.raises(ValidationError) as exc:
            PatchExpenseSchema().load({"modified_at": "2026-01-01T00:00:00+00:00"})
        assert "modified_at" in exc.value.messages
