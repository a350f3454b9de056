"""
schemas/expense_schema.py — Marshmallow schemas for expense endpoints.

Validation responsibility:
  - This file: field types, id format, non-negative amounts, description length.
  - services/expense_service.py: the configured validation policy. Under the
    default "permissive" policy nothing else is checked: payer and split users
    need not be group members and split amounts need not add up to `amount`.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.schemas.fields import ObjectId


_non_negative = validate.Range(min=0, error="Amount must not be negative.")


class SplitInputSchema(Schema):
    """One {user_id, amount} entry of the `split` array."""

    user_id = ObjectId(required=True)
    amount = fields.Float(required=True, allow_nan=False, validate=_non_negative)


class CreateExpenseSchema(Schema):
    """
    POST /expenses

    group_id, paid_by, created_by : well-formed ids (existence not checked)
    amount                        : float >= 0
    description                   : free text, max 255 chars, may be empty
    split                         : list of {user_id, amount}; may be empty
    """

    group_id = ObjectId(required=True)
    paid_by = ObjectId(required=True)
    created_by = ObjectId(required=True)

    amount = fields.Float(required=True, allow_nan=False, validate=_non_negative)

    description = fields.Str(
        load_default="",
        validate=validate.Length(max=255, error="Description must be at most 255 characters."),
    )

    split = fields.List(
        fields.Nested(SplitInputSchema),
        load_default=list,
    )


class PatchExpenseSchema(Schema):
    """
    PATCH /expenses/:id

    All fields are optional; only provided fields are written. A provided
    `split` replaces the whole list. id, created_by and the timestamps are not
    patchable; sending them is rejected as an unknown field.
    """

    group_id = ObjectId()
    paid_by = ObjectId()

    amount = fields.Float(allow_nan=False, validate=_non_negative)

    description = fields.Str(
        validate=validate.Length(max=255, error="Description must be at most 255 characters."),
    )

    split = fields.List(fields.Nested(SplitInputSchema))
