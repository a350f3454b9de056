"""
schemas/group_schema.py — Marshmallow schema for group creation.

Validation responsibility:
  - This file: field types, string lengths, non-empty name.
  - services/group_service.py: resolving emails to users. An unknown creator
    is INVALID_CREATOR; unknown member emails are dropped and reported as
    warnings, so member emails are NOT format-checked here.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateGroupSchema(Schema):
    """
    POST /groups

    name          : non-empty after trim, max 100 chars
    creator_email : required; must resolve to a user (checked in the service)
    member_emails : optional list; may repeat the creator or each other
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    creator_email = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=255),
    )

    member_emails = fields.List(
        fields.Str(validate=validate.Length(max=255)),
        load_default=list,
    )
