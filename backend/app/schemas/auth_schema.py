"""
schemas/auth_schema.py — Marshmallow schemas for registration, sign-in and
user lookup.

Validation responsibility:
  - This file: field types, lengths, formats, regex patterns.
  - services/auth_service.py: DUPLICATE_EMAIL / DUPLICATE_MOBILE_NUMBER
    (require a DB lookup, not a schema concern).

IMPORTANT: All schemas inherit from marshmallow.Schema directly so they can be
           used without a Flask application context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates


_MOBILE_NUMBER_RE = r"^\+?[0-9]{7,15}$"


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class RegisterSchema(Schema):
    """
    POST /users

    Field rules:
      name          : 1–100 chars, not blank
      email         : valid email format
      mobile_number : 7–15 digits, optional leading '+'
      password      : 8–72 chars, at least one letter and one digit
                      (bcrypt only reads the first 72 bytes)

    Uniqueness of email and mobile_number is checked in auth_service.py.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    mobile_number = fields.Str(
        required=True,
        validate=validate.Regexp(
            _MOBILE_NUMBER_RE,
            error="Mobile number must be 7 to 15 digits, optionally prefixed with '+'.",
        ),
    )

    password = fields.Str(required=True, load_only=True)

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if len(value.encode("utf-8")) > 72:
            raise ValidationError("Password must be at most 72 bytes long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")


class SignInSchema(Schema):
    """
    POST /auth/signin

    Credential correctness is checked in auth_service.py (INVALID_CREDENTIALS).
    The email is not format-checked here: a malformed email must fail the same
    way as an unknown one.
    """

    email = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)


class EmailLookupSchema(Schema):
    """GET /users/by-email?email=..."""

    email = fields.Str(required=True, validate=validate.Length(min=1, max=255))


class MobileNumberLookupSchema(Schema):
    """GET /users/by-mobile-number?mobile_number=..."""

    mobile_number = fields.Str(required=True, validate=validate.Length(min=1, max=20))
