"""
errors.py — AppError base class and error code registry.

Every error returned by the API uses a code defined here. Service and route
code raise AppError; the global handlers in app/__init__.py render it.

Rules:
  - Error codes are a contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Unknown email and wrong password share INVALID_CREDENTIALS (401).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Invalid input (400) ────────────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_ID                 = "INVALID_ID"

    # Raised only by the "strict" expense validation policy.
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"
    PAYER_NOT_MEMBER           = "PAYER_NOT_MEMBER"
    SPLIT_USER_NOT_MEMBER      = "SPLIT_USER_NOT_MEMBER"
    SPLIT_SUM_MISMATCH         = "SPLIT_SUM_MISMATCH"

    # ── Group creation (400) ───────────────────────────────────────────────
    INVALID_CREATOR            = "INVALID_CREATOR"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    DUPLICATE_MOBILE_NUMBER    = "DUPLICATE_MOBILE_NUMBER"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    EXPENSE_NOT_FOUND          = "EXPENSE_NOT_FOUND"

    # ── Auth Errors (401) ──────────────────────────────────────────────────
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"
    TOKEN_MISSING              = "TOKEN_MISSING"
    TOKEN_INVALID              = "TOKEN_INVALID"
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Warnings are returned alongside a 2xx response in the `warnings` array.
# They report inputs that were skipped on purpose; they never block a request.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # Group creation: a member email did not match any registered user.
    UNRESOLVED_MEMBER_EMAIL = "UNRESOLVED_MEMBER_EMAIL"

    # Sign-in: a group member id no longer resolves to a user record.
    UNRESOLVED_CO_MEMBER    = "UNRESOLVED_CO_MEMBER"


def make_warning(code: str, message: str, **context) -> dict:
    """
    Builds one entry of a response's `warnings` array.

    Extra keyword arguments (e.g. email=..., user_id=...) identify the skipped
    input and are included as-is.
    """
    return {"code": code, "message": message, **context}
