"""
middleware/auth_middleware.py — Session token check for protected routes.

Sign-in hands out a stateless HS256 JWT whose `sub` is the user's object id.
@require_auth verifies it and exposes the id as `flask.g.user_id`; there is
nothing to look up server-side, so revocation is by expiry only.

Failures (all 401, rendered by the global AppError handler):
  TOKEN_MISSING  no Authorization header
  TOKEN_INVALID  not "Bearer <token>", bad signature, or `sub` is not an id
  TOKEN_EXPIRED  signature fine, `exp` in the past
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from backend.app.errors import AppError, ErrorCode
from backend.app.ids import normalize_object_id


def require_auth(view: Callable) -> Callable:
    """Route decorator: sets g.user_id (lower-case 24-hex str) or raises 401."""

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        claims = _decode(_bearer_token())
        g.user_id = _user_id_from(claims)
        return view(*args, **kwargs)

    return wrapper


def _unauthorized(code: str, message: str) -> AppError:
    return AppError(code, message, 401)


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header:
        raise _unauthorized(
            ErrorCode.TOKEN_MISSING,
            "Sign in and send the session token as 'Authorization: Bearer <token>'.",
        )

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise _unauthorized(
            ErrorCode.TOKEN_INVALID,
            "The Authorization header must look like 'Bearer <token>'.",
        )
    return token


def _decode(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized(
            ErrorCode.TOKEN_EXPIRED,
            "The session token has expired. Sign in again to obtain a new one.",
        ) from None
    except jwt.InvalidTokenError:
        raise _unauthorized(
            ErrorCode.TOKEN_INVALID,
            "The session token could not be verified.",
        ) from None


def _user_id_from(claims: dict) -> str:
    user_id = normalize_object_id(claims.get("sub"))
    if user_id is None:
        raise _unauthorized(
            ErrorCode.TOKEN_INVALID,
            "The session token does not name a valid user.",
        )
    return user_id
