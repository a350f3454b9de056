"""
services/auth_service.py — Identity store and session issuing.

Responsibilities:
  - User registration (uniqueness of email and mobile number)
  - User lookup by email / mobile number
  - Credential verification (bcrypt)
  - Session token creation (JWT, HS256)
  - Sign-in: verify, aggregate, issue

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes beyond AppError
  - current_app.config is read ONLY for the JWT secret / expiry and the
    bcrypt cost factor.
  - Services flush and leave commit/rollback to the route, with one
    exception: register_user rolls the session back when the insert loses
    the uniqueness race, so the conflicting row can be read and reported
    as a 409. Callers must not hold other pending work in that session.

Token design:
  - JWT, HS256, sub = user id (24-hex str), iat, exp, jti
  - No server-side session state: the expiry is the only temporal state.

Password storage:
  - Hashed with bcrypt (cost from BCRYPT_LOG_ROUNDS); salt is per record
  - Raw password is never stored, never logged, never returned
"""

from __future__ import annotations

import logging
import secrets

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.clock import utcnow
from backend.app.errors import AppError, ErrorCode
from backend.app.models.membership import Membership
from backend.app.models.user import User
from backend.app.services import aggregation_service
from backend.app.services.serialization import user_to_dict

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _password_matches(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(
        password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def _create_session_token(user_id: str) -> str:
    """
    Creates a signed JWT session token.
    Payload: sub (user id), iat, exp, jti.
    TTL from current_app.config["JWT_ACCESS_TOKEN_EXPIRES"] (timedelta).
    """
    now = utcnow()
    expiry = now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": expiry,
        # Unique per token even when two are issued in the same second.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def _find_conflicting_user(email: str, mobile_number: str, session: Session) -> User | None:
    """Returns any user holding `email` OR `mobile_number`."""
    return session.execute(
        select(User).where(
            or_(User.email == email, User.mobile_number == mobile_number)
        )
    ).scalars().first()


def _conflict_for(existing: User, email: str) -> AppError:
    """Builds the 409 for whichever uniqueness domain the existing row matched."""
    if existing.email == email:
        return AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{email}' is already registered.",
            409,
            field="email",
        )
    return AppError(
        ErrorCode.DUPLICATE_MOBILE_NUMBER,
        "The mobile number is already registered.",
        409,
        field="mobile_number",
    )


def _group_ids_for(user_id: str, session: Session) -> list[str]:
    """Derived membership view: ids of the groups whose member set holds user_id."""
    stmt = select(Membership.group_id).where(Membership.user_id == user_id)
    return list(session.execute(stmt).scalars().all())


def _get_user_or_404(user: User | None, lookup: str) -> User:
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"No user found for {lookup}.",
            404,
        )
    return user


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        name: str,
        email: str,
        mobile_number: str,
        password: str,
        session: Session,
) -> dict:
    """
    Creates a new user account.

    A single existing row matching EITHER the email or the mobile number
    blocks registration.

    Raises:
      AppError(DUPLICATE_EMAIL, 409)         — email already registered
      AppError(DUPLICATE_MOBILE_NUMBER, 409) — mobile number already registered

    Returns: the public user dict (no password material).
    """
    existing = _find_conflicting_user(email, mobile_number, session)
    if existing is not None:
        logger.info("Registration rejected: email or mobile number already in use")
        raise _conflict_for(existing, email)

    user = User(
        name=name,
        email=email,
        mobile_number=mobile_number,
        password_hash=_hash_password(password),
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError:
        # A concurrent registration won the race; the failed flush leaves the
        # session unusable until rolled back.
        session.rollback()
        existing = _find_conflicting_user(email, mobile_number, session)
        if existing is None:
            raise
        raise _conflict_for(existing, email)

    logger.info("Registered user %s", user.id)
    return user_to_dict(user)


def find_user_by_email(email: str, session: Session) -> dict:
    """
    Returns the user registered with `email`, plus the derived group id list.

    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()
    user = _get_user_or_404(user, "that email address")
    return {**user_to_dict(user), "groups": _group_ids_for(user.id, session)}


def find_user_by_mobile_number(mobile_number: str, session: Session) -> dict:
    """
    Returns the user registered with `mobile_number`, plus the derived group id list.

    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = session.execute(
        select(User).where(User.mobile_number == mobile_number)
    ).scalar_one_or_none()
    user = _get_user_or_404(user, "that mobile number")
    return {**user_to_dict(user), "groups": _group_ids_for(user.id, session)}


def verify_credentials(email: str, password: str, session: Session) -> User:
    """
    Returns the User if the email exists and the password matches.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — email not found or password wrong.
      Uses the same error for both to avoid email enumeration.
    """
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()

    if user is None or not _password_matches(password, user.password_hash):
        logger.info("Sign-in rejected: invalid credentials")
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The email or password is incorrect.",
            401,
        )
    return user


def sign_in(email: str, password: str, session: Session) -> tuple[dict, list[dict]]:
    """
    Verifies credentials, assembles the user's view and issues a session token.

    The view is built before the token: a store error while reading groups
    or expenses propagates (INTERNAL_ERROR) and no token is handed out.

    Raises:
      AppError(INVALID_CREDENTIALS, 401)

    Returns:
        ({"token", "user", "groups", "expenses", "co_members"}, warnings)
    """
    user = verify_credentials(email, password, session)
    view, warnings = aggregation_service.build_member_view(user.id, session)
    token = _create_session_token(user.id)

    logger.info("User %s signed in", user.id)
    return {
        "token": token,
        "user": user_to_dict(user),
        **view,
    }, warnings


def get_current_user(user_id: str, session: Session) -> dict:
    """
    Returns the profile of the token holder.

    Raises:
      AppError(USER_NOT_FOUND, 404) — the user id in the token no longer exists.
    """
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return user_to_dict(user)
