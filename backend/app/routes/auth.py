"""
routes/auth.py — Sign-in route handlers.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Return the standard response envelope: {"data": {...}, "warnings": []}

No business logic here. No DB queries.
AppError propagates to the global error handler in app/__init__.py.

Endpoints (url_prefix=/api/v1/auth):
  POST   /auth/signin  → 200  token + groups + expenses + co-members
  GET    /auth/me      → 200  (token required)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.auth_schema import SignInSchema
from backend.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/signin", methods=["POST"])
def signin():
    """
    POST /auth/signin — Verify credentials; return a session token together
    with the caller's groups, the expenses they logged and their co-members.
    Co-member ids that no longer resolve are listed in `warnings`.
    """
    data = SignInSchema().load(request.get_json(force=True) or {})
    result, warnings = auth_service.sign_in(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": warnings}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /auth/me — Return the token holder's profile. (Auth required.)"""
    result = auth_service.get_current_user(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
