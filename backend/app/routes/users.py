"""
routes/users.py — Registration and user lookup.

Endpoints (url_prefix=/api/v1/users):
  POST   /users                                    → 201  register
  GET    /users/by-email?email=...                 → 200  lookup
  GET    /users/by-mobile-number?mobile_number=... → 200  lookup
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.auth_schema import (
    EmailLookupSchema,
    MobileNumberLookupSchema,
    RegisterSchema,
)
from backend.app.services import auth_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/", methods=["POST"])
def register():
    """POST /users — Create an account. The response never carries the password hash."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(
        name=data["name"],
        email=data["email"],
        mobile_number=data["mobile_number"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@users_bp.route("/by-email", methods=["GET"])
def get_user_by_email():
    """GET /users/by-email — Look up a user and the ids of their groups."""
    data = EmailLookupSchema().load(request.args.to_dict())
    result = auth_service.find_user_by_email(
        email=data["email"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/by-mobile-number", methods=["GET"])
def get_user_by_mobile_number():
    """GET /users/by-mobile-number — Look up a user and the ids of their groups."""
    data = MobileNumberLookupSchema().load(request.args.to_dict())
    result = auth_service.find_user_by_mobile_number(
        mobile_number=data["mobile_number"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
