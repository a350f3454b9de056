"""
routes/groups.py — Group route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries.

Endpoints (url_prefix=/api/v1/groups):
  POST   /groups   → 201  create group (creator + resolved member emails)

The group-scoped expense listing (/groups/:id/expenses) lives in
routes/expenses.py.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.group_schema import CreateGroupSchema
from backend.app.services import group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
def create_group():
    """
    POST /groups — Create a group. The creator is always a member.
    Member emails that match no user are dropped and listed in `warnings`.
    """
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result, warnings = group_service.create_group(
        name=data["name"],
        creator_email=data["creator_email"],
        member_emails=data["member_emails"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": warnings}), 201
