"""
routes/expenses.py — Expense route handlers.

Registered at url_prefix=/api/v1 (not /api/v1/expenses) because this blueprint
owns BOTH the group-scoped listing (/groups/:id/expenses) and the
expense-ID paths (/expenses/:id).

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries.
  - Ids arrive as plain strings; the service decides what a malformed id means.

Endpoints:
  POST   /expenses              → 201  create expense
  GET    /expenses/:id          → 200  get expense
  PATCH  /expenses/:id          → 204  partial update (PUT accepted, same merge)
  DELETE /expenses/:id          → 204  physical delete
  GET    /groups/:id/expenses   → 200  list a group's expenses
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.expense_schema import CreateExpenseSchema, PatchExpenseSchema
from backend.app.services import expense_service

expenses_bp = Blueprint("expenses", __name__)


def _policy() -> str:
    return current_app.config.get("EXPENSE_VALIDATION_POLICY", "permissive")


@expenses_bp.route("/expenses", methods=["POST"])
def create_expense():
    """POST /expenses — Record a new expense. Id and timestamps are assigned here."""
    data = CreateExpenseSchema().load(request.get_json(force=True) or {})
    result = expense_service.create_expense(
        data=data,
        session=db.session,
        policy=_policy(),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@expenses_bp.route("/expenses/<string:expense_id>", methods=["GET"])
def get_expense(expense_id: str):
    """GET /expenses/:id — Get one expense with its split list."""
    result = expense_service.get_expense(
        raw_id=expense_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@expenses_bp.route("/expenses/<string:expense_id>", methods=["PATCH", "PUT"])
def update_expense(expense_id: str):
    """
    PATCH /expenses/:id — Merge the provided fields into the expense.
    Absent fields are untouched. modified_at is always refreshed. No body.
    """
    patch = PatchExpenseSchema().load(request.get_json(force=True) or {})
    expense_service.update_expense(
        raw_id=expense_id,
        patch=patch,
        session=db.session,
        policy=_policy(),
    )
    db.session.commit()
    return "", 204


@expenses_bp.route("/expenses/<string:expense_id>", methods=["DELETE"])
def delete_expense(expense_id: str):
    """DELETE /expenses/:id — Physical delete. 204 even when nothing matched."""
    expense_service.delete_expense(
        raw_id=expense_id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


@expenses_bp.route("/groups/<string:group_id>/expenses", methods=["GET"])
def list_expenses(group_id: str):
    """GET /groups/:id/expenses — Every expense of the group. Order is not guaranteed."""
    result = expense_service.list_expenses_by_group(
        raw_group_id=group_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
