"""
services/serialization.py — ORM object → plain dict.

Pure data shaping shared by the services that return the same entity
(e.g. sign-in returns groups and expenses built by the other services).
No DB access, no logic. Password hashes are never included.
"""

from __future__ import annotations

from backend.app.clock import isoformat
from backend.app.models.expense import Expense
from backend.app.models.group import Group
from backend.app.models.user import User


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "mobile_number": user.mobile_number,
        "created_at": isoformat(user.created_at),
    }


def group_to_dict(group: Group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "creator": group.creator_id,
        "users": group.member_ids,
        "created_at": isoformat(group.created_at),
    }


def expense_to_dict(expense: Expense) -> dict:
    return {
        "id": expense.id,
        "group_id": expense.group_id,
        "paid_by": expense.paid_by,
        "created_by": expense.created_by,
        "amount": expense.amount,
        "description": expense.description,
        "split": [
            {"user_id": s.user_id, "amount": s.amount}
            for s in expense.split
        ],
        "created_at": isoformat(expense.created_at),
        "modified_at": isoformat(expense.modified_at),
    }
