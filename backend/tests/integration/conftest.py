"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
    TestingConfig points at in-memory SQLite unless TEST_DATABASE_URL is set.
  - All tables are created once via db.create_all() at session start.
  - After each test every row is deleted, children first, so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)      → registered user dict
  - sign_in(client, ...)       → sign-in data dict (token + view)
  - auth_headers(token)        → {"Authorization": "Bearer <token>"}
  - make_group(client, ...)    → (group dict, warnings)
  - make_expense(client, ...)  → HTTP response

These are plain functions so tests can call them with arbitrary arguments.
"""

from __future__ import annotations

import pytest

from backend.app import create_app
from backend.app.extensions import db as _db

PASSWORD = "Secure123"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the app in 'testing' mode and the schema, once per session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, dependent tables first."""
    yield

    with app.app_context():
        _db.session.rollback()
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(table.delete())
        _db.session.commit()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def strict_policy(app):
    """Runs a test with the strict expense validation policy."""
    previous = app.config["EXPENSE_VALIDATION_POLICY"]
    app.config["EXPENSE_VALIDATION_POLICY"] = "strict"
    yield
    app.config["EXPENSE_VALIDATION_POLICY"] = previous


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

_mobile_counter = iter(range(1_000_000))


def register(
    client,
    name: str = "alice",
    email: str | None = None,
    mobile_number: str | None = None,
    password: str = PASSWORD,
) -> dict:
    """Registers a user and returns the public user dict."""
    if email is None:
        email = f"{name}@test.com"
    if mobile_number is None:
        mobile_number = f"+1666{next(_mobile_counter):07d}"
    resp = client.post(
        "/api/v1/users",
        json={
            "name": name,
            "email": email,
            "mobile_number": mobile_number,
            "password": password,
        },
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def sign_in(client, email: str, password: str = PASSWORD) -> dict:
    """Signs in and returns the full response body ({"data", "warnings"})."""
    resp = client.post(
        "/api/v1/auth/signin",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"sign_in failed: {resp.get_json()}"
    return resp.get_json()


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_group(
    client,
    creator_email: str,
    member_emails: list[str] | None = None,
    name: str = "Test Group",
) -> tuple[dict, list[dict]]:
    """Creates a group and returns (group dict, warnings)."""
    resp = client.post(
        "/api/v1/groups",
        json={
            "name": name,
            "creator_email": creator_email,
            "member_emails": member_emails or [],
        },
    )
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    body = resp.get_json()
    return body["data"], body["warnings"]


def make_expense(
    client,
    group_id: str,
    paid_by: str,
    created_by: str | None = None,
    amount: float = 30.0,
    split: list[dict] | None = None,
    description: str = "Test Expense",
):
    """Creates an expense and returns the HTTP response."""
    payload: dict = {
        "group_id": group_id,
        "paid_by": paid_by,
        "created_by": created_by or paid_by,
        "amount": amount,
        "description": description,
    }
    if split is not None:
        payload["split"] = split
    return client.post("/api/v1/expenses", json=payload)
