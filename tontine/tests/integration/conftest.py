"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database: in-memory SQLite by default,
    or TEST_DATABASE_URL (e.g. a throwaway PostgreSQL database) when set.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)    → user dict
  - login(client, ...)       → {"token": ..., "user": {...}}
  - signup(client, ...)      → (user dict, token) — register + login
  - auth_headers(token)      → {"Authorization": "Bearer <token>"}
  - make_group(client, ...)  → group dict
  - add_member(...)          → HTTP response
  - make_cycle(...)          → HTTP response

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from tontine.app import create_app
from tontine.app.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test
    session, creates every table, and drops them again at teardown.
    """
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
    """
    Deletes all rows between tests in FK-safe order:
    payments → cycles → memberships → groups → users.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM payments"))
            conn.execute(text("DELETE FROM cycles"))
            conn.execute(text("DELETE FROM memberships"))
            conn.execute(text("DELETE FROM groups"))
            conn.execute(text("DELETE FROM users"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def register(
    client,
    name: str = "alice",
    email: str | None = None,
    password: str = "secret123",
    phone: str | None = None,
) -> dict:
    """Registers a new user and returns the user dict."""
    if email is None:
        email = f"{name}@test.com"
    payload = {"email": email, "password": password, "name": name}
    if phone is not None:
        payload["phone"] = phone
    resp = client.post("/users", json=payload)
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def login(client, email: str, password: str = "secret123") -> dict:
    """Logs in and returns {"token": "...", "user": {...}}."""
    resp = client.post(
        "/auth/login",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def signup(client, name: str = "alice", **kwargs) -> tuple[dict, str]:
    """Registers then logs in. Returns (user, token)."""
    user = register(client, name=name, **kwargs)
    token = login(client, user["email"], kwargs.get("password", "secret123"))["token"]
    return user, token


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_group(client, token: str, name: str = "Test Group", **fields) -> dict:
    """
    Creates a group and returns the group data dict.
    The caller (token owner) becomes the group's admin.
    """
    resp = client.post(
        "/groups",
        json={"name": name, **fields},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]


def add_member(client, token: str, group_id: int, user_id: int, role: str | None = None):
    """Adds a user to a group (admin token required). Returns the HTTP response."""
    payload: dict = {"userId": user_id, "groupId": group_id}
    if role is not None:
        payload["role"] = role
    return client.post(
        "/memberships",
        json=payload,
        headers=auth_headers(token),
    )


def make_cycle(
    client,
    token: str,
    group_id: int,
    cycle_index: int = 1,
    **fields,
):
    """Creates a cycle (admin token required). Returns the HTTP response."""
    return client.post(
        f"/groups/{group_id}/cycles",
        json={"cycleIndex": cycle_index, **fields},
        headers=auth_headers(token),
    )
