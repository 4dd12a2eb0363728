"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - User registration and credential validation
  - JWT access token creation (HS256)
  - Password hashing (bcrypt) and verification

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes
  - current_app.config is used ONLY to read the JWT secret, token TTL and
    bcrypt cost. Secrets must not be hardcoded or read from env directly in
    a way that bypasses Flask config validation.

Token design:
  - Access token only: JWT, HS256, sub = user_id (str), email, iat, exp.
  - TTL from JWT_ACCESS_TOKEN_EXPIRES (one day by default).
  - Tokens are neither refreshable nor revocable; the client logs in again.

Password storage:
  - Hashed with bcrypt (cost factor from config BCRYPT_LOG_ROUNDS)
  - Raw password is never stored, never logged
"""

from __future__ import annotations

from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from tontine.app.errors import AppError, ErrorCode
from tontine.app.models.user import User
from tontine.app.serializers import serialize_user


# ── Password helpers ───────────────────────────────────────────────────────

# bcrypt rejects longer input; RegisterSchema enforces the same limit.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 10)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    # No stored hash can match input bcrypt refuses to hash.
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    # bcrypt.checkpw compares in constant time.
    return bcrypt.checkpw(raw, password_hash.encode("utf-8"))


# ── Private helpers ────────────────────────────────────────────────────────

def _create_access_token(user_id: int, email: str) -> str:
    """
    Creates a signed JWT access token.
    Payload: sub (user_id as str), email, iat, exp.
    Algorithm: HS256. Secret from current_app.config["JWT_SECRET_KEY"].
    TTL from current_app.config["JWT_ACCESS_TOKEN_EXPIRES"] (timedelta).
    """
    now = datetime.now(timezone.utc)
    expiry = now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": expiry,
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        email: str,
        password: str,
        session: Session,
        name: str | None = None,
        phone: str | None = None,
) -> dict:
    """
    Creates a new user account. No token is issued; the client logs in next.

    Raises:
      AppError(DUPLICATE_EMAIL, 409) — email already registered

    Returns: the user dict (never includes the password hash).
    """
    # Cross-entity uniqueness check (cannot be done in schema — requires DB).
    existing = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()
    if existing is not None:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{email}' is already registered.",
            409,
            field="email",
        )

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        phone=phone,
    )
    session.add(user)
    session.flush()

    return serialize_user(user)


def login_user(
        email: str,
        password: str,
        session: Session,
) -> dict:
    """
    Validates credentials and issues an access token.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — email not found or password wrong.
      Uses the same error for both to avoid account enumeration.

    Returns: {"token": "...", "user": {...}}
    """
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The email or password is incorrect.",
            401,
        )

    return {
        "token": _create_access_token(user.id, user.email),
        "user": serialize_user(user),
    }
