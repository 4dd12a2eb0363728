"""
middleware/auth_middleware.py — JWT authentication decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature and expiry (HS256)
  3. Builds an AuthIdentity(user_id, email) from the claims
  4. Calls the view with that identity as the `identity` keyword argument
  5. Raises the appropriate 401 AppError if any step fails

Strict responsibility boundary:
  - This middleware authenticates only. It never looks at memberships or
    roles; that is the service layer's job (403 FORBIDDEN).
  - Services receive the caller's user_id as a plain int, with no knowledge
    of JWT or HTTP headers.
  - Tokens are not refreshable or revocable: a token is valid until its exp.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, invalid signature, or bad payload
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Callable

import jwt
from flask import current_app, request

from tontine.app.errors import AppError, ErrorCode


@dataclass(frozen=True)
class AuthIdentity:
    """The authenticated caller, as proven by a verified access token."""

    user_id: int
    email: str | None = None


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Usage:
        @groups_bp.route("", methods=["GET"])
        @require_auth
        def list_groups(identity: AuthIdentity):
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        kwargs["identity"] = authenticate_request()
        return f(*args, **kwargs)

    return decorated


def authenticate_request() -> AuthIdentity:
    """
    Performs the full JWT authentication sequence for the current request.

    Separated from the decorator wrapper so tests can call it inside a
    test_request_context without wrapping a real view function.
    """
    auth_header = request.headers.get("Authorization", "")

    # ── Step 1: Require Authorization header ──────────────────────────────
    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    # ── Step 2: Parse "Bearer <token>" format ─────────────────────────────
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    raw_token = parts[1]

    # ── Step 3: Decode and verify the JWT ─────────────────────────────────
    try:
        payload = jwt.decode(
            raw_token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Log in again to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Covers: bad signature, malformed token, invalid claims, etc.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    # ── Step 4: Extract and validate the sub (user_id) claim ──────────────
    sub = payload.get("sub")
    if sub is None:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing the required 'sub' claim.",
            401,
        )

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
            401,
        )

    return AuthIdentity(user_id=user_id, email=payload.get("email"))
