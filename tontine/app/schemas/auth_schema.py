"""
schemas/auth_schema.py — Marshmallow schemas for registration and login.

Validation responsibility:
  - This file: field types, lengths, formats.
  - services/auth_service.py: DUPLICATE_EMAIL check
    (cross-entity: requires a DB lookup — not a schema concern).

IMPORTANT: All schemas inherit from marshmallow.Schema directly.
           Do NOT use ma.Schema — it requires an active Flask app context
           and breaks unit tests. See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

MIN_PASSWORD_LENGTH = 6
# bcrypt only accepts up to 72 bytes of input.
MAX_PASSWORD_BYTES = 72


def validate_password_length(value: str) -> None:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes long."
        )


class RegisterSchema(Schema):
    """
    POST /users

    Field rules:
      email    : valid email format, max 255
      password : min 6 chars, max 72 bytes (UTF-8)
      name     : optional, max 100
      phone    : optional, max 32

    Email uniqueness is enforced in auth_service.py, not here, because it
    requires a DB query.
    """

    # marshmallow's Email field applies RFC-5322-compatible validation.
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate_password_length,
    )

    name = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=100),
    )

    phone = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=32),
    )


class LoginSchema(Schema):
    """
    POST /auth/login

    Accepts email + password. Credential correctness is checked in
    auth_service.py (INVALID_CREDENTIALS, 401).
    """

    email = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)
