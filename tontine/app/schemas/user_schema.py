"""
schemas/user_schema.py — Marshmallow schemas for profile and settings endpoints.

The settings and password bodies use snake_case keys because that is what
the mobile client sends for those two screens.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from tontine.app.schemas.auth_schema import validate_password_length


class UpdateProfileSchema(Schema):
    """PUT /users/:id — both fields optional; absent keys are not written."""

    name = fields.Str(
        allow_none=True,
        validate=validate.Length(max=100),
    )

    phone = fields.Str(
        allow_none=True,
        validate=validate.Length(max=32),
    )


class ChangePasswordSchema(Schema):
    """PUT /users/:id/password"""

    current_password = fields.Str(required=True, load_only=True)

    new_password = fields.Str(
        required=True,
        load_only=True,
        validate=validate_password_length,
    )


class UpdateSettingsSchema(Schema):
    """PUT /users/:id/settings"""

    notifications_enabled = fields.Bool(required=True)


class PushTokenSchema(Schema):
    """PUT /users/push-token — null clears the stored token."""

    push_token = fields.Str(
        required=True,
        allow_none=True,
        data_key="pushToken",
        validate=validate.Length(max=255),
    )
