"""
schemas/group_schema.py — Marshmallow schemas for group endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim),
    contribution precision (max 2 decimal places).
  - services/group_service.py:
      - admin / member checks (FORBIDDEN, 403)
      - GROUP_NOT_FOUND (requires DB lookup)

Contribution sign is not validated; only its precision is.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from tontine.app.errors import ErrorCode


# ── Shared validators ──────────────────────────────────────────────────────

def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(name)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _validate_contribution_precision(value: Decimal | None) -> None:
    """
    Input with more than 2 decimal places is REJECTED with
    INVALID_AMOUNT_PRECISION, never rounded. The error handler recognises the
    code because it is the ValidationError message itself.
    """
    if value is None:
        return
    # Decimal("10.123").as_tuple().exponent == -3  → 3 dp → REJECT
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


_NAME_VALIDATORS = [
    validate.Length(
        min=1,
        max=100,
        error="Group name must be between 1 and 100 characters.",
    ),
    _validate_non_empty_after_trim,
]


class CreateGroupSchema(Schema):
    """
    POST /groups

    name is required; everything else is optional and may be null.
    """

    # VARCHAR(100) NOT NULL CHECK(LENGTH(TRIM(name)) > 0)
    name = fields.Str(required=True, validate=_NAME_VALIDATORS)

    description = fields.Str(load_default=None, allow_none=True)

    contribution = fields.Decimal(
        load_default=None,
        allow_none=True,
        validate=_validate_contribution_precision,
    )

    frequency = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=50),
    )

    max_members = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        data_key="maxMembers",
        validate=validate.Range(min=1, error="maxMembers must be a positive integer."),
    )


class UpdateGroupSchema(Schema):
    """
    PUT /groups/:id

    Same fields as create, all optional and without defaults, so the loaded
    dict contains exactly the keys the client sent.
    """

    name = fields.Str(validate=_NAME_VALIDATORS)

    description = fields.Str(allow_none=True)

    contribution = fields.Decimal(
        allow_none=True,
        validate=_validate_contribution_precision,
    )

    frequency = fields.Str(
        allow_none=True,
        validate=validate.Length(max=50),
    )

    max_members = fields.Int(
        allow_none=True,
        strict=True,
        data_key="maxMembers",
        validate=validate.Range(min=1, error="maxMembers must be a positive integer."),
    )
