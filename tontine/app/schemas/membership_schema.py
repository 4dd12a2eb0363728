"""
schemas/membership_schema.py — Marshmallow schemas for membership endpoints.

An unknown role is reported as INVALID_ROLE (400) by using the error code as
the validator message; the app's ValidationError handler maps it through.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from tontine.app.errors import ErrorCode
from tontine.app.models.membership import MembershipRole

_ROLE_VALUES = [r.value for r in MembershipRole]


class AddMembershipSchema(Schema):
    """POST /memberships"""

    user_id = fields.Int(
        required=True,
        strict=True,  # reject floats like 1.0 — integers only
        data_key="userId",
        validate=validate.Range(min=1, error="userId must be a positive integer."),
    )

    group_id = fields.Int(
        required=True,
        strict=True,
        data_key="groupId",
        validate=validate.Range(min=1, error="groupId must be a positive integer."),
    )

    role = fields.Str(
        load_default=MembershipRole.MEMBER.value,
        validate=validate.OneOf(_ROLE_VALUES, error=ErrorCode.INVALID_ROLE),
    )


class UpdateRoleSchema(Schema):
    """PUT /memberships/:id"""

    role = fields.Str(
        required=True,
        validate=validate.OneOf(_ROLE_VALUES, error=ErrorCode.INVALID_ROLE),
    )


class MembershipFilterSchema(Schema):
    """GET /memberships?userId=&groupId= — both optional."""

    user_id = fields.Int(load_default=None, data_key="userId")
    group_id = fields.Int(load_default=None, data_key="groupId")
