"""
schemas/cycle_schema.py — Marshmallow schemas for cycle endpoints.

Validation responsibility:
  - This file: types, date formats, status values (INVALID_STATUS).
  - services/cycle_service.py: RECIPIENT_NOT_MEMBER and admin checks,
    which need the database.

cycleIndex is caller-supplied and not checked for uniqueness or order.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from tontine.app.errors import ErrorCode
from tontine.app.models.cycle import CycleStatus

_STATUS_VALUES = [s.value for s in CycleStatus]


class CreateCycleSchema(Schema):
    """POST /groups/:id/cycles"""

    cycle_index = fields.Int(
        required=True,
        strict=True,
        data_key="cycleIndex",
    )

    start_date = fields.DateTime(load_default=None, allow_none=True, data_key="startDate")
    end_date = fields.DateTime(load_default=None, allow_none=True, data_key="endDate")

    recipient_user_id = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        data_key="recipientUserId",
    )

    status = fields.Str(
        load_default=CycleStatus.ACTIVE.value,
        validate=validate.OneOf(_STATUS_VALUES, error=ErrorCode.INVALID_STATUS),
    )


class UpdateCycleSchema(Schema):
    """
    PUT /cycles/:id

    No defaults: an absent key is left alone, an explicit null recipient
    clears it.
    """

    recipient_user_id = fields.Int(
        allow_none=True,
        strict=True,
        data_key="recipientUserId",
    )

    status = fields.Str(
        validate=validate.OneOf(_STATUS_VALUES, error=ErrorCode.INVALID_STATUS),
    )
