"""
tests/unit/test_validation_schemas.py — Unit tests for all marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Every schema rejects invalid input with a ValidationError on the right key
  - Field-level rules (type, length, enum, decimal precision) live in schemas
  - Registered error codes (INVALID_ROLE, INVALID_STATUS,
    INVALID_AMOUNT_PRECISION) are the ValidationError message itself, so the
    app's handler can map them through
  - Membership and recipient rules are NOT tested here; they need the DB

No database, no Flask application context: schemas inherit from
marshmallow.Schema directly (not ma.Schema).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from marshmallow import ValidationError

from tontine.app.errors import ErrorCode
from tontine.app.schemas.auth_schema import LoginSchema, RegisterSchema
from tontine.app.schemas.cycle_schema import CreateCycleSchema, UpdateCycleSchema
from tontine.app.schemas.group_schema import CreateGroupSchema, UpdateGroupSchema
from tontine.app.schemas.membership_schema import (
    AddMembershipSchema,
    MembershipFilterSchema,
    UpdateRoleSchema,
)
from tontine.app.schemas.user_schema import (
    ChangePasswordSchema,
    PushTokenSchema,
    UpdateProfileSchema,
    UpdateSettingsSchema,
)


# ═══════════════════════════════════════════════════════════════════════════
# RegisterSchema / LoginSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestRegisterSchema:

    def _load(self, data: dict):
        return RegisterSchema().load(data)

    def test_valid_payload(self):
        result = self._load({
            "email": "alice@example.com",
            "password": "secret",
            "name": "Alice",
            "phone": "+15550001",
        })
        assert result["email"] == "alice@example.com"
        assert result["name"] == "Alice"

    def test_name_and_phone_default_to_none(self):
        result = self._load({"email": "a@b.com", "password": "secret"})
        assert result["name"] is None
        assert result["phone"] is None

    def test_password_exactly_6_chars_passes(self):
        """Boundary: min 6 chars."""
        assert "password" in self._load({"email": "a@b.com", "password": "abcdef"})

    def test_password_too_short_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"email": "a@b.com", "password": "abcde"})
        assert "password" in exc.value.messages

    def test_password_over_72_bytes_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"email": "a@b.com", "password": "a" * 73})
        assert "password" in exc.value.messages

    def test_password_length_counts_utf8_bytes(self):
        assert "password" in self._load({"email": "a@b.com", "password": "é" * 36})
        with pytest.raises(ValidationError):
            self._load({"email": "a@b.com", "password": "é" * 37})

    def test_invalid_email_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"email": "notanemail", "password": "secret"})
        assert "email" in exc.value.messages

    def test_missing_email_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"password": "secret"})
        assert "email" in exc.value.messages

    def test_phone_too_long_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"email": "a@b.com", "password": "secret", "phone": "1" * 33})
        assert "phone" in exc.value.messages


class TestLoginSchema:

    def test_valid_payload(self):
        result = LoginSchema().load({"email": "a@b.com", "password": "x"})
        assert result == {"email": "a@b.com", "password": "x"}

    def test_missing_password_raises(self):
        with pytest.raises(ValidationError) as exc:
            LoginSchema().load({"email": "a@b.com"})
        assert "password" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# User profile / settings
# ═══════════════════════════════════════════════════════════════════════════

class TestUserSchemas:

    def test_profile_loads_only_supplied_keys(self):
        assert UpdateProfileSchema().load({"name": "Bob"}) == {"name": "Bob"}

    def test_profile_accepts_null_phone(self):
        assert UpdateProfileSchema().load({"phone": None}) == {"phone": None}

    def test_change_password_uses_snake_case_keys(self):
        result = ChangePasswordSchema().load({
            "current_password": "old-one",
            "new_password": "new-one",
        })
        assert result == {"current_password": "old-one", "new_password": "new-one"}

    def test_change_password_short_new_password_raises(self):
        with pytest.raises(ValidationError) as exc:
            ChangePasswordSchema().load({"current_password": "old-one", "new_password": "abc"})
        assert "new_password" in exc.value.messages

    def test_settings_requires_boolean(self):
        assert UpdateSettingsSchema().load({"notifications_enabled": False}) == {
            "notifications_enabled": False,
        }
        with pytest.raises(ValidationError) as exc:
            UpdateSettingsSchema().load({})
        assert "notifications_enabled" in exc.value.messages

    def test_push_token_accepts_null(self):
        assert PushTokenSchema().load({"pushToken": None}) == {"push_token": None}

    def test_push_token_required(self):
        with pytest.raises(ValidationError) as exc:
            PushTokenSchema().load({})
        assert "pushToken" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Group schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateGroupSchema:

    def _load(self, data: dict):
        return CreateGroupSchema().load(data)

    def test_valid_payload_returns_decimal(self):
        result = self._load({
            "name": "Family",
            "contribution": "50.00",
            "frequency": "monthly",
            "maxMembers": 8,
        })
        assert isinstance(result["contribution"], Decimal)
        assert result["contribution"] == Decimal("50.00")
        assert result["max_members"] == 8

    def test_optional_fields_default_to_none(self):
        result = self._load({"name": "Family"})
        assert result["description"] is None
        assert result["contribution"] is None
        assert result["max_members"] is None

    def test_whitespace_name_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"name": "   "})
        assert "name" in exc.value.messages

    def test_name_over_100_chars_raises(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"name": "a" * 101})
        assert "name" in exc.value.messages

    @pytest.mark.parametrize("amount", ["10", "10.1", "10.12", "-5.00", "0"])
    def test_up_to_two_decimals_passes(self, amount):
        assert self._load({"name": "G", "contribution": amount})["contribution"] == Decimal(amount)

    def test_three_decimals_raises_precision_code(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"name": "G", "contribution": "10.123"})
        assert exc.value.messages["contribution"] == [ErrorCode.INVALID_AMOUNT_PRECISION]

    def test_max_members_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"name": "G", "maxMembers": 0})
        assert "maxMembers" in exc.value.messages

    def test_max_members_rejects_float(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"name": "G", "maxMembers": 2.0})
        assert "maxMembers" in exc.value.messages


class TestUpdateGroupSchema:

    def test_only_supplied_keys_are_loaded(self):
        assert UpdateGroupSchema().load({"name": "New"}) == {"name": "New"}

    def test_null_contribution_is_kept(self):
        assert UpdateGroupSchema().load({"contribution": None}) == {"contribution": None}

    def test_empty_body_loads_empty(self):
        assert UpdateGroupSchema().load({}) == {}


# ═══════════════════════════════════════════════════════════════════════════
# Membership schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestMembershipSchemas:

    def test_add_defaults_role_to_member(self):
        result = AddMembershipSchema().load({"userId": 2, "groupId": 3})
        assert result == {"user_id": 2, "group_id": 3, "role": "member"}

    def test_add_unknown_role_carries_error_code(self):
        with pytest.raises(ValidationError) as exc:
            AddMembershipSchema().load({"userId": 2, "groupId": 3, "role": "owner"})
        assert exc.value.messages["role"] == [ErrorCode.INVALID_ROLE]

    def test_add_requires_both_ids(self):
        with pytest.raises(ValidationError) as exc:
            AddMembershipSchema().load({"userId": 2})
        assert "groupId" in exc.value.messages

    def test_add_rejects_string_ids(self):
        with pytest.raises(ValidationError) as exc:
            AddMembershipSchema().load({"userId": "2", "groupId": 3})
        assert "userId" in exc.value.messages

    def test_update_role_requires_role(self):
        with pytest.raises(ValidationError) as exc:
            UpdateRoleSchema().load({})
        assert "role" in exc.value.messages

    def test_filter_parses_query_strings(self):
        result = MembershipFilterSchema().load({"groupId": "7"})
        assert result == {"user_id": None, "group_id": 7}


# ═══════════════════════════════════════════════════════════════════════════
# Cycle schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCycleSchemas:

    def test_create_defaults(self):
        result = CreateCycleSchema().load({"cycleIndex": 1})
        assert result == {
            "cycle_index": 1,
            "start_date": None,
            "end_date": None,
            "recipient_user_id": None,
            "status": "active",
        }

    def test_create_parses_dates(self):
        result = CreateCycleSchema().load({
            "cycleIndex": 2,
            "startDate": "2026-01-01T00:00:00Z",
            "endDate": "2026-02-01T00:00:00Z",
        })
        assert isinstance(result["start_date"], datetime)
        assert result["end_date"].month == 2

    def test_create_requires_cycle_index(self):
        with pytest.raises(ValidationError) as exc:
            CreateCycleSchema().load({})
        assert "cycleIndex" in exc.value.messages

    def test_create_unknown_status_carries_error_code(self):
        with pytest.raises(ValidationError) as exc:
            CreateCycleSchema().load({"cycleIndex": 1, "status": "paused"})
        assert exc.value.messages["status"] == [ErrorCode.INVALID_STATUS]

    def test_update_distinguishes_null_from_absent(self):
        assert UpdateCycleSchema().load({}) == {}
        assert UpdateCycleSchema().load({"recipientUserId": None}) == {"recipient_user_id": None}

    def test_update_accepts_completed(self):
        assert UpdateCycleSchema().load({"status": "completed"}) == {"status": "completed"}
