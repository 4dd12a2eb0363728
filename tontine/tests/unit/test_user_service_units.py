"""
Unit tests for user_service self-only guards and profile updates.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from tontine.app.errors import AppError, ErrorCode
from tontine.app.services import user_service


def _user(**overrides):
    fields = dict(
        id=7,
        email="alice@example.com",
        name="Alice",
        phone="+15550001",
        notifications_enabled=True,
        password_hash="hash",
        push_token=None,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize(
    "call",
    [
        lambda s: user_service.get_user(8, 7, s),
        lambda s: user_service.update_profile(8, 7, {"name": "x"}, s),
        lambda s: user_service.update_settings(8, 7, False, s),
        lambda s: user_service.delete_account(8, 7, s),
    ],
)
def test_other_users_account_is_forbidden(call):
    session = MagicMock()

    with pytest.raises(AppError) as exc_info:
        call(session)

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    session.get.assert_not_called()


def test_get_user_raises_when_deleted_after_token_issued():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        user_service.get_user(7, 7, session)

    assert exc_info.value.code == ErrorCode.USER_NOT_FOUND


def test_update_profile_leaves_absent_fields():
    session = MagicMock()
    user = _user()
    session.get.return_value = user

    result = user_service.update_profile(7, 7, {"phone": None}, session)

    assert user.name == "Alice"
    assert user.phone is None
    assert result["phone"] is None
    assert "password_hash" not in result


def test_find_by_phone_not_found_names_the_field():
    session = MagicMock()
    session.execute.return_value.scalars.return_value.first.return_value = None

    with pytest.raises(AppError) as exc_info:
        user_service.find_by_phone("+1000", session)

    assert exc_info.value.http_status == 404
    assert exc_info.value.field == "phone"


@patch("tontine.app.services.user_service.verify_password", return_value=False)
def test_change_password_rejects_wrong_current(mock_verify):
    session = MagicMock()
    user = _user()
    session.get.return_value = user

    with pytest.raises(AppError) as exc_info:
        user_service.change_password(7, 7, "wrong", "newsecret", session)

    assert exc_info.value.code == ErrorCode.INVALID_CREDENTIALS
    assert user.password_hash == "hash"


@patch("tontine.app.services.user_service.hash_password", return_value="new-hash")
@patch("tontine.app.services.user_service.verify_password", return_value=True)
def test_change_password_stores_new_hash(mock_verify, mock_hash):
    session = MagicMock()
    user = _user()
    session.get.return_value = user

    user_service.change_password(7, 7, "secret123", "newsecret", session)

    assert user.password_hash == "new-hash"
    mock_hash.assert_called_once_with("newsecret")


def test_set_push_token_can_clear():
    session = MagicMock()
    user = _user(push_token="ExponentPushToken[x]")
    session.get.return_value = user

    user_service.set_push_token(7, None, session)

    assert user.push_token is None


def test_delete_account_runs_ordered_cleanup():
    session = MagicMock()
    session.get.return_value = _user()

    user_service.delete_account(7, 7, session)

    # payments, recipient reset, memberships, user
    assert session.execute.call_count == 4
    session.flush.assert_called_once()
