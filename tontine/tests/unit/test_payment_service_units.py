"""
Unit tests for payment_service.mark_paid authorization and timestamps.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from tontine.app.errors import AppError, ErrorCode
from tontine.app.services import payment_service

MODULE = "tontine.app.services.payment_service"


def _payment(user_id=5, paid=False, paid_at=None):
    return SimpleNamespace(
        id=1,
        user_id=user_id,
        paid=paid,
        paid_at=paid_at,
        cycle=SimpleNamespace(group_id=3),
    )


def test_owner_marks_paid_with_utc_timestamp():
    session = MagicMock()
    payment = _payment()
    session.get.return_value = payment

    payment_service.mark_paid(1, caller_id=5, session=session)

    assert payment.paid is True
    assert payment.paid_at.tzinfo == timezone.utc
    session.flush.assert_called_once()


@patch(f"{MODULE}.is_admin", return_value=False)
def test_other_member_is_forbidden(mock_is_admin):
    session = MagicMock()
    payment = _payment()
    session.get.return_value = payment

    with pytest.raises(AppError) as exc_info:
        payment_service.mark_paid(1, caller_id=6, session=session)

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    assert payment.paid is False
    mock_is_admin.assert_called_once_with(3, 6, session)


@patch(f"{MODULE}.is_admin", return_value=True)
def test_admin_may_mark_and_repeat_overwrites_paid_at(mock_is_admin):
    session = MagicMock()
    earlier = datetime(2020, 1, 1, tzinfo=timezone.utc)
    payment = _payment(paid=True, paid_at=earlier)
    session.get.return_value = payment

    payment_service.mark_paid(1, caller_id=6, session=session)

    assert payment.paid is True
    assert payment.paid_at > earlier


def test_missing_payment_raises_404():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        payment_service.mark_paid(404, caller_id=1, session=session)

    assert exc_info.value.code == ErrorCode.PAYMENT_NOT_FOUND
    assert exc_info.value.http_status == 404
