"""
routes/payments.py — Payment route handlers.

Registered at the root (no url_prefix): owns /cycles/<id>/payments and
/payments/<id>/pay.

Endpoints:
  GET  /cycles/:id/payments   → 200  payments with user + cycle (members)
  PUT  /payments/:id/pay      → 200  mark paid (payer or group admin)
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from tontine.app.extensions import db
from tontine.app.middleware.auth_middleware import AuthIdentity, require_auth
from tontine.app.serializers import serialize_payment
from tontine.app.services import payment_service

payments_bp = Blueprint("payments", __name__)


@payments_bp.route("/cycles/<int:cycle_id>/payments", methods=["GET"])
@require_auth
def list_for_cycle(cycle_id: int, identity: AuthIdentity):
    """GET /cycles/:id/payments"""
    payments = payment_service.list_for_cycle(
        cycle_id=cycle_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [serialize_payment(p, nested=True) for p in payments],
        "warnings": [],
    }), 200


@payments_bp.route("/payments/<int:payment_id>/pay", methods=["PUT"])
@require_auth
def mark_paid(payment_id: int, identity: AuthIdentity):
    """PUT /payments/:id/pay — No body. Re-marking overwrites paidAt."""
    payment = payment_service.mark_paid(
        payment_id=payment_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_payment(payment), "warnings": []}), 200
