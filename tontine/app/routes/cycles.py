"""
routes/cycles.py — Cycle route handlers.

cycles_bp is registered at the root (no url_prefix) because it owns BOTH
/groups/<id>/cycles (create/list) AND /cycles/<id> (get/update/delete).

Endpoints:
  POST   /groups/:id/cycles        → 201  create cycle + one payment per member (admin)
  GET    /groups/:id/cycles        → 200  list cycles by index (members)
  GET    /cycles/:id               → 200  cycle + paidCount / totalCount (members)
  PUT    /cycles/:id               → 200  recipient and/or status (admin)
  DELETE /cycles/:id               → 200  delete cycle and its payments (admin)
  POST   /cycles/:id/auto-assign   → 200  pick the fairest recipient (admin)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tontine.app.extensions import db
from tontine.app.middleware.auth_middleware import AuthIdentity, require_auth
from tontine.app.schemas.cycle_schema import CreateCycleSchema, UpdateCycleSchema
from tontine.app.serializers import serialize_cycle
from tontine.app.services import cycle_service

cycles_bp = Blueprint("cycles", __name__)


@cycles_bp.route("/groups/<int:group_id>/cycles", methods=["POST"])
@require_auth
def create_cycle(group_id: int, identity: AuthIdentity):
    """POST /groups/:id/cycles — Open a cycle and fan out its payments."""
    data = CreateCycleSchema().load(request.get_json(force=True) or {})
    cycle = cycle_service.create_cycle(
        group_id=group_id,
        data=data,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "cycle": serialize_cycle(cycle),
            "message": "Cycle and payment records created successfully.",
        },
        "warnings": [],
    }), 201


@cycles_bp.route("/groups/<int:group_id>/cycles", methods=["GET"])
@require_auth
def list_cycles(group_id: int, identity: AuthIdentity):
    """GET /groups/:id/cycles — All cycles of a group, by index."""
    cycles = cycle_service.list_cycles(
        group_id=group_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [serialize_cycle(c) for c in cycles],
        "warnings": [],
    }), 200


@cycles_bp.route("/cycles/<int:cycle_id>", methods=["GET"])
@require_auth
def get_cycle(cycle_id: int, identity: AuthIdentity):
    """GET /cycles/:id"""
    result = cycle_service.get_cycle(
        cycle_id=cycle_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@cycles_bp.route("/cycles/<int:cycle_id>", methods=["PUT"])
@require_auth
def update_cycle(cycle_id: int, identity: AuthIdentity):
    """PUT /cycles/:id — Assign/clear the recipient, or change status."""
    data = UpdateCycleSchema().load(request.get_json(force=True) or {})
    cycle = cycle_service.update_cycle(
        cycle_id=cycle_id,
        data=data,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_cycle(cycle), "warnings": []}), 200


@cycles_bp.route("/cycles/<int:cycle_id>", methods=["DELETE"])
@require_auth
def delete_cycle(cycle_id: int, identity: AuthIdentity):
    """DELETE /cycles/:id"""
    cycle_service.delete_cycle(
        cycle_id=cycle_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "id": cycle_id},
        "warnings": [],
    }), 200


@cycles_bp.route("/cycles/<int:cycle_id>/auto-assign", methods=["POST"])
@require_auth
def auto_assign_recipient(cycle_id: int, identity: AuthIdentity):
    """POST /cycles/:id/auto-assign — Recipient = member with fewest payouts so far."""
    cycle = cycle_service.auto_assign_recipient(
        cycle_id=cycle_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": serialize_cycle(cycle, include_recipient=True),
        "warnings": [],
    }), 200
