"""
routes/memberships.py — Membership route handlers.

Endpoints (url_prefix=/memberships):
  POST   /memberships                    → 201  add a user to a group (admin only)
  GET    /memberships?userId=&groupId=   → 200  list, limited to the caller's groups
  PUT    /memberships/:id                → 200  change role (admin only)
  DELETE /memberships/:id                → 200  remove (self or admin)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tontine.app.extensions import db
from tontine.app.middleware.auth_middleware import AuthIdentity, require_auth
from tontine.app.schemas.membership_schema import (
    AddMembershipSchema,
    MembershipFilterSchema,
    UpdateRoleSchema,
)
from tontine.app.serializers import serialize_membership
from tontine.app.services import membership_service

memberships_bp = Blueprint("memberships", __name__)


@memberships_bp.route("", methods=["POST"])
@require_auth
def add_member(identity: AuthIdentity):
    """POST /memberships — Add a user to a group with an optional role."""
    data = AddMembershipSchema().load(request.get_json(force=True) or {})
    membership = membership_service.add_member(
        group_id=data["group_id"],
        target_user_id=data["user_id"],
        caller_id=identity.user_id,
        role=data["role"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_membership(membership), "warnings": []}), 201


@memberships_bp.route("", methods=["GET"])
@require_auth
def list_memberships(identity: AuthIdentity):
    """GET /memberships — Optional userId / groupId filters."""
    filters = MembershipFilterSchema().load(request.args)
    memberships = membership_service.list_memberships(
        caller_id=identity.user_id,
        user_id=filters["user_id"],
        group_id=filters["group_id"],
        session=db.session,
    )
    return jsonify({
        "data": [serialize_membership(m, include_group=True) for m in memberships],
        "warnings": [],
    }), 200


@memberships_bp.route("/<int:membership_id>", methods=["PUT"])
@require_auth
def update_role(membership_id: int, identity: AuthIdentity):
    """PUT /memberships/:id — Promote or demote a member."""
    data = UpdateRoleSchema().load(request.get_json(force=True) or {})
    membership = membership_service.update_role(
        membership_id=membership_id,
        role=data["role"],
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_membership(membership), "warnings": []}), 200


@memberships_bp.route("/<int:membership_id>", methods=["DELETE"])
@require_auth
def remove_member(membership_id: int, identity: AuthIdentity):
    """DELETE /memberships/:id — Leave a group, or remove someone as admin."""
    membership_service.remove_member(
        membership_id=membership_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"removed": True, "id": membership_id},
        "warnings": [],
    }), 200
