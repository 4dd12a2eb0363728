"""
routes/groups.py — Group route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/groups):
  POST   /groups        → 201  create group (caller becomes admin)
  GET    /groups        → 200  list caller's groups
  GET    /groups/:id    → 200  group + memberships (members only)
  PUT    /groups/:id    → 200  update (admin only)
  DELETE /groups/:id    → 200  delete with cycles, payments, memberships (admin only)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tontine.app.extensions import db
from tontine.app.middleware.auth_middleware import AuthIdentity, require_auth
from tontine.app.schemas.group_schema import CreateGroupSchema, UpdateGroupSchema
from tontine.app.services import group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("", methods=["POST"])
@require_auth
def create_group(identity: AuthIdentity):
    """POST /groups — Create a new group. Caller becomes its admin."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.create_group(
        data=data,
        creator_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("", methods=["GET"])
@require_auth
def list_groups(identity: AuthIdentity):
    """GET /groups — List all groups the authenticated user belongs to."""
    result = group_service.list_groups(
        user_id=identity.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>", methods=["GET"])
@require_auth
def get_group(group_id: int, identity: AuthIdentity):
    """GET /groups/:id — Group details with memberships. Caller must be a member."""
    result = group_service.get_group(
        group_id=group_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>", methods=["PUT"])
@require_auth
def update_group(group_id: int, identity: AuthIdentity):
    """PUT /groups/:id — Overwrite the supplied fields. Admin only."""
    data = UpdateGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.update_group(
        group_id=group_id,
        caller_id=identity.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>", methods=["DELETE"])
@require_auth
def delete_group(group_id: int, identity: AuthIdentity):
    """DELETE /groups/:id — Delete the group and everything in it. Admin only."""
    group_service.delete_group(
        group_id=group_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "id": group_id},
        "warnings": [],
    }), 200
