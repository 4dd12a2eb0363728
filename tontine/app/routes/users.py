"""
routes/users.py — Registration, profile and account route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/users):
  POST   /users                 → 201  register (no auth)
  GET    /users?phone=          → 200  look a user up by phone
  PUT    /users/push-token      → 200  store the caller's Expo push token
  GET    /users/:id             → 200  own profile
  PUT    /users/:id             → 200  update name / phone
  DELETE /users/:id             → 200  delete own account
  PUT    /users/:id/password    → 200  change password
  PUT    /users/:id/settings    → 200  notification settings
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tontine.app.errors import AppError, ErrorCode
from tontine.app.extensions import db
from tontine.app.middleware.auth_middleware import AuthIdentity, require_auth
from tontine.app.schemas.auth_schema import RegisterSchema
from tontine.app.schemas.user_schema import (
    ChangePasswordSchema,
    PushTokenSchema,
    UpdateProfileSchema,
    UpdateSettingsSchema,
)
from tontine.app.services import auth_service, user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("", methods=["POST"])
def register():
    """POST /users — Create an account. Returns the user, never the password."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(
        email=data["email"],
        password=data["password"],
        name=data["name"],
        phone=data["phone"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@users_bp.route("", methods=["GET"])
@require_auth
def find_by_phone(identity: AuthIdentity):
    """GET /users?phone= — Find a user to invite."""
    phone = (request.args.get("phone") or "").strip()
    if not phone:
        raise AppError(
            ErrorCode.MISSING_FIELD,
            "The 'phone' query parameter is required.",
            400,
            field="phone",
        )
    result = user_service.find_by_phone(phone=phone, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/push-token", methods=["PUT"])
@require_auth
def set_push_token(identity: AuthIdentity):
    """PUT /users/push-token — Register (or clear) the caller's push token."""
    data = PushTokenSchema().load(request.get_json(force=True) or {})
    user_service.set_push_token(
        caller_id=identity.user_id,
        push_token=data["push_token"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": {"message": "Push token updated."}, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_user(user_id: int, identity: AuthIdentity):
    """GET /users/:id — Own profile only."""
    result = user_service.get_user(
        user_id=user_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["PUT"])
@require_auth
def update_profile(user_id: int, identity: AuthIdentity):
    """PUT /users/:id — Update name and/or phone."""
    data = UpdateProfileSchema().load(request.get_json(force=True) or {})
    result = user_service.update_profile(
        user_id=user_id,
        caller_id=identity.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@require_auth
def delete_account(user_id: int, identity: AuthIdentity):
    """DELETE /users/:id — Delete own account and its payments and memberships."""
    user_service.delete_account(
        user_id=user_id,
        caller_id=identity.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "id": user_id},
        "warnings": [],
    }), 200


@users_bp.route("/<int:user_id>/password", methods=["PUT"])
@require_auth
def change_password(user_id: int, identity: AuthIdentity):
    """PUT /users/:id/password — Requires the current password."""
    data = ChangePasswordSchema().load(request.get_json(force=True) or {})
    user_service.change_password(
        user_id=user_id,
        caller_id=identity.user_id,
        current_password=data["current_password"],
        new_password=data["new_password"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": {"message": "Password updated."}, "warnings": []}), 200


@users_bp.route("/<int:user_id>/settings", methods=["PUT"])
@require_auth
def update_settings(user_id: int, identity: AuthIdentity):
    """PUT /users/:id/settings — Toggle notifications."""
    data = UpdateSettingsSchema().load(request.get_json(force=True) or {})
    result = user_service.update_settings(
        user_id=user_id,
        caller_id=identity.user_id,
        notifications_enabled=data["notifications_enabled"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
