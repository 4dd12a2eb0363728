"""
routes/auth.py — Login route handler.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Return the standard response envelope: {"data": {...}, "warnings": []}

No business logic here. No DB queries. No bare SQL.
AppError propagates to the global error handler in app/__init__.py — routes
never catch it.

Registration lives at POST /users (routes/users.py).

Endpoints (url_prefix=/auth):
  POST   /auth/login     → 200
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tontine.app.extensions import db
from tontine.app.schemas.auth_schema import LoginSchema
from tontine.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate; return {token, user}. (No auth required.)"""
    data = LoginSchema().load(request.get_json(force=True) or {})
    result = auth_service.login_user(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
