"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic and the CLI commands to load the app without serving

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Initialise extensions (SQLAlchemy, Marshmallow, Flask-Mail) via init_app()
  3. Register all route blueprints (no version prefix)
  4. Register global error handlers (AppError → JSON, Exception → 500)
  5. Register a custom JSON provider to serialise Decimal as string
  6. Register the reminder CLI commands and, when enabled, start the
     in-process reminder scheduler

Transactions: one per request. Services flush, routes commit once, and every
error handler rolls the session back so a failed request leaves no writes.

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic inspects it. They are not used
  directly here — the import side-effect is sufficient.
"""

from __future__ import annotations

import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from tontine.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.
# Monetary amounts are serialised as strings to preserve precision.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("50.00") → "50.00" (not 50.0)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from tontine.app.extensions import db, ma, mail
    db.init_app(app)
    ma.init_app(app)
    mail.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from tontine.app.models import (  # noqa: F401
            cycle,
            group,
            membership,
            payment,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    from tontine.app.cli import register_commands
    register_commands(app)

    from tontine.app.scheduler import init_scheduler
    init_scheduler(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints.

    cycles_bp and payments_bp are registered at the root because each owns
    paths under two resources (/groups/<id>/cycles and /cycles/<id>, or
    /cycles/<id>/payments and /payments/<id>/pay).
    """
    from tontine.app.routes.auth import auth_bp
    from tontine.app.routes.cycles import cycles_bp
    from tontine.app.routes.groups import groups_bp
    from tontine.app.routes.health import health_bp
    from tontine.app.routes.memberships import memberships_bp
    from tontine.app.routes.payments import payments_bp
    from tontine.app.routes.users import users_bp

    app.register_blueprint(auth_bp,        url_prefix="/auth")
    app.register_blueprint(users_bp,       url_prefix="/users")
    app.register_blueprint(groups_bp,      url_prefix="/groups")
    app.register_blueprint(memberships_bp, url_prefix="/memberships")
    app.register_blueprint(cycles_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(health_bp,      url_prefix="/api")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD / registered-code responses (400)
      HTTPException   → werkzeug errors (unknown route, bad JSON) in the same envelope
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server. The traceback is written to the
    app logger, which is where error tracking picks it up.
    """
    from tontine.app.errors import AppError, ErrorCode
    from tontine.app.extensions import db

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here.
        """
        db.session.rollback()
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST field error is returned. If its message is a registered
        ErrorCode constant (e.g. INVALID_ROLE) that code is used directly;
        otherwise MISSING_FIELD or INVALID_FIELD.
        """
        db.session.rollback()

        messages = error.messages  # e.g. {"role": ["INVALID_ROLE"]}
        known_codes = set(vars(ErrorCode).values())

        field = None
        raw_message = "Invalid input."

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None
                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                else:
                    raw_message = str(field_errors)
                break
        elif isinstance(messages, list) and messages:
            raw_message = messages[0]

        if raw_message in known_codes:
            code = raw_message
        elif str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
        else:
            code = ErrorCode.INVALID_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": _code_to_message(code) if raw_message in known_codes
                else raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        db.session.rollback()
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        """
        db.session.rollback()
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a web build served from another
    local port can call the API with Authorization headers. The native mobile
    client does not need CORS.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
        "INVALID_ROLE": "role must be 'admin' or 'member'.",
        "INVALID_STATUS": "status must be 'active' or 'completed'.",
    }
    return _messages.get(code, "Invalid input.")
