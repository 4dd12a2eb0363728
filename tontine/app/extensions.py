"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy, marshmallow and Flask-Mail as module-level objects so
they can be imported anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db`, `ma` or `mail` from here wherever needed.

    from tontine.app.extensions import db, ma

Do not pass the app object directly to SQLAlchemy() or Marshmallow() at import
time — that would prevent running tests with a separate test app instance.
"""

from flask_mail import Mail
from flask_marshmallow import Marshmallow
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Schema inheritance rule:
#   Request schemas in app/schemas/ inherit from marshmallow.Schema directly,
#   NOT from ma.Schema. ma.Schema requires an active Flask application context
#   and the unit tests in tests/unit/ load schemas without one.
ma = Marshmallow()

mail = Mail()
