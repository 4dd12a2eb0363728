"""
tests/unit/conftest.py — Shared setup for DB-free unit tests.

Model classes refer to each other by name in relationship(), so every mapped
module must be imported before the first model is instantiated.
"""

from tontine.app.models import cycle, group, membership, payment, user  # noqa: F401
