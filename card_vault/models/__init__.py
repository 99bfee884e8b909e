"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs at startup and in the test fixtures.
"""

from card_vault.models.user import User  # noqa: F401
from card_vault.models.card import Card  # noqa: F401
