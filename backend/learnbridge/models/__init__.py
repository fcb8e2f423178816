"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from learnbridge.models.user import User
from learnbridge.models.module import Module
from learnbridge.models.resource import Resource

__all__ = ["User", "Module", "Resource"]
