"""
Column types and defaults shared by the models. Work on both SQLite and PostgreSQL.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, TypeDecorator
from sqlalchemy.types import JSON


def utcnow() -> datetime:
    """Python-side timestamp default (microsecond precision; SQLite CURRENT_TIMESTAMP is per-second)."""
    return datetime.now(timezone.utc)


class UuidType(TypeDecorator):
    """UUID stored as string(36)."""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class TagList(TypeDecorator):
    """List of free-form tags in a JSON column. Trims entries, drops blanks and repeats (order kept)."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        seen: list[str] = []
        for tag in value:
            t = str(tag).strip()
            if t and t not in seen:
                seen.append(t)
        return seen

    def process_result_value(self, value, dialect):
        return list(value or [])
