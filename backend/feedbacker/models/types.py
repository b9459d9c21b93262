"""
Portable column types for SQLite (local dev, tests) and PostgreSQL.
"""
import uuid
from sqlalchemy import String, TypeDecorator


class UuidType(TypeDecorator):
    """UUID stored as canonical string(36). Accepts uuid.UUID or str on bind; always returns uuid.UUID."""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)
