"""Custom SQLAlchemy types for the application."""

from typing import Any
from uuid import UUID

from sqlalchemy import Uuid
from sqlalchemy.types import TypeDecorator
from ulid import ULID


def parse_entity_id(value: str) -> ULID | None:
    """Parse a ULID or UUID string into a ULID, or None if it is neither.

    Entity references arrive either as 26-character ULIDs or as legacy
    hyphenated UUIDs; both address the same UUID column.
    """
    candidate = value.strip()
    if len(candidate) == 26:
        try:
            return ULID.from_str(candidate)
        except ValueError:
            return None
    if len(candidate) == 36 and candidate.count("-") == 4:
        try:
            return ULID.from_uuid(UUID(candidate))
        except ValueError:
            return None
    return None


class ULIDType(TypeDecorator[str]):
    """SQLAlchemy type that stores ULID as a UUID column.

    - Database: UUID (native on PostgreSQL, CHAR(32) elsewhere)
    - Python: ULID object or string
    - API: 26-character string
    """

    impl = Uuid
    cache_ok = True

    def process_bind_param(self, value: str | ULID | None, dialect: Any) -> UUID | None:
        """Convert ULID string/object to UUID for storage."""
        if value is None:
            return None
        if isinstance(value, str):
            parsed = parse_entity_id(value)
            if parsed is None:
                raise ValueError(f"Cannot convert {value!r} to ULID")
            value = parsed
        if isinstance(value, ULID):
            return value.to_uuid()
        raise ValueError(f"Cannot convert {type(value)} to ULID")

    def process_result_value(self, value: UUID | None, dialect: Any) -> str | None:
        """Convert UUID back to ULID string."""
        if value is None:
            return None
        return str(ULID.from_uuid(value))
