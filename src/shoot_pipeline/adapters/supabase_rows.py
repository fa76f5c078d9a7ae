"""Row conversion helpers shared by the Supabase repositories."""

from datetime import datetime
from uuid import UUID


def parse_timestamp(value: object) -> datetime | None:
    """Parse a timestamptz column value."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def optional_uuid(value: object) -> UUID | None:
    """Parse a nullable uuid column value."""
    return UUID(str(value)) if value else None
