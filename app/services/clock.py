import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    # Keep naive UTC timestamps to match existing DB column types/semantics.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_uuid(value, not_found_cls):
    """Coerce an identifier from a request, unknown shapes count as missing."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise not_found_cls()
