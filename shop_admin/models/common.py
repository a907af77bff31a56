import uuid
from datetime import datetime, timezone
from decimal import Decimal


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # naive UTC, matching what the DB columns store
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def money(value, places: int = 2) -> str | None:
    """Numeric columns go over the wire as fixed-point strings ("1299.90")."""
    if value is None:
        return None
    return f"{Decimal(str(value)):.{places}f}"
