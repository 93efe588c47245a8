from __future__ import annotations

from datetime import date, datetime, timezone

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def as_date(value: date | datetime | str) -> date:
    """Coerce ``value`` to a date; unparseable text raises ``ValidationError``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Date must be YYYY-MM-DD: {value}")


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)
