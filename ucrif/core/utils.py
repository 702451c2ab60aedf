from __future__ import annotations

import re
from datetime import date, datetime, time, timezone

ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_date(value: object) -> datetime | None:
    """Best-effort conversion of stored date values to an aware UTC datetime.

    Accepts native datetimes (naive ones are taken as UTC, which is how
    SQLite hands them back), dates, ``YYYY-MM-DD`` strings (midnight) and any
    other ISO 8601 string. Anything else yields ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if ISO_DAY_RE.match(text):
            try:
                parsed = datetime.combine(date.fromisoformat(text), time.min)
            except ValueError:
                return None
        else:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_date(value: object) -> str:
    parsed = parse_date(value)
    return parsed.date().isoformat() if parsed else ""


def sort_timestamp(value: object) -> datetime:
    return parse_date(value) or EPOCH
