"""Parsing and formatting of the plan form's time fields."""

from __future__ import annotations

from datetime import datetime, timezone

import dateparser

FORM_TIME_FORMAT = "%Y-%m-%dT%H:%M"


def parse_form_time(raw: str | None, now: datetime) -> datetime | None:
    """Parse a form time value using dateparser, returning a UTC datetime.

    Accepts ``datetime-local`` values ("2026-03-05T15:30") as well as free
    text ("tomorrow at 4pm"), resolved relative to *now*.
    """
    if not raw or not raw.strip():
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        pass
    else:
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    settings = {
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": now.astimezone(timezone.utc).replace(tzinfo=None),
        "TIMEZONE": "UTC",
        "TO_TIMEZONE": "UTC",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(raw.strip(), settings=settings)
    if result is None:
        return None
    return result.replace(tzinfo=timezone.utc)


def format_form_time(value: datetime | None) -> str:
    """Render a stored timestamp the way the form's time inputs expect it."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(FORM_TIME_FORMAT)
