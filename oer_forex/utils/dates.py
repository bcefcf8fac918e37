"""Date helpers and the supported historical window for OER."""

from __future__ import annotations

from datetime import date, datetime, tzinfo

OER_MIN_AVAILABLE_DATE = date(1999, 1, 1)


def parse_date(value: str | date | datetime, tz: tzinfo | None = None) -> date:
    """Coerce ISO strings and datetimes into a calendar :class:`date`.

    Timezone-aware datetimes are first moved into ``tz`` when it is given, so
    the calendar date matches the zone "today" is measured in.
    """

    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def is_available(day: date, today: date) -> bool:
    """Return True when OER publishes end-of-day rates for ``day``."""

    return OER_MIN_AVAILABLE_DATE <= day <= today


def unavailable_message(day: date) -> str:
    return f"Exchange rate unavailable on the date [{day.isoformat()}]"


__all__ = ["OER_MIN_AVAILABLE_DATE", "is_available", "parse_date", "unavailable_message"]
