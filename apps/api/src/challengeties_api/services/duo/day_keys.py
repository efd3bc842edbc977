"""Canonical UTC day keys (``YYYYMMDD``) shared by completion checks and rate limits."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any

_DATE_ONLY = re.compile(r"^(\d{4})[-/.]?(\d{2})[-/.]?(\d{2})$")


def day_key_for(moment: dt.datetime | dt.date) -> str:
    """Return the compact UTC day key for a datetime (naive values are UTC) or date."""

    if isinstance(moment, dt.datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=dt.timezone.utc)
        moment = moment.astimezone(dt.timezone.utc)
    return f"{moment.year:04d}{moment.month:02d}{moment.day:02d}"


def today_day_key(now: dt.datetime | None = None) -> str:
    return day_key_for(now or dt.datetime.now(dt.timezone.utc))


def normalize_day_key(value: Any) -> str | None:
    """Collapse any stored day representation into a compact UTC key.

    Accepts compact keys (``20260129``), dashed dates (``2026-01-29``), ISO-8601
    timestamps (offsets are converted to UTC), ``datetime``/``date`` objects and
    integer keys. Anything else, including impossible calendar dates, yields
    ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (dt.datetime, dt.date)):
        return day_key_for(value)
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None

    match = _DATE_ONLY.match(raw)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return day_key_for(dt.date(year, month, day))
        except ValueError:
            return None

    try:
        parsed = dt.datetime.fromisoformat(raw)
    except ValueError:
        return None
    return day_key_for(parsed)


__all__ = ["day_key_for", "normalize_day_key", "today_day_key"]
