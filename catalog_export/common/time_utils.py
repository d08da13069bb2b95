"""Date helpers for run metadata and record timestamps."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from catalog_export.common.constants import STRICT_DATE_PATTERN

_STRICT_DATE_RE = re.compile(STRICT_DATE_PATTERN)
_COMPACT_DATE_RE = re.compile(r"^\d{8}$")


def utc_today_iso() -> str:
    return datetime.now(tz=timezone.utc).date().isoformat()


def parse_run_date(value: str | None) -> str:
    if not value:
        return utc_today_iso()
    parsed = date.fromisoformat(value)
    return parsed.isoformat()


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def parse_strict_date(value: str) -> date | None:
    """Return the date for a strict ``YYYY-MM-DD`` string, or None.

    The pattern limits years to 19xx/20xx; the calendar check then rejects
    days such as 2021-02-30 that the pattern alone lets through.
    """
    if not isinstance(value, str) or not _STRICT_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def as_date(value: object) -> date | None:
    """Normalise a driver-supplied timestamp to a calendar date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if _COMPACT_DATE_RE.match(text):
        return date(int(text[:4]), int(text[4:6]), int(text[6:8]))
    return date.fromisoformat(text[:10])


def generate_run_id(now: datetime | None = None) -> str:
    """Run id derived from the UTC start time, so ids sort by start."""
    stamp = now or datetime.now(tz=timezone.utc)
    return stamp.strftime("run-%Y%m%dT%H%M%S%fZ")
