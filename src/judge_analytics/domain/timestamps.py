"""
Timestamp helpers

Judge logs and result bundles use ISO-8601 timestamps, with or without a "Z" suffix.
"""

from __future__ import annotations

from datetime import datetime, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime (naive values are taken as UTC).

    Returns None when the value is empty or unparseable.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: str | None) -> datetime:
    """Sort key that places unparseable timestamps first."""
    return parse_timestamp(value) or _EPOCH
