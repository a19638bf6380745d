"""Time-based staleness policy."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

DEFAULT_STALE_AFTER = timedelta(hours=24)


def utcnow_iso() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse ISO-8601, accepting a trailing ``Z``. Naive values are UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_stale(
    last_fetched: str | None,
    threshold: timedelta = DEFAULT_STALE_AFTER,
    now: datetime | None = None,
) -> bool:
    """Whether a cache refreshed at ``last_fetched`` is older than ``threshold``.

    A missing or unreadable timestamp counts as stale.
    """
    if not last_fetched:
        return True
    try:
        fetched_at = parse_timestamp(last_fetched)
    except ValueError:
        return True

    now = now or datetime.now(timezone.utc)
    return now - fetched_at > threshold
