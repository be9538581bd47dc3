from __future__ import annotations

import re
from datetime import datetime, timezone

from focusforge.domain.errors import InvalidArgumentError

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}
_DURATION_RE = re.compile(r"^(?:\d+[dhms])+$")
_DURATION_PART_RE = re.compile(r"(\d+)([dhms])")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC, never local time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_timestamp(value: datetime) -> str:
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` or offset form) into aware UTC."""
    raw = (text or "").strip()
    if not raw:
        raise InvalidArgumentError("Timestamp is empty")
    if raw[-1] in "Zz":
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid ISO-8601 timestamp: {text!r}") from exc
    return to_utc(parsed)


def epoch_to_timestamp(epoch: float) -> str:
    return to_timestamp(datetime.fromtimestamp(epoch, tz=timezone.utc))


def timestamp_to_epoch(text: str) -> int:
    return int(parse_timestamp(text).timestamp())


def elapsed_seconds(start: datetime | str, end: datetime | str | None = None) -> int:
    """Whole seconds from ``start`` to ``end`` (default: now), never negative."""
    start_dt = parse_timestamp(start) if isinstance(start, str) else to_utc(start)
    if end is None:
        end_dt = utc_now()
    else:
        end_dt = parse_timestamp(end) if isinstance(end, str) else to_utc(end)
    return max(0, int((end_dt - start_dt).total_seconds()))


def format_duration(seconds: int) -> str:
    """Format seconds as ``XhYmZs``; zero parts are omitted and 0 renders as ``0s``."""
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise InvalidArgumentError(f"Seconds must be an integer, got {seconds!r}")
    if seconds < 0:
        raise InvalidArgumentError(f"Seconds must be non-negative, got {seconds}")

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)


def parse_duration(text: str | int) -> int:
    """Parse ``2h30m``, ``90s``, ``1d2h`` or a bare number of seconds."""
    if isinstance(text, bool):
        raise InvalidArgumentError(f"Invalid duration: {text!r}")
    if isinstance(text, int):
        if text < 0:
            raise InvalidArgumentError(f"Duration must be non-negative, got {text}")
        return text

    raw = "".join(str(text or "").split()).lower()
    if not raw:
        raise InvalidArgumentError("Duration is empty")
    if raw.isdigit():
        return int(raw)
    if not _DURATION_RE.match(raw):
        raise InvalidArgumentError(f"Invalid duration: {text!r} (expected forms like 25m, 1h30m, 90s)")
    return sum(int(amount) * _UNIT_SECONDS[unit] for amount, unit in _DURATION_PART_RE.findall(raw))


def month_key(value: datetime) -> str:
    return to_utc(value).strftime("%Y-%m")


def iter_month_keys(start: datetime, end: datetime) -> list[str]:
    """UTC month keys from ``start`` through ``end`` inclusive."""
    first = to_utc(start)
    last = to_utc(end)
    if last < first:
        return []
    year, month = first.year, first.month
    keys: list[str] = []
    while (year, month) <= (last.year, last.month):
        keys.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return keys
