from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from focusforge.domain.errors import InvalidArgumentError
from focusforge.utils.time_utils import parse_timestamp, to_utc, utc_now

logger = logging.getLogger(__name__)

PWD_CHANGE = "pwd_change"


class ActivityLog:
    """Read-only view of the daily ``activity_<YYYY-MM-DD>.jsonl`` files."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, day: date) -> Path:
        return self.directory / f"activity_{day.isoformat()}.jsonl"

    def _iter_file(self, path: Path) -> Iterator[dict[str, Any]]:
        try:
            fh = path.open("rb")
        except FileNotFoundError:
            return
        with fh:
            for lineno, chunk in enumerate(fh, 1):
                chunk = chunk.strip()
                if not chunk:
                    continue
                try:
                    event = json.loads(chunk.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    logger.debug("Skipping malformed activity line %s:%d", path, lineno)
                    continue
                if isinstance(event, dict):
                    yield event

    def recent(self, since: datetime, now: datetime | None = None) -> list[dict[str, Any]]:
        """Events with a timestamp at or after ``since``, oldest first."""
        start = to_utc(since)
        end = to_utc(now) if now is not None else utc_now()
        events: list[tuple[datetime, dict[str, Any]]] = []
        day = start.date()
        while day <= end.date():
            for event in self._iter_file(self.path_for(day)):
                try:
                    stamp = parse_timestamp(str(event.get("timestamp", "")))
                except InvalidArgumentError:
                    continue
                if start <= stamp <= end:
                    events.append((stamp, event))
            day += timedelta(days=1)
        events.sort(key=lambda pair: pair[0])
        return [event for _, event in events]
