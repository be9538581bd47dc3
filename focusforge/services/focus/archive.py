from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from focusforge.domain.errors import InvalidArgumentError
from focusforge.domain.interfaces import IFileService
from focusforge.utils.constants import ARCHIVE_KINDS
from focusforge.utils.paths import WorkPaths
from focusforge.utils.time_utils import iter_month_keys, month_key, parse_timestamp, to_utc

logger = logging.getLogger(__name__)


class ArchiveStore:
    """Append-only monthly JSONL archives of finished sessions and breaks."""

    def __init__(self, paths: WorkPaths, files: IFileService) -> None:
        self._paths = paths
        self._files = files

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in ARCHIVE_KINDS:
            raise InvalidArgumentError(f"Unknown archive kind: {kind!r}")

    def append(self, kind: str, entry: dict[str, Any]) -> Path:
        """Append ``entry`` to the month of its ``start_time`` (UTC)."""
        self._check_kind(kind)
        start = entry.get("start_time")
        if not isinstance(start, str):
            raise InvalidArgumentError("Archive entries need a start_time")
        out = self._paths.archive(kind, month_key(parse_timestamp(start)))
        self._files.append_line(out, json.dumps(entry, sort_keys=True, ensure_ascii=True))
        return out

    def read(self, kind: str, months: Iterable[str]) -> list[dict[str, Any]]:
        self._check_kind(kind)
        entries: list[dict[str, Any]] = []
        for month in months:
            path = self._paths.archive(kind, month)
            try:
                raw = self._files.read_bytes(path)
            except FileNotFoundError:
                continue
            for lineno, chunk in enumerate(raw.splitlines(), 1):
                if not chunk.strip():
                    continue
                try:
                    entry = json.loads(chunk.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    logger.warning("Skipping malformed archive line %s:%d", path, lineno)
                    continue
                if isinstance(entry, dict):
                    entries.append(entry)
                else:
                    logger.warning("Skipping non-object archive line %s:%d", path, lineno)
        return entries

    def read_between(self, kind: str, start: datetime, end: datetime) -> list[dict[str, Any]]:
        """Entries whose start_time falls in ``[start, end)``."""
        lo, hi = to_utc(start), to_utc(end)
        selected: list[dict[str, Any]] = []
        for entry in self.read(kind, iter_month_keys(lo, hi)):
            try:
                stamp = parse_timestamp(str(entry.get("start_time", "")))
            except InvalidArgumentError:
                logger.warning("Skipping archive entry without a valid start_time")
                continue
            if lo <= stamp < hi:
                selected.append(entry)
        return selected
