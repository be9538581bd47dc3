from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from focusforge.domain.errors import (
    AlreadyActiveError,
    BreakRequiredError,
    CorruptStateError,
    InvalidArgumentError,
    NoActiveBreakError,
)
from focusforge.domain.interfaces import IFileService, INotifier
from focusforge.domain.models import BreakRecord
from focusforge.domain.results import BreakResult, BreakSummary
from focusforge.services.config.options import WorkOptions
from focusforge.services.enforcement.enforcement_service import EnforcementService
from focusforge.services.focus.archive import ArchiveStore
from focusforge.services.state_store import CounterStore, JsonStateStore
from focusforge.services.timers.timer_service import TimerService
from focusforge.utils.constants import (
    ARCHIVE_BREAKS,
    BREAK_CUSTOM,
    BREAK_LONG,
    BREAK_SHORT,
    BREAK_TYPES,
    COMPLETION_PERCENT,
    SKIP_AFTER50,
    SKIP_ALWAYS,
    SKIP_NEVER,
    SKIP_TYPE_BASED,
    STATUS_INACTIVE,
    TIMER_BREAK,
)
from focusforge.utils.paths import WorkPaths
from focusforge.utils.time_utils import format_duration, to_timestamp, utc_now

logger = logging.getLogger(__name__)


def _is_live_break(doc: dict[str, Any] | None) -> bool:
    if doc is None:
        return False
    try:
        return BreakRecord.from_dict(doc).is_live
    except CorruptStateError:
        return False


class BreakService:
    """Break lifecycle: cadence, start/stop, skip policy and archival."""

    def __init__(
        self,
        paths: WorkPaths,
        files: IFileService,
        options: WorkOptions,
        enforcement: EnforcementService,
        timers: TimerService,
        archive: ArchiveStore,
        notifier: INotifier,
        counter: CounterStore,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = JsonStateStore(paths.break_json, files)
        self._options = options
        self._enforcement = enforcement
        self._timers = timers
        self._archive = archive
        self._notifier = notifier
        self._counter = counter
        self._clock = clock

    # ----- planning -----

    def cadence(self, cycle: int | None = None) -> tuple[str, int]:
        """Break owed after work cycle ``cycle`` (default: the current counter)."""
        count = self._counter.value() if cycle is None else cycle
        every = self._options.get("pomodoros_until_long")
        if count > 0 and count % every == 0:
            return BREAK_LONG, self._options.get("break_long")
        return BREAK_SHORT, self._options.get("break_short")

    def _plan(self, break_type: str | None, duration_seconds: int | None) -> tuple[str, int]:
        if break_type is None and duration_seconds is None:
            return self.cadence()
        if break_type is None:
            break_type = BREAK_CUSTOM
        if break_type not in BREAK_TYPES:
            raise InvalidArgumentError(
                f"Invalid break type {break_type!r}. Options: {', '.join(BREAK_TYPES)}"
            )
        if duration_seconds is None:
            if break_type == BREAK_CUSTOM:
                raise InvalidArgumentError("A custom break needs an explicit duration")
            duration_seconds = self._options.get(f"break_{break_type}")
        if (
            isinstance(duration_seconds, bool)
            or not isinstance(duration_seconds, int)
            or duration_seconds <= 0
        ):
            raise InvalidArgumentError(f"Break duration must be a positive number of seconds, got {duration_seconds!r}")
        return break_type, duration_seconds

    # ----- state -----

    def load(self) -> BreakRecord | None:
        doc = self._store.load()
        if doc is None:
            return None
        try:
            return BreakRecord.from_dict(doc)
        except CorruptStateError as exc:
            logger.warning("Ignoring corrupt break record: %s", exc)
            return None

    def is_active(self) -> bool:
        record = self.load()
        return record is not None and record.is_live

    def _result(self, record: BreakRecord, now: datetime, status: str) -> BreakResult:
        return BreakResult(
            status=status,
            break_type=record.break_type,
            start_time=record.start_time,
            planned_duration_seconds=record.planned_duration_seconds,
            elapsed_seconds=record.elapsed(now),
            remaining_seconds=record.remaining(now),
            scheduled=record.scheduled,
            auto_completed=record.auto_completed,
        )

    # ----- operations -----

    def start(
        self,
        break_type: str | None = None,
        duration_seconds: int | None = None,
        scheduled: bool = False,
    ) -> BreakResult:
        break_type, duration = self._plan(break_type, duration_seconds)
        now = self._clock()
        record = BreakRecord(
            break_type=break_type,
            start_time=to_timestamp(now),
            planned_duration_seconds=duration,
            scheduled=scheduled,
        )
        if not self._store.claim(record.to_dict(), _is_live_break):
            raise AlreadyActiveError("A break is already active. Stop it first.")

        try:
            self._timers.spawn(TIMER_BREAK, duration)
        except OSError as exc:
            logger.warning("Break timer not started: %s", exc)

        logger.info("Break started type=%s planned=%ss scheduled=%s", break_type, duration, scheduled)
        self._notifier.notify(
            "Break started",
            f"Take a {format_duration(duration)} {break_type} break. Step away from the screen.",
        )
        return self._result(record, now, "started")

    def can_skip(self, elapsed: int, record: BreakRecord | None = None) -> bool:
        """Whether the skip policy lets the break end after ``elapsed`` seconds."""
        record = record or self.load()
        if record is None or elapsed >= record.planned_duration_seconds:
            return True
        mode = self._options.get("break_skip_mode")
        if mode == SKIP_TYPE_BASED:
            mode = SKIP_AFTER50 if record.break_type == BREAK_LONG else SKIP_ALWAYS
        if mode == SKIP_NEVER:
            return False
        if mode == SKIP_AFTER50:
            return elapsed * 2 >= record.planned_duration_seconds
        return True

    def stop(self, force: bool = False) -> BreakSummary:
        record = self.load()
        if record is None:
            raise NoActiveBreakError("No active break")

        now = self._clock()
        elapsed = record.elapsed(now)
        if not force and not self.can_skip(elapsed, record):
            remaining = record.remaining(now)
            raise BreakRequiredError(
                f"Break cannot be skipped yet; {format_duration(remaining)} remaining",
                break_type=record.break_type,
            )

        completed = elapsed * 100 >= record.planned_duration_seconds * COMPLETION_PERCENT
        end_time = to_timestamp(now)
        entry = {
            **record.to_dict(),
            "status": "completed",
            "end_time": end_time,
            "duration_seconds": elapsed,
            "completed_fully": completed,
        }
        self._archive.append(ARCHIVE_BREAKS, entry)
        self._timers.cancel(TIMER_BREAK)
        self._store.clear()
        self._enforcement.close_break(now, completed)

        logger.info("Break stopped type=%s duration=%ss completed=%s", record.break_type, elapsed, completed)
        if completed:
            self._notifier.notify("Break complete", "Ready to get back to work.")
        else:
            self._notifier.notify("Break ended early", f"Only {format_duration(elapsed)} of rest.")
        return BreakSummary(
            break_type=record.break_type,
            start_time=record.start_time,
            end_time=end_time,
            duration_seconds=elapsed,
            planned_duration_seconds=record.planned_duration_seconds,
            completed_fully=completed,
            scheduled=record.scheduled,
            forced=force,
        )

    def status(self) -> BreakResult:
        record = self.load()
        if record is None:
            return BreakResult(status=STATUS_INACTIVE)
        return self._result(record, self._clock(), record.status)

    # ----- timer callback -----

    def mark_auto_completed(self) -> bool:
        """Flag the running break as served; the break timer does not repeat."""
        record = self.load()
        if record is None:
            return False
        record.auto_completed = True
        self._store.save(record.to_dict())
        self._notifier.notify("Break over", f"Your {record.break_type} break is done. Time to focus!")
        return False
