from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any

from focusforge.domain.errors import InvalidArgumentError
from focusforge.domain.results import BreakCompliance, Rollup, StatsSummary
from focusforge.services.focus.archive import ArchiveStore
from focusforge.services.state_store import CounterStore
from focusforge.utils.constants import ARCHIVE_BREAKS, ARCHIVE_SESSIONS
from focusforge.utils.time_utils import to_utc, utc_now

PERIOD_TODAY = "today"
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIODS = (PERIOD_TODAY, PERIOD_WEEK, PERIOD_MONTH)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _percent(part: int, whole: int) -> int:
    return part * 100 // whole if whole else 0


class StatsService:
    """Daily/weekly/monthly rollups over the archives, in local time."""

    def __init__(
        self,
        archive: ArchiveStore,
        counter: CounterStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        tz: tzinfo | None = None,
    ) -> None:
        self._archive = archive
        self._counter = counter
        self._clock = clock
        self._tz = tz

    def _local(self, now: datetime | None) -> datetime:
        # astimezone(None) converts to the system's local zone
        return to_utc(now or self._clock()).astimezone(self._tz)

    def _midnight(self, day: date) -> datetime:
        if self._tz is None:
            # resolve the system offset for that date, not today's
            return datetime.combine(day, time.min).astimezone()
        return datetime.combine(day, time.min, tzinfo=self._tz)

    def bounds(self, period: str, now: datetime | None = None) -> tuple[datetime, datetime, int]:
        """Local ``[start, end)`` of the period containing ``now`` and the days elapsed in it."""
        today = self._local(now).date()
        if period == PERIOD_TODAY:
            first, last = today, today + timedelta(days=1)
        elif period == PERIOD_WEEK:
            first = today - timedelta(days=today.weekday())
            last = first + timedelta(days=7)
        elif period == PERIOD_MONTH:
            first = today.replace(day=1)
            if first.month == 12:
                last = first.replace(year=first.year + 1, month=1)
            else:
                last = first.replace(month=first.month + 1)
        else:
            raise InvalidArgumentError(f"Unknown period {period!r}. Options: {', '.join(PERIODS)}")
        days = (today - first).days + 1
        return self._midnight(first), self._midnight(last), max(1, days)

    def rollup(self, period: str = PERIOD_TODAY, now: datetime | None = None) -> Rollup:
        start, end, days = self.bounds(period, now)
        entries = self._archive.read_between(ARCHIVE_SESSIONS, start, end)
        sessions = len(entries)
        total = sum(_as_int(e.get("duration_seconds")) for e in entries)
        pomodoros = sum(_as_int(e.get("pomodoro_count")) for e in entries)
        return Rollup(
            period=period,
            start=start.isoformat(timespec="seconds"),
            end=end.isoformat(timespec="seconds"),
            sessions=sessions,
            total_duration_seconds=total,
            pomodoros=pomodoros,
            days=days,
            average_per_day_seconds=total // days,
            average_session_seconds=total // sessions if sessions else 0,
        )

    def break_compliance(self, now: datetime | None = None) -> BreakCompliance:
        start, end, _days = self.bounds(PERIOD_MONTH, now)
        sessions = self._archive.read_between(ARCHIVE_SESSIONS, start, end)
        breaks = self._archive.read_between(ARCHIVE_BREAKS, start, end)

        taken = len(breaks)
        completed = sum(1 for b in breaks if b.get("completed_fully") is True)
        actual = sum(_as_int(b.get("duration_seconds")) for b in breaks)
        planned = sum(_as_int(b.get("planned_duration_seconds")) for b in breaks)
        return BreakCompliance(
            month=start.strftime("%Y-%m"),
            work_sessions=len(sessions),
            breaks_taken=taken,
            breaks_completed_fully=completed,
            compliance_rate_percent=min(100, _percent(taken, len(sessions))),
            completion_rate_percent=_percent(completed, taken),
            average_actual_seconds=actual // taken if taken else 0,
            average_planned_seconds=planned // taken if taken else 0,
        )

    def summary(self, now: datetime | None = None) -> StatsSummary:
        now = now or self._clock()
        return StatsSummary(
            today=self.rollup(PERIOD_TODAY, now),
            week=self.rollup(PERIOD_WEEK, now),
            month=self.rollup(PERIOD_MONTH, now),
            cycle_count=self._counter.value(),
            compliance=self.break_compliance(now),
        )
