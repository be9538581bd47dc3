from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from focusforge.domain.errors import (
    AlreadyActiveError,
    CorruptStateError,
    NoActiveSessionError,
    ProjectSwitchBlockedError,
)
from focusforge.domain.interfaces import IFileService, INotifier
from focusforge.domain.models import SessionRecord
from focusforge.domain.results import SessionResult, SessionSummary, ViolationOutcome
from focusforge.services.config.options import WorkOptions
from focusforge.services.enforcement.enforcement_service import EnforcementService, project_name
from focusforge.services.focus import focus_scorer
from focusforge.services.focus.archive import ArchiveStore
from focusforge.services.focus.break_service import BreakService
from focusforge.services.state_store import CounterStore, JsonStateStore
from focusforge.services.timers.timer_service import TimerService
from focusforge.utils.constants import (
    ARCHIVE_SESSIONS,
    COMPLETION_PERCENT,
    MODE_COACHING,
    MODE_MODERATE,
    MODE_STRICT,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    STATUS_PAUSED,
    TIMER_REMINDER,
    TIMER_SESSION,
)
from focusforge.utils.paths import WorkPaths
from focusforge.utils.time_utils import format_duration, to_timestamp, utc_now

logger = logging.getLogger(__name__)


def _is_live_session(doc: dict[str, Any] | None) -> bool:
    if doc is None:
        return False
    try:
        return SessionRecord.from_dict(doc).is_live
    except CorruptStateError:
        return False


class SessionService:
    """
    Work session state machine: inactive -> active <-> paused -> inactive.

    The record in ``current_session.json`` is the single source of truth; the
    detached timer workers mutate it through the callbacks at the bottom.
    """

    def __init__(
        self,
        paths: WorkPaths,
        files: IFileService,
        options: WorkOptions,
        enforcement: EnforcementService,
        breaks: BreakService,
        timers: TimerService,
        archive: ArchiveStore,
        notifier: INotifier,
        counter: CounterStore,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = JsonStateStore(paths.session_json, files)
        self._options = options
        self._enforcement = enforcement
        self._breaks = breaks
        self._timers = timers
        self._archive = archive
        self._notifier = notifier
        self._counter = counter
        self._clock = clock

    # ----- state -----

    def load(self) -> SessionRecord | None:
        doc = self._store.load()
        if doc is None:
            return None
        try:
            record = SessionRecord.from_dict(doc)
        except CorruptStateError as exc:
            logger.warning("Ignoring corrupt session record: %s", exc)
            return None
        return record if record.is_live else None

    def _save(self, record: SessionRecord) -> None:
        record.last_updated = to_timestamp(self._clock())
        self._store.save(record.to_dict())

    def _require(self, status: str | None = None) -> SessionRecord:
        record = self.load()
        if record is None:
            raise NoActiveSessionError("No active work session")
        if status is not None and record.status != status:
            raise NoActiveSessionError(f"Work session is {record.status}, expected {status}")
        return record

    def _spawn(self, kind: str, seconds: int) -> None:
        try:
            self._timers.spawn(kind, seconds, repeat=True)
        except OSError as exc:
            logger.warning("%s not started: %s", kind, exc)

    def _snapshot(self, record: SessionRecord, status: str, now: datetime) -> SessionResult:
        return SessionResult(
            status=status,
            goal=record.goal,
            project=record.project,
            start_time=record.start_time,
            elapsed_seconds=record.worked_seconds(now),
            pomodoros=record.pomodoro_count,
            violations=self._enforcement.load().violations,
            planned_duration_seconds=self._options.work_duration,
            pause_reason=record.pause_reason,
        )

    # ----- gates -----

    def _check_gates(self, project: str | None) -> None:
        if self._enforcement.mode != MODE_STRICT:
            return
        self._enforcement.enforce_break()
        if not project or not self._options.get("strict_block_project_switch"):
            return
        active = self._enforcement.load().active_project
        requested = project_name(project)
        if active and requested and requested != active:
            raise ProjectSwitchBlockedError(
                f"Strict mode: work in {active} is still open; cannot start in {requested}",
                active_project=active,
                requested_project=requested,
            )

    # ----- operations -----

    def start(self, goal: str = "", project: str | None = None) -> SessionResult:
        goal = (goal or "").strip()
        self._check_gates(project)

        now = self._clock()
        stamp = to_timestamp(now)
        record = SessionRecord(
            status=STATUS_ACTIVE,
            start_time=stamp,
            goal=goal,
            project=project_name(project),
            last_updated=stamp,
        )
        if not self._store.claim(record.to_dict(), _is_live_session):
            raise AlreadyActiveError("A work session is already active. Stop it first.")

        work = self._options.work_duration
        self._spawn(TIMER_SESSION, work)
        reminder_minutes = self._options.get("work_reminder_interval")
        if reminder_minutes > 0:
            self._spawn(TIMER_REMINDER, reminder_minutes * 60)

        self._enforcement.open_session(goal, project)
        logger.info("Work session started goal=%r project=%s", goal, record.project)
        self._notifier.notify("Work session started", goal or f"Focus for {format_duration(work)}")
        return self._snapshot(record, "started", now)

    def stop(self, reason: str | None = None) -> SessionSummary:
        record = self._require()
        now = self._clock()
        work = self._options.work_duration
        duration = record.worked_seconds(now)
        pomodoros = max(record.pomodoro_count, duration // work)
        early_stop = duration * 100 < work * COMPLETION_PERCENT
        violations = self._enforcement.load().violations

        cycle = self._counter.value() + 1
        break_type, break_duration = self._breaks.cadence(cycle)
        end_time = to_timestamp(now)
        entry = {
            **record.to_dict(),
            "status": "completed",
            "end_time": end_time,
            "duration_seconds": duration,
            "paused_duration_seconds": record.paused_seconds(now),
            "pomodoro_count": pomodoros,
            "early_stop": early_stop,
            "violations": violations,
            "termination_reason": reason,
        }
        # Archive first: if it fails the live record is left untouched.
        self._archive.append(ARCHIVE_SESSIONS, entry)
        self._counter.set(cycle)
        self._timers.cancel(TIMER_SESSION)
        self._timers.cancel(TIMER_REMINDER)
        self._store.clear()

        require = None
        if self._enforcement.mode == MODE_STRICT and self._options.get("strict_require_break"):
            require = break_type
        self._enforcement.close_session(now, require)

        logger.info(
            "Work session stopped duration=%ss pomodoro=#%d early=%s", duration, cycle, early_stop
        )
        self._notifier.notify(
            "Work complete",
            f"Pomodoro #{cycle} done. Take a {format_duration(break_duration)} {break_type} break!",
        )

        break_started = False
        if self._options.get("work_auto_start_break"):
            try:
                self._breaks.start(break_type, break_duration)
                break_started = True
            except AlreadyActiveError:
                logger.info("Break already running; not starting another")

        return SessionSummary(
            goal=record.goal,
            start_time=record.start_time,
            end_time=end_time,
            duration_seconds=duration,
            pomodoros=pomodoros,
            violations=violations,
            early_stop=early_stop,
            cycle=cycle,
            suggested_break=break_type,
            break_duration_seconds=break_duration,
            break_started=break_started,
            break_required=require is not None,
            termination_reason=reason,
        )

    def pause(self, reason: str | None = None) -> SessionResult:
        record = self._require(STATUS_ACTIVE)
        now = self._clock()
        record.status = STATUS_PAUSED
        record.paused_at = to_timestamp(now)
        record.pause_reason = reason
        self._save(record)
        logger.info("Work session paused: %s", reason or "no reason given")
        return self._snapshot(record, STATUS_PAUSED, now)

    def resume(self) -> SessionResult:
        record = self._require(STATUS_PAUSED)
        if self._enforcement.mode == MODE_STRICT:
            self._enforcement.enforce_break()
        now = self._clock()
        record.paused_duration_seconds = record.paused_seconds(now)
        record.paused_at = None
        record.pause_reason = None
        record.status = STATUS_ACTIVE
        self._save(record)
        logger.info("Work session resumed")
        return self._snapshot(record, STATUS_ACTIVE, now)

    # ----- reads -----

    def status(self) -> SessionResult:
        record = self.load()
        if record is None:
            return SessionResult(status=STATUS_INACTIVE, violations=self._enforcement.get_violations())
        return self._snapshot(record, record.status, self._clock())

    def is_active(self) -> bool:
        return self.load() is not None

    def get_state(self) -> dict[str, Any]:
        record = self.load()
        return record.to_dict() if record is not None else {"status": STATUS_INACTIVE}

    def focus_score(self) -> int:
        record = self.load()
        if record is None:
            return 0
        return focus_scorer.score(record.worked_seconds(self._clock()), self._enforcement.load().violations)

    # ----- enforcement -----

    def record_violation(self, reason: str = "") -> ViolationOutcome:
        outcome = self._enforcement.record_violation(reason)
        if not outcome.recorded:
            return outcome

        if outcome.pause_session:
            record = self.load()
            if record is not None and record.status == STATUS_ACTIVE:
                self.pause(reason=f"distraction threshold reached: {reason}".rstrip(": "))
            self._notifier.notify(
                "Too many distractions",
                f"{outcome.violations} violations. Session paused until you take a break.",
            )
        elif outcome.threshold_reached and outcome.mode == MODE_MODERATE:
            self._notifier.notify("Stay focused", f"{outcome.violations} distractions this session.")
        elif outcome.threshold_reached and outcome.mode == MODE_COACHING:
            self._notifier.notify("Focus tip", "Close unrelated tabs and write down the next small step.")
        return outcome

    # ----- timer callbacks -----

    def increment_pomodoro(self) -> int | None:
        record = self.load()
        if record is None:
            return None
        record.pomodoro_count += 1
        self._save(record)
        return record.pomodoro_count

    def on_timer_expired(self) -> bool:
        """Session timer tick; returns False once there is no session to time."""
        record = self.load()
        if record is None:
            return False
        if record.status == STATUS_ACTIVE:
            count = self.increment_pomodoro()
            self._notifier.notify("Pomodoro complete", f"Pomodoro #{count} done. {record.goal}".strip())
        return True

    def send_reminder(self) -> bool:
        record = self.load()
        if record is None:
            return False
        if record.status == STATUS_ACTIVE:
            worked = format_duration(record.worked_seconds(self._clock()))
            self._notifier.notify("Still focused?", f"{worked} in. {record.goal}".strip())
        return True
