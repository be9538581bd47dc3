from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from focusforge.domain.errors import AlreadyActiveError
from focusforge.domain.interfaces import INotifier
from focusforge.domain.results import DaemonStatus, TickDecision
from focusforge.services.config.options import WorkOptions
from focusforge.services.timers.timer_service import TimerService
from focusforge.utils.constants import BREAK_SHORT, STATUS_ACTIVE, TIMER_SCHEDULER
from focusforge.utils.time_utils import elapsed_seconds, utc_now

if TYPE_CHECKING:
    from focusforge.services.enforcement.enforcement_service import EnforcementService
    from focusforge.services.focus.break_service import BreakService
    from focusforge.services.focus.session_service import SessionService

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
SUGGESTED = "suggested"
STARTED = "started"


class ScheduledBreakDaemon:
    """Background worker that nudges the user into a break every N minutes."""

    def __init__(
        self,
        options: WorkOptions,
        timers: TimerService,
        sessions: SessionService,
        breaks: BreakService,
        enforcement: EnforcementService,
        notifier: INotifier,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._options = options
        self._timers = timers
        self._sessions = sessions
        self._breaks = breaks
        self._enforcement = enforcement
        self._notifier = notifier
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self._options.get("break_scheduled_enabled"))

    @property
    def interval_minutes(self) -> int:
        return self._options.get("break_scheduled_interval")

    def start(self) -> bool:
        if not self.enabled:
            logger.info("Scheduled breaks are disabled")
            return False
        if self._timers.is_running(TIMER_SCHEDULER):
            logger.debug("Scheduled break daemon already running")
            return False
        marker = self._timers.spawn(TIMER_SCHEDULER, self.interval_minutes * 60, repeat=True)
        return marker is not None

    def stop(self) -> bool:
        running = self._timers.is_running(TIMER_SCHEDULER)
        self._timers.cancel(TIMER_SCHEDULER)
        if not running:
            logger.debug("Scheduled break daemon was not running")
        return running

    def status(self) -> DaemonStatus:
        interval = self.interval_minutes
        if not self.enabled:
            return DaemonStatus(status="disabled", interval_minutes=interval)
        marker = self._timers.read_marker(TIMER_SCHEDULER)
        if marker is not None and self._timers.verify(marker):
            return DaemonStatus(status="running", pid=marker.pid, interval_minutes=interval)
        return DaemonStatus(status="stopped", interval_minutes=interval)

    def tick(self, now: datetime | None = None) -> TickDecision:
        now = now or self._clock()
        if not self.enabled:
            return TickDecision(SKIPPED, "disabled")
        if self._breaks.is_active():
            return TickDecision(SKIPPED, "break already active")

        interval = self.interval_minutes * 60
        session = self._sessions.load()
        if session is not None:
            if session.status == STATUS_ACTIVE and session.worked_seconds(now) >= interval:
                self._notifier.notify(
                    "Time for a break", f"You've been working for {self.interval_minutes} minutes."
                )
                return TickDecision(SUGGESTED, "session running past the interval")
            return TickDecision(SKIPPED, "session in progress")

        last_break_end = self._enforcement.load().last_break_end
        if last_break_end and elapsed_seconds(last_break_end, now) < interval:
            return TickDecision(SKIPPED, "recent break")

        try:
            self._breaks.start(BREAK_SHORT, scheduled=True)
        except AlreadyActiveError:
            return TickDecision(SKIPPED, "break already active")
        logger.info("Scheduled break triggered")
        return TickDecision(STARTED, "interval elapsed")
