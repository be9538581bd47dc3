"""Detached timer worker: ``python -m focusforge.services.timers.worker --kind ... --token ...``."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from focusforge.di.container import Container
from focusforge.domain.errors import FocusForgeError
from focusforge.services.timers.timer_service import TimerService
from focusforge.utils.constants import (
    TIMER_BREAK,
    TIMER_KINDS,
    TIMER_REMINDER,
    TIMER_SCHEDULER,
    TIMER_SESSION,
)
from focusforge.utils.logging_setup import setup_logger

logger = logging.getLogger(__name__)

ACTIONS: dict[str, Callable[[Container], Any]] = {
    TIMER_SESSION: lambda c: c.sessions.on_timer_expired(),
    TIMER_REMINDER: lambda c: c.sessions.send_reminder(),
    TIMER_BREAK: lambda c: c.breaks.mark_auto_completed(),
    TIMER_SCHEDULER: lambda c: c.scheduler.tick(),
}


class TimerRunner:
    """Sleep/act loop of one worker. Exits as soon as its marker no longer carries its token."""

    def __init__(
        self,
        timers: TimerService,
        kind: str,
        token: str,
        duration_seconds: int,
        action: Callable[[], Any],
        *,
        repeat: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        max_runs: int | None = None,
    ) -> None:
        self._timers = timers
        self.kind = kind
        self._token = token
        self._duration = duration_seconds
        self._action = action
        self._repeat = repeat
        self._sleep = sleep
        self._max_runs = max_runs

    def run(self) -> int:
        """Returns how many times the action fired."""
        fired = 0
        try:
            while True:
                self._sleep(self._duration)
                if not self._timers.owns(self.kind, self._token):
                    logger.info("%s timer superseded or cancelled; exiting", self.kind)
                    break
                try:
                    keep_going = self._action()
                except FocusForgeError as exc:
                    logger.warning("%s timer action failed: %s", self.kind, exc)
                    keep_going = True
                fired += 1
                if not self._repeat or keep_going is False:
                    break
                if self._max_runs is not None and fired >= self._max_runs:
                    break
        finally:
            self._timers.release(self.kind, self._token)
        return fired


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focusforge-timer", description="FocusForge background timer")
    parser.add_argument("--kind", required=True, choices=TIMER_KINDS)
    parser.add_argument("--duration", required=True, type=int, help="Seconds between firings")
    parser.add_argument("--token", required=True, help="Capability token written to the marker")
    parser.add_argument("--work-dir", required=True, type=Path)
    parser.add_argument("--repeat", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    container = Container.default(args.work_dir)
    setup_logger(log_file=container.paths.log_file)
    logger.info("%s worker started (every %ss, repeat=%s)", args.kind, args.duration, args.repeat)

    action = ACTIONS[args.kind]
    runner = TimerRunner(
        container.timers,
        args.kind,
        args.token,
        args.duration,
        lambda: action(container),
        repeat=args.repeat,
    )
    runner.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
