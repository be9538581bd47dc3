from __future__ import annotations

import logging
import secrets
import sys
from collections.abc import Callable
from datetime import datetime

import psutil

from focusforge.domain.errors import CorruptStateError, InvalidArgumentError
from focusforge.domain.interfaces import IFileService, IProcessLauncher
from focusforge.domain.models import TimerMarker
from focusforge.services.state_store import JsonStateStore
from focusforge.utils.constants import TIMER_KINDS
from focusforge.utils.paths import WorkPaths
from focusforge.utils.time_utils import to_timestamp, utc_now

logger = logging.getLogger(__name__)

WORKER_MODULE = "focusforge.services.timers.worker"
# Seconds of drift allowed between the recorded and the observed process start time.
CREATE_TIME_TOLERANCE = 2.0
TERMINATE_TIMEOUT = 3.0


def process_create_time(pid: int) -> float | None:
    try:
        return psutil.Process(pid).create_time()
    except psutil.Error:
        return None


class TimerService:
    """
    Detached background timers, one per kind.

    Each spawn writes a marker ``<kind>.pid`` holding the worker pid, its process
    creation time and a fresh capability token that is also passed on the worker's
    command line. A marker is only trusted when all three still match a live
    process, so a recycled pid is never signalled.
    """

    def __init__(
        self,
        paths: WorkPaths,
        files: IFileService,
        launcher: IProcessLauncher,
        *,
        clock: Callable[[], datetime] = utc_now,
        python: str | None = None,
    ) -> None:
        self._paths = paths
        self._files = files
        self._launcher = launcher
        self._clock = clock
        self._python = python or sys.executable

    def _store(self, kind: str) -> JsonStateStore:
        if kind not in TIMER_KINDS:
            raise InvalidArgumentError(f"Unknown timer kind: {kind!r}")
        return JsonStateStore(self._paths.marker(kind), self._files)

    # ----- markers -----

    def read_marker(self, kind: str) -> TimerMarker | None:
        doc = self._store(kind).load()
        if doc is None:
            return None
        try:
            return TimerMarker.from_dict(doc)
        except CorruptStateError as exc:
            logger.warning("Ignoring corrupt %s marker: %s", kind, exc)
            return None

    def clear_marker(self, kind: str) -> None:
        self._store(kind).clear()

    def owns(self, kind: str, token: str) -> bool:
        marker = self.read_marker(kind)
        return marker is not None and secrets.compare_digest(marker.token, token)

    def release(self, kind: str, token: str) -> None:
        """Remove the marker, but only while it still belongs to ``token``."""
        if self.owns(kind, token):
            self.clear_marker(kind)

    # ----- process checks -----

    def verify(self, marker: TimerMarker) -> bool:
        try:
            proc = psutil.Process(marker.pid)
            if not proc.is_running() or proc.status() == psutil.STATUS_ZOMBIE:
                return False
            if marker.create_time is not None:
                if abs(proc.create_time() - marker.create_time) > CREATE_TIME_TOLERANCE:
                    logger.debug("pid %s was reused (start time mismatch)", marker.pid)
                    return False
            cmdline = " ".join(proc.cmdline())
        except psutil.Error:
            return False
        return marker.token in cmdline

    def is_running(self, kind: str) -> bool:
        marker = self.read_marker(kind)
        return marker is not None and self.verify(marker)

    # ----- lifecycle -----

    def worker_args(self, kind: str, duration_seconds: int, token: str, repeat: bool) -> list[str]:
        args = [
            "-m",
            WORKER_MODULE,
            "--kind",
            kind,
            "--duration",
            str(duration_seconds),
            "--token",
            token,
            "--work-dir",
            str(self._paths.root),
        ]
        if repeat:
            args.append("--repeat")
        return args

    def spawn(self, kind: str, duration_seconds: int, repeat: bool = False) -> TimerMarker | None:
        """Start a worker for ``kind``; returns its marker, or None when the launch failed."""
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or duration_seconds <= 0:
            raise InvalidArgumentError(f"Timer duration must be a positive integer, got {duration_seconds!r}")
        self.cancel(kind)

        token = secrets.token_hex(16)
        ok, pid = self._launcher.start_detached(
            self._python, self.worker_args(kind, duration_seconds, token, repeat), self._paths.root
        )
        if not ok or pid <= 0:
            logger.warning("Could not start %s worker", kind)
            return None

        marker = TimerMarker(
            kind=kind,
            pid=pid,
            token=token,
            create_time=process_create_time(pid),
            started_at=to_timestamp(self._clock()),
            duration_seconds=duration_seconds,
        )
        self._store(kind).save(marker.to_dict())
        logger.info("Started %s worker pid=%s every=%ss repeat=%s", kind, pid, duration_seconds, repeat)
        return marker

    def cancel(self, kind: str) -> bool:
        """Stop the worker for ``kind`` if it is verifiably ours; the marker is always removed."""
        try:
            marker = self.read_marker(kind)
        except OSError as exc:
            logger.debug("Could not read %s marker: %s", kind, exc)
            marker = None
        if marker is not None:
            try:
                if self.verify(marker):
                    proc = psutil.Process(marker.pid)
                    proc.terminate()
                    try:
                        proc.wait(timeout=TERMINATE_TIMEOUT)
                    except psutil.TimeoutExpired:
                        proc.kill()
                    logger.info("Stopped %s worker pid=%s", kind, marker.pid)
                else:
                    logger.debug("Dropping stale %s marker (pid=%s)", kind, marker.pid)
            except (OSError, psutil.Error) as exc:
                logger.debug("Could not stop %s worker pid=%s: %s", kind, marker.pid, exc)
        try:
            self.clear_marker(kind)
        except OSError as exc:
            logger.debug("Could not remove %s marker: %s", kind, exc)
        return True

    def cancel_all(self) -> None:
        for kind in TIMER_KINDS:
            self.cancel(kind)
