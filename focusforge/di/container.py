from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, tzinfo
from pathlib import Path

from focusforge.domain.interfaces import IConfigService, IFileService, INotifier, IProcessLauncher
from focusforge.services.config.ini_config_service import IniConfigService
from focusforge.services.config.options import WorkOptions
from focusforge.services.enforcement.activity_log import ActivityLog
from focusforge.services.enforcement.enforcement_service import EnforcementService
from focusforge.services.file_service import FileService
from focusforge.services.focus.archive import ArchiveStore
from focusforge.services.focus.break_service import BreakService
from focusforge.services.focus.session_service import SessionService
from focusforge.services.notifications import DesktopNotifier
from focusforge.services.state_store import CounterStore
from focusforge.services.stats.stats_service import StatsService
from focusforge.services.timers.launcher import QtProcessLauncher
from focusforge.services.timers.scheduler import ScheduledBreakDaemon
from focusforge.services.timers.timer_service import TimerService
from focusforge.utils.paths import WorkPaths, ensure_work_dirs, resolve_work_dir
from focusforge.utils.time_utils import utc_now


def _project_root() -> Path:
    # focusforge/di/container.py -> repo root (source checkouts only)
    return Path(__file__).resolve().parents[2]


class Container:
    """
    Lightweight DI container:
      - Resolves the work dir and creates it
      - Wires default services for anything not injected
      - Shares one EnforcementService between the session, break and daemon flows
    """

    def __init__(
        self,
        work_dir: Path | str | None = None,
        *,
        config: IConfigService | None = None,
        options: WorkOptions | None = None,
        files: IFileService | None = None,
        notifier: INotifier | None = None,
        launcher: IProcessLauncher | None = None,
        clock: Callable[[], datetime] = utc_now,
        tz: tzinfo | None = None,
        python: str | None = None,
    ) -> None:
        self.paths: WorkPaths = ensure_work_dirs(WorkPaths.at(resolve_work_dir(work_dir)))
        self.clock = clock

        # Core services (defaults if not supplied)
        self.config: IConfigService = config or IniConfigService()
        self.options: WorkOptions = options or WorkOptions(self.config)
        self.file_service: IFileService = files or FileService()
        self.launcher: IProcessLauncher = launcher or QtProcessLauncher()
        self.notifier: INotifier = notifier or DesktopNotifier(self.options, self.launcher)

        self.counter = CounterStore(self.paths.pomodoro_count, self.file_service)
        self.archive = ArchiveStore(self.paths, self.file_service)
        self.timers = TimerService(
            self.paths, self.file_service, self.launcher, clock=clock, python=python
        )
        self.enforcement = EnforcementService(
            self.paths,
            self.file_service,
            self.options,
            clock=clock,
            activity=ActivityLog(self.paths.activity_dir),
        )
        self.breaks = BreakService(
            self.paths,
            self.file_service,
            self.options,
            self.enforcement,
            self.timers,
            self.archive,
            self.notifier,
            self.counter,
            clock=clock,
        )
        self.sessions = SessionService(
            self.paths,
            self.file_service,
            self.options,
            self.enforcement,
            self.breaks,
            self.timers,
            self.archive,
            self.notifier,
            self.counter,
            clock=clock,
        )
        self.scheduler = ScheduledBreakDaemon(
            self.options,
            self.timers,
            self.sessions,
            self.breaks,
            self.enforcement,
            self.notifier,
            clock=clock,
        )
        self.stats = StatsService(self.archive, self.counter, clock=clock, tz=tz)

    # ---------- Class helpers ----------

    @staticmethod
    def default(work_dir: Path | str | None = None, *, config_path: Path | None = None) -> Container:
        """Production graph: INI config (user dir, then the checkout's config/), desktop notifications, Qt launcher."""
        config = IniConfigService(explicit_path=config_path, project_root=_project_root())
        return Container(work_dir, config=config)
