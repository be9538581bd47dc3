from .launcher import QtProcessLauncher
from .scheduler import ScheduledBreakDaemon
from .timer_service import TimerService

__all__ = ["QtProcessLauncher", "ScheduledBreakDaemon", "TimerService"]
