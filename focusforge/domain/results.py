from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class _Result:
    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True)
class SessionResult(_Result):
    """Snapshot of the work session after start/pause/resume, or from status()."""

    status: str
    goal: str = ""
    project: str | None = None
    start_time: str | None = None
    elapsed_seconds: int = 0
    pomodoros: int = 0
    violations: int = 0
    planned_duration_seconds: int = 0
    pause_reason: str | None = None


@dataclass(frozen=True)
class SessionSummary(_Result):
    """Outcome of stopping a session."""

    goal: str
    start_time: str
    end_time: str
    duration_seconds: int
    pomodoros: int
    violations: int
    early_stop: bool
    cycle: int
    suggested_break: str
    break_duration_seconds: int
    break_started: bool = False
    break_required: bool = False
    termination_reason: str | None = None
    status: str = "stopped"


@dataclass(frozen=True)
class BreakResult(_Result):
    status: str
    break_type: str | None = None
    start_time: str | None = None
    planned_duration_seconds: int = 0
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    scheduled: bool = False
    auto_completed: bool = False


@dataclass(frozen=True)
class BreakSummary(_Result):
    """Outcome of stopping a break."""

    break_type: str
    start_time: str
    end_time: str
    duration_seconds: int
    planned_duration_seconds: int
    completed_fully: bool
    scheduled: bool = False
    forced: bool = False
    status: str = "stopped"


@dataclass(frozen=True)
class ViolationOutcome(_Result):
    recorded: bool
    violations: int
    threshold: int
    mode: str
    reason: str = ""
    threshold_reached: bool = False
    break_required: bool = False
    pause_session: bool = False


@dataclass(frozen=True)
class ModeChange(_Result):
    mode: str
    previous: str
    effective_mode: str
    warning: str | None = None


@dataclass(frozen=True)
class EnforcementStatus(_Result):
    mode: str
    violations: int
    threshold: int
    active_project: str | None = None
    active_goal: str | None = None
    break_required: bool = False
    break_type_required: str | None = None
    override: str | None = None


@dataclass(frozen=True)
class SwitchCheck(_Result):
    """Result of comparing a working-directory change against the active project."""

    allowed: bool
    violation: bool = False
    active_project: str | None = None
    requested_project: str | None = None


@dataclass(frozen=True)
class DaemonStatus(_Result):
    status: str
    pid: int | None = None
    interval_minutes: int = 0


@dataclass(frozen=True)
class TickDecision(_Result):
    action: str
    reason: str = ""


@dataclass(frozen=True)
class Rollup(_Result):
    period: str
    start: str
    end: str
    sessions: int = 0
    total_duration_seconds: int = 0
    pomodoros: int = 0
    days: int = 1
    average_per_day_seconds: int = 0
    average_session_seconds: int = 0


@dataclass(frozen=True)
class BreakCompliance(_Result):
    month: str
    work_sessions: int = 0
    breaks_taken: int = 0
    breaks_completed_fully: int = 0
    compliance_rate_percent: int = 0
    completion_rate_percent: int = 0
    average_actual_seconds: int = 0
    average_planned_seconds: int = 0


@dataclass(frozen=True)
class StatsSummary(_Result):
    today: Rollup
    week: Rollup
    month: Rollup
    cycle_count: int = 0
    compliance: BreakCompliance | None = None
