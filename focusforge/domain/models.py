from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any

from focusforge.domain.errors import CorruptStateError
from focusforge.utils.constants import (
    BREAK_TYPES,
    DEFAULT_ENFORCEMENT_MODE,
    ENFORCEMENT_MODES,
    LIVE_STATUSES,
    STATUS_ACTIVE,
    STATUS_PAUSED,
    TIMER_KINDS,
)
from focusforge.utils.time_utils import elapsed_seconds, parse_timestamp


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise CorruptStateError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _require_timestamp(data: dict[str, Any], key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise CorruptStateError(f"{what} is missing '{key}'")
    try:
        parse_timestamp(value)
    except ValueError as exc:
        raise CorruptStateError(f"{what} has an invalid '{key}': {value!r}") from exc
    return value


def _optional_timestamp(data: dict[str, Any], key: str, what: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise CorruptStateError(f"{what} has an invalid '{key}': {value!r}")
    return _require_timestamp(data, key, what)


def _lenient_timestamp(value: Any) -> str | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parse_timestamp(value)
    except ValueError:
        return None
    return value


def _non_negative_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return default


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class SessionRecord:
    status: str
    start_time: str
    goal: str = ""
    project: str | None = None
    pomodoro_count: int = 0
    last_updated: str = ""
    paused_duration_seconds: int = 0
    paused_at: str | None = None
    pause_reason: str | None = None

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def is_paused(self) -> bool:
        return self.status == STATUS_PAUSED

    def paused_seconds(self, now: datetime) -> int:
        """Accumulated pause time, including the pause in progress."""
        total = self.paused_duration_seconds
        if self.is_paused and self.paused_at:
            total += elapsed_seconds(self.paused_at, now)
        return total

    def worked_seconds(self, now: datetime) -> int:
        return max(0, elapsed_seconds(self.start_time, now) - self.paused_seconds(now))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> SessionRecord:
        doc = _require_mapping(data, "Session record")
        status = doc.get("status")
        if not isinstance(status, str) or not status:
            raise CorruptStateError("Session record is missing 'status'")
        start_time = _require_timestamp(doc, "start_time", "Session record")
        return cls(
            status=status,
            start_time=start_time,
            goal=str(doc.get("goal") or ""),
            project=_optional_str(doc.get("project")),
            pomodoro_count=_non_negative_int(doc.get("pomodoro_count")),
            last_updated=_optional_timestamp(doc, "last_updated", "Session record") or start_time,
            paused_duration_seconds=_non_negative_int(doc.get("paused_duration_seconds")),
            paused_at=_optional_timestamp(doc, "paused_at", "Session record"),
            pause_reason=_optional_str(doc.get("pause_reason")),
        )


@dataclass
class BreakRecord:
    break_type: str
    start_time: str
    planned_duration_seconds: int
    status: str = STATUS_ACTIVE
    auto_completed: bool = False
    scheduled: bool = False

    @property
    def is_live(self) -> bool:
        return self.status == STATUS_ACTIVE

    def elapsed(self, now: datetime) -> int:
        return elapsed_seconds(self.start_time, now)

    def remaining(self, now: datetime) -> int:
        return max(0, self.planned_duration_seconds - self.elapsed(now))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> BreakRecord:
        doc = _require_mapping(data, "Break record")
        break_type = doc.get("break_type")
        if break_type not in BREAK_TYPES:
            raise CorruptStateError(f"Break record has an unknown break_type: {break_type!r}")
        planned = doc.get("planned_duration_seconds")
        if isinstance(planned, bool) or not isinstance(planned, int) or planned <= 0:
            raise CorruptStateError(f"Break record has an invalid planned duration: {planned!r}")
        return cls(
            break_type=break_type,
            start_time=_require_timestamp(doc, "start_time", "Break record"),
            planned_duration_seconds=planned,
            status=str(doc.get("status") or STATUS_ACTIVE),
            auto_completed=bool(doc.get("auto_completed", False)),
            scheduled=bool(doc.get("scheduled", False)),
        )


@dataclass
class EnforcementRecord:
    mode: str = DEFAULT_ENFORCEMENT_MODE
    violations: int = 0
    active_project: str | None = None
    active_goal: str | None = None
    break_required: bool = False
    break_type_required: str | None = None
    last_session_end: str | None = None
    last_break_end: str | None = None
    updated: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> EnforcementRecord:
        doc = _require_mapping(data, "Enforcement record")
        mode = doc.get("mode")
        if mode not in ENFORCEMENT_MODES:
            mode = DEFAULT_ENFORCEMENT_MODE
        known = {f.name for f in fields(cls)}
        rec = cls(mode=mode)
        rec.violations = _non_negative_int(doc.get("violations"))
        rec.break_required = bool(doc.get("break_required", False))
        stamps = {"last_session_end", "last_break_end", "updated"}
        for key in known - stamps - {"mode", "violations", "break_required"}:
            setattr(rec, key, _optional_str(doc.get(key)))
        for key in stamps:
            setattr(rec, key, _lenient_timestamp(doc.get(key)))
        return rec


@dataclass
class TimerMarker:
    """Ownership record for a detached timer worker."""

    kind: str
    pid: int
    token: str
    create_time: float | None
    started_at: str
    duration_seconds: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> TimerMarker:
        doc = _require_mapping(data, "Timer marker")
        kind = doc.get("kind")
        if kind not in TIMER_KINDS:
            raise CorruptStateError(f"Timer marker has an unknown kind: {kind!r}")
        pid = doc.get("pid")
        if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
            raise CorruptStateError(f"Timer marker has an invalid pid: {pid!r}")
        token = doc.get("token")
        if not isinstance(token, str) or not token:
            raise CorruptStateError("Timer marker is missing its token")
        create_time = doc.get("create_time")
        if create_time is not None:
            try:
                create_time = float(create_time)
            except (TypeError, ValueError) as exc:
                raise CorruptStateError(f"Timer marker has an invalid create_time: {create_time!r}") from exc
        return cls(
            kind=kind,
            pid=pid,
            token=token,
            create_time=create_time,
            started_at=str(doc.get("started_at") or ""),
            duration_seconds=_non_negative_int(doc.get("duration_seconds")),
        )
