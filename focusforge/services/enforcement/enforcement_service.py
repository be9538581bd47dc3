from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from focusforge.domain.errors import (
    BreakRequiredError,
    CorruptStateError,
    InvalidArgumentError,
    InvalidModeError,
)
from focusforge.domain.interfaces import IFileService
from focusforge.domain.models import EnforcementRecord
from focusforge.domain.results import (
    EnforcementStatus,
    ModeChange,
    SwitchCheck,
    ViolationOutcome,
)
from focusforge.services.config.options import WorkOptions
from focusforge.services.enforcement.activity_log import PWD_CHANGE, ActivityLog
from focusforge.services.state_store import JsonStateStore
from focusforge.utils.constants import (
    BREAK_SHORT,
    BREAK_TYPES,
    ENFORCEMENT_MODES,
    MODE_OFF,
    MODE_STRICT,
)
from focusforge.utils.paths import WorkPaths
from focusforge.utils.time_utils import to_timestamp, utc_now

logger = logging.getLogger(__name__)


def project_name(directory: str | Path | None) -> str | None:
    """Projects are identified by the last component of their directory."""
    if not directory:
        return None
    name = Path(str(directory).rstrip("/\\")).name
    return name or None


class EnforcementService:
    """
    Violation counting and the strict-mode gates.

    Shared by the session and break flows. Every mutating call reloads the
    record first so that writes from timer workers are never lost.
    """

    def __init__(
        self,
        paths: WorkPaths,
        files: IFileService,
        options: WorkOptions,
        *,
        clock: Callable[[], datetime] = utc_now,
        activity: ActivityLog | None = None,
    ) -> None:
        self._store = JsonStateStore(paths.enforcement_json, files)
        self._options = options
        self._clock = clock
        self._activity = activity or ActivityLog(paths.activity_dir)
        self._record: EnforcementRecord | None = None

    # ----- persistence -----

    def load(self) -> EnforcementRecord:
        doc = self._store.load()
        record = EnforcementRecord()
        if doc is not None:
            try:
                record = EnforcementRecord.from_dict(doc)
            except CorruptStateError as exc:
                logger.warning("Resetting corrupt enforcement state: %s", exc)
        self._record = record
        return record

    def save(self, record: EnforcementRecord | None = None) -> EnforcementRecord:
        rec = record or self._record or EnforcementRecord()
        rec.updated = to_timestamp(self._clock())
        self._store.save(rec.to_dict())
        self._record = rec
        return rec

    def clear(self) -> None:
        self._store.clear()
        self._record = None

    # ----- mode -----

    @property
    def override(self) -> str | None:
        return self._options.enforcement_override()

    @property
    def mode(self) -> str:
        return self.override or self.load().mode

    @property
    def threshold(self) -> int:
        return self._options.distraction_threshold

    def _effective_mode(self, record: EnforcementRecord) -> str:
        return self.override or record.mode

    def set_mode(self, mode: str) -> ModeChange:
        value = (mode or "").strip().lower()
        if value not in ENFORCEMENT_MODES:
            raise InvalidModeError(
                f"Invalid enforcement mode {mode!r}. Options: {', '.join(ENFORCEMENT_MODES)}"
            )
        rec = self.load()
        previous = rec.mode
        rec.mode = value
        self.save(rec)
        logger.info("Enforcement mode changed %s -> %s", previous, value)

        override = self.override
        warning = None
        if override is not None and override != value:
            warning = f"Mode saved as {value}, but {override} is pinned by the environment or config file"
            logger.warning(warning)
        return ModeChange(mode=value, previous=previous, effective_mode=override or value, warning=warning)

    # ----- violations -----

    def get_violations(self) -> int:
        record = self._record if self._record is not None else self.load()
        return record.violations

    def record_violation(self, reason: str = "") -> ViolationOutcome:
        rec = self.load()
        mode = self._effective_mode(rec)
        threshold = self.threshold
        if mode == MODE_OFF:
            return ViolationOutcome(
                recorded=False, violations=rec.violations, threshold=threshold, mode=mode, reason=reason
            )

        rec.violations += 1
        reached = rec.violations >= threshold
        strict_hit = mode == MODE_STRICT and reached
        if strict_hit:
            rec.break_required = True
            rec.break_type_required = rec.break_type_required or BREAK_SHORT
        self.save(rec)
        logger.warning("Violation %d/%d (%s): %s", rec.violations, threshold, mode, reason or "unspecified")

        return ViolationOutcome(
            recorded=True,
            violations=rec.violations,
            threshold=threshold,
            mode=mode,
            reason=reason,
            threshold_reached=reached,
            break_required=rec.break_required,
            pause_session=strict_hit,
        )

    def reset_violations(self) -> int:
        rec = self.load()
        if rec.violations:
            rec.violations = 0
            self.save(rec)
            logger.info("Violations reset")
        return rec.violations

    # ----- break gate -----

    def enforce_break(self) -> None:
        rec = self.load()
        if self._effective_mode(rec) == MODE_STRICT and rec.break_required:
            break_type = rec.break_type_required or BREAK_SHORT
            raise BreakRequiredError(
                f"A {break_type} break is required before starting work", break_type=break_type
            )

    def require_break(self, break_type: str = BREAK_SHORT) -> None:
        if break_type not in BREAK_TYPES:
            raise InvalidArgumentError(f"Unknown break type: {break_type!r}")
        rec = self.load()
        rec.break_required = True
        rec.break_type_required = break_type
        self.save(rec)

    def clear_break_requirement(self) -> None:
        rec = self.load()
        if rec.break_required or rec.break_type_required:
            rec.break_required = False
            rec.break_type_required = None
            self.save(rec)

    # ----- session context -----

    def open_session(self, goal: str = "", project: str | None = None) -> None:
        rec = self.load()
        rec.active_goal = goal or None
        rec.active_project = project_name(project) if project else rec.active_project
        self.save(rec)

    def close_session(self, end_time: datetime, require_break: str | None = None) -> EnforcementRecord:
        """Reset per-session counters; the mode and any pending break requirement persist."""
        rec = self.load()
        rec.violations = 0
        rec.active_project = None
        rec.active_goal = None
        rec.last_session_end = to_timestamp(end_time)
        if require_break is not None:
            rec.break_required = True
            rec.break_type_required = require_break
        return self.save(rec)

    def close_break(self, end_time: datetime, completed_fully: bool) -> EnforcementRecord:
        rec = self.load()
        rec.last_break_end = to_timestamp(end_time)
        if completed_fully:
            rec.break_required = False
            rec.break_type_required = None
        return self.save(rec)

    # ----- project switching -----

    def check_project_switch(
        self, old_dir: str | Path | None, new_dir: str | Path, session_active: bool = True
    ) -> SwitchCheck:
        rec = self.load()
        if self._effective_mode(rec) != MODE_STRICT or not session_active:
            return SwitchCheck(allowed=True, active_project=rec.active_project)

        old_project = project_name(old_dir)
        new_project = project_name(new_dir)
        if new_project is None or old_project == new_project:
            return SwitchCheck(allowed=True, active_project=rec.active_project)

        if not rec.active_project:
            rec.active_project = new_project
            self.save(rec)
            logger.info("Active project set to %s", new_project)
            return SwitchCheck(allowed=True, active_project=new_project)

        if new_project == rec.active_project:
            return SwitchCheck(allowed=True, active_project=rec.active_project)

        rec.violations += 1
        self.save(rec)
        blocked = bool(self._options.get("strict_block_project_switch"))
        if blocked:
            logger.error("Project switch blocked: %s -> %s", rec.active_project, new_project)
        else:
            logger.warning(
                "Project switch violation: %s -> %s (violations=%d)",
                rec.active_project,
                new_project,
                rec.violations,
            )
        return SwitchCheck(
            allowed=not blocked,
            violation=True,
            active_project=rec.active_project,
            requested_project=new_project,
        )

    def scan_activity(self, events: Iterable[dict[str, Any]], session_active: bool = True) -> list[SwitchCheck]:
        """Apply the switch check to every ``pwd_change`` event; returns the violations found."""
        found: list[SwitchCheck] = []
        for event in events:
            if event.get("type") != PWD_CHANGE:
                continue
            new_dir = event.get("to") or event.get("new_pwd")
            if not new_dir:
                continue
            check = self.check_project_switch(event.get("from") or event.get("old_pwd"), new_dir, session_active)
            if check.violation:
                found.append(check)
        return found

    def scan_recent(self, since: datetime, session_active: bool = True) -> list[SwitchCheck]:
        return self.scan_activity(self._activity.recent(since, self._clock()), session_active)

    # ----- reads -----

    def status(self) -> EnforcementStatus:
        rec = self.load()
        return EnforcementStatus(
            mode=self._effective_mode(rec),
            violations=rec.violations,
            threshold=self.threshold,
            active_project=rec.active_project,
            active_goal=rec.active_goal,
            break_required=rec.break_required,
            break_type_required=rec.break_type_required,
            override=self.override,
        )
