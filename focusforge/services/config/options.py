from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from focusforge.domain.errors import InvalidArgumentError
from focusforge.domain.interfaces import IConfigService
from focusforge.services.config.ini_config_service import parse_bool
from focusforge.utils.constants import (
    CONFIG_SECTION_ENFORCEMENT,
    CONFIG_SECTION_WORK,
    ENFORCEMENT_MODES,
    ENV_ENFORCEMENT,
    SKIP_ALWAYS,
    SKIP_MODES,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionSpec:
    key: str
    kind: str  # "int" | "bool" | "enum"
    default: Any
    env: str
    minimum: int = 0
    choices: tuple[str, ...] = ()
    help: str = ""


OPTION_SPECS: dict[str, OptionSpec] = {
    spec.key: spec
    for spec in (
        OptionSpec("work_duration", "int", 1500, "FOCUSFORGE_WORK_DURATION", 1,
                   help="Pomodoro length in seconds"),
        OptionSpec("break_short", "int", 300, "FOCUSFORGE_BREAK_SHORT", 1,
                   help="Short break length in seconds"),
        OptionSpec("break_long", "int", 900, "FOCUSFORGE_BREAK_LONG", 1,
                   help="Long break length in seconds"),
        OptionSpec("pomodoros_until_long", "int", 4, "FOCUSFORGE_POMODOROS_UNTIL_LONG", 1,
                   help="Work cycles between long breaks"),
        OptionSpec("work_auto_start_break", "bool", True, "FOCUSFORGE_AUTO_START_BREAK",
                   help="Start a break automatically when a session stops"),
        OptionSpec("work_notifications", "bool", True, "FOCUSFORGE_NOTIFICATIONS",
                   help="Desktop notifications"),
        OptionSpec("work_sound_notifications", "bool", True, "FOCUSFORGE_SOUND",
                   help="Play a sound with notifications"),
        OptionSpec("work_reminder_interval", "int", 30, "FOCUSFORGE_REMINDER_INTERVAL", 0,
                   help="Minutes between progress reminders (0 disables)"),
        OptionSpec("distraction_threshold", "int", 3, "FOCUSFORGE_DISTRACTION_THRESHOLD", 1,
                   help="Violations before strict mode intervenes"),
        OptionSpec("strict_block_project_switch", "bool", False, "FOCUSFORGE_STRICT_BLOCK_PROJECT_SWITCH",
                   help="Refuse project switches in strict mode"),
        OptionSpec("strict_require_break", "bool", False, "FOCUSFORGE_STRICT_REQUIRE_BREAK",
                   help="Strict mode requires a break after each session"),
        OptionSpec("break_skip_mode", "enum", SKIP_ALWAYS, "FOCUSFORGE_BREAK_SKIP_MODE",
                   choices=SKIP_MODES, help="When a break may be ended early"),
        OptionSpec("break_scheduled_enabled", "bool", False, "FOCUSFORGE_BREAK_SCHEDULED",
                   help="Run the scheduled break daemon"),
        OptionSpec("break_scheduled_interval", "int", 120, "FOCUSFORGE_BREAK_SCHEDULED_INTERVAL", 1,
                   help="Minutes between scheduled breaks"),
    )
}


def _coerce(spec: OptionSpec, raw: Any) -> Any:
    """Convert ``raw`` to the option's type; raises ValueError when it does not fit."""
    if spec.kind == "bool":
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int):
            return raw != 0
        value = parse_bool(str(raw), None)
        if value is None:
            raise ValueError(f"not a boolean: {raw!r}")
        return value
    if spec.kind == "int":
        if isinstance(raw, bool):
            raise ValueError(f"not an integer: {raw!r}")
        value = raw if isinstance(raw, int) else int(str(raw).strip())
        if value < spec.minimum:
            raise ValueError(f"must be >= {spec.minimum}, got {value}")
        return value
    if spec.kind == "enum":
        value = str(raw).strip().lower()
        if value not in spec.choices:
            raise ValueError(f"expected one of {', '.join(spec.choices)}, got {raw!r}")
        return value
    raise ValueError(f"unknown option kind {spec.kind!r}")


class WorkOptions:
    """
    Typed settings for the session engine.

    Resolution order (first hit wins): explicit overrides, environment variable,
    ``[work]`` section of the INI config, built-in default. Invalid values are
    logged and fall back to the default.
    """

    def __init__(
        self,
        config: IConfigService | None = None,
        overrides: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._environ = environ
        self._overrides: dict[str, Any] = {}
        for key, value in (overrides or {}).items():
            spec = self._spec(key)
            try:
                self._overrides[key] = _coerce(spec, value)
            except ValueError as exc:
                raise InvalidArgumentError(f"Invalid value for {key}: {exc}") from exc

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    @staticmethod
    def _spec(key: str) -> OptionSpec:
        try:
            return OPTION_SPECS[key]
        except KeyError:
            raise InvalidArgumentError(f"Unknown option: {key}") from None

    def get(self, key: str) -> Any:
        spec = self._spec(key)
        if key in self._overrides:
            return self._overrides[key]

        sources: list[tuple[str, str | None]] = [
            (f"env {spec.env}", self.environ.get(spec.env)),
        ]
        if self._config is not None:
            sources.append((f"[{CONFIG_SECTION_WORK}] {key}", self._config.get(CONFIG_SECTION_WORK, key, None)))

        for origin, raw in sources:
            if raw is None or str(raw).strip() == "":
                continue
            try:
                return _coerce(spec, raw)
            except ValueError as exc:
                logger.warning("Ignoring %s=%r (%s); using default %r", origin, raw, exc, spec.default)
                return spec.default
        return spec.default

    def with_overrides(self, **values: Any) -> WorkOptions:
        merged = {**self._overrides, **values}
        return WorkOptions(self._config, merged, self._environ)

    def as_dict(self) -> dict[str, Any]:
        return {key: self.get(key) for key in OPTION_SPECS}

    def enforcement_override(self) -> str | None:
        """Mode pinned by env or config; invalid values are ignored."""
        candidates: list[tuple[str, str | None]] = [(f"env {ENV_ENFORCEMENT}", self.environ.get(ENV_ENFORCEMENT))]
        if self._config is not None:
            candidates.append(
                (f"[{CONFIG_SECTION_ENFORCEMENT}] mode", self._config.get(CONFIG_SECTION_ENFORCEMENT, "mode", None))
            )
        for origin, raw in candidates:
            if not raw or not raw.strip():
                continue
            mode = raw.strip().lower()
            if mode in ENFORCEMENT_MODES:
                return mode
            logger.warning("Ignoring %s=%r: not an enforcement mode", origin, raw)
        return None

    # Shortcuts for the settings read on every operation

    @property
    def work_duration(self) -> int:
        return self.get("work_duration")

    @property
    def distraction_threshold(self) -> int:
        return self.get("distraction_threshold")

    @property
    def notifications_enabled(self) -> bool:
        return self.get("work_notifications")

    @property
    def sound_enabled(self) -> bool:
        return self.get("work_sound_notifications")
