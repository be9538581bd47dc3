from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

from focusforge.utils.constants import (
    APP_NAME,
    BREAK_STATE_FILE,
    ENFORCEMENT_STATE_FILE,
    ENV_WORK_DIR,
    LOG_FILE,
    POMODORO_COUNT_FILE,
    SESSION_STATE_FILE,
)


def resolve_work_dir(explicit: Path | str | None = None) -> Path:
    """Locate the work dir holding session, break and enforcement state.

    Order: explicit argument, ``FOCUSFORGE_WORK_DIR``, then the per-user data dir.
    """

    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get(ENV_WORK_DIR, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return Path(user_data_dir(APP_NAME)) / "work"


@dataclass(frozen=True)
class WorkPaths:
    root: Path
    session_json: Path
    break_json: Path
    enforcement_json: Path
    pomodoro_count: Path
    logs_dir: Path
    activity_dir: Path

    @classmethod
    def at(cls, root: Path) -> WorkPaths:
        return cls(
            root=root,
            session_json=root / SESSION_STATE_FILE,
            break_json=root / BREAK_STATE_FILE,
            enforcement_json=root / ENFORCEMENT_STATE_FILE,
            pomodoro_count=root / POMODORO_COUNT_FILE,
            logs_dir=root / "logs",
            activity_dir=root.parent / "activity",
        )

    @property
    def log_file(self) -> Path:
        return self.logs_dir / LOG_FILE

    def marker(self, kind: str) -> Path:
        return self.root / f"{kind}.pid"

    def archive(self, kind: str, month: str) -> Path:
        return self.root / f"{kind}_{month}.jsonl"


def ensure_work_dirs(paths: WorkPaths) -> WorkPaths:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.logs_dir.mkdir(parents=True, exist_ok=True)
    return paths
