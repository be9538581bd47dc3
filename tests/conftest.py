from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from focusforge.di.container import Container
from focusforge.services.config.ini_config_service import IniConfigService
from focusforge.services.config.options import WorkOptions
from focusforge.services.file_service import FileService
from focusforge.utils.paths import WorkPaths, ensure_work_dirs

T0 = datetime(2024, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


# --- Fakes shared across tests ---


class FakeClock:
    """Deterministic replacement for utc_now()."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> bool:
        self.messages.append((title, message))
        return True

    @property
    def titles(self) -> list[str]:
        return [title for title, _ in self.messages]


class FakeLauncher:
    """Records launches instead of starting processes; reports the test process as the pid."""

    def __init__(self, ok: bool = True, pid: int | None = None) -> None:
        self.ok = ok
        self.pid = pid if pid is not None else os.getpid()
        self.calls: list[tuple[str, list[str], Path | None]] = []

    def start_detached(self, program, args, workdir=None):
        self.calls.append((program, list(args), workdir))
        return (self.ok, self.pid if self.ok else 0)

    def kinds(self) -> list[str]:
        out = []
        for _program, args, _workdir in self.calls:
            if "--kind" in args:
                out.append(args[args.index("--kind") + 1])
        return out


class DictConfig:
    """In-memory IConfigService."""

    def __init__(self, data: dict[str, dict[str, str]] | None = None) -> None:
        self._data = data or {}

    def get(self, section, key, default=None):
        return self._data.get(section, {}).get(key, default)

    def get_int(self, section, key, default=None):
        raw = self.get(section, key)
        return int(raw) if raw is not None else default

    def get_bool(self, section, key, default=None):
        raw = self.get(section, key)
        return raw in ("1", "true") if raw is not None else default

    def as_dict(self):
        return self._data


# --- Fixtures ---


@pytest.fixture()
def work_dir(tmp_path: Path) -> Path:
    return tmp_path / "work"


@pytest.fixture()
def paths(work_dir: Path) -> WorkPaths:
    return ensure_work_dirs(WorkPaths.at(work_dir))


@pytest.fixture()
def file_service() -> FileService:
    return FileService()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def options() -> WorkOptions:
    # Empty environ so the developer's FOCUSFORGE_* variables never leak in.
    return WorkOptions(DictConfig(), environ={})


@pytest.fixture()
def container(work_dir, options, notifier, launcher, clock) -> Container:
    return Container(
        work_dir,
        config=DictConfig(),
        options=options,
        notifier=notifier,
        launcher=launcher,
        clock=clock,
        tz=timezone.utc,
    )


@pytest.fixture()
def make_container(work_dir, notifier, launcher, clock):
    """Build a container over the shared work dir with option overrides."""

    def _make(clock_fn=None, config: DictConfig | None = None, **overrides) -> Container:
        cfg = config or DictConfig()
        return Container(
            work_dir,
            config=cfg,
            options=WorkOptions(cfg, overrides, environ={}),
            notifier=notifier,
            launcher=launcher,
            clock=clock_fn or clock,
            tz=timezone.utc,
        )

    return _make


@pytest.fixture()
def user_cfg_dir(monkeypatch, tmp_path) -> Path:
    """Point platformdirs at a private directory for the duration of a test."""
    target = tmp_path / "usercfg"

    def fake_user_config_dir(appname: str) -> str:
        return str(target / appname)

    monkeypatch.setattr(
        "focusforge.services.config.ini_config_service.user_config_dir",
        fake_user_config_dir,
        raising=True,
    )
    return target / IniConfigService.DEFAULT_APP_DIR
