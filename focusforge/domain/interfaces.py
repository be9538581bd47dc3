from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol


class IFileService(Protocol):
    """Read/write text files. Replacing writes are atomic; creation can be exclusive."""

    def read_text(self, path: Path) -> str: ...
    def write_text_atomic(self, path: Path, text: str) -> None: ...
    def create_exclusive(self, path: Path, text: str) -> None: ...
    def append_line(self, path: Path, line: str) -> None: ...
    def remove(self, path: Path) -> None: ...
    def read_bytes(self, path: Path) -> bytes: ...
    def locked(self, path: Path) -> AbstractContextManager[None]: ...


class IConfigService(Protocol):
    """Sectioned key/value configuration (INI semantics)."""

    def get(self, section: str, key: str, default: str | None = None) -> str | None: ...
    def get_int(self, section: str, key: str, default: int | None = None) -> int | None: ...
    def get_bool(self, section: str, key: str, default: bool | None = None) -> bool | None: ...
    def as_dict(self) -> Mapping[str, Mapping[str, str]]: ...


class INotifier(Protocol):
    """Best-effort user notification sink. Must never raise."""

    def notify(self, title: str, message: str) -> bool: ...


class IProcessLauncher(Protocol):
    """Start a detached process; returns (started, pid)."""

    def start_detached(
        self, program: str, args: Sequence[str], workdir: Path | None = None
    ) -> tuple[bool, int]: ...
