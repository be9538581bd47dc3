from __future__ import annotations

import contextlib
import fcntl
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from PyQt6.QtCore import QIODevice, QSaveFile

from focusforge.domain.errors import StorageError
from focusforge.domain.interfaces import IFileService


class FileService(IFileService):
    """Atomic reads/writes for the text files under the work dir."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

    def write_text_atomic(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        sf = QSaveFile(str(path))
        if not sf.open(QIODevice.OpenModeFlag.WriteOnly):
            raise StorageError(f"Cannot open for write: {path}")
        sf.write(text.encode("utf-8"))
        if not sf.commit():
            raise StorageError(f"Commit failed for: {path}")

    def create_exclusive(self, path: Path, text: str) -> None:
        """Create ``path`` with ``text`` only if it does not exist yet.

        The content is written to a temp file in the same directory and then
        hard-linked into place, so readers never observe a half-written file and
        two racing creators cannot both succeed. Raises ``FileExistsError`` when
        the target is already present.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        except OSError as exc:
            raise StorageError(f"Cannot create temp file next to: {path}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.link(tmp_name, path)
        except FileExistsError:
            raise
        except OSError as exc:
            raise StorageError(f"Exclusive create failed for: {path}") from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)

    def append_line(self, path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line.rstrip("\n") + "\n")
        except OSError as exc:
            raise StorageError(f"Append failed for: {path}") from exc

    def remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Cannot remove: {path}") from exc

    @contextlib.contextmanager
    def locked(self, path: Path) -> Iterator[None]:
        """Hold an exclusive advisory lock on ``.<name>.lock`` next to ``path``.

        flock is released by the kernel when the holder exits, so a crashed
        process never leaves the lock behind.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.parent / f".{path.name}.lock"
        try:
            fh = lock_path.open("a+", encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot open lock file: {lock_path}") from exc
        with fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
