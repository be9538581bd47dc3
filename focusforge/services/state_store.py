from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from focusforge.domain.errors import CorruptStateError
from focusforge.domain.interfaces import IFileService

logger = logging.getLogger(__name__)


def encode_document(doc: dict[str, Any]) -> str:
    return json.dumps(doc, indent=2, sort_keys=True, ensure_ascii=True) + "\n"


def decode_document(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CorruptStateError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class JsonStateStore:
    """
    One JSON object persisted in one file.

    - load() never raises for missing or corrupt content; both read as None.
    - save() replaces the file atomically.
    - create() is the exclusive create-if-absent primitive (FileExistsError when present).
    """

    def __init__(self, path: Path, files: IFileService) -> None:
        self.path = path
        self._files = files

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> dict[str, Any] | None:
        try:
            text = self._files.read_text(self.path)
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring undecodable state file %s: %s", self.path, exc)
            return None
        try:
            return decode_document(text)
        except CorruptStateError as exc:
            logger.warning("Ignoring corrupt state file %s: %s", self.path, exc)
            return None

    def save(self, doc: dict[str, Any]) -> None:
        self._files.write_text_atomic(self.path, encode_document(doc))

    def create(self, doc: dict[str, Any]) -> None:
        self._files.create_exclusive(self.path, encode_document(doc))

    def clear(self) -> None:
        self._files.remove(self.path)

    def claim(self, doc: dict[str, Any], is_live: Callable[[dict[str, Any] | None], bool]) -> bool:
        """Exclusively create the file; a stale or corrupt occupant is replaced.

        Returns False when a live document already holds the file. Claimants
        are serialized by a lock so that only the lock holder ever removes an
        occupant, and only one it has just read as stale.
        """
        with self._files.locked(self.path):
            try:
                self.create(doc)
                return True
            except FileExistsError:
                pass
            if is_live(self.load()):
                return False
            logger.warning("Replacing stale state file %s", self.path)
            self.clear()
            try:
                self.create(doc)
            except FileExistsError:
                return False
            return True


class CounterStore:
    """Plain-integer file, used for the pomodoro cycle counter."""

    def __init__(self, path: Path, files: IFileService) -> None:
        self.path = path
        self._files = files

    def value(self) -> int:
        try:
            raw = self._files.read_text(self.path).strip()
        except FileNotFoundError:
            return 0
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring undecodable counter file %s: %s", self.path, exc)
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            logger.warning("Ignoring corrupt counter file %s: %r", self.path, raw)
            return 0

    def set(self, value: int) -> None:
        self._files.write_text_atomic(self.path, f"{max(0, int(value))}\n")

    def increment(self) -> int:
        value = self.value() + 1
        self.set(value)
        return value

    def reset(self) -> None:
        self._files.remove(self.path)
