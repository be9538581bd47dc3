from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from PyQt6.QtCore import QProcess

from focusforge.domain.interfaces import IProcessLauncher

logger = logging.getLogger(__name__)


class QtProcessLauncher(IProcessLauncher):
    """Starts fire-and-forget processes through ``QProcess.startDetached``."""

    def start_detached(
        self, program: str, args: Sequence[str], workdir: Path | None = None
    ) -> tuple[bool, int]:
        ok, pid = QProcess.startDetached(program, list(args), str(workdir) if workdir else "")
        if not ok:
            logger.warning("Failed to start detached process: %s %s", program, " ".join(args))
            return False, 0
        return True, int(pid)
