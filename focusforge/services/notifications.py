from __future__ import annotations

import logging
import shutil
import sys

from focusforge.domain.interfaces import INotifier, IProcessLauncher
from focusforge.services.config.options import WorkOptions

logger = logging.getLogger(__name__)

LINUX_SOUND = "/usr/share/sounds/freedesktop/stereo/complete.oga"


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier(INotifier):
    """
    Desktop notifications via the platform's own tools.

    macOS uses osascript; Linux uses notify-send (and paplay when sound is on).
    Anything else, or any launch failure, is logged and ignored.
    """

    def __init__(
        self,
        options: WorkOptions,
        launcher: IProcessLauncher,
        platform: str | None = None,
    ) -> None:
        self._options = options
        self._launcher = launcher
        self._platform = platform or sys.platform

    def _commands(self, title: str, message: str) -> list[tuple[str, list[str]]]:
        sound = self._options.sound_enabled
        if self._platform == "darwin":
            script = f"display notification {_applescript_quote(message)} with title {_applescript_quote(title)}"
            if sound:
                script += ' sound name "Glass"'
            return [("osascript", ["-e", script])]
        if self._platform.startswith("linux"):
            cmds = [("notify-send", [title, message])]
            if sound and shutil.which("paplay"):
                cmds.append(("paplay", [LINUX_SOUND]))
            return cmds
        return []

    def notify(self, title: str, message: str) -> bool:
        if not self._options.notifications_enabled:
            return False
        logger.info("Notify: %s - %s", title, message)
        sent = False
        for program, args in self._commands(title, message):
            try:
                ok, _pid = self._launcher.start_detached(program, args)
            except OSError as exc:
                logger.debug("Notification command %s failed: %s", program, exc)
                continue
            sent = sent or ok
        return sent
