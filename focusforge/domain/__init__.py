"""Domain layer: errors and interfaces. Records live in .models, results in .results."""

from .errors import (
    AlreadyActiveError,
    BreakRequiredError,
    CorruptStateError,
    FocusForgeError,
    InvalidArgumentError,
    InvalidModeError,
    NoActiveBreakError,
    NoActiveSessionError,
    ProjectSwitchBlockedError,
    StorageError,
)
from .interfaces import IConfigService, IFileService, INotifier, IProcessLauncher

__all__ = [
    "FocusForgeError",
    "AlreadyActiveError",
    "NoActiveSessionError",
    "NoActiveBreakError",
    "BreakRequiredError",
    "ProjectSwitchBlockedError",
    "InvalidArgumentError",
    "InvalidModeError",
    "CorruptStateError",
    "StorageError",
    "IFileService",
    "IConfigService",
    "INotifier",
    "IProcessLauncher",
]
