class FocusForgeError(Exception):
    """Base class for errors raised by the session engine."""
    pass


class AlreadyActiveError(FocusForgeError):
    """Raised when starting a session or break while one is already live."""
    pass


class NoActiveSessionError(FocusForgeError):
    """Raised when an operation needs a live work session and there is none."""
    pass


class NoActiveBreakError(FocusForgeError):
    """Raised when stopping a break that is not running."""
    pass


class BreakRequiredError(FocusForgeError):
    """Raised by the strict-mode gate while a break is still owed."""

    def __init__(self, message: str, *, break_type: str = "short") -> None:
        super().__init__(message)
        self.break_type = break_type


class ProjectSwitchBlockedError(FocusForgeError):
    """Raised when strict mode refuses to work on a different project."""

    def __init__(self, message: str, *, active_project: str, requested_project: str) -> None:
        super().__init__(message)
        self.active_project = active_project
        self.requested_project = requested_project


class InvalidArgumentError(FocusForgeError, ValueError):
    """Raised when an argument or setting fails validation."""
    pass


class InvalidModeError(InvalidArgumentError):
    """Raised for an enforcement mode outside strict/moderate/coaching/off."""
    pass


class CorruptStateError(FocusForgeError):
    """Raised when a persisted record cannot be decoded."""
    pass


class StorageError(FocusForgeError, OSError):
    """Raised when a write or rename under the work dir fails."""
    pass
