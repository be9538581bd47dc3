from .archive import ArchiveStore
from .break_service import BreakService
from . import focus_scorer
from .session_service import SessionService

__all__ = ["ArchiveStore", "BreakService", "SessionService", "focus_scorer"]
