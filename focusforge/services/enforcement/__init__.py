from .activity_log import ActivityLog
from .enforcement_service import EnforcementService, project_name

__all__ = ["ActivityLog", "EnforcementService", "project_name"]
