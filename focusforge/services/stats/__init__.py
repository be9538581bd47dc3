from .stats_service import PERIODS, StatsService

__all__ = ["PERIODS", "StatsService"]
