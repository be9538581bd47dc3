"""App constants and utilities."""

from .constants import (
    APP_NAME,
    APP_ORG,
    ARCHIVE_BREAKS,
    ARCHIVE_SESSIONS,
    BREAK_TYPES,
    ENFORCEMENT_MODES,
    SKIP_MODES,
    TIMER_KINDS,
)

__all__ = [
    "APP_ORG",
    "APP_NAME",
    "ARCHIVE_SESSIONS",
    "ARCHIVE_BREAKS",
    "BREAK_TYPES",
    "ENFORCEMENT_MODES",
    "SKIP_MODES",
    "TIMER_KINDS",
]
