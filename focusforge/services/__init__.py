"""Concrete service implementations."""

from .file_service import FileService
from .state_store import CounterStore, JsonStateStore

__all__ = ["CounterStore", "FileService", "JsonStateStore"]
