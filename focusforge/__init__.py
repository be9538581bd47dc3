"""FocusForge: work/break session engine with break enforcement."""

__version__ = "0.1.0"
