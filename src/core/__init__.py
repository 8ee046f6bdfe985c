"""Process-wide helpers shared by scripts and library code."""

from core.logging import configure_logging

__all__ = ["configure_logging"]
