"""
Utilities package for the benefit transfer service.

Exports shared helpers for logging and profiling. Keep this package free of
domain-specific logic.
"""

from benefits.utils.logging import configure_logging, get_logger
from benefits.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
