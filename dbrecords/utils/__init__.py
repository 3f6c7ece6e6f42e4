"""
Utilities package for dbrecords.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of record-engine logic.
"""

from dbrecords.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
