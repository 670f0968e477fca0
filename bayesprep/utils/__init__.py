"""Utility functions and classes for bayesprep."""

from .logging import get_logger, setup_logging
from .validation import (
    broadcast_to_length,
    is_equal,
    is_like_factor,
    is_numeric,
    is_wholenumber,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "broadcast_to_length",
    "is_equal",
    "is_like_factor",
    "is_numeric",
    "is_wholenumber",
]
