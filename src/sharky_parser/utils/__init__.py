"""Utility functions for the log parsing engine."""

from .level_detector import LevelDetector, detect_level, get_default_detector
from .logging_utils import setup_logging
from .timestamp_parser import TimestampMatch, try_extract, try_parse

__all__ = [
    # Severity classification
    "LevelDetector",
    "detect_level",
    "get_default_detector",
    # Timestamps
    "TimestampMatch",
    "try_extract",
    "try_parse",
    # Logging
    "setup_logging",
]
