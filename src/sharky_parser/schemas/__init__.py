"""Shared value types for parsed log data."""

from .enums import LogLevel, LogType, StackTraceMode
from .log_entry import (
    PREDEFINED_COLUMN_NAMES,
    PREDEFINED_COLUMNS,
    UNKNOWN_TIMESTAMP,
    LogColumn,
    LogEntry,
)
from .statistics import IisLogStatistics, LogStatistics, SlowRequestStats

__all__ = [
    # Enumerations
    "LogLevel",
    "LogType",
    "StackTraceMode",
    # Entries and columns
    "LogEntry",
    "LogColumn",
    "PREDEFINED_COLUMNS",
    "PREDEFINED_COLUMN_NAMES",
    "UNKNOWN_TIMESTAMP",
    # Statistics
    "LogStatistics",
    "IisLogStatistics",
    "SlowRequestStats",
]
