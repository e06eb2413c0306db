"""
Reporting module for parsed log data.

Provides level counts, health flags and format-specific summaries.
"""

from .statistics import LogAnalyzer, get_statistics

__all__ = [
    "LogAnalyzer",
    "get_statistics",
]
