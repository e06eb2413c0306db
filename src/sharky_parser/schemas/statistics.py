"""
Statistics models produced by the log analyzer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class SlowRequestStats:
    """One of the slowest requests found in an IIS log."""

    url: str
    method: Optional[str]
    duration_ms: int
    timestamp: datetime
    status_code: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "url": self.url,
            "method": self.method,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
            "status_code": self.status_code,
        }


@dataclass
class IisLogStatistics:
    """Traffic summary for IIS (W3C) logs."""

    requests_per_minute: dict[datetime, int] = field(default_factory=dict)
    top_ips: dict[str, int] = field(default_factory=dict)
    slowest_requests: list[SlowRequestStats] = field(default_factory=list)
    response_time_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary with ISO-formatted minute keys."""
        return {
            "requests_per_minute": {
                minute.isoformat(): count
                for minute, count in self.requests_per_minute.items()
            },
            "top_ips": dict(self.top_ips),
            "slowest_requests": [r.to_dict() for r in self.slowest_requests],
            "response_time_distribution": dict(self.response_time_distribution),
        }


@dataclass
class LogStatistics:
    """
    Counts derived from a parsed entry sequence.

    is_healthy is derived: True iff error_count is zero.
    """

    total_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    debug_count: int = 0
    extended_data: str = ""
    iis_statistics: Optional[IisLogStatistics] = None

    @property
    def is_healthy(self) -> bool:
        return self.error_count == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total_count": self.total_count,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "debug_count": self.debug_count,
            "is_healthy": self.is_healthy,
            "extended_data": self.extended_data,
            "iis_statistics": (
                self.iis_statistics.to_dict() if self.iis_statistics else None
            ),
        }
