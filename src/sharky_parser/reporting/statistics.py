"""
Statistics over parsed log entries.

Reduces a sequence of LogEntry objects to level counts and a health flag,
plus a traffic summary for IIS logs and a build summary for TeamCity logs.
"""

import json
import logging
from collections import Counter
from datetime import timezone
from typing import Iterable, Optional, Union

import pandas as pd

from ..config.constants import IIS_TOP_N, RESPONSE_TIME_BUCKETS
from ..schemas.enums import LogLevel, LogType
from ..schemas.log_entry import LogEntry
from ..schemas.statistics import IisLogStatistics, LogStatistics, SlowRequestStats

logger = logging.getLogger(__name__)

_BUCKET_LABELS = [label for label, _ in RESPONSE_TIME_BUCKETS]
_BUCKET_EDGES = [float("-inf")] + [
    float(upper) if upper is not None else float("inf")
    for _, upper in RESPONSE_TIME_BUCKETS
]


class LogAnalyzer:
    """
    Computes statistics for parsed log entries.

    Debug counts include TRACE entries. The health flag is true iff no
    ERROR entry is present.

    Usage:
        analyzer = LogAnalyzer()
        stats = analyzer.get_statistics(entries, LogType.IIS)
        print(stats.error_count, stats.is_healthy)
    """

    def has_errors(self, entries: Iterable[LogEntry]) -> bool:
        """True if any entry is at ERROR level."""
        return any(e.level == LogLevel.ERROR for e in entries)

    def has_warnings(self, entries: Iterable[LogEntry]) -> bool:
        """True if any entry is at WARN level."""
        return any(e.level == LogLevel.WARN for e in entries)

    def get_statistics(
        self,
        entries: Iterable[LogEntry],
        log_type: Union[LogType, str, None] = None,
    ) -> LogStatistics:
        """
        Summarize a parsed entry sequence.

        Args:
            entries: Parsed entries (consumed once)
            log_type: Format of the entries; IIS and TeamCity get an
                extended summary

        Returns:
            LogStatistics
        """
        entry_list = list(entries)
        levels = Counter(e.level for e in entry_list)
        log_type = LogType.parse(log_type) if log_type is not None else None

        stats = LogStatistics(
            total_count=len(entry_list),
            error_count=levels[LogLevel.ERROR],
            warning_count=levels[LogLevel.WARN],
            info_count=levels[LogLevel.INFO],
            debug_count=levels[LogLevel.DEBUG] + levels[LogLevel.TRACE],
        )

        if log_type is LogType.IIS:
            stats.iis_statistics = self.get_iis_statistics(entry_list)
            stats.extended_data = json.dumps(self._iis_summary(stats.iis_statistics, entry_list))
        elif log_type is LogType.TEAMCITY:
            stats.extended_data = json.dumps(self._teamcity_summary(entry_list))

        logger.debug(
            f"Statistics: {stats.total_count} entries, {stats.error_count} errors, "
            f"{stats.warning_count} warnings"
        )
        return stats

    # -------------------------------------------------------------------------
    # IIS traffic statistics
    # -------------------------------------------------------------------------

    def get_iis_statistics(self, entries: list[LogEntry]) -> IisLogStatistics:
        """
        Compute traffic statistics for IIS entries.

        Only entries with a known timestamp and request fields are
        considered, so synthetic parse-error entries are skipped.

        Returns:
            IisLogStatistics with requests per minute, top client IPs, the
            slowest requests and the response-time distribution
        """
        df = self._to_request_frame(entries)
        if df.empty:
            return IisLogStatistics(
                response_time_distribution={label: 0 for label in _BUCKET_LABELS}
            )

        per_minute = df.groupby(df["timestamp"].dt.floor("min")).size().sort_index()
        top_ips = df["client_ip"].value_counts().head(IIS_TOP_N)
        slowest = df.nlargest(IIS_TOP_N, "duration_ms")

        buckets = pd.cut(
            df["duration_ms"],
            bins=_BUCKET_EDGES,
            labels=_BUCKET_LABELS,
            right=False,
        )
        distribution = buckets.value_counts().reindex(_BUCKET_LABELS, fill_value=0)

        return IisLogStatistics(
            requests_per_minute={
                minute.to_pydatetime(): int(count) for minute, count in per_minute.items()
            },
            top_ips={str(ip): int(count) for ip, count in top_ips.items()},
            slowest_requests=[
                SlowRequestStats(
                    url=row.url,
                    method=row.method,
                    duration_ms=int(row.duration_ms),
                    timestamp=row.timestamp.to_pydatetime(),
                    status_code=int(row.status_code),
                )
                for row in slowest.itertuples(index=False)
            ],
            response_time_distribution={
                label: int(count) for label, count in distribution.items()
            },
        )

    @staticmethod
    def _to_request_frame(entries: list[LogEntry]) -> pd.DataFrame:
        rows = []
        for entry in entries:
            if not entry.has_known_timestamp or not entry.fields:
                continue
            timestamp = entry.timestamp
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            rows.append(
                {
                    "timestamp": timestamp,
                    "duration_ms": entry.fields.get("time-taken"),
                    "client_ip": entry.fields.get("c-ip", "Unknown"),
                    "method": entry.fields.get("cs-method", "GET"),
                    "url": entry.fields.get("cs-uri-stem", entry.message or "/"),
                    "status_code": entry.fields.get("sc-status"),
                }
            )

        columns = ["timestamp", "duration_ms", "client_ip", "method", "url", "status_code"]
        df = pd.DataFrame(rows, columns=columns)
        if df.empty:
            return df

        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        df["duration_ms"] = pd.to_numeric(df["duration_ms"], errors="coerce").fillna(0).astype(int)
        df["status_code"] = pd.to_numeric(df["status_code"], errors="coerce").fillna(200).astype(int)
        return df

    @staticmethod
    def _iis_summary(iis: IisLogStatistics, entries: list[LogEntry]) -> dict:
        status_classes = Counter(
            f"{e.fields['sc-status'][0]}xx"
            for e in entries
            if e.fields.get("sc-status", "")[:1].isdigit()
        )
        return {
            "requests": sum(iis.requests_per_minute.values()),
            "unique_client_ips": len({e.fields["c-ip"] for e in entries if "c-ip" in e.fields}),
            "busiest_minute": (
                max(iis.requests_per_minute, key=iis.requests_per_minute.get).isoformat()
                if iis.requests_per_minute
                else None
            ),
            "slowest_ms": iis.slowest_requests[0].duration_ms if iis.slowest_requests else None,
            "status_classes": dict(sorted(status_classes.items())),
        }

    # -------------------------------------------------------------------------
    # TeamCity build summary
    # -------------------------------------------------------------------------

    @staticmethod
    def _teamcity_summary(entries: list[LogEntry]) -> dict:
        message_types = Counter(
            e.fields["MessageType"].lower() for e in entries if "MessageType" in e.fields
        )
        steps = list(dict.fromkeys(e.fields["Step"] for e in entries if "Step" in e.fields))
        failed_tests = [
            e.fields["TestName"]
            for e in entries
            if e.fields.get("MessageType", "").lower() == "testfailed" and "TestName" in e.fields
        ]
        return {
            "tests_started": message_types["teststarted"],
            "tests_failed": message_types["testfailed"],
            "tests_ignored": message_types["testignored"],
            "build_problems": message_types["buildproblem"],
            "failed_tests": failed_tests,
            "steps": steps,
        }


def get_statistics(
    entries: Iterable[LogEntry],
    log_type: Optional[Union[LogType, str]] = None,
) -> LogStatistics:
    """
    Summarize entries with a default LogAnalyzer.

    Convenience function wrapping LogAnalyzer.get_statistics().
    """
    return LogAnalyzer().get_statistics(entries, log_type)
