"""
Update log parser.

Update logs mix two line shapes:

    2024-01-02 03:04:05 [Updater] Installing package: Success
    03:04:05.123 Checking for updates

The first shape carries a component tag and an explicit status that decides
the severity; the second is free text classified heuristically. Lines
matching neither shape are skipped.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional, Union

from ...schemas.enums import LogLevel, LogType
from ...schemas.log_entry import LogColumn, LogEntry
from ...utils.timestamp_parser import try_parse
from ..base import BaseLogParser, ParseContext
from ..file_utils import extract_date_from_filename

# [optional timestamp] [Component] Action Target: Status
_STATUS_LINE = re.compile(
    r"^\s*(?:(?P<timestamp>\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,7})?)\s+)?"
    r"\[(?P<component>[^\]]+)\]\s*"
    r"(?P<action>\w+)\s+(?P<target>[^:]+):\s*(?P<status>\w+)"
)

# HH:mm:ss[.fff] free text
_TIMED_TEXT_LINE = re.compile(
    r"^(?P<time>\d{2}:\d{2}:\d{2}(?:[.,]\d{1,3})?)\s+(?P<text>.+)$"
)

_STATUS_LEVELS = {
    "failed": LogLevel.ERROR,
    "error": LogLevel.ERROR,
    "warning": LogLevel.WARN,
}

COMPONENT_FIELD = "Component"


@dataclass
class UpdateParseContext(ParseContext):
    """Parse context carrying the date found in the file name, if any."""

    file_date: Optional[date] = None


def status_to_level(status: str) -> LogLevel:
    """Map an update status word to a severity."""
    return _STATUS_LEVELS.get(status.lower(), LogLevel.INFO)


class UpdateLogParser(BaseLogParser):
    """
    Parser for update/installer logs.

    Status lines produce entries with the component as both source and the
    Component field; the message is rebuilt as "Action Target: Status".
    """

    @property
    def supported_log_type(self) -> LogType:
        return LogType.UPDATE

    @property
    def parser_name(self) -> str:
        return "Update Logs"

    @property
    def parser_description(self) -> str:
        return "Parses Update Logs"

    def get_columns(self) -> list[LogColumn]:
        return super().get_columns() + [
            LogColumn(COMPONENT_FIELD, COMPONENT_FIELD, "The updater component that wrote the line."),
        ]

    def create_context(self, file_path: Union[str, Path, None] = None) -> UpdateParseContext:
        context = UpdateParseContext(file_path=str(file_path) if file_path else "")
        if file_path:
            context.file_date = extract_date_from_filename(file_path)
            if context.file_date is not None:
                context.baseline_date = context.file_date
        return context

    def parse_line_core(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        match = _STATUS_LINE.match(line)
        if match:
            return self._parse_status_line(line, match, context)

        match = _TIMED_TEXT_LINE.match(line)
        if match:
            return self._parse_timed_text(line, match, context)

        return None

    def _parse_status_line(
        self, line: str, match: re.Match, context: ParseContext
    ) -> LogEntry:
        action = match.group("action")
        target = match.group("target").strip()
        status = match.group("status")
        component = match.group("component").strip()

        timestamp = None
        if match.group("timestamp"):
            timestamp = try_parse(match.group("timestamp").replace("T", " "), context.baseline_date)
        if timestamp is None:
            file_date = getattr(context, "file_date", None)
            timestamp = (
                datetime.combine(file_date, time()) if file_date else datetime.now()
            )

        entry = LogEntry(
            timestamp=timestamp,
            level=status_to_level(status),
            message=f"{action} {target}: {status}",
            raw_data=line,
            source=component,
        )
        entry.set_field(COMPONENT_FIELD, component)
        context.last_timestamp = timestamp
        return entry

    def _parse_timed_text(
        self, line: str, match: re.Match, context: ParseContext
    ) -> LogEntry:
        text = match.group("text").strip()
        timestamp = try_parse(match.group("time"), context.baseline_date)
        if timestamp is None:
            timestamp = datetime.combine(context.baseline_date, time())

        context.last_timestamp = timestamp
        return LogEntry(
            timestamp=timestamp,
            level=self.level_detector.detect(text),
            message=text,
            raw_data=line,
            source="Update",
        )
