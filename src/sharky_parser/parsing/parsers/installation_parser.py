"""
Installation log parser.

Installation logs are free-form text where a record starts with a timestamp
and any following line without one belongs to the open record:

    [01:02:03] INFO Copying files
    2024-01-02 03:04:05,123 ERROR Setup failed
    System.IO.IOException: Access denied
       at Installer.Copy()
    03:04:06.250 Rolling back

Time-only timestamps are anchored on a baseline date taken from the file
name (e.g. "2024_12_31_install.log"), else the file's modification date.
"""

import logging
import re
from datetime import datetime, time
from pathlib import Path
from typing import Iterator, Optional, Union

from ...schemas.enums import LogType, StackTraceMode
from ...schemas.log_entry import LogEntry
from ...utils.timestamp_parser import try_parse
from ..base import BaseLogParser, ContinuationConfigurable, ParseContext
from ..file_utils import iter_lines, resolve_baseline_date

_TIMESTAMP_LINE = re.compile(
    r"^(?:"
    r"\[(?P<bracket>\d{2}:\d{2}:\d{2})\]"
    r"|(?P<full>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})(?:[.,](?P<full_fraction>\d{3,4}))?"
    r"|(?P<bare>\d{2}:\d{2}:\d{2})(?:[.,:](?P<bare_fraction>\d{3,4}))?(?=\s)"
    r")"
)

SOURCE_NAME = "Installation"


def _fraction_to_microseconds(fraction: Optional[str]) -> int:
    """Convert a 3 or 4 digit fraction to microseconds.

    Four-digit values above 999 are scaled down by ten, so "1234" reads as
    123 ms rather than overflowing the millisecond range.
    """
    if not fraction:
        return 0
    millis = int(fraction)
    if millis > 999:
        millis //= 10
    return millis * 1000


class InstallationLogParser(BaseLogParser):
    """
    Parser for multi-line installation logs.

    Continuation lines are folded into the open record according to the
    stack trace mode:
    - ALL_TO_STACK_TRACE: continuations go to stack_trace, message keeps
      the first line only
    - NO_STACK_TRACE: continuations are trimmed and appended to message

    raw_data always holds every physical line of the record.

    Usage:
        parser = InstallationLogParser(stack_trace_mode=StackTraceMode.NO_STACK_TRACE)
        for entry in parser.parse_file("2024_12_31_install.log"):
            print(entry.timestamp, entry.level, entry.message)
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level_detector=None,
        encoding: str = "utf-8",
        stack_trace_mode: StackTraceMode = StackTraceMode.ALL_TO_STACK_TRACE,
    ):
        super().__init__(logger=logger, level_detector=level_detector, encoding=encoding)
        self.stack_trace_mode = StackTraceMode(stack_trace_mode)

    @property
    def supported_log_type(self) -> LogType:
        return LogType.INSTALLATION

    @property
    def parser_name(self) -> str:
        return "Installation Logs"

    @property
    def parser_description(self) -> str:
        return "Parses Installation Logs"

    # -------------------------------------------------------------------------
    # Continuation-mode capability
    # -------------------------------------------------------------------------

    def continuation_config(self) -> ContinuationConfigurable:
        return self

    def configure(self, mode: Union[StackTraceMode, str]) -> None:
        """Set how continuation lines are folded into the open record."""
        self.stack_trace_mode = StackTraceMode(mode)
        self.logger.debug(f"{self.parser_name}: stack trace mode set to {self.stack_trace_mode.value}")

    def get_configuration_summary(self) -> str:
        return f"Stack Trace Mode: {self.stack_trace_mode.description}"

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def create_context(self, file_path: Union[str, Path, None] = None) -> ParseContext:
        context = super().create_context(file_path)
        if file_path:
            context.baseline_date = resolve_baseline_date(file_path)
        return context

    def is_record_start(self, line: str) -> bool:
        """True if the line opens a new record (starts with a timestamp)."""
        return _TIMESTAMP_LINE.match(line) is not None

    def parse_line_core(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        timestamp = datetime.combine(context.baseline_date, time())
        message = line.strip()

        match = _TIMESTAMP_LINE.match(line)
        if match:
            timestamp = self._resolve_timestamp(match, context)
            message = line[match.end():].strip()

        context.last_timestamp = timestamp
        return LogEntry(
            timestamp=timestamp,
            level=self.level_detector.detect(message),
            message=message,
            raw_data=line,
            source=SOURCE_NAME,
        )

    def _resolve_timestamp(self, match: re.Match, context: ParseContext) -> datetime:
        if match.group("full"):
            token, fraction = match.group("full"), match.group("full_fraction")
        else:
            token = match.group("bracket") or match.group("bare")
            fraction = match.group("bare_fraction")

        parsed = try_parse(token, context.baseline_date)
        if parsed is None:
            self.logger.debug(f"Unparseable timestamp {token!r}; using baseline date")
            return datetime.combine(context.baseline_date, time())

        return parsed.replace(microsecond=_fraction_to_microseconds(fraction))

    def append_continuation(self, entry: LogEntry, line: str) -> None:
        """Fold a continuation line into the open record."""
        if self.stack_trace_mode is StackTraceMode.ALL_TO_STACK_TRACE:
            entry.stack_trace = f"{entry.stack_trace}\n{line}" if entry.stack_trace else line
        else:
            entry.message = f"{entry.message}\n{line.strip()}"
        entry.raw_data = f"{entry.raw_data}\n{line}"

    def parse_file(self, path: Union[str, Path]) -> Iterator[LogEntry]:
        """
        Parse an installation log, folding continuation lines.

        A record is emitted when the next timestamped line starts or the file
        ends. A first line without a timestamp opens its own record stamped
        with the baseline date.
        """
        file_path = str(path)
        context = self.create_context(file_path)
        current: Optional[LogEntry] = None

        for line_number, line in iter_lines(file_path, self.encoding):
            if not line.strip():
                continue

            if current is not None and not self.is_record_start(line):
                self.append_continuation(current, line)
                continue

            if current is not None:
                yield current

            current = self.guarded(line, self.parse_line_core, line, context)
            if current is not None:
                current.file_path = file_path
                current.line_number = line_number

        if current is not None:
            yield current
