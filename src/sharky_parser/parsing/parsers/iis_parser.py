"""
IIS log parser for the W3C Extended Log Format.

W3C logs describe their own schema through header directives, and the
schema can change mid-file:

    #Software: Microsoft Internet Information Services 10.0
    #Version: 1.0
    #Date: 2024-01-15 00:00:00
    #Fields: date time s-ip cs-method cs-uri-stem sc-status cs(User-Agent) time-taken
    2024-01-15 12:30:45 10.0.0.1 GET /api/data 200 "Mozilla/5.0 (Windows NT 10.0)" 31

Data lines seen before any #Fields directive are dropped, since there is
no schema to read them against. Header state lives in the parse context,
so it never carries over from one file to the next.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ...config.constants import IIS_DEFAULT_FIELDS, W3C_FIELD_METADATA
from ...schemas.enums import LogLevel, LogType
from ...schemas.log_entry import UNKNOWN_TIMESTAMP, LogColumn, LogEntry
from ...utils.timestamp_parser import try_parse
from ..base import BaseLogParser, ParseContext
from ..exceptions import ParseError

FIELDS_DIRECTIVE = "#Fields:"

# Headers folded into the entry timestamp rather than the field map
_TIMESTAMP_HEADERS = ("date", "time")

ABSENT_VALUE = "-"


@dataclass
class IisParseContext(ParseContext):
    """
    Parse context holding the W3C schema of the current file.

    Attributes:
        headers: Field names from the most recent #Fields directive
        directives: Other header directives (#Software, #Version, #Date)
    """

    headers: list[str] = field(default_factory=list)
    directives: dict[str, str] = field(default_factory=dict)


def split_fields(line: str) -> list[str]:
    """
    Split a W3C data line on unquoted whitespace.

    Double-quoted spans are kept as one token with the quotes removed, so
    user agents with spaces survive intact. An unterminated quote stays
    open through the end of the line.

    Examples:
        >>> split_fields('GET /a "Mozilla/5.0 (X11; Linux)" 200')
        ['GET', '/a', 'Mozilla/5.0 (X11; Linux)', '200']
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    has_token = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            has_token = True
        elif char.isspace() and not in_quotes:
            if has_token:
                tokens.append("".join(current))
                current = []
                has_token = False
        else:
            current.append(char)
            has_token = True

    if has_token:
        tokens.append("".join(current))

    return tokens


def status_to_level(status: Optional[str]) -> LogLevel:
    """Map an HTTP status code to a severity (INFO when unknown)."""
    try:
        code = int(status) if status else 0
    except ValueError:
        return LogLevel.INFO

    if 400 <= code <= 499:
        return LogLevel.WARN
    if 500 <= code <= 599:
        return LogLevel.ERROR
    return LogLevel.INFO


class IisLogParser(BaseLogParser):
    """
    Parser for IIS W3C extended logs.

    Supports:
    - #Fields directives, including schema changes mid-file
    - Quoted values containing spaces
    - "-" as an absent value (omitted from the field map)
    - Gzip-compressed files

    date and time combine into a UTC timestamp, cs-uri-stem becomes the
    message, s-sitename the source, and sc-status decides the severity.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level_detector=None, encoding: str = "utf-8"):
        super().__init__(logger=logger, level_detector=level_detector, encoding=encoding)
        self._last_schema: list[str] = []

    @property
    def supported_log_type(self) -> LogType:
        return LogType.IIS

    @property
    def parser_name(self) -> str:
        return "IIS Logs"

    @property
    def parser_description(self) -> str:
        return "Parses IIS W3C Extended Log Format files"

    def create_context(self, file_path: Union[str, Path, None] = None) -> IisParseContext:
        return IisParseContext(file_path=str(file_path) if file_path else "")

    def get_columns(self) -> list[LogColumn]:
        """
        Return the predefined columns plus the discovered W3C schema.

        The schema is the one most recently declared by a #Fields directive,
        or the IIS default field set if nothing has been parsed yet.
        """
        schema = self._last_schema or IIS_DEFAULT_FIELDS
        columns = super().get_columns()
        for name in schema:
            if name in _TIMESTAMP_HEADERS:
                continue
            header, description = W3C_FIELD_METADATA.get(name, (name, None))
            columns.append(LogColumn(name, header, description))
        return columns

    def parse_line_core(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        stripped = line.strip()

        if stripped.startswith("#"):
            self._handle_directive(stripped, context)
            return None

        if not context.headers:
            self.logger.debug(f"Dropping data line before #Fields directive: {stripped[:80]}")
            return None

        return self._parse_row(line, stripped, context)

    def _handle_directive(self, directive: str, context: IisParseContext) -> None:
        if directive.startswith(FIELDS_DIRECTIVE):
            context.headers = directive[len(FIELDS_DIRECTIVE):].split()
            self._last_schema = list(context.headers)
            self.logger.debug(f"W3C schema declared with {len(context.headers)} fields")
            return

        name, _, value = directive[1:].partition(":")
        if name:
            context.directives[name.strip()] = value.strip()

    def _parse_row(self, line: str, stripped: str, context: IisParseContext) -> LogEntry:
        values = split_fields(stripped)
        if len(values) > len(context.headers):
            raise ParseError(
                f"Row has {len(values)} values but #Fields declares {len(context.headers)}"
            )

        row = {
            name: value
            for name, value in zip(context.headers, values)
            if value != ABSENT_VALUE
        }

        entry = LogEntry(
            timestamp=self._parse_timestamp(row, context),
            level=status_to_level(row.get("sc-status")),
            message=row.get("cs-uri-stem", ""),
            raw_data=line,
            source=row.get("s-sitename", ""),
        )
        for name, value in row.items():
            if name not in _TIMESTAMP_HEADERS:
                entry.set_field(name, value)

        context.last_timestamp = entry.timestamp
        return entry

    def _parse_timestamp(self, row: dict[str, str], context: ParseContext) -> datetime:
        date_value = row.get("date")
        time_value = row.get("time")
        if not time_value:
            return UNKNOWN_TIMESTAMP

        text = f"{date_value} {time_value}" if date_value else time_value
        parsed = try_parse(text, context.baseline_date)
        if parsed is None:
            self.logger.debug(f"Unparseable W3C timestamp: {text!r}")
            return UNKNOWN_TIMESTAMP

        return parsed.replace(tzinfo=timezone.utc)
