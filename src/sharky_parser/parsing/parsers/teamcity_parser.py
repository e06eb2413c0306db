"""
TeamCity build log parser.

Handles both plain timestamped build output and ##teamcity[...] service
messages:

    [10:30:45] Starting build...
    [10:30:45] : [Step 1/3] Running dotnet build
    [10:30:46]W: Deprecated API usage
    [10:30:47]E: Compilation failed
    [2024-01-15 10:30:45] Full datetime
    ##teamcity[testFailed name='LoginTest' message='Assertion failed']
    ##teamcity[buildStatus status='FAILURE' text='Tests failed: 3']
    ##teamcity[progressMessage 'Restoring packages']

Optional block-scope filtering keeps only the lines nested (by leading tab
depth) under selected block names.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from ...schemas.enums import LogLevel, LogType
from ...schemas.log_entry import UNKNOWN_TIMESTAMP, LogColumn, LogEntry
from ...utils.timestamp_parser import try_parse
from ..base import BaseLogParser, BlockConfigurable, ParseContext
from ..file_utils import resolve_baseline_date

SOURCE_NAME = "TeamCity"

# =============================================================================
# Line grammars
# =============================================================================

# [HH:mm:ss] or [yyyy-MM-dd HH:mm:ss], optional W:/E:/i: marker or " : "
# separator, optional [Step] tag
_TIMESTAMPED_LINE = re.compile(
    r"^\[(?P<timestamp>\d{2}:\d{2}:\d{2}(?:\.\d{1,3})?|\d{4}-\d{2}-\d{2}\s\d{2}:\d{2}:\d{2})\]"
    r"(?:(?P<marker>[WEi]):)?\s*(?::?\s*)?"
    r"(?:\[(?P<step>[^\]]+)\]\s*)?"
    r"(?P<message>.*)$"
)

_SERVICE_MESSAGE = re.compile(r"^##teamcity\[(?P<name>\w+)(?:\s+(?P<attrs>.+))?\]$")

_ATTRIBUTE = re.compile(r"(?P<key>\w+)='(?P<value>(?:[^'|]|\|.|'')*)'")

_SINGLE_VALUE = re.compile(r"^'(?P<value>(?:[^'|]|\|.|'')*)'$")

_ESCAPE_SEQUENCE = re.compile(r"\|0x(?P<code>[0-9A-Fa-f]{4})|\|(?P<char>.)|''", re.DOTALL)

_ESCAPED_CHARS = {
    "'": "'",
    "n": "\n",
    "r": "\r",
    "|": "|",
    "[": "[",
    "]": "]",
    "x": "\u0085",
    "l": "\u2028",
    "p": "\u2029",
}

_MARKER_LEVELS = {
    "E": LogLevel.ERROR,
    "W": LogLevel.WARN,
    "i": LogLevel.INFO,
}

_SERVICE_TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
]

# =============================================================================
# Block boundaries
# =============================================================================

# "[timestamp]" plus an optional "E:" marker or " :" separator
_LINE_HEAD = re.compile(r"^\[[\d:. -]+\](?:[WEi]:)? ?:?")

_BRACKET_TOKEN = re.compile(r"\[(?P<name>[^\]]+)\]")

_LEADING_TAG = re.compile(r"^\[[^\]]*\]\s*")

_COLON_BOUNDARY = re.compile(r"^(?P<name>[^:]+):")

_DURATION_BOUNDARY = re.compile(r"^(?P<name>.+?)\s*\((?P<duration>[^)]*\d[^)]*)\)\s*$")

# =============================================================================
# Service message table
# =============================================================================

_SERVICE_LEVELS = {
    "testfailed": LogLevel.ERROR,
    "buildproblem": LogLevel.ERROR,
    "buildfailure": LogLevel.ERROR,
    "testignored": LogLevel.WARN,
    "teststderr": LogLevel.WARN,
    "teststarted": LogLevel.DEBUG,
    "testfinished": LogLevel.DEBUG,
    "teststdout": LogLevel.DEBUG,
    "blockopened": LogLevel.DEBUG,
    "blockclosed": LogLevel.DEBUG,
}

_STATUS_LEVELS = {
    "ERROR": LogLevel.ERROR,
    "FAILURE": LogLevel.ERROR,
    "WARNING": LogLevel.WARN,
}

_MessageTemplate = Callable[[dict[str, str]], str]

_SERVICE_TEMPLATES: dict[str, _MessageTemplate] = {
    "buildproblem": lambda a: f"Build Problem: {a.get('description', 'unknown')}",
    "buildstatus": lambda a: f"Build Status: {a.get('text', a.get('status', 'unknown'))}",
    "teststarted": lambda a: f"Test Started: {a.get('name', '?')}",
    "testfinished": lambda a: f"Test Finished: {a.get('name', '?')}",
    "testfailed": lambda a: f"Test Failed: {a.get('name', '?')} - {a.get('message', '')}",
    "testignored": lambda a: f"Test Ignored: {a.get('name', '?')} - {a.get('message', '')}",
    "teststdout": lambda a: f"Test Output: {a.get('name', '?')} - {a.get('out', '')}",
    "teststderr": lambda a: f"Test Error Output: {a.get('name', '?')} - {a.get('out', '')}",
    "blockopened": lambda a: f"Block Opened: {a.get('name', '')}",
    "blockclosed": lambda a: f"Block Closed: {a.get('name', '')}",
    "progressmessage": lambda a: f"Progress: {a.get('value', a.get('message', ''))}",
    "progressstart": lambda a: f"Progress: {a.get('value', a.get('message', ''))}",
    "progressfinish": lambda a: f"Progress Done: {a.get('value', a.get('message', ''))}",
    "compilationstarted": lambda a: f"Compilation: {a.get('compiler', '')}",
    "compilationfinished": lambda a: f"Compilation Done: {a.get('compiler', '')}",
}


def unescape_value(value: str) -> str:
    """
    Undo TeamCity's pipe escaping in a single pass.

    Handles |' |n |r || |[ |] |x |l |p, |0xNNNN code points and doubled
    single quotes. Unknown escapes are left as written.

    Examples:
        >>> unescape_value("it|'s |[ok|]||done")
        "it's [ok]|done"
    """

    def replace(match: re.Match) -> str:
        if match.group("code"):
            return chr(int(match.group("code"), 16))
        if match.group("char") is not None:
            return _ESCAPED_CHARS.get(match.group("char"), match.group(0))
        return "'"

    return _ESCAPE_SEQUENCE.sub(replace, value)


def parse_attributes(attrs_text: Optional[str]) -> dict[str, str]:
    """
    Parse the attribute section of a service message.

    Returns key='value' pairs in order, or {"value": ...} for the
    single-value form ##teamcity[name 'value'].
    """
    if not attrs_text:
        return {}

    single = _SINGLE_VALUE.match(attrs_text.strip())
    if single:
        return {"value": unescape_value(single.group("value"))}

    return {
        match.group("key"): unescape_value(match.group("value"))
        for match in _ATTRIBUTE.finditer(attrs_text)
    }


def parse_service_timestamp(value: str) -> Optional[datetime]:
    """
    Parse a service message timestamp (ISO, optional millis and offset).

    Values with an offset are converted to naive UTC so they compare with
    the naive timestamps of plain build output.
    """
    for fmt in _SERVICE_TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    return None


@dataclass
class TeamCityParseContext(ParseContext):
    """
    Parse context tracking the block scope of the current line.

    block_path[d] holds the selected block name entered at depth d, or None.
    """

    block_path: list[Optional[str]] = field(default_factory=list)


class TeamCityLogParser(BaseLogParser):
    """
    Parser for TeamCity build logs.

    Block filtering:
        parser.configure_blocks(["Compile"])
        # keeps "Compile:" and every more-indented line below it, until a
        # line at the same or a shallower depth leaves the block
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level_detector=None,
        encoding: str = "utf-8",
        blocks: Optional[Iterable[str]] = None,
    ):
        super().__init__(logger=logger, level_detector=level_detector, encoding=encoding)
        self._selected_blocks: frozenset[str] = frozenset()
        self.configure_blocks(blocks)

    @property
    def supported_log_type(self) -> LogType:
        return LogType.TEAMCITY

    @property
    def parser_name(self) -> str:
        return "TeamCity Logs"

    @property
    def parser_description(self) -> str:
        return "Parses TeamCity CI/CD build logs"

    def get_columns(self) -> list[LogColumn]:
        return super().get_columns() + [
            LogColumn("Step", "Step", "Build step name."),
            LogColumn("MessageType", "Type", "TeamCity service message type."),
            LogColumn("TestName", "Test", "Test name (for test messages)."),
            LogColumn("BlockName", "Block", "Block name (for block messages)."),
            LogColumn("FlowId", "Flow", "Flow identifier of parallel output."),
            LogColumn("Details", "Details", "Failure details or stack trace."),
            LogColumn("ProblemId", "Problem", "Build problem identity."),
            LogColumn("Duration", "Duration", "Reported duration in milliseconds."),
        ]

    # -------------------------------------------------------------------------
    # Block-filter capability
    # -------------------------------------------------------------------------

    def block_filter_config(self) -> BlockConfigurable:
        return self

    def configure_blocks(self, blocks: Optional[Iterable[str]]) -> None:
        """Select block names to keep (case-insensitive); empty disables filtering."""
        self._selected_blocks = frozenset(
            name.strip().lower() for name in (blocks or []) if name and name.strip()
        )
        if self._selected_blocks:
            self.logger.debug(f"Block filter enabled for: {', '.join(sorted(self._selected_blocks))}")

    @property
    def selected_blocks(self) -> frozenset[str]:
        return self._selected_blocks

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def create_context(self, file_path: Union[str, Path, None] = None) -> TeamCityParseContext:
        context = TeamCityParseContext(file_path=str(file_path) if file_path else "")
        if file_path:
            context.baseline_date = resolve_baseline_date(file_path)
        return context

    def parse_line_core(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        keep = not self._selected_blocks or self.track_block_scope(line, context)
        entry = self._interpret(line, context)
        return entry if keep else None

    def _interpret(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        stripped = line.strip()
        if not stripped:
            return None

        service = _SERVICE_MESSAGE.match(stripped)
        if service:
            return self._parse_service_message(service, line, context)

        timestamped = _TIMESTAMPED_LINE.match(line)
        if timestamped:
            return self._parse_timestamped_line(timestamped, line, context)

        return LogEntry(
            timestamp=context.last_timestamp or UNKNOWN_TIMESTAMP,
            level=self.level_detector.detect(stripped),
            message=stripped,
            raw_data=line,
            source=SOURCE_NAME,
        )

    def _parse_timestamped_line(
        self, match: re.Match, line: str, context: ParseContext
    ) -> LogEntry:
        message = match.group("message").strip()
        marker = match.group("marker")
        level = _MARKER_LEVELS[marker] if marker else self.level_detector.detect(message)

        timestamp = try_parse(match.group("timestamp"), context.baseline_date)
        if timestamp is None:
            timestamp = context.last_timestamp or UNKNOWN_TIMESTAMP
        else:
            context.last_timestamp = timestamp

        entry = LogEntry(
            timestamp=timestamp,
            level=level,
            message=message,
            raw_data=line,
            source=SOURCE_NAME,
        )
        if match.group("step"):
            entry.set_field("Step", match.group("step"))
        return entry

    def _parse_service_message(
        self, match: re.Match, line: str, context: ParseContext
    ) -> LogEntry:
        name = match.group("name")
        key = name.lower()
        attrs = parse_attributes(match.group("attrs"))
        lookup = {k.lower(): v for k, v in attrs.items()}

        timestamp = None
        if "timestamp" in lookup:
            timestamp = parse_service_timestamp(lookup["timestamp"])
        if timestamp is None:
            timestamp = context.last_timestamp or datetime.now()

        entry = LogEntry(
            timestamp=timestamp,
            level=self._service_level(key, lookup),
            message=self._service_text(name, attrs, lookup),
            raw_data=line,
            source=SOURCE_NAME,
        )

        entry.set_field("MessageType", name)
        if "name" in lookup:
            if key.startswith("test"):
                entry.set_field("TestName", lookup["name"])
            elif key.startswith("block"):
                entry.set_field("BlockName", lookup["name"])
        if "flowid" in lookup:
            entry.set_field("FlowId", lookup["flowid"])
        details = lookup.get("errordetails", lookup.get("details"))
        if details is not None:
            entry.set_field("Details", details)
        if "identity" in lookup:
            entry.set_field("ProblemId", lookup["identity"])
        if "duration" in lookup:
            entry.set_field("Duration", lookup["duration"])
        return entry

    @staticmethod
    def _service_level(key: str, lookup: dict[str, str]) -> LogLevel:
        if "status" in lookup:
            return _STATUS_LEVELS.get(lookup["status"].upper(), LogLevel.INFO)
        return _SERVICE_LEVELS.get(key, LogLevel.INFO)

    @staticmethod
    def _service_text(name: str, attrs: dict[str, str], lookup: dict[str, str]) -> str:
        key = name.lower()
        if key == "message":
            return lookup.get("text", lookup.get("value", name))

        template = _SERVICE_TEMPLATES.get(key)
        if template is not None:
            return template(lookup)

        return f"{name}: " + ", ".join(f"{k}={v}" for k, v in attrs.items())

    # -------------------------------------------------------------------------
    # Block scope tracking
    # -------------------------------------------------------------------------

    def track_block_scope(self, line: str, context: TeamCityParseContext) -> bool:
        """
        Advance the block path by one line and decide whether to keep it.

        Depth is the number of leading tabs after the timestamp and marker.
        A selected boundary named on this line opens a scope one level
        deeper than the line itself.

        Returns:
            True if the line lies inside (or opens) a selected block
        """
        head = _LINE_HEAD.match(line)
        tail = line[head.end():] if head else line
        depth = len(tail) - len(tail.lstrip("\t"))

        path = context.block_path
        del path[depth + 1:]
        path.extend([None] * (depth + 1 - len(path)))

        boundary = self.find_boundary(tail)
        if boundary is not None:
            path.append(boundary)

        return any(name is not None for name in path)

    def find_boundary(self, tail: str) -> Optional[str]:
        """
        Return the selected block name this line opens, if any.

        Checked in order: a literal [name] token, the "name:" form, then the
        "name (duration)" form.
        """
        for match in _BRACKET_TOKEN.finditer(tail):
            if self._is_selected(match.group("name")):
                return match.group("name").strip()

        content = _LEADING_TAG.sub("", tail.strip(), count=1)

        colon = _COLON_BOUNDARY.match(content)
        if colon and self._is_selected(colon.group("name")):
            return colon.group("name").strip()

        duration = _DURATION_BOUNDARY.match(content)
        if duration and self._is_selected(duration.group("name")):
            return duration.group("name").strip()

        return None

    def _is_selected(self, name: str) -> bool:
        return name.strip().lower() in self._selected_blocks
