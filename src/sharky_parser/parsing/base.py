"""
Abstract base class and parse context for log parsers.

Provides the parser contract shared by every log format together with the
template behavior all formats inherit: per-line error isolation, a default
whole-file driver and the default column set.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Protocol, Union, runtime_checkable

from ..schemas.enums import LogLevel, LogType, StackTraceMode
from ..schemas.log_entry import PREDEFINED_COLUMNS, LogColumn, LogEntry
from ..utils.level_detector import LevelDetector, get_default_detector
from .file_utils import iter_lines


@dataclass
class ParseContext:
    """
    Per-file discovery state.

    A fresh context is created at the start of every parse_file() call, so
    nothing learned from one file leaks into the next and a shared parser
    instance stays safe to reuse.

    Attributes:
        file_path: File being parsed (empty for line-at-a-time parsing)
        baseline_date: Date anchor for time-only timestamps
        last_timestamp: Most recent timestamp seen in this file
    """

    file_path: str = ""
    baseline_date: date = field(default_factory=date.today)
    last_timestamp: Optional[datetime] = None


@runtime_checkable
class ContinuationConfigurable(Protocol):
    """Parsers whose continuation-line policy can be set at runtime."""

    def configure(self, mode: StackTraceMode) -> None:
        """Apply the continuation policy before parsing begins."""
        ...

    def get_configuration_summary(self) -> str:
        """Human-readable summary of the current configuration."""
        ...


@runtime_checkable
class BlockConfigurable(Protocol):
    """Parsers that can restrict output to selected named blocks."""

    def configure_blocks(self, blocks: Optional[Iterable[str]]) -> None:
        """Select block names to keep; empty or None disables filtering."""
        ...


class BaseLogParser(ABC):
    """
    Abstract base class for all log parsers.

    Subclasses must implement:
        - supported_log_type: Property returning the LogType handled
        - parser_name: Property returning a display name
        - parser_description: Property returning a short description
        - parse_line_core(): Interpret one line within a ParseContext

    Subclasses that need cross-line state (continuations, block scopes)
    override parse_file() and call guarded() around per-line work.

    Example Implementation:
        class PlainParser(BaseLogParser):
            supported_log_type = LogType.INSTALLATION
            parser_name = "Plain"
            parser_description = "One entry per line"

            def parse_line_core(self, line, context):
                return LogEntry(message=line.strip(), raw_data=line)
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level_detector: Optional[LevelDetector] = None,
        encoding: str = "utf-8",
    ):
        """
        Initialize the parser.

        Args:
            logger: Logger for parse failures (default: module logger)
            level_detector: Severity classifier (default: shared detector)
            encoding: Text encoding used to read files
        """
        self.logger = logger or logging.getLogger(type(self).__module__)
        self.level_detector = level_detector or get_default_detector()
        self.encoding = encoding
        self._line_context: Optional[ParseContext] = None

    @property
    @abstractmethod
    def supported_log_type(self) -> LogType:
        """Return the log type this parser handles."""
        pass

    @property
    @abstractmethod
    def parser_name(self) -> str:
        """Return the display name of the parser."""
        pass

    @property
    @abstractmethod
    def parser_description(self) -> str:
        """Return a short description of the parser."""
        pass

    @abstractmethod
    def parse_line_core(self, line: str, context: ParseContext) -> Optional[LogEntry]:
        """
        Interpret a single line.

        Args:
            line: Raw line without its trailing newline
            context: Per-file state for the current parse

        Returns:
            LogEntry, or None if the line carries no record

        Raises:
            Any exception; callers go through guarded() which converts it
            into a synthetic ERROR entry
        """
        pass

    # -------------------------------------------------------------------------
    # Context handling
    # -------------------------------------------------------------------------

    def create_context(self, file_path: Union[str, Path, None] = None) -> ParseContext:
        """Create fresh per-file state. Subclasses extend the context type."""
        return ParseContext(file_path=str(file_path) if file_path else "")

    def reset(self) -> None:
        """Forget the state accumulated by line-at-a-time parse_line() calls."""
        self._line_context = None

    def _get_line_context(self) -> ParseContext:
        if self._line_context is None:
            self._line_context = self.create_context()
        return self._line_context

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def parse_line(self, line: Optional[str]) -> Optional[LogEntry]:
        """
        Parse one line outside of any file.

        Successive calls share a long-lived context (so e.g. an IIS #Fields:
        directive applies to later data lines) until reset() is called.

        Returns:
            LogEntry, a synthetic ERROR entry if interpretation failed, or
            None for blank or non-record lines
        """
        if line is None or not line.strip():
            return None
        return self.guarded(line, self.parse_line_core, line, self._get_line_context())

    def guarded(
        self,
        line: str,
        func: Callable[..., Optional[LogEntry]],
        *args,
    ) -> Optional[LogEntry]:
        """
        Run per-line logic, converting any failure into an ERROR entry.

        Args:
            line: Raw line being interpreted (kept on the error entry)
            func: Callable doing the work
            *args: Arguments for func

        Returns:
            The callable's result, or a synthetic ERROR entry
        """
        try:
            return func(*args)
        except Exception as e:
            self.logger.error(f"Failed to parse line: {line}. Error: {e}")
            return self.create_error_entry(line, str(e))

    def create_error_entry(self, raw_line: str, error: str) -> LogEntry:
        """Build the synthetic entry that replaces an unparseable line."""
        return LogEntry(
            timestamp=datetime.now(),
            level=LogLevel.ERROR,
            message=f"Parse error: {error}",
            raw_data=raw_line,
            source=self.parser_name,
        )

    def parse_file(self, path: Union[str, Path]) -> Iterator[LogEntry]:
        """
        Parse a whole file, one entry per recognized line.

        Blank lines are skipped. Each entry is stamped with the file path and
        the 1-based line number it came from.

        Args:
            path: Log file path (gzip-compressed files are supported)

        Yields:
            LogEntry objects in line order

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = str(path)
        context = self.create_context(file_path)
        entries = 0

        for line_number, line in iter_lines(file_path, self.encoding):
            if not line.strip():
                continue

            entry = self.guarded(line, self.parse_line_core, line, context)
            if entry is None:
                continue

            entry.file_path = file_path
            entry.line_number = line_number
            entries += 1
            yield entry

        self.logger.debug(f"{self.parser_name}: parsed {entries} entries from {file_path}")

    async def parse_file_async(self, path: Union[str, Path]) -> list[LogEntry]:
        """
        Parse a file on a worker thread.

        Cancellation takes effect only at the call boundary.
        """
        return await asyncio.to_thread(lambda: list(self.parse_file(path)))

    # -------------------------------------------------------------------------
    # Schema and capabilities
    # -------------------------------------------------------------------------

    def get_columns(self) -> list[LogColumn]:
        """Return the columns this parser fills, predefined columns first."""
        return list(PREDEFINED_COLUMNS)

    def continuation_config(self) -> Optional[ContinuationConfigurable]:
        """Return a continuation-mode handle, or None if unsupported."""
        return None

    def block_filter_config(self) -> Optional[BlockConfigurable]:
        """Return a block-filter handle, or None if unsupported."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(log_type={self.supported_log_type.value!r})"
