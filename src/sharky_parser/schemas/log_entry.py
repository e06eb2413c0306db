"""
Normalized log entry and column models.

Every parser, whatever its source format, produces LogEntry objects and
describes the fields it fills through LogColumn objects.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import LogLevel

logger = logging.getLogger(__name__)

# Sentinel for entries whose time could not be determined
UNKNOWN_TIMESTAMP = datetime.min

PREDEFINED_COLUMN_NAMES = frozenset(["Timestamp", "Level", "Message"])


@dataclass
class LogEntry:
    """
    One logical log record.

    A record may span several physical lines (continuations); line_number
    is the 1-based number of its first line.

    Attributes:
        timestamp: When the record was written (UNKNOWN_TIMESTAMP if unknown)
        level: Severity of the record
        message: Human-readable message text
        raw_data: Original text, all physical lines newline-joined
        file_path: Path of the file the record came from
        line_number: 1-based line number of the first physical line
        source: Producer of the record (component, site name, parser name)
        stack_trace: Continuation lines collected in stack-trace mode
        fields: Format-specific fields, keyed by column name
    """

    timestamp: datetime = UNKNOWN_TIMESTAMP
    level: LogLevel = LogLevel.INFO
    message: str = ""
    raw_data: str = ""
    file_path: str = ""
    line_number: int = 0
    source: str = ""
    stack_trace: str = ""
    fields: dict[str, str] = field(default_factory=dict)

    @property
    def has_known_timestamp(self) -> bool:
        """True unless the timestamp is the UNKNOWN_TIMESTAMP sentinel."""
        return self.timestamp != UNKNOWN_TIMESTAMP

    def set_field(self, key: str, value: str) -> bool:
        """
        Set a format-specific field.

        Predefined attributes (Timestamp, Level, Message) are never
        overwritten through the field map.

        Returns:
            True if the field was stored
        """
        if key in PREDEFINED_COLUMN_NAMES:
            logger.debug(f"Refusing to shadow predefined attribute '{key}' with a field")
            return False
        self.fields[key] = value
        return True

    def get_value(self, column_name: str) -> Optional[str]:
        """
        Resolve a column name to a display value.

        Predefined columns map to attributes, everything else to fields.
        """
        if column_name == "Timestamp":
            return self.timestamp.isoformat() if self.has_known_timestamp else None
        if column_name == "Level":
            return self.level.value
        if column_name == "Message":
            return self.message
        if column_name == "StackTrace":
            return self.stack_trace or None
        return self.fields.get(column_name)

    def to_dict(self) -> dict:
        """
        Convert to dictionary representation.

        Returns:
            Dictionary with all attributes, fields flattened under their keys
        """
        result = {
            "Timestamp": self.timestamp.isoformat() if self.has_known_timestamp else None,
            "Level": self.level.value,
            "Message": self.message,
            "Source": self.source,
            "StackTrace": self.stack_trace,
            "FilePath": self.file_path,
            "LineNumber": self.line_number,
            "RawData": self.raw_data,
        }
        for key, value in self.fields.items():
            result.setdefault(key, value)
        return result


@dataclass(frozen=True)
class LogColumn:
    """
    Describes one column of the schema a parser exposes.

    Attributes:
        name: Key in LogEntry.fields (or a predefined attribute name)
        header: Display header
        description: Optional longer description
        is_predefined: True for Timestamp, Level and Message
    """

    name: str
    header: str
    description: Optional[str] = None
    is_predefined: bool = False


PREDEFINED_COLUMNS = (
    LogColumn("Timestamp", "Timestamp", "The date and time of the log entry.", True),
    LogColumn("Level", "Level", "The severity level.", True),
    LogColumn("Message", "Message", "The log message.", True),
)
