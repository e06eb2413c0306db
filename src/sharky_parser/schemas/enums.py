"""
Enumerations shared by the parsing engine.
"""

from enum import Enum
from typing import Union


class LogLevel(str, Enum):
    """Closed severity set produced by every parser."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    TRACE = "TRACE"

    def __str__(self) -> str:
        return self.value


class LogType(str, Enum):
    """Log producers known to the engine."""

    INSTALLATION = "installation"
    UPDATE = "update"
    RABBITMQ = "rabbitmq"  # Declared, no built-in parser
    IIS = "iis"
    TEAMCITY = "teamcity"

    @property
    def description(self) -> str:
        """Human-readable name of the log type."""
        return _LOG_TYPE_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: Union["LogType", str]) -> "LogType":
        """
        Resolve a log type from an enum member, value or name.

        Matching is case-insensitive: "IIS", "iis" and LogType.IIS are equal.

        Raises:
            ValueError: If the value names no log type
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member

        raise ValueError(
            f"Unknown log type: {value!r}. "
            f"Valid types: {', '.join(m.value for m in cls)}"
        )


_LOG_TYPE_DESCRIPTIONS = {
    LogType.INSTALLATION: "Installation Logs",
    LogType.UPDATE: "Update Logs",
    LogType.RABBITMQ: "RabbitMQ Logs",
    LogType.IIS: "IIS Logs",
    LogType.TEAMCITY: "TeamCity Logs",
}


class StackTraceMode(str, Enum):
    """Continuation-line policy for multi-line installation records."""

    ALL_TO_STACK_TRACE = "all_to_stack_trace"  # Continuations go to stack_trace
    NO_STACK_TRACE = "no_stack_trace"  # Continuations are appended to message

    @property
    def description(self) -> str:
        if self is StackTraceMode.ALL_TO_STACK_TRACE:
            return "All lines after timestamp go to stack trace"
        return "No stack traces - all in message"
