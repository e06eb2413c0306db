"""
Custom exceptions for the parsing module.

Provides specialized exception classes for handling configuration and
line-level error conditions during log parsing.
"""


class ParserError(Exception):
    """
    Base exception for all parsing-related errors.

    All other parsing exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ParseError(ParserError):
    """
    Raised when a single log line cannot be interpreted.

    Parsers raise it from their per-line logic; the base parser catches it
    and turns it into a synthetic ERROR entry, so it never aborts a file.

    Attributes:
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Truncate long lines for readability
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        return self.message


class ConfigurationError(ParserError):
    """
    Raised when the parsing engine is misconfigured.

    Unlike ParseError, configuration errors are surfaced to the caller.
    """

    pass


class LogTypeNotRegisteredError(ConfigurationError):
    """
    Raised when no parser is registered for a log type.

    Attributes:
        log_type: The requested log type
        available_types: Log types that do have a parser
    """

    def __init__(
        self,
        log_type: object,
        available_types: list[str] | None = None,
    ):
        self.log_type = log_type
        self.available_types = available_types or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with available log types."""
        name = getattr(self.log_type, "value", self.log_type)
        if self.available_types:
            available = ", ".join(sorted(self.available_types))
            return (
                f"No parser registered for log type: '{name}'. "
                f"Available types: {available}"
            )
        return f"No parser registered for log type: '{name}'. No parsers registered."
