"""
Parser registry for log formats.

Provides registration and lookup of parser constructors keyed by LogType.
"""

import logging
from typing import Callable, Optional, Union

from ..schemas.enums import LogType
from .base import BaseLogParser
from .exceptions import ConfigurationError, LogTypeNotRegisteredError

logger = logging.getLogger(__name__)

ParserConstructor = Callable[[], BaseLogParser]


class LogParserRegistry:
    """
    Registry mapping log types to parser constructors.

    A constructor is any zero-argument callable returning a BaseLogParser,
    usually the parser class itself. Registering a type again replaces the
    previous constructor.

    Usage:
        registry = LogParserRegistry()

        # Register using decorator
        @registry.parser(LogType.RABBITMQ)
        class RabbitMqLogParser(BaseLogParser):
            ...

        # Or register manually
        registry.register(LogType.IIS, IisLogParser)

        # Create a fresh parser instance
        parser = registry.create_parser("iis")
    """

    def __init__(self):
        self._constructors: dict[LogType, ParserConstructor] = {}

    def parser(self, log_type: Union[LogType, str]):
        """
        Decorator to register a parser class.

        Args:
            log_type: Log type the decorated class handles

        Returns:
            Decorator function
        """

        def decorator(parser_class):
            self.register(log_type, parser_class)
            return parser_class

        return decorator

    def register(self, log_type: Union[LogType, str], constructor: ParserConstructor) -> None:
        """
        Register a parser constructor for a log type.

        Args:
            log_type: Log type (enum member or its name/value)
            constructor: Zero-argument callable returning a BaseLogParser

        Raises:
            TypeError: If constructor is not callable
            ValueError: If log_type names no known log type
        """
        if not callable(constructor):
            raise TypeError(
                f"Parser constructor must be callable, got {type(constructor).__name__}"
            )

        log_type = LogType.parse(log_type)

        if log_type in self._constructors:
            logger.warning(f"Overwriting existing parser for log type '{log_type.value}'")

        self._constructors[log_type] = constructor
        logger.debug(f"Registered parser for log type: {log_type.value}")

    def is_registered(self, log_type: Union[LogType, str]) -> bool:
        """Check if a parser is registered for a log type."""
        try:
            return LogType.parse(log_type) in self._constructors
        except ValueError:
            return False

    def get_registered_types(self) -> list[LogType]:
        """Return registered log types in declaration order."""
        return [t for t in LogType if t in self._constructors]

    def create_parser(self, log_type: Union[LogType, str]) -> BaseLogParser:
        """
        Create a new parser instance for a log type.

        Args:
            log_type: Log type (enum member or its name/value)

        Returns:
            Freshly constructed parser

        Raises:
            LogTypeNotRegisteredError: If no parser is registered for the type
            ConfigurationError: If the constructor does not return a parser
        """
        available = [t.value for t in self.get_registered_types()]
        try:
            resolved = LogType.parse(log_type)
        except ValueError:
            raise LogTypeNotRegisteredError(log_type, available) from None

        constructor = self._constructors.get(resolved)
        if constructor is None:
            raise LogTypeNotRegisteredError(resolved, available)

        parser = constructor()
        if not isinstance(parser, BaseLogParser):
            raise ConfigurationError(
                f"Constructor for log type '{resolved.value}' returned "
                f"{type(parser).__name__}, expected a BaseLogParser"
            )
        return parser

    def clear(self) -> None:
        """
        Clear all registered parsers.

        Primarily used for testing to reset registry state.
        """
        self._constructors.clear()
        logger.debug("Cleared parser registry")

    def __len__(self) -> int:
        return len(self._constructors)


def register_builtin_parsers(registry: LogParserRegistry) -> LogParserRegistry:
    """Register the installation, update, IIS and TeamCity parsers."""
    from .parsers import (
        IisLogParser,
        InstallationLogParser,
        TeamCityLogParser,
        UpdateLogParser,
    )

    registry.register(LogType.INSTALLATION, InstallationLogParser)
    registry.register(LogType.UPDATE, UpdateLogParser)
    registry.register(LogType.IIS, IisLogParser)
    registry.register(LogType.TEAMCITY, TeamCityLogParser)
    return registry


# =============================================================================
# Convenience Functions
# =============================================================================

_default_registry: Optional[LogParserRegistry] = None


def get_default_registry() -> LogParserRegistry:
    """
    Get the shared registry, creating it with the built-in parsers.

    Returns:
        Process-wide LogParserRegistry
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = register_builtin_parsers(LogParserRegistry())
    return _default_registry


def register_parser(log_type: Union[LogType, str], constructor: ParserConstructor) -> None:
    """
    Register a parser constructor in the shared registry.

    Convenience function wrapping LogParserRegistry.register().
    """
    get_default_registry().register(log_type, constructor)


def create_parser(log_type: Union[LogType, str]) -> BaseLogParser:
    """
    Create a parser from the shared registry.

    Convenience function wrapping LogParserRegistry.create_parser().

    Raises:
        LogTypeNotRegisteredError: If no parser is registered for the type
    """
    return get_default_registry().create_parser(log_type)


def list_log_types() -> list[str]:
    """
    List log types with a registered parser.

    Returns:
        Log type values in declaration order
    """
    return [t.value for t in get_default_registry().get_registered_types()]
