"""
Log parsing engine.

Provides a unified interface for turning semi-structured log files from
several producers (installers, updaters, IIS, TeamCity) into LogEntry
objects.

Usage:
    from sharky_parser.parsing import LogParserFactory, LogType

    factory = LogParserFactory()
    parser = factory.create_parser(LogType.TEAMCITY, blocks=["Compile"])

    for entry in parser.parse_file("build.log"):
        print(entry.timestamp, entry.level, entry.message)
"""

from ..schemas.enums import LogLevel, LogType, StackTraceMode
from .base import BaseLogParser, BlockConfigurable, ContinuationConfigurable, ParseContext
from .exceptions import (
    ConfigurationError,
    LogTypeNotRegisteredError,
    ParseError,
    ParserError,
)
from .factory import LogParserFactory
from .file_utils import (
    extract_date_from_filename,
    iter_lines,
    open_file_auto_decompress,
    resolve_baseline_date,
)
from .parsers import (
    IisLogParser,
    InstallationLogParser,
    TeamCityLogParser,
    UpdateLogParser,
)
from .registry import (
    LogParserRegistry,
    create_parser,
    get_default_registry,
    list_log_types,
    register_builtin_parsers,
    register_parser,
)

__all__ = [
    # Enumerations
    "LogLevel",
    "LogType",
    "StackTraceMode",
    # Base classes and capabilities
    "BaseLogParser",
    "ParseContext",
    "ContinuationConfigurable",
    "BlockConfigurable",
    # Parsers
    "InstallationLogParser",
    "UpdateLogParser",
    "IisLogParser",
    "TeamCityLogParser",
    # Registry and factory
    "LogParserRegistry",
    "LogParserFactory",
    "get_default_registry",
    "register_builtin_parsers",
    "register_parser",
    "create_parser",
    "list_log_types",
    # Exceptions
    "ParserError",
    "ParseError",
    "ConfigurationError",
    "LogTypeNotRegisteredError",
    # File utilities
    "open_file_auto_decompress",
    "iter_lines",
    "extract_date_from_filename",
    "resolve_baseline_date",
]
