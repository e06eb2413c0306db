"""
Format parsers for the log parsing engine.

Provides one parser per supported log producer:
- Installation logs (multi-line records with continuation lines)
- Update logs (component status lines and timed free text)
- IIS logs (W3C extended log format with schema discovery)
- TeamCity build logs (timestamped output, service messages, block filtering)

All parsers yield LogEntry objects.

Usage:
    from sharky_parser.parsing.parsers import TeamCityLogParser

    parser = TeamCityLogParser(blocks=["Compile"])
    for entry in parser.parse_file("/path/to/build.log"):
        print(entry.timestamp, entry.level, entry.message)
"""

from .iis_parser import IisLogParser, IisParseContext, split_fields
from .installation_parser import InstallationLogParser
from .teamcity_parser import (
    TeamCityLogParser,
    TeamCityParseContext,
    parse_attributes,
    unescape_value,
)
from .update_parser import UpdateLogParser, UpdateParseContext

__all__ = [
    # Installation
    "InstallationLogParser",
    # Update
    "UpdateLogParser",
    "UpdateParseContext",
    # IIS
    "IisLogParser",
    "IisParseContext",
    "split_fields",
    # TeamCity
    "TeamCityLogParser",
    "TeamCityParseContext",
    "parse_attributes",
    "unescape_value",
]
