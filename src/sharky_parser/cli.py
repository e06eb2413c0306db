"""
Command-line entry point for parsing log files.

Usage:
    # Parse a TeamCity log, keeping only the "Compile" block
    sharky-parse --type teamcity --input build.log --blocks Compile

    # Installation log with continuation lines folded into the message
    sharky-parse --type installation --input install.log --stack-trace-mode no_stack_trace

    # Statistics only
    sharky-parse --type iis --input u_ex240115.log --stats-only

    # List available log types
    sharky-parse --list-types

Entries and statistics are written to stdout as JSON; logs go to stderr.

Exit codes:
    0  success
    1  the input file could not be read
    2  configuration error (unknown log type, invalid settings)
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

from .config.settings import VALID_STACK_TRACE_MODES, ParserSettings, get_settings
from .parsing.exceptions import ConfigurationError
from .parsing.factory import LogParserFactory
from .parsing.registry import get_default_registry
from .reporting.statistics import LogAnalyzer
from .utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sharky-parse",
        description="Parse installation, update, IIS and TeamCity logs into JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sharky-parse --type teamcity --input build.log --blocks Compile,Test
  sharky-parse --type iis --input u_ex240115.log --stats-only
  sharky-parse --list-types
        """,
    )
    parser.add_argument(
        "--type",
        "-t",
        dest="log_type",
        type=str,
        help="Log type: installation, update, iis, teamcity",
    )
    parser.add_argument(
        "--input",
        "-i",
        type=str,
        help="Log file to parse (gzip-compressed files are supported)",
    )
    parser.add_argument(
        "--blocks",
        type=str,
        help="Comma-separated TeamCity block names to keep",
    )
    parser.add_argument(
        "--stack-trace-mode",
        choices=VALID_STACK_TRACE_MODES,
        help="How installation log continuation lines are folded",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML settings file (default: sharky.yaml, then environment)",
    )
    parser.add_argument(
        "--stats-only",
        action="store_true",
        help="Print statistics without the parsed entries",
    )
    parser.add_argument(
        "--list-types",
        action="store_true",
        help="List available log types and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> ParserSettings:
    """Load settings and apply command-line overrides."""
    settings = get_settings(args.config)

    overrides = {}
    if args.stack_trace_mode:
        overrides["stack_trace_mode"] = args.stack_trace_mode
    if args.blocks is not None:
        overrides["teamcity_blocks"] = [b.strip() for b in args.blocks.split(",") if b.strip()]

    return replace(settings, **overrides) if overrides else settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    settings = resolve_settings(args)
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    setup_logging(level=level)

    if args.list_types:
        registry = get_default_registry()
        for log_type in registry.get_registered_types():
            print(f"{log_type.value}: {log_type.description}")
        return EXIT_OK

    if not args.log_type or not args.input:
        parser.error("--type and --input are required (unless using --list-types)")

    errors = settings.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid settings: {error}")
        return EXIT_CONFIG_ERROR

    try:
        factory = LogParserFactory.from_settings(settings)
        log_parser = factory.create_parser(args.log_type)
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    try:
        entries = list(log_parser.parse_file(args.input))
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return EXIT_FILE_ERROR

    stats = LogAnalyzer().get_statistics(entries, log_parser.supported_log_type)
    logger.info(
        f"Parsed {len(entries)} entries from {args.input} "
        f"({stats.error_count} errors, {stats.warning_count} warnings)"
    )

    result = {
        "log_type": log_parser.supported_log_type.value,
        "parser": log_parser.parser_name,
        "file": args.input,
        "statistics": stats.to_dict(),
    }
    if not args.stats_only:
        result["columns"] = [column.name for column in log_parser.get_columns()]
        result["entries"] = [entry.to_dict() for entry in entries]

    json.dump(result, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
