"""
Parser factory.

Resolves parsers through a registry and applies runtime configuration
(continuation mode, block selection) to parsers that support it.
"""

import logging
from typing import Iterable, Optional, Union

from ..schemas.enums import LogType, StackTraceMode
from ..utils.level_detector import LevelDetector
from .base import BaseLogParser
from .exceptions import LogTypeNotRegisteredError
from .registry import LogParserRegistry, get_default_registry

logger = logging.getLogger(__name__)


class LogParserFactory:
    """
    Creates and configures log parsers.

    Configuration is applied through the parser's capability handles, so
    formats without a continuation policy or block filter are left alone.

    Usage:
        factory = LogParserFactory(cache_instances=True)
        parser = factory.create_parser(
            LogType.INSTALLATION,
            stack_trace_mode=StackTraceMode.NO_STACK_TRACE,
        )
        entries = list(parser.parse_file("install.log"))
    """

    def __init__(
        self,
        registry: Optional[LogParserRegistry] = None,
        cache_instances: bool = False,
        stack_trace_mode: Union[StackTraceMode, str, None] = None,
        blocks: Optional[Iterable[str]] = None,
        level_detector: Optional[LevelDetector] = None,
        encoding: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the factory.

        Args:
            registry: Registry to resolve parsers from (default: shared registry)
            cache_instances: Share one instance per log type and configuration
            stack_trace_mode: Default continuation mode for installation logs
            blocks: Default TeamCity block selection (None: no filtering)
            level_detector: Severity classifier given to every parser
            encoding: File encoding given to every parser
            logger: Logger given to every parser
        """
        self.registry = registry or get_default_registry()
        self.cache_instances = cache_instances
        self.stack_trace_mode = StackTraceMode(stack_trace_mode or StackTraceMode.ALL_TO_STACK_TRACE)
        self.blocks = list(blocks or [])
        self.level_detector = level_detector
        self.encoding = encoding
        self.parser_logger = logger
        self._cache: dict[tuple[LogType, StackTraceMode, frozenset[str]], BaseLogParser] = {}

    @classmethod
    def from_settings(
        cls,
        settings,
        registry: Optional[LogParserRegistry] = None,
    ) -> "LogParserFactory":
        """
        Create a factory from ParserSettings.

        Args:
            settings: ParserSettings instance
            registry: Registry to resolve parsers from (default: shared registry)
        """
        return cls(
            registry=registry,
            cache_instances=settings.cache_parsers,
            stack_trace_mode=settings.stack_trace_mode,
            blocks=settings.teamcity_blocks,
            level_detector=LevelDetector.from_settings(settings),
            encoding=settings.file_encoding,
        )

    def create_parser(
        self,
        log_type: Union[LogType, str],
        stack_trace_mode: Union[StackTraceMode, str, None] = None,
        blocks: Optional[Iterable[str]] = None,
    ) -> BaseLogParser:
        """
        Get a configured parser for a log type.

        Args:
            log_type: Log type (enum member or its name/value)
            stack_trace_mode: Continuation mode for this call (default: factory's)
            blocks: TeamCity block selection for this call (default: factory's)

        Returns:
            Configured parser. With caching enabled, calls with the same type,
            mode and block selection share one instance.

        Raises:
            LogTypeNotRegisteredError: If no parser is registered for the type
        """
        mode = StackTraceMode(stack_trace_mode or self.stack_trace_mode)
        selected = list(blocks if blocks is not None else self.blocks)
        try:
            parser = self._resolve(log_type, mode, selected)
        except LogTypeNotRegisteredError as e:
            logger.error(str(e))
            raise

        logger.debug(f"Created parser '{parser.parser_name}' for type {parser.supported_log_type.value}")
        return parser

    def _resolve(
        self,
        log_type: Union[LogType, str],
        mode: StackTraceMode,
        blocks: list[str],
    ) -> BaseLogParser:
        if not self.cache_instances:
            return self._build(log_type, mode, blocks)

        try:
            resolved_type = LogType.parse(log_type)
        except ValueError:
            # Unknown types raise from the registry, so nothing is cached
            return self._build(log_type, mode, blocks)

        # Block names match case-insensitively, so the key does too
        key = (
            resolved_type,
            mode,
            frozenset(name.strip().lower() for name in blocks if name and name.strip()),
        )
        if key not in self._cache:
            self._cache[key] = self._build(log_type, mode, blocks)
        return self._cache[key]

    def _build(
        self,
        log_type: Union[LogType, str],
        mode: StackTraceMode,
        blocks: list[str],
    ) -> BaseLogParser:
        parser = self.registry.create_parser(log_type)
        if self.level_detector is not None:
            parser.level_detector = self.level_detector
        if self.encoding is not None:
            parser.encoding = self.encoding
        if self.parser_logger is not None:
            parser.logger = self.parser_logger

        continuation = parser.continuation_config()
        if continuation is not None:
            continuation.configure(mode)

        block_filter = parser.block_filter_config()
        if block_filter is not None:
            block_filter.configure_blocks(blocks)
        return parser

    def get_available_types(self) -> list[LogType]:
        """Return the log types this factory can create parsers for."""
        return self.registry.get_registered_types()

    def clear_cache(self) -> None:
        """Drop cached parser instances."""
        self._cache.clear()
