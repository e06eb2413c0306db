"""
Unit tests for the parser factory.

Tests cover:
- Capability application (continuation mode, block selection)
- Per-call overrides of factory defaults
- Instance caching
- Construction from settings
"""

import logging

import pytest

from sharky_parser.config import ParserSettings
from sharky_parser.parsing import (
    BlockConfigurable,
    ContinuationConfigurable,
    IisLogParser,
    InstallationLogParser,
    LogParserFactory,
    LogTypeNotRegisteredError,
    TeamCityLogParser,
)
from sharky_parser.schemas import LogType, StackTraceMode
from sharky_parser.utils.level_detector import LevelDetector


class TestCapabilities:
    """Tests for capability discovery on the built-in parsers."""

    def test_installation_supports_continuation_only(self):
        parser = InstallationLogParser()

        assert isinstance(parser.continuation_config(), ContinuationConfigurable)
        assert parser.block_filter_config() is None

    def test_teamcity_supports_blocks_only(self):
        parser = TeamCityLogParser()

        assert isinstance(parser.block_filter_config(), BlockConfigurable)
        assert parser.continuation_config() is None

    def test_iis_supports_neither(self):
        parser = IisLogParser()

        assert parser.continuation_config() is None
        assert parser.block_filter_config() is None


class TestCreateParser:
    """Tests for LogParserFactory.create_parser."""

    def test_default_stack_trace_mode(self, registry):
        parser = LogParserFactory(registry=registry).create_parser(LogType.INSTALLATION)

        assert parser.stack_trace_mode is StackTraceMode.ALL_TO_STACK_TRACE
        assert parser.get_configuration_summary() == (
            "Stack Trace Mode: All lines after timestamp go to stack trace"
        )

    def test_factory_stack_trace_mode(self, registry):
        factory = LogParserFactory(registry=registry, stack_trace_mode="no_stack_trace")

        parser = factory.create_parser("installation")

        assert parser.stack_trace_mode is StackTraceMode.NO_STACK_TRACE

    def test_call_overrides_factory_mode(self, registry):
        factory = LogParserFactory(registry=registry, stack_trace_mode="no_stack_trace")

        parser = factory.create_parser(
            "installation", stack_trace_mode=StackTraceMode.ALL_TO_STACK_TRACE
        )

        assert parser.stack_trace_mode is StackTraceMode.ALL_TO_STACK_TRACE

    def test_blocks_applied(self, registry):
        factory = LogParserFactory(registry=registry, blocks=["Compile"])

        parser = factory.create_parser(LogType.TEAMCITY)

        assert parser.selected_blocks == frozenset({"compile"})

    def test_call_blocks_override(self, registry):
        factory = LogParserFactory(registry=registry, blocks=["Compile"])

        parser = factory.create_parser(LogType.TEAMCITY, blocks=[])

        assert parser.selected_blocks == frozenset()

    def test_unknown_type_is_logged_and_raised(self, registry, caplog):
        factory = LogParserFactory(registry=registry)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(LogTypeNotRegisteredError):
                factory.create_parser(LogType.RABBITMQ)

        assert "No parser registered" in caplog.text

    def test_injected_dependencies(self, registry):
        """Detector, encoding and logger are handed to every parser."""
        detector = LevelDetector(time_budget_ms=5)
        custom_logger = logging.getLogger("factory.test")
        factory = LogParserFactory(
            registry=registry,
            level_detector=detector,
            encoding="latin-1",
            logger=custom_logger,
        )

        parser = factory.create_parser("iis")

        assert parser.level_detector is detector
        assert parser.encoding == "latin-1"
        assert parser.logger is custom_logger

    def test_available_types(self, registry):
        assert LogParserFactory(registry=registry).get_available_types() == [
            LogType.INSTALLATION,
            LogType.UPDATE,
            LogType.IIS,
            LogType.TEAMCITY,
        ]


class TestCaching:
    """Tests for instance caching."""

    def test_no_cache_by_default(self, registry):
        factory = LogParserFactory(registry=registry)

        assert factory.create_parser("iis") is not factory.create_parser("iis")

    def test_cached_instance(self, registry):
        """Names and enum members share one cached instance."""
        factory = LogParserFactory(registry=registry, cache_instances=True)

        first = factory.create_parser("IIS")

        assert factory.create_parser(LogType.IIS) is first

    def test_cache_keyed_by_configuration(self, registry):
        """Callers asking for different modes never reconfigure each other's parser."""
        factory = LogParserFactory(registry=registry, cache_instances=True)

        folded = factory.create_parser("installation", stack_trace_mode="no_stack_trace")
        default = factory.create_parser("installation")

        assert default is not folded
        assert folded.stack_trace_mode is StackTraceMode.NO_STACK_TRACE
        assert default.stack_trace_mode is StackTraceMode.ALL_TO_STACK_TRACE
        assert factory.create_parser("installation", stack_trace_mode="no_stack_trace") is folded

    def test_cache_keyed_by_blocks(self, registry):
        """Block selections share an instance only when the names match case-insensitively."""
        factory = LogParserFactory(registry=registry, cache_instances=True)

        compile_blocks = factory.create_parser("teamcity", blocks=["Compile"])
        unfiltered = factory.create_parser("teamcity")

        assert unfiltered is not compile_blocks
        assert compile_blocks.selected_blocks == frozenset({"compile"})
        assert unfiltered.selected_blocks == frozenset()
        assert factory.create_parser("teamcity", blocks=["compile "]) is compile_blocks

    def test_clear_cache(self, registry):
        factory = LogParserFactory(registry=registry, cache_instances=True)
        first = factory.create_parser("update")

        factory.clear_cache()

        assert factory.create_parser("update") is not first

    def test_unknown_type_not_cached(self, registry):
        factory = LogParserFactory(registry=registry, cache_instances=True)

        with pytest.raises(LogTypeNotRegisteredError):
            factory.create_parser("syslog")

        assert factory._cache == {}


class TestFromSettings:
    """Tests for LogParserFactory.from_settings."""

    def test_from_settings(self, registry):
        settings = ParserSettings(
            stack_trace_mode="no_stack_trace",
            cache_parsers=True,
            teamcity_blocks=["Run tests"],
            classifier_time_budget_ms=10,
            classifier_max_line_length=500,
            file_encoding="utf-16",
        )

        factory = LogParserFactory.from_settings(settings, registry=registry)

        assert factory.cache_instances is True
        assert factory.stack_trace_mode is StackTraceMode.NO_STACK_TRACE
        assert factory.create_parser("teamcity").selected_blocks == frozenset({"run tests"})

        parser = factory.create_parser("installation")
        assert parser.encoding == "utf-16"
        assert parser.level_detector.time_budget_ms == 10
        assert parser.level_detector.max_line_length == 500
