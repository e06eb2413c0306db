"""
Unit tests for the TeamCity build log parser.

Tests cover:
- Timestamped lines with markers and step tags
- ##teamcity service messages and value escaping
- Plain text lines
- Block-scope filtering by tab depth
"""

from datetime import datetime

import pytest

from sharky_parser.parsing.parsers import TeamCityLogParser, parse_attributes, unescape_value
from sharky_parser.schemas import LogLevel


@pytest.fixture
def parser():
    return TeamCityLogParser()


class TestTimestampedLines:
    """Tests for [timestamp] prefixed output."""

    def test_time_and_message(self, parser):
        entry = parser.parse_line("[10:30:45] Starting build...")

        assert entry.message == "Starting build..."
        assert entry.level == LogLevel.INFO
        assert entry.timestamp.time() == datetime(2000, 1, 1, 10, 30, 45).time()

    @pytest.mark.parametrize(
        "line,level,message",
        [
            ("[10:30:45]E: Compilation failed", LogLevel.ERROR, "Compilation failed"),
            ("[10:30:45]W: Deprecated API usage", LogLevel.WARN, "Deprecated API usage"),
            ("[10:30:45]i: Build configuration loaded", LogLevel.INFO, "Build configuration loaded"),
        ],
    )
    def test_markers(self, parser, line, level, message):
        """E:, W: and i: markers decide the level."""
        entry = parser.parse_line(line)

        assert entry.level == level
        assert entry.message == message

    def test_marker_beats_message_text(self, parser):
        """An i: marker keeps INFO even when the text mentions an error."""
        assert parser.parse_line("[10:30:45]i: error count reset").level == LogLevel.INFO

    def test_unmarked_line_is_classified(self, parser):
        assert parser.parse_line("[10:30:45] : Step failed").level == LogLevel.ERROR

    def test_step_tag(self, parser):
        entry = parser.parse_line("[10:30:45] : [Step 1/3] Running dotnet build")

        assert entry.fields["Step"] == "Step 1/3"
        assert entry.message == "Running dotnet build"

    def test_full_datetime(self, parser):
        entry = parser.parse_line("[2026-02-18 10:30:45] Build started")

        assert entry.timestamp == datetime(2026, 2, 18, 10, 30, 45)
        assert entry.message == "Build started"

    def test_time_only_uses_file_date(self, parser, write_log):
        """Time-only stamps are anchored on the date in the file name."""
        path = write_log("teamcity_2024_01_15.log", ["[10:30:45] Build started"])

        (entry,) = list(parser.parse_file(path))

        assert entry.timestamp == datetime(2024, 1, 15, 10, 30, 45)


class TestServiceMessages:
    """Tests for ##teamcity[...] service messages."""

    def test_message_text_and_status(self, parser):
        entry = parser.parse_line("##teamcity[message text='Build completed' status='NORMAL']")

        assert entry.message == "Build completed"
        assert entry.level == LogLevel.INFO
        assert entry.fields["MessageType"] == "message"

    def test_error_status(self, parser):
        entry = parser.parse_line("##teamcity[message text='Fatal crash' status='ERROR']")

        assert entry.level == LogLevel.ERROR
        assert entry.message == "Fatal crash"

    def test_warning_status(self, parser):
        entry = parser.parse_line("##teamcity[message text='Slow agent' status='WARNING']")

        assert entry.level == LogLevel.WARN

    def test_build_problem(self, parser):
        entry = parser.parse_line(
            "##teamcity[buildProblem description='Connection refused' identity='DB_001']"
        )

        assert entry.level == LogLevel.ERROR
        assert entry.message == "Build Problem: Connection refused"
        assert entry.fields["ProblemId"] == "DB_001"

    def test_test_failed(self, parser):
        entry = parser.parse_line(
            "##teamcity[testFailed name='MyApp.Tests.LoginTest' message='Assertion failed' "
            "details='at LoginTest.cs:42']"
        )

        assert entry.level == LogLevel.ERROR
        assert entry.message == "Test Failed: MyApp.Tests.LoginTest - Assertion failed"
        assert entry.fields["TestName"] == "MyApp.Tests.LoginTest"
        assert entry.fields["Details"] == "at LoginTest.cs:42"

    def test_test_started_is_debug(self, parser):
        entry = parser.parse_line("##teamcity[testStarted name='MyApp.Tests.HomeTest']")

        assert entry.level == LogLevel.DEBUG
        assert entry.fields["TestName"] == "MyApp.Tests.HomeTest"

    def test_test_finished_duration(self, parser):
        entry = parser.parse_line(
            "##teamcity[testFinished name='MyApp.Tests.HomeTest' duration='1500']"
        )

        assert entry.fields["Duration"] == "1500"

    def test_test_ignored_is_warn(self, parser):
        entry = parser.parse_line("##teamcity[testIgnored name='SkippedTest' message='Known issue']")

        assert entry.level == LogLevel.WARN
        assert "SkippedTest" in entry.message

    def test_test_stderr_is_warn(self, parser):
        entry = parser.parse_line("##teamcity[testStdErr name='T1' out='warning text']")

        assert entry.level == LogLevel.WARN
        assert entry.message == "Test Error Output: T1 - warning text"

    def test_block_opened(self, parser):
        entry = parser.parse_line("##teamcity[blockOpened name='Compilation']")

        assert entry.message == "Block Opened: Compilation"
        assert entry.fields["BlockName"] == "Compilation"
        assert "TestName" not in entry.fields

    def test_build_status_failure(self, parser):
        entry = parser.parse_line("##teamcity[buildStatus status='FAILURE' text='Tests failed: 3']")

        assert entry.level == LogLevel.ERROR
        assert entry.message == "Build Status: Tests failed: 3"

    def test_single_value_form(self, parser):
        entry = parser.parse_line("##teamcity[progressMessage 'Restoring packages']")

        assert entry.message == "Progress: Restoring packages"

    def test_unknown_message_lists_attributes(self, parser):
        entry = parser.parse_line("##teamcity[setParameter name='env.X' value='1']")

        assert entry.message == "setParameter: name=env.X, value=1"
        assert entry.level == LogLevel.INFO

    def test_escaped_quotes(self, parser):
        entry = parser.parse_line(
            "##teamcity[message text='Value with |'quotes|' inside' status='NORMAL']"
        )

        assert entry.message == "Value with 'quotes' inside"

    def test_flow_id(self, parser):
        entry = parser.parse_line("##teamcity[testStarted name='Test1' flowId='flow42']")

        assert entry.fields["FlowId"] == "flow42"

    def test_explicit_timestamp(self, parser):
        entry = parser.parse_line(
            "##teamcity[message text='x' timestamp='2024-01-15T10:30:45.123+0000']"
        )

        assert entry.timestamp == datetime(2024, 1, 15, 10, 30, 45, 123000)

    def test_offset_timestamp_is_naive_utc(self, parser):
        """Offsets are applied and dropped so entries stay comparable."""
        plain = parser.parse_line("[2024-01-15 09:00:00] Build started")
        entry = parser.parse_line(
            "##teamcity[message text='x' timestamp='2024-01-15T10:30:45.000+0200']"
        )

        assert entry.timestamp == datetime(2024, 1, 15, 8, 30, 45)
        assert entry.timestamp.tzinfo is None
        assert sorted([plain, entry], key=lambda e: e.timestamp) == [entry, plain]

    def test_doubled_quote_in_attribute(self, parser):
        """A doubled single quote is part of the value, not its end."""
        entry = parser.parse_line("##teamcity[message text='it''s done' status='WARNING']")

        assert entry.message == "it's done"
        assert entry.level == LogLevel.WARN

    def test_inherits_last_timestamp(self, parser):
        """Without a timestamp attribute the previous line's time is used."""
        first = parser.parse_line("[10:30:45] Build started")
        entry = parser.parse_line("##teamcity[testStarted name='T1']")

        assert entry.timestamp == first.timestamp


class TestEscaping:
    """Tests for value unescaping and attribute parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("it|'s |[ok|]||done", "it's [ok]|done"),
            ("line1|nline2|r", "line1\nline2\r"),
            ("caf|0x00E9", "café"),
            ("a''b", "a'b"),
            ("|q stays", "|q stays"),
            ("||n", "|n"),
        ],
    )
    def test_unescape_value(self, raw, expected):
        assert unescape_value(raw) == expected

    def test_parse_attributes(self):
        assert parse_attributes("name='x' flowId='f1'") == {"name": "x", "flowId": "f1"}

    def test_parse_single_value(self):
        assert parse_attributes("'hello |'world|''") == {"value": "hello 'world'"}

    def test_parse_doubled_quotes(self):
        assert parse_attributes("'it''s'") == {"value": "it's"}
        assert parse_attributes("name='a''b' flowId=''") == {"name": "a'b", "flowId": ""}

    def test_parse_empty(self):
        assert parse_attributes(None) == {}
        assert parse_attributes("") == {}


class TestPlainText:
    """Tests for lines without a timestamp or service message."""

    def test_detects_level(self, parser):
        assert parser.parse_line("ERROR: Out of memory").level == LogLevel.ERROR

    def test_blank_line(self, parser):
        assert parser.parse_line("   ") is None

    def test_unknown_timestamp_before_any(self, parser):
        entry = parser.parse_line("Some plain text")

        assert entry.has_known_timestamp is False
        assert entry.message == "Some plain text"


class TestParseFile:
    """Tests for whole-file parsing."""

    def test_mixed_content(self, parser, write_log):
        path = write_log(
            "build.log",
            [
                "[10:00:01] Build started",
                "[10:00:02]E: Failed to restore packages",
                "##teamcity[testFailed name='SmokeTest' message='timeout']",
                "[10:00:05] : [Step 2/3] Running tests",
                "##teamcity[buildStatus status='FAILURE' text='Build failed']",
                "",
                "Some plain text",
            ],
        )

        entries = list(parser.parse_file(path))

        assert len(entries) == 6
        assert entries[0].level == LogLevel.INFO
        assert entries[1].level == LogLevel.ERROR
        assert entries[2].level == LogLevel.ERROR
        assert entries[3].fields["Step"] == "Step 2/3"
        assert entries[4].level == LogLevel.ERROR
        assert entries[5].line_number == 7

    def test_columns(self, parser):
        names = [c.name for c in parser.get_columns()]

        assert names[:3] == ["Timestamp", "Level", "Message"]
        assert {"Step", "MessageType", "TestName", "BlockName", "FlowId"} <= set(names)


class TestBlockFilter:
    """Tests for block-scope filtering."""

    def _messages(self, parser, write_log, lines):
        path = write_log("build.log", lines)
        return [e.message for e in parser.parse_file(path)]

    def test_no_filter_keeps_everything(self, parser, write_log, teamcity_nested_lines):
        assert len(self._messages(parser, write_log, teamcity_nested_lines)) == 11

    def test_middle_block(self, parser, write_log, teamcity_nested_lines):
        """A block keeps its opener and every deeper line below it."""
        parser.configure_blocks(["Compile"])

        assert self._messages(parser, write_log, teamcity_nested_lines) == [
            "Compile:",
            "Core project:",
            "Compiling Core.csproj",
            "Built Core.dll",
        ]

    def test_innermost_block(self, parser, write_log, teamcity_nested_lines):
        parser.configure_blocks(["core project"])

        assert self._messages(parser, write_log, teamcity_nested_lines) == [
            "Core project:",
            "Compiling Core.csproj",
        ]

    def test_outer_block(self, parser, write_log, teamcity_nested_lines):
        parser.configure_blocks(["Build"])

        messages = self._messages(parser, write_log, teamcity_nested_lines)

        assert messages[0] == "Build:"
        assert messages[-1] == "All tests passed"
        assert len(messages) == 9

    def test_several_blocks(self, parser, write_log, teamcity_nested_lines):
        parser.configure_blocks(["Compile", "Run tests"])

        messages = self._messages(parser, write_log, teamcity_nested_lines)

        assert messages[0] == "Compile:"
        assert messages[-1] == "All tests passed"
        assert len(messages) == 6

    def test_bracket_boundary(self, parser, write_log):
        """A literal [name] token opens a block."""
        parser.configure_blocks(["Compile"])

        messages = self._messages(
            parser,
            write_log,
            [
                "[10:00:00] : [Restore] Restoring",
                "[10:00:01] : [Compile] Building",
                "[10:00:02] :\tcsc.exe output",
                "[10:00:03] : [Test] Testing",
            ],
        )

        assert messages == ["Building", "csc.exe output"]

    def test_duration_boundary(self, parser, write_log):
        """'name (duration)' lines open a block."""
        parser.configure_blocks(["Compile"])

        messages = self._messages(
            parser,
            write_log,
            [
                "[10:00:00] : Compile (2s)",
                "[10:00:01] :\tBuilding",
                "[10:00:02] : Test (1s)",
            ],
        )

        assert messages == ["Compile (2s)", "Building"]

    def test_unselected_file_is_empty(self, parser, write_log, teamcity_nested_lines):
        parser.configure_blocks(["Deploy"])

        assert self._messages(parser, write_log, teamcity_nested_lines) == []

    def test_scope_does_not_leak_between_files(self, parser, write_log):
        """Each file starts outside every block."""
        parser.configure_blocks(["Compile"])
        first = write_log("first.log", ["[10:00:00] : Compile:", "[10:00:01] :\tBuilding"])
        second = write_log("second.log", ["[10:00:00] :\tBuilding elsewhere"])

        assert len(list(parser.parse_file(first))) == 2
        assert list(parser.parse_file(second)) == []

    def test_empty_selection_disables_filter(self, parser):
        parser.configure_blocks(["Compile"])
        parser.configure_blocks([])

        assert parser.selected_blocks == frozenset()

    def test_constructor_blocks(self):
        assert TeamCityLogParser(blocks=[" Compile ", ""]).selected_blocks == frozenset({"compile"})
