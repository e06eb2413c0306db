"""
Unit tests for the update log parser.
"""

from datetime import datetime, timedelta

import pytest

from sharky_parser.parsing.parsers import UpdateLogParser
from sharky_parser.parsing.parsers.update_parser import status_to_level
from sharky_parser.schemas import LogLevel


@pytest.fixture
def parser():
    return UpdateLogParser()


class TestStatusLines:
    """Tests for "[Component] Action Target: Status" lines."""

    def test_with_timestamp(self, parser):
        line = "2024-01-02 03:04:05 [Updater] Installing package: Success"

        entry = parser.parse_line(line)

        assert entry.timestamp == datetime(2024, 1, 2, 3, 4, 5)
        assert entry.level == LogLevel.INFO
        assert entry.fields["Component"] == "Updater"
        assert entry.source == "Updater"
        assert entry.message == "Installing package: Success"
        assert entry.raw_data == line

    def test_iso_timestamp_with_fraction(self, parser):
        entry = parser.parse_line("2024-01-02T03:04:05.250 [Agent] Downloading patch: Success")

        assert entry.timestamp == datetime(2024, 1, 2, 3, 4, 5, 250000)

    def test_failed_status(self, parser):
        entry = parser.parse_line("[Updater] Installing package: Failed")

        assert entry.level == LogLevel.ERROR
        assert abs(datetime.now() - entry.timestamp) < timedelta(seconds=5)

    def test_warning_status(self, parser):
        assert parser.parse_line("[Updater] Installing package: Warning").level == LogLevel.WARN

    def test_untimed_line_uses_file_date(self, parser, write_log):
        """Without a timestamp, the date in the file name is used."""
        path = write_log("update_2024_03_05.log", ["[Updater] Verifying files: Success"])

        (entry,) = list(parser.parse_file(path))

        assert entry.timestamp == datetime(2024, 3, 5)
        assert entry.line_number == 1

    @pytest.mark.parametrize(
        "status,level",
        [
            ("Failed", LogLevel.ERROR),
            ("ERROR", LogLevel.ERROR),
            ("warning", LogLevel.WARN),
            ("Success", LogLevel.INFO),
            ("Skipped", LogLevel.INFO),
        ],
    )
    def test_status_to_level(self, status, level):
        assert status_to_level(status) == level


class TestTimedText:
    """Tests for "HH:mm:ss text" lines."""

    def test_timed_text(self, parser, write_log):
        path = write_log("update_2024_03_05.log", ["03:04:05.123 Checking for updates"])

        (entry,) = list(parser.parse_file(path))

        assert entry.timestamp == datetime(2024, 3, 5, 3, 4, 5, 123000)
        assert entry.message == "Checking for updates"
        assert entry.level == LogLevel.INFO

    def test_timed_text_level_detection(self, parser):
        assert parser.parse_line("03:04:05 Download failed, retrying").level == LogLevel.ERROR


class TestUnmatchedLines:
    """Lines matching neither shape are skipped."""

    @pytest.mark.parametrize(
        "line",
        ["Some other line", "2024-01-02 03:04:05 no component here", "[Updater] no status"],
    )
    def test_no_match(self, parser, line):
        assert parser.parse_line(line) is None

    def test_skipped_in_files(self, parser, write_log):
        path = write_log(
            "update.log",
            ["Update session started", "[Updater] Installing package: Success"],
        )

        entries = list(parser.parse_file(path))

        assert len(entries) == 1
        assert entries[0].line_number == 2

    def test_columns(self, parser):
        assert [c.name for c in parser.get_columns()] == [
            "Timestamp",
            "Level",
            "Message",
            "Component",
        ]
