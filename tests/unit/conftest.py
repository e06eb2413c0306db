"""
Pytest configuration and shared fixtures for unit tests.
"""

from pathlib import Path
from typing import Callable

import pytest

from sharky_parser.config.settings import clear_settings_cache
from sharky_parser.parsing.registry import LogParserRegistry, register_builtin_parsers


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory fixture writing lines to a log file under tmp_path.

    Usage:
        path = write_log("2024_12_31_install.log", ["[01:02:03] INFO start"])
    """

    def _write(name: str, lines: list[str], encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding=encoding)
        return path

    return _write


@pytest.fixture
def registry() -> LogParserRegistry:
    """Fresh registry with the built-in parsers."""
    return register_builtin_parsers(LogParserRegistry())


@pytest.fixture
def clean_settings_cache():
    """Clear the settings cache before and after a test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def iis_lines() -> list[str]:
    """A small IIS log with directives, a quoted user agent and absent values."""
    return [
        "#Software: Microsoft Internet Information Services 10.0",
        "#Version: 1.0",
        "#Date: 2024-01-15 12:30:00",
        "#Fields: date time s-sitename s-ip cs-method cs-uri-stem cs-uri-query "
        "c-ip cs(User-Agent) sc-status time-taken",
        '2024-01-15 12:30:45 W3SVC1 10.0.0.1 GET /api/data - 192.0.2.10 '
        '"Mozilla/5.0 (Windows NT 10.0; Win64)" 200 31',
        "2024-01-15 12:30:50 W3SVC1 10.0.0.1 POST /api/login user=a 192.0.2.11 curl/8.0 404 120",
        "2024-01-15 12:31:02 W3SVC1 10.0.0.1 GET /api/report - 192.0.2.10 curl/8.0 500 6200",
    ]


@pytest.fixture
def teamcity_nested_lines() -> list[str]:
    """TeamCity output with three levels of tab-indented blocks."""
    return [
        "[10:00:00] : Build:",
        "[10:00:01] :\tRestore packages:",
        "[10:00:02] :\t\tRestored 12 packages",
        "[10:00:03] :\tCompile:",
        "[10:00:04] :\t\tCore project:",
        "[10:00:05] :\t\t\tCompiling Core.csproj",
        "[10:00:06] :\t\tBuilt Core.dll",
        "[10:00:07] :\tRun tests:",
        "[10:00:08] :\t\tAll tests passed",
        "[10:00:09] : Publish artifacts:",
        "[10:00:10] :\tUploaded 3 files",
    ]
