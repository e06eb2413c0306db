"""
Pytest configuration and fixtures for performance tests.

Provides fixtures for generating large log files.
"""

import gzip
from datetime import datetime, timedelta
from pathlib import Path

import pytest

IIS_HEADER = [
    "#Software: Microsoft Internet Information Services 10.0",
    "#Version: 1.0",
    "#Fields: date time s-sitename cs-method cs-uri-stem c-ip cs(User-Agent) sc-status time-taken",
]


def _write_lines(path: Path, lines, compressed: bool) -> Path:
    if compressed:
        with gzip.open(path, "wt", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
    else:
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
    return path


@pytest.fixture
def iis_file_generator(tmp_path):
    """Factory fixture for generating IIS logs with a given number of requests."""

    def _generate(num_records: int, compressed: bool = False) -> Path:
        base_time = datetime(2024, 1, 15, 0, 0, 0)

        def lines():
            yield from IIS_HEADER
            for i in range(num_records):
                # Generate valid IP addresses using modular arithmetic
                octet3 = (i // 256) % 256
                octet4 = i % 256
                ts = base_time + timedelta(seconds=i)
                yield (
                    f"{ts:%Y-%m-%d %H:%M:%S} W3SVC1 {['GET', 'POST'][i % 2]} "
                    f"/api/resource/{i} 192.168.{octet3}.{octet4} "
                    f'"Mozilla/5.0 (Windows NT 10.0; Win64; x64)" '
                    f"{[200, 200, 404, 500][i % 4]} {i % 3000}"
                )

        suffix = ".log.gz" if compressed else ".log"
        return _write_lines(tmp_path / f"u_ex{num_records}{suffix}", lines(), compressed)

    return _generate


@pytest.fixture
def installation_file_generator(tmp_path):
    """Factory fixture for installation logs where every fifth record has a stack trace."""

    def _generate(num_records: int) -> Path:
        def lines():
            for i in range(num_records):
                ts = datetime(2024, 12, 31) + timedelta(seconds=i)
                if i % 5 == 0:
                    yield f"[{ts:%H:%M:%S}] ERROR Step {i} failed"
                    yield "System.InvalidOperationException: step failed"
                    yield f"   at Installer.Step{i}()"
                else:
                    yield f"[{ts:%H:%M:%S}] INFO Step {i} completed"

        return _write_lines(tmp_path / "2024_12_31_install.log", lines(), compressed=False)

    return _generate


@pytest.fixture
def teamcity_file_generator(tmp_path):
    """Factory fixture for TeamCity logs with nested blocks and service messages."""

    def _generate(num_blocks: int) -> Path:
        def lines():
            for b in range(num_blocks):
                yield f"[10:00:00] : Block {b}:"
                yield "[10:00:01] :\tCompile:"
                yield f"[10:00:02] :\t\tBuilding project {b}"
                yield f"##teamcity[testStarted name='Test{b}' flowId='{b}']"
                yield f"##teamcity[testFinished name='Test{b}' duration='{b % 100}']"
                yield f"[10:00:03]W:\tWarning in block {b}"

        return _write_lines(tmp_path / "teamcity_build.log", lines(), compressed=False)

    return _generate
