"""
Shared fixtures for integration tests.

Provides:
- Paths to the sample log files under tests/fixtures/logs
- A generator for larger synthetic IIS logs
- Factory fixtures wired to a fresh registry
"""

import random
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from sharky_parser.parsing import LogParserFactory, LogParserRegistry, register_builtin_parsers

# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

IIS_FIELDS = "date time s-sitename cs-method cs-uri-stem c-ip cs(User-Agent) sc-status time-taken"


def generate_iis_lines(
    num_requests: int = 200,
    start: datetime = datetime(2024, 1, 15, 8, 0, 0),
    seed: int = 42,
) -> list[str]:
    """
    Generate a W3C log with random requests for testing.

    Args:
        num_requests: Number of data rows to generate
        start: Timestamp of the first request
        seed: Random seed for reproducibility (default: 42)

    Returns:
        Log lines including the #Fields directive
    """
    rng = random.Random(seed)

    methods = ["GET", "GET", "GET", "POST", "PUT"]
    urls = ["/", "/api/items", "/api/orders", "/login", "/static/app.js"]
    agents = ['"Mozilla/5.0 (Windows NT 10.0; Win64; x64)"', "curl/8.0", "-"]
    statuses = [200, 200, 200, 200, 304, 401, 404, 500, 503]  # Weighted toward success

    lines = ["#Version: 1.0", f"#Fields: {IIS_FIELDS}"]
    current = start
    for _ in range(num_requests):
        current += timedelta(seconds=rng.randint(0, 20))
        lines.append(
            " ".join(
                [
                    current.strftime("%Y-%m-%d"),
                    current.strftime("%H:%M:%S"),
                    "W3SVC1",
                    rng.choice(methods),
                    rng.choice(urls),
                    f"192.0.2.{rng.randint(1, 30)}",
                    rng.choice(agents),
                    str(rng.choice(statuses)),
                    str(rng.randint(1, 8000)),
                ]
            )
        )
    return lines


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to the sample log directory."""
    return Path(__file__).parent.parent / "fixtures" / "logs"


@pytest.fixture
def installation_log(fixtures_dir) -> Path:
    return fixtures_dir / "2024_12_31_install.log"


@pytest.fixture
def update_log(fixtures_dir) -> Path:
    return fixtures_dir / "update_2024_03_05.log"


@pytest.fixture
def iis_log(fixtures_dir) -> Path:
    return fixtures_dir / "u_ex240115.log"


@pytest.fixture
def teamcity_log(fixtures_dir) -> Path:
    return fixtures_dir / "teamcity_build.log"


@pytest.fixture
def generated_iis_log(tmp_path) -> Path:
    """A synthetic IIS log with 200 requests."""
    path = tmp_path / "u_ex240115_generated.log"
    path.write_text("\n".join(generate_iis_lines()) + "\n", encoding="utf-8")
    return path


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================


@pytest.fixture
def factory() -> LogParserFactory:
    """Factory over a fresh registry with the built-in parsers."""
    return LogParserFactory(registry=register_builtin_parsers(LogParserRegistry()))
