"""
Parser settings and configuration management.

Supports loading from:
1. A YAML settings file (sharky.yaml)
2. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    DEFAULT_CLASSIFIER_MAX_LINE_LENGTH,
    DEFAULT_CLASSIFIER_TIME_BUDGET_MS,
)

logger = logging.getLogger(__name__)

VALID_STACK_TRACE_MODES = ("all_to_stack_trace", "no_stack_trace")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ParserSettings:
    """
    Runtime configuration for the parsing engine.

    Attributes:
        stack_trace_mode: Continuation policy for installation logs
        cache_parsers: If True, the factory hands out one instance per log type
        teamcity_blocks: Block names to keep when parsing TeamCity logs
            (empty means no block filtering)
        classifier_time_budget_ms: Slow-path budget of the severity classifier
        classifier_max_line_length: Lines longer than this skip the slow path
        file_encoding: Text encoding used to read log files
        log_level: Level name for the application logger
    """

    stack_trace_mode: str = "all_to_stack_trace"
    cache_parsers: bool = False
    teamcity_blocks: list[str] = field(default_factory=list)
    classifier_time_budget_ms: int = DEFAULT_CLASSIFIER_TIME_BUDGET_MS
    classifier_max_line_length: int = DEFAULT_CLASSIFIER_MAX_LINE_LENGTH
    file_encoding: str = "utf-8"
    log_level: str = "INFO"

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.stack_trace_mode not in VALID_STACK_TRACE_MODES:
            errors.append(
                f"stack_trace_mode must be one of {', '.join(VALID_STACK_TRACE_MODES)}, "
                f"got {self.stack_trace_mode!r}"
            )
        if self.classifier_time_budget_ms <= 0:
            errors.append(
                f"classifier_time_budget_ms must be > 0, "
                f"got {self.classifier_time_budget_ms}"
            )
        if self.classifier_max_line_length <= 0:
            errors.append(
                f"classifier_max_line_length must be > 0, "
                f"got {self.classifier_max_line_length}"
            )
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be a logging level name, got {self.log_level!r}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "stack_trace_mode": self.stack_trace_mode,
            "cache_parsers": self.cache_parsers,
            "teamcity_blocks": list(self.teamcity_blocks),
            "classifier_time_budget_ms": self.classifier_time_budget_ms,
            "classifier_max_line_length": self.classifier_max_line_length,
            "file_encoding": self.file_encoding,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ParserSettings":
        """
        Create settings from a configuration dictionary.

        Accepts either a flat mapping or one nested under sections::

            parsing:
              stack_trace_mode: no_stack_trace
              cache_parsers: true
            teamcity:
              blocks: [Compile, Test]
            classifier:
              time_budget_ms: 250
        """
        parsing = config.get("parsing", config)
        teamcity = config.get("teamcity", {})
        classifier = config.get("classifier", {})
        logging_cfg = config.get("logging", {})

        blocks = teamcity.get("blocks", parsing.get("teamcity_blocks", []))
        if isinstance(blocks, str):
            blocks = _split_csv(blocks)

        return cls(
            stack_trace_mode=parsing.get("stack_trace_mode", "all_to_stack_trace"),
            cache_parsers=bool(parsing.get("cache_parsers", False)),
            teamcity_blocks=list(blocks or []),
            classifier_time_budget_ms=int(
                classifier.get(
                    "time_budget_ms",
                    parsing.get(
                        "classifier_time_budget_ms", DEFAULT_CLASSIFIER_TIME_BUDGET_MS
                    ),
                )
            ),
            classifier_max_line_length=int(
                classifier.get(
                    "max_line_length",
                    parsing.get(
                        "classifier_max_line_length",
                        DEFAULT_CLASSIFIER_MAX_LINE_LENGTH,
                    ),
                )
            ),
            file_encoding=parsing.get("file_encoding", "utf-8"),
            log_level=logging_cfg.get("level", parsing.get("log_level", "INFO")),
        )

    @classmethod
    def from_env(cls) -> "ParserSettings":
        """Create settings from environment variables."""

        def safe_int(key: str, default: int) -> int:
            """Safely parse int from env var, using default on error."""
            try:
                return int(os.environ.get(key, str(default)))
            except ValueError:
                return default

        def safe_bool(key: str, default: bool) -> bool:
            """Safely parse bool from env var."""
            return os.environ.get(key, str(default).lower()).lower() == "true"

        return cls(
            stack_trace_mode=os.environ.get(
                "SHARKY_STACK_TRACE_MODE", "all_to_stack_trace"
            ),
            cache_parsers=safe_bool("SHARKY_CACHE_PARSERS", False),
            teamcity_blocks=_split_csv(os.environ.get("SHARKY_TEAMCITY_BLOCKS", "")),
            classifier_time_budget_ms=safe_int(
                "SHARKY_CLASSIFIER_TIME_BUDGET_MS", DEFAULT_CLASSIFIER_TIME_BUDGET_MS
            ),
            classifier_max_line_length=safe_int(
                "SHARKY_CLASSIFIER_MAX_LINE_LENGTH", DEFAULT_CLASSIFIER_MAX_LINE_LENGTH
            ),
            file_encoding=os.environ.get("SHARKY_FILE_ENCODING", "utf-8"),
            log_level=os.environ.get("SHARKY_LOG_LEVEL", "INFO"),
        )


def _split_csv(value: str) -> list[str]:
    """Split a comma-separated string, dropping empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(file_path: Path) -> ParserSettings:
    """
    Load settings from a YAML file.

    Args:
        file_path: Path to the YAML settings file

    Returns:
        ParserSettings instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file does not contain a mapping
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Settings file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Settings file must contain a mapping: {file_path}")

    return ParserSettings.from_dict(config)


# Default settings file path
DEFAULT_CONFIG_PATH = Path("sharky.yaml")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> ParserSettings:
    """
    Get cached settings instance.

    Loads from the YAML settings file if available, otherwise from env vars.

    Args:
        config_path: Optional path to a YAML settings file

    Returns:
        ParserSettings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            return load_settings(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(
                f"Failed to load settings from {path}: {e}. "
                "Falling back to environment variables"
            )

    return ParserSettings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
