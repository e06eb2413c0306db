"""
Severity classification from raw log lines.

Maps a line of text to one LogLevel using, in strict precedence order:
1. False-positive guards ("0 errors", "no error", "ResetError.sql")
2. A fast prefix check for explicit level tokens
3. A bounded whole-word search for level markers and generic keywords
"""

import logging
import re
import time
from typing import Optional

from ..config.constants import (
    DEBUG_PREFIXES,
    DEFAULT_CLASSIFIER_MAX_LINE_LENGTH,
    DEFAULT_CLASSIFIER_TIME_BUDGET_MS,
    ERROR_KEYWORDS,
    ERROR_PREFIXES,
    INFO_PREFIXES,
    NON_LOG_FILE_EXTENSIONS,
    SHORT_LEVEL_TOKENS,
    TRACE_PREFIXES,
    WARN_KEYWORDS,
    WARN_PREFIXES,
)
from ..schemas.enums import LogLevel

logger = logging.getLogger(__name__)


def _word_pattern(*words: str) -> re.Pattern:
    """Compile a case-insensitive whole-word alternation."""
    alternation = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def _prefix_pattern(*tokens: str) -> re.Pattern:
    """Compile a case-insensitive leading-token alternation."""
    alternation = "|".join(
        re.escape(t) + ("(?![A-Za-z0-9])" if t in SHORT_LEVEL_TOKENS else "")
        for t in tokens
    )
    return re.compile(rf"^(?:{alternation})", re.IGNORECASE)


# Pre-compiled patterns, in slow-path order
_SLOW_PATH_PATTERNS: list[tuple[re.Pattern, LogLevel]] = [
    (_word_pattern("error", "err", "erro", "fatal", "critical"), LogLevel.ERROR),
    (_word_pattern("warn", "warning"), LogLevel.WARN),
    (_word_pattern("debug", "dbg"), LogLevel.DEBUG),
    (_word_pattern("trace"), LogLevel.TRACE),
    (_word_pattern("info"), LogLevel.INFO),
    (_word_pattern(*ERROR_KEYWORDS), LogLevel.ERROR),
    (_word_pattern(*WARN_KEYWORDS), LogLevel.WARN),
]

_PREFIX_FAMILIES: list[tuple[re.Pattern, LogLevel]] = [
    (_prefix_pattern(*ERROR_PREFIXES), LogLevel.ERROR),
    (_prefix_pattern(*WARN_PREFIXES), LogLevel.WARN),
    (_prefix_pattern(*DEBUG_PREFIXES), LogLevel.DEBUG),
    (_prefix_pattern(*TRACE_PREFIXES), LogLevel.TRACE),
    (_prefix_pattern(*INFO_PREFIXES), LogLevel.INFO),
]

_FALSE_POSITIVE_PATTERN = re.compile(
    r"(?<!\d)0\s+(?:error|warning)"
    r"|\bno\s+errors?\b"
    rf"|\w\.(?:{'|'.join(NON_LOG_FILE_EXTENSIONS)})\b",
    re.IGNORECASE,
)


class LevelDetector:
    """
    Heuristic severity classifier.

    The slow path runs under a time budget checked between patterns, and
    lines longer than max_line_length skip it entirely. Exceeding either
    limit counts as "no match", so detect() always returns a level.

    Usage:
        detector = LevelDetector(time_budget_ms=250)
        detector.detect("ERROR Disk full")  # LogLevel.ERROR
    """

    def __init__(
        self,
        time_budget_ms: int = DEFAULT_CLASSIFIER_TIME_BUDGET_MS,
        max_line_length: int = DEFAULT_CLASSIFIER_MAX_LINE_LENGTH,
    ):
        self.time_budget_ms = time_budget_ms
        self.max_line_length = max_line_length

    @classmethod
    def from_settings(cls, settings) -> "LevelDetector":
        """Create a detector from ParserSettings."""
        return cls(
            time_budget_ms=settings.classifier_time_budget_ms,
            max_line_length=settings.classifier_max_line_length,
        )

    def detect(self, full_line: Optional[str]) -> LogLevel:
        """
        Classify a line of text.

        Args:
            full_line: Raw line (leading/trailing whitespace is ignored)

        Returns:
            Detected LogLevel, INFO when nothing matches
        """
        if not full_line or not full_line.strip():
            return LogLevel.INFO

        line = full_line.strip()

        if self.is_false_positive(line):
            return LogLevel.INFO

        prefix_level = self.check_prefix_level(line)
        if prefix_level is not None:
            return prefix_level

        pattern_level = self.check_patterns(line)
        if pattern_level is not None:
            return pattern_level

        return LogLevel.INFO

    @staticmethod
    def is_false_positive(line: str) -> bool:
        """Check for benign mentions such as '0 errors' or 'ResetError.sql'."""
        return _FALSE_POSITIVE_PATTERN.search(line) is not None

    @staticmethod
    def check_prefix_level(line: str) -> Optional[LogLevel]:
        """Return the level named by a leading token, if any."""
        for pattern, level in _PREFIX_FAMILIES:
            if pattern.match(line):
                return level
        return None

    def check_patterns(self, line: str) -> Optional[LogLevel]:
        """
        Whole-word search for level markers and keywords.

        Returns None if nothing matches or the budget is exhausted.
        """
        if len(line) > self.max_line_length:
            logger.debug(
                f"Skipping pattern scan for {len(line)}-char line "
                f"(limit {self.max_line_length})"
            )
            return None

        deadline = time.perf_counter() + self.time_budget_ms / 1000
        for pattern, level in _SLOW_PATH_PATTERNS:
            if time.perf_counter() > deadline:
                logger.debug("Severity pattern scan exceeded its time budget")
                return None
            if pattern.search(line):
                return level

        return None


_default_detector = LevelDetector()


def get_default_detector() -> LevelDetector:
    """Return the shared detector used when parsers are not given one."""
    return _default_detector


def detect_level(line: Optional[str]) -> LogLevel:
    """
    Classify a line with the shared default detector.

    Convenience function wrapping LevelDetector.detect().

    Examples:
        >>> detect_level("WARNING low disk space")
        <LogLevel.WARN: 'WARN'>
        >>> detect_level("0 error(s) found")
        <LogLevel.INFO: 'INFO'>
    """
    return _default_detector.detect(line)
