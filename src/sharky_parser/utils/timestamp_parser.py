"""
Leading-timestamp recognition for free-form log lines.

Recognizes an optional date (yyyy-MM-dd or yyyy/MM/dd) followed by a time
(H:mm:ss) with an optional fraction separated by ',', '.' or ':'. The token
must be followed by whitespace or end of line, so "03:04:05X" is rejected.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

logger = logging.getLogger(__name__)

_LEADING_TIMESTAMP = re.compile(
    r"^(?:(?P<date>\d{4}[-/]\d{2}[-/]\d{2})[ T])?"
    r"(?P<time>\d{1,2}:\d{2}:\d{2})"
    r"(?:[,.:](?P<fraction>\d{1,7}))?"
    r"(?=\s|$)"
)

# Exact formats, tried in order. Formats starting with %H are time-only and
# are anchored on a baseline date.
FORMATS = [
    "%Y-%m-%d %H:%M:%S,%f",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S,%f",
    "%Y/%m/%d %H:%M:%S.%f",
    "%Y/%m/%d %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%H:%M:%S,%f",
    "%H:%M:%S.%f",
    "%H:%M:%S:%f",
    "%H:%M:%S",
]


@dataclass(frozen=True)
class TimestampMatch:
    """
    Result of a leading-timestamp extraction.

    Attributes:
        success: True if a timestamp token was found and parsed
        timestamp: Parsed instant (None on failure)
        length: Number of characters consumed from the start of the line
    """

    success: bool
    timestamp: Optional[datetime] = None
    length: int = 0

    def __bool__(self) -> bool:
        return self.success


_NO_MATCH = TimestampMatch(success=False)


def _is_time_only(fmt: str) -> bool:
    return fmt.startswith("%H")


def _parse_exact(text: str, base_date: date) -> Optional[datetime]:
    """Try every exact format, anchoring time-only results on base_date."""
    for fmt in FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if _is_time_only(fmt):
            return datetime.combine(base_date, parsed.time())
        return parsed
    return None


def _parse_generic(text: str, base_date: date) -> Optional[datetime]:
    """Fallback ISO-style parse for anything the exact formats missed."""
    normalized = text.replace(",", ".").replace("/", "-")
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        pass

    # Basic-format values such as "2024" would otherwise parse as a date or as 20:24
    if ":" not in normalized:
        return None

    try:
        # Fallback for edge cases such as 7-digit fractions and a Z suffix
        from dateutil import parser

        return parser.isoparse(normalized)
    except ValueError:
        pass

    try:
        return datetime.combine(base_date, time.fromisoformat(normalized))
    except ValueError:
        return None


def try_extract(line: Optional[str], base_date: Optional[date] = None) -> TimestampMatch:
    """
    Extract a leading timestamp from a log line.

    Args:
        line: Raw log line
        base_date: Date used for time-only timestamps (default: today)

    Returns:
        TimestampMatch with the parsed instant and the token length, so the
        caller can slice line[length:] as the record body

    Examples:
        >>> m = try_extract("2024-01-02 03:04:05 message")
        >>> m.timestamp, m.length
        (datetime.datetime(2024, 1, 2, 3, 4, 5), 19)
    """
    if not line or not line.strip():
        return _NO_MATCH

    match = _LEADING_TIMESTAMP.match(line)
    if not match:
        return _NO_MATCH

    token = match.group(0)
    if match.group("date"):
        token = token.replace("T", " ", 1)

    base = base_date or date.today()
    timestamp = _parse_exact(token, base) or _parse_generic(token, base)
    if timestamp is None:
        logger.debug(f"Timestamp-shaped token could not be parsed: {token!r}")
        return _NO_MATCH

    return TimestampMatch(success=True, timestamp=timestamp, length=match.end())


def try_parse(text: Optional[str], base_date: Optional[date] = None) -> Optional[datetime]:
    """
    Parse a whole string as a timestamp.

    Tries the exact format list first, then a generic ISO parse.

    Args:
        text: Timestamp text (surrounding whitespace is ignored)
        base_date: Date used for time-only values (default: today)

    Returns:
        Parsed datetime, or None if the text is not a timestamp
    """
    if not text or not text.strip():
        return None

    normalized = text.strip()
    base = base_date or date.today()
    return _parse_exact(normalized, base) or _parse_generic(normalized, base)
