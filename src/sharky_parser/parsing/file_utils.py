"""
Shared file utilities for the parsing module.

Provides file opening and baseline-date helpers used across parsers.
"""

import gzip
import re
from datetime import date, datetime
from pathlib import Path
from typing import IO, Iterator, Optional, Union

# Year, month and day, optionally separated by '_', '-' or '.'
_FILENAME_DATE = re.compile(r"(?<!\d)(\d{4})[-_.]?(\d{2})[-_.]?(\d{2})(?!\d)")


def open_file_auto_decompress(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
) -> IO[str]:
    """
    Open a file, automatically detecting gzip compression.

    Gzip detection is performed by:
    1. Checking for .gz file extension
    2. Checking for gzip magic bytes (0x1f 0x8b) even without .gz extension

    Undecodable bytes are replaced rather than raised, so one bad byte does
    not abort a whole log file.

    Args:
        file_path: Path to the file
        encoding: Text encoding (default: utf-8)

    Returns:
        Open file handle (text mode)

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file cannot be read
        gzip.BadGzipFile: If file has .gz extension but is not valid gzip
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if path.suffix.lower() == ".gz":
        return gzip.open(path, "rt", encoding=encoding, errors="replace")

    with open(path, "rb") as f:
        magic = f.read(2)
    if magic == b"\x1f\x8b":
        return gzip.open(path, "rt", encoding=encoding, errors="replace")

    return open(path, "r", encoding=encoding, errors="replace")


def iter_lines(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
) -> Iterator[tuple[int, str]]:
    """
    Stream a file as (line_number, line) pairs.

    Line numbers are 1-based; trailing newline characters are removed.
    """
    with open_file_auto_decompress(file_path, encoding) as f:
        for line_number, line in enumerate(f, start=1):
            yield line_number, line.rstrip("\r\n")


def extract_date_from_filename(file_path: Union[str, Path]) -> Optional[date]:
    """
    Find a year-month-day token in a file name.

    Recognizes "install_2024_12_31_log.txt", "update-2024-12-31.log" and
    "teamcity20241231.log". Tokens that are not valid dates are skipped.

    Args:
        file_path: Path whose file name (without extension) is scanned

    Returns:
        The first valid date found, or None
    """
    stem = Path(file_path).stem
    for match in _FILENAME_DATE.finditer(stem):
        year, month, day = (int(g) for g in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def file_modified_date(file_path: Union[str, Path]) -> date:
    """Return the local last-modified date of a file."""
    return datetime.fromtimestamp(Path(file_path).stat().st_mtime).date()


def resolve_baseline_date(
    file_path: Union[str, Path],
    use_modified_date: bool = True,
) -> date:
    """
    Determine the date anchor for time-only timestamps in a file.

    Args:
        file_path: Log file path
        use_modified_date: Fall back to the file's modification date when the
            name carries no date (otherwise fall back to today)

    Returns:
        Baseline date
    """
    from_name = extract_date_from_filename(file_path)
    if from_name is not None:
        return from_name

    if use_modified_date:
        try:
            return file_modified_date(file_path)
        except OSError:
            pass

    return date.today()
