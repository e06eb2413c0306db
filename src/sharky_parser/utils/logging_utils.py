"""
Logging setup for command-line entry points.
"""

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, fmt: str = DEFAULT_FORMAT) -> None:
    """
    Configure the root logger to write to stderr.

    Library modules only create loggers; handlers are configured here so
    JSON written to stdout stays clean.

    Args:
        level: Logging level for the root logger
        fmt: Log record format string
    """
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
