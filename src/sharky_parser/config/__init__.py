"""Configuration module."""

from .constants import (
    DEFAULT_CLASSIFIER_MAX_LINE_LENGTH,
    DEFAULT_CLASSIFIER_TIME_BUDGET_MS,
    IIS_DEFAULT_FIELDS,
    W3C_FIELD_METADATA,
)
from .settings import (
    ParserSettings,
    clear_settings_cache,
    get_settings,
    load_settings,
)

__all__ = [
    # Classifier defaults
    "DEFAULT_CLASSIFIER_TIME_BUDGET_MS",
    "DEFAULT_CLASSIFIER_MAX_LINE_LENGTH",
    # W3C metadata
    "W3C_FIELD_METADATA",
    "IIS_DEFAULT_FIELDS",
    # Settings
    "ParserSettings",
    "get_settings",
    "load_settings",
    "clear_settings_cache",
]
