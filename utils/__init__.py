"""Shared utilities for the fleet analytics tools."""

# Common utilities
from utils.common import elapsed, safe_ratio, percent

# Pattern definitions
from utils.patterns import (
    WHITESPACE,
    CURRENCY_SYMBOLS,
    NON_NUMERIC,
)

# String utilities
from utils.strings import (
    safe_float,
    safe_int,
    clean_amount,
    clean_text,
    normalize_whitespace,
)

# HTTP utilities
from utils.http import RetryStrategy, SessionManager, fetch_text

# Caching
from utils.cache import TTLCache

# Configuration
from utils.config import (
    Config,
    AppConfig,
    AnalyticsConfig,
    ANALYTICS,
    KnownAreas,
)

__all__ = [
    # Common
    "elapsed",
    "safe_ratio",
    "percent",
    # Patterns
    "WHITESPACE",
    "CURRENCY_SYMBOLS",
    "NON_NUMERIC",
    # Strings
    "safe_float",
    "safe_int",
    "clean_amount",
    "clean_text",
    "normalize_whitespace",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "fetch_text",
    # Cache
    "TTLCache",
    # Config
    "Config",
    "AppConfig",
    "AnalyticsConfig",
    "ANALYTICS",
    "KnownAreas",
]
