"""Configuration management for the fleet analytics tools.

Provides:
- ``Config`` base class with dict round-tripping
- ``AppConfig`` populated from environment variables
- ``AnalyticsConfig`` holding the fixed constants of the aggregation core
- ``KnownAreas`` with the municipality's canonical areas and route endpoints
"""

import os as _os
from typing import Any, Dict, Optional


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all public config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance with values from dictionary
        """
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config


class AnalyticsConfig(Config):
    """Fixed constants used by the aggregation core.

    These are business constants, not tuning knobs, but they are kept in one
    place so reports can cite them and tests can pin them.
    """

    def __init__(self) -> None:
        super().__init__()
        # Derating of the cubic capacity into a realistic daily payload
        self.fill_ratio = 0.625
        self.compaction_ratio = 0.9
        self.availability_ratio = 0.86
        # Age bands (years) for the efficiency step function
        self.full_efficiency_below_age = 7
        self.half_efficiency_max_age = 11
        # Per-capita annual cost (JD) the affordability index is measured against
        self.affordability_benchmark = 4.9
        # National strategy reference for daily waste generation (kg/person/day)
        self.national_waste_per_capita = 0.87
        self.days_per_year = 365

    @property
    def derating_factor(self) -> float:
        """Product of the fill, compaction and availability ratios."""
        return self.fill_ratio * self.compaction_ratio * self.availability_ratio


ANALYTICS = AnalyticsConfig()


class KnownAreas:
    """Canonical service areas of the municipality and their aliases."""

    # Areas reported by the area intelligence view, in display order
    AREAS = ("الطيبة", "مؤته", "المزار", "العراق", "الهاشمية", "سول", "جعفر")

    # Spelling variants found in the sheets -> canonical area
    ALIASES = {
        "مؤتة": "مؤته",
    }

    # Route planning: area -> geocodable start location
    ROUTE_STARTS = {
        "مؤته": "مؤته لواء المزار الجنوبي",
        "المزار": "المزار لواء المزار الجنوبي",
        "الطيبة": "الطيبة لواء المزار الجنوبي",
        "العراق": "العراق لواء المزار الجنوبي",
        "سول": "سول لواء المزار الجنوبي",
        "الهاشمية": "الهاشمية لواء المزار الجنوبي",
        "جعفر": "مجرا لواء المزار الجنوبي",
    }

    LANDFILL = "مكب نفايات اللجون"

    @classmethod
    def canonical(cls, area: str) -> str:
        """Return the canonical spelling of *area* (trimmed)."""
        name = (area or "").strip()
        return cls.ALIASES.get(name, name)

    @classmethod
    def route_start(cls, area: str) -> Optional[str]:
        """Return the route start location for *area*, or None if unmapped."""
        return cls.ROUTE_STARTS.get(cls.canonical(area))


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the application works out of the
    box without any configuration.

    Environment variables:
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format — "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_DATA_SOURCE: "remote" (published sheets), a directory of CSV
            files, or an .xlsx workbook path (default: remote)
        APP_LOAD_ON_STARTUP: Load datasets when the app starts (default: 1)
        APP_CACHE_TTL: Seconds aggregated views stay cached (default: 300)
        HTTP_TIMEOUT: Seconds per published-sheet request (default: 30)
        RATE_LIMIT_DEFAULT: Max requests per minute per IP (default: 120)
        RATE_LIMIT_AI: Max AI requests per minute per IP (default: 10)
        TRUSTED_PROXIES: Comma-separated proxy IP addresses to trust
        ANTHROPIC_API_KEY: Key for the AI report/chat/route services
        AI_REPORT_MODEL: Model used for narrative reports and routes
        AI_CHAT_MODEL: Model used for the streamed data chat
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.data_source = _os.getenv("APP_DATA_SOURCE", "remote")
        self.load_on_startup = _os.getenv("APP_LOAD_ON_STARTUP", "1") not in ("0", "false", "no")
        self.cache_ttl = float(_os.getenv("APP_CACHE_TTL", "300"))
        self.http_timeout = float(_os.getenv("HTTP_TIMEOUT", "30"))
        self.rate_limit_default = int(_os.getenv("RATE_LIMIT_DEFAULT", "120"))
        self.rate_limit_ai = int(_os.getenv("RATE_LIMIT_AI", "10"))
        raw_proxies = _os.getenv("TRUSTED_PROXIES", "")
        self.trusted_proxies: set[str] = (
            {p.strip() for p in raw_proxies.split(",") if p.strip()}
        )
        self._anthropic_api_key = _os.getenv("ANTHROPIC_API_KEY", "")
        self.ai_report_model = _os.getenv("AI_REPORT_MODEL", "claude-haiku-4-5-20251001")
        self.ai_chat_model = _os.getenv("AI_CHAT_MODEL", "claude-haiku-4-5-20251001")

    @property
    def anthropic_api_key(self) -> str:
        # Kept out of to_dict() so config dumps never leak the key
        return self._anthropic_api_key

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
