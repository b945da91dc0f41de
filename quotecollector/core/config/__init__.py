"""Configuration package."""

from quotecollector.core.config.settings import (
    EASTMONEY,
    TONGHUASHUN,
    CollectorConfig,
    ConfigManager,
    FallbackSettings,
    IdentitySettings,
    LoggingSettings,
    Settings,
    SourceSettings,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "EASTMONEY",
    "TONGHUASHUN",
    "CollectorConfig",
    "ConfigManager",
    "FallbackSettings",
    "IdentitySettings",
    "LoggingSettings",
    "Settings",
    "SourceSettings",
    "get_default_config",
    "load_config_from_env",
]
