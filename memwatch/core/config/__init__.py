from memwatch.core.config.loader import ConfigLoader, ConfigPaths, load_config
from memwatch.core.config.models import (
    ErrorsConfig,
    EventBusConfig,
    EventLogFileConfig,
    LoggingConfig,
    MemwatchConfig,
    StampAt,
)

__all__ = [
    "ConfigLoader",
    "ConfigPaths",
    "load_config",
    "ErrorsConfig",
    "EventBusConfig",
    "EventLogFileConfig",
    "LoggingConfig",
    "MemwatchConfig",
    "StampAt",
]
