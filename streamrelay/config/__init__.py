from .logging import LoggingSettings
from .relay import PageSettings, RelaySettings
from .server import ServerSettings
from .settings import ConfigurationError, Settings, get_settings


__all__ = [
    "ConfigurationError",
    "LoggingSettings",
    "PageSettings",
    "RelaySettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
