from .loader import load_config
from .models import (
    BrowserConfig,
    CliConfig,
    ClipboardConfig,
    ExportSettings,
    MermaidPressConfig,
    ServerConfig,
    SvgConfig,
)

__all__ = [
    "BrowserConfig",
    "CliConfig",
    "ClipboardConfig",
    "ExportSettings",
    "MermaidPressConfig",
    "ServerConfig",
    "SvgConfig",
    "load_config",
]
