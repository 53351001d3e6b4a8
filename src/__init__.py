"""
ScriptGraph - Visual scripting execution core.

Shared infrastructure lives in src.core (signals, logging, configuration);
the graph model, runtime and node profiles live in src.scriptgraph.
"""

from src.core.config import ConfigManager, AppConfig, RuntimeSettings, LoggingSettings
from src.core.events import Signal
from src.core.logging import setup_logging

__version__ = "0.1.0"

__all__ = [
    "ConfigManager",
    "AppConfig",
    "RuntimeSettings",
    "LoggingSettings",
    "Signal",
    "setup_logging",
]
