"""
Foundation Core - Shared infrastructure.

Provides the pieces every ScriptGraph module builds on:
- Signal: Synchronous observer used for engine, variable and config events
- setup_logging: Loguru console/file configuration
- ConfigManager: Pydantic-validated settings with persistence

Usage:
    from src.core import ConfigManager, setup_logging

    config = ConfigManager("scriptgraph.json")
    setup_logging(config.data.logging.debug_mode, config.data.logging.log_dir)
"""
from .events import Signal
from .logging import setup_logging
from .config import (
    ConfigManager,
    AppConfig,
    RuntimeSettings,
    LoggingSettings,
)

__all__ = [
    # Events
    "Signal",

    # Logging
    "setup_logging",

    # Configuration
    "ConfigManager",
    "AppConfig",
    "RuntimeSettings",
    "LoggingSettings",
]
