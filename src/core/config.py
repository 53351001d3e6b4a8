from typing import Any, Optional
import json
import os
from pydantic import BaseModel, Field, ValidationError
from loguru import logger
from .events import Signal


# --- Settings Models ---
class RuntimeSettings(BaseModel):
    max_steps: int = Field(default=100_000, gt=0)
    max_seconds: Optional[float] = Field(default=None, gt=0)
    replace_existing_links: bool = True


class LoggingSettings(BaseModel):
    debug_mode: bool = False
    log_dir: Optional[str] = None


class AppConfig(BaseModel):
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.

    Settings are read from JSON or TOML (by extension) when the file exists,
    otherwise defaults are kept. Updates are validated, saved as JSON and
    broadcast through ``on_changed(section, key, value)``.
    """
    def __init__(self, filepath: str = "scriptgraph.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if key not in type(section_obj).model_fields:
            raise ValueError(f"Invalid key: {key} in section {section}")

        raw = section_obj.model_dump()
        raw[key] = value
        try:
            validated = type(section_obj).model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {section}.{key}: {value!r}") from e

        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if not os.path.isfile(self.filepath):
            return
        try:
            if self.filepath.endswith('.toml'):
                import tomllib
                with open(self.filepath, "rb") as f:
                    raw = tomllib.load(f)
            else:
                with open(self.filepath, "r", encoding="utf-8") as f:
                    raw = json.load(f)
            self._data = AppConfig.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load config from {self.filepath}: {e}")

    def _save(self):
        """Persist current config to JSON file."""
        path = self.filepath
        if path.endswith('.toml'):
            path = path[:-len('.toml')] + '.json'
        try:
            dirname = os.path.dirname(path)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {path}: {e}")
