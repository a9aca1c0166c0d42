"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional


@dataclass
class OutputSettings:
    """Settings for the diff image output."""
    default_output: str = "diff.png"
    image_format: str = "PNG"
    overwrite: bool = True


@dataclass
class LoggingSettings:
    """Logging settings."""
    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = ""


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    recent_comparisons: list[tuple[str, str]] = field(default_factory=list)
    recent_limit: int = 10


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path | str] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'ImageDiff' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'imagediff' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            return self._from_dict(data)
        except (OSError, ValueError) as e:
            logging.warning(f"SettingsManager - Ignoring unreadable settings {self.settings_path}: {e}")
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._to_dict(settings), f, indent=2)

            self._settings = settings
            return True

        except OSError as e:
            logging.warning(f"SettingsManager - Failed to save settings {self.settings_path}: {e}")
            return False

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_recent_comparison(self, left: str, right: str) -> None:
        """Record a comparison at the front of the recent list."""
        settings = self.settings
        pair = (left, right)

        recent = [tuple(item) for item in settings.recent_comparisons]
        if pair in recent:
            recent.remove(pair)
        recent.insert(0, pair)

        settings.recent_comparisons = recent[:settings.recent_limit]
        self.save()

    def _to_dict(self, settings: ApplicationSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        data = asdict(settings)
        data['recent_comparisons'] = [list(pair) for pair in settings.recent_comparisons]
        return data

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Convert dictionary back to settings objects."""
        defaults = ApplicationSettings()

        output_data = self._section(data, 'output')
        output = OutputSettings(
            default_output=self._value(output_data, 'default_output', defaults.output.default_output),
            image_format=self._value(output_data, 'image_format', defaults.output.image_format),
            overwrite=self._value(output_data, 'overwrite', defaults.output.overwrite),
        )

        logging_data = self._section(data, 'logging')
        logging_settings = LoggingSettings(
            level=self._value(logging_data, 'level', defaults.logging.level),
            log_to_file=self._value(logging_data, 'log_to_file', defaults.logging.log_to_file),
            log_dir=self._value(logging_data, 'log_dir', defaults.logging.log_dir),
        )

        recent = [
            (str(item[0]), str(item[1]))
            for item in data.get('recent_comparisons', [])
            if isinstance(item, (list, tuple)) and len(item) == 2
        ]

        recent_limit = self._value(data, 'recent_limit', defaults.recent_limit)
        if recent_limit < 0:
            logging.warning(f"SettingsManager - Ignoring negative recent_limit {recent_limit}")
            recent_limit = defaults.recent_limit

        return ApplicationSettings(
            output=output,
            logging=logging_settings,
            recent_comparisons=recent,
            recent_limit=recent_limit,
        )

    @staticmethod
    def _section(data: dict, name: str) -> dict[str, Any]:
        section = data.get(name, {})
        return section if isinstance(section, dict) else {}

    @staticmethod
    def _value(section: dict[str, Any], key: str, default: Any) -> Any:
        """Read a setting, keeping the default when the stored value has the wrong type."""
        value = section.get(key, default)
        # bool is a subclass of int
        if type(value) is not type(default):
            logging.warning(
                f"SettingsManager - Ignoring {key}={value!r}, expected {type(default).__name__}"
            )
            return default
        return value
