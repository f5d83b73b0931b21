"""
Reader settings persistence.

Settings are a small JSON record loaded once at startup and saved on every
user-initiated mode or speed change.
"""

import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from docreader.utils.config import config
from docreader.utils import logger


@dataclass
class ReaderSettings:
    """User preferences that survive restarts."""

    accessibility_mode: bool = True
    speed: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessibilityMode": self.accessibility_mode,
            "speed": self.speed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReaderSettings":
        defaults = cls()
        speed = data.get("speed", defaults.speed)
        try:
            # Older records stored the slider value as a string
            speed = float(speed)
        except (TypeError, ValueError):
            speed = defaults.speed
        if not (math.isfinite(speed) and speed > 0):
            speed = defaults.speed

        accessibility_mode = data.get("accessibilityMode", defaults.accessibility_mode)
        if not isinstance(accessibility_mode, bool):
            accessibility_mode = defaults.accessibility_mode

        return cls(accessibility_mode=accessibility_mode, speed=speed)


class SettingsRepository(ABC):
    """Durable storage for ReaderSettings."""

    @abstractmethod
    def load(self) -> ReaderSettings:
        ...

    @abstractmethod
    def save(self, settings: ReaderSettings) -> None:
        ...


class MemorySettingsRepository(SettingsRepository):
    """Keeps settings for the lifetime of the process."""

    def __init__(self, settings: Optional[ReaderSettings] = None):
        self._data = (settings or ReaderSettings()).to_dict()

    def load(self) -> ReaderSettings:
        return ReaderSettings.from_dict(dict(self._data))

    def save(self, settings: ReaderSettings) -> None:
        self._data = settings.to_dict()


class JsonSettingsRepository(SettingsRepository):
    """Stores settings as a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else config.get_path("settings")

    def load(self) -> ReaderSettings:
        if not self.path.exists():
            return ReaderSettings()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return ReaderSettings()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}")
            return ReaderSettings()

        return ReaderSettings.from_dict(data)

    def save(self, settings: ReaderSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)
        logger.debug(f"Saved settings: {self.path}")
