"""
Configuration loader for the document reader.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class Config:
    """Configuration manager for the document reader."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if not self._config:
            self._load_config()

    def _get_project_root(self) -> Path:
        """Get the project root directory."""
        # Navigate up from docreader/utils to project root
        current = Path(__file__).resolve()
        return current.parent.parent.parent

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        config_path = self._get_project_root() / "config" / "settings.yaml"

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        else:
            # Use defaults if config doesn't exist
            self._config = self._get_defaults()

    def _get_defaults(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "speech": {
                "rate": 1.0,
                "pitch": 1.1,
                "volume": 1.0,
                "settle_delay": 0.2,
                "base_wpm": 200,
            },
            "analysis": {
                "max_avg_words": 20,
                "structure_min_sentences": 10,
                "max_paragraph_chars": 500,
                "heading_patterns": [
                    r"^(#|Chapter|Section|Part)",
                ],
            },
            "paths": {
                "settings": "~/.docreader/settings.json",
            },
            "logging": {
                "verbose": False,
            },
        }

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Example:
            config.get("speech", "rate") -> 1.0
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
            if value is None:
                return default
        return value

    def get_path(self, key: str) -> Path:
        """Get a path configuration as absolute Path."""
        configured = Path(self.get("paths", key, default=key)).expanduser()
        # Absolute paths win over the project root
        return self._get_project_root() / configured

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._get_project_root()

    @property
    def speech_rate(self) -> float:
        """Get the default reading speed."""
        return float(self.get("speech", "rate", default=1.0))

    @property
    def speech_pitch(self) -> float:
        return float(self.get("speech", "pitch", default=1.1))

    @property
    def speech_volume(self) -> float:
        return float(self.get("speech", "volume", default=1.0))

    @property
    def settle_delay(self) -> float:
        """Seconds to wait between cancelling one utterance and issuing the next."""
        return float(self.get("speech", "settle_delay", default=0.2))

    @property
    def base_wpm(self) -> int:
        """Words per minute spoken at rate 1.0."""
        return int(self.get("speech", "base_wpm", default=200))

    @property
    def heading_patterns(self) -> List[str]:
        return self.get(
            "analysis",
            "heading_patterns",
            default=[r"^(#|Chapter|Section|Part)"],
        )

    @property
    def verbose(self) -> bool:
        return bool(self.get("logging", "verbose", default=False))


# Singleton instance
config = Config()
