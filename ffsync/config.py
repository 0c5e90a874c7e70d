"""Configuration management for ffsync."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.flutterflow.io/v2"
API_KEY_ENV = "FFSYNC_API_KEY"
API_URL_ENV = "FFSYNC_API_URL"


class Config:
    """Settings resolved from the environment and the user config file.

    Environment variables win over the config file
    (``~/.config/ffsync/config.json``).
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize config.

        Args:
            config_dir: Directory of the config file. Defaults to
                ~/.config/ffsync/
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "ffsync"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Path of the JSON config file."""
        return self.config_dir / "config.json"

    def _load(self) -> dict[str, Any]:
        path = self.get_config_path()
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to read config file {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        path = self.get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        path.chmod(0o600)

    @property
    def api_key(self) -> Optional[str]:
        """API key from FFSYNC_API_KEY or the config file."""
        return os.environ.get(API_KEY_ENV) or self._load().get("api_key")

    @property
    def api_url(self) -> str:
        """API base URL from FFSYNC_API_URL, the config file, or the default."""
        return (
            os.environ.get(API_URL_ENV) or self._load().get("api_url") or DEFAULT_API_URL
        )

    def save_api_key(self, api_key: str) -> None:
        """Store the API key in the config file."""
        data = self._load()
        data["api_key"] = api_key
        self._save(data)
        logger.debug(f"Saved API key to {self.get_config_path()}")


config = Config()
