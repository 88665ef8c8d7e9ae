"""
Reloadable settings holder.

The server reads config.yaml once at import and again whenever the file's
mtime moves. A broken edit never takes the server down: the last settings
that validated stay in effect until the file is fixed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

if TYPE_CHECKING:
    from barkpush.config import Settings

logger = logging.getLogger(__name__)

_RELOAD_ERRORS = (OSError, ValueError, ValidationError)


class ConfigManager:
    """Loads Settings from config.yaml and reloads them when the file changes."""

    def __init__(self, config_path: str | None = None):
        """
        Args:
            config_path: YAML file to watch; defaults to $CONFIG_PATH, then ./config.yaml

        Raises:
            FileNotFoundError, ValueError, ValidationError: If the first load fails
        """
        from barkpush.config import DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path or os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH))
        self._current_settings: Settings | None = None
        self._last_mtime: float | None = None

        self._load_config()

    def _read_settings(self) -> tuple[Settings, float]:
        from barkpush.config import Settings, flatten_config, load_config_from_yaml

        mtime = self.config_path.stat().st_mtime
        raw = load_config_from_yaml(str(self.config_path))
        return Settings(**flatten_config(raw)), mtime

    def _load_config(self) -> None:
        try:
            loaded, mtime = self._read_settings()
        except _RELOAD_ERRORS as e:
            if self._current_settings is None:
                raise
            logger.warning(
                "Ignoring invalid config.yaml, previous settings stay active",
                extra={"path": str(self.config_path), "error_type": type(e).__name__},
            )
            return

        self._current_settings = loaded
        self._last_mtime = mtime
        logger.info("Settings loaded", extra={"path": str(self.config_path), "mtime": mtime})

    def _config_file_changed(self) -> bool:
        # A file that vanished counts as unchanged
        try:
            return self.config_path.stat().st_mtime != self._last_mtime
        except OSError:
            return False

    def get_settings(self) -> Settings:
        """Current settings, re-read first if config.yaml was modified."""
        if self._config_file_changed():
            logger.info("config.yaml changed on disk", extra={"path": str(self.config_path)})
            self._load_config()

        if self._current_settings is None:
            msg = "Settings were never loaded"
            raise RuntimeError(msg)
        return self._current_settings

    def reload(self) -> None:
        """Re-read config.yaml now, regardless of its mtime."""
        self._load_config()
