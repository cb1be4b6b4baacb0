"""Application configuration manager wrapping QSettings."""

import logging
import os
from pathlib import Path

from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "COPILOT_STATUS_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "copilot-status" / "copilot-status.ini"

# Default values
DEFAULTS = {
    "general/sessionDir": "~/.copilot/history-session-state",
    "tracking/logFile": "./copilot-status.log",
    "tracking/interval": 60,
    "dashboard/interval": 30,
    "costs/warningThreshold": 5.0,
    "costs/criticalThreshold": 15.0,
    "advanced/debugLogging": False,
}


class ConfigManager:
    """Centralized settings stored in an INI file.

    The file location comes from ``path``, then $COPILOT_STATUS_CONFIG, then
    ~/.config/copilot-status/copilot-status.ini.
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
        self._path = Path(path).expanduser()
        self._settings = QSettings(str(self._path), QSettings.IniFormat)

    @property
    def path(self) -> Path:
        return self._path

    def get_string(self, key: str) -> str:
        return str(self._settings.value(key, DEFAULTS.get(key, "")))

    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(val)
        except (ValueError, TypeError):
            logger.warning("Invalid integer for %s: %r, using default", key, val)
            return DEFAULTS.get(key, 0)

    def get_float(self, key: str) -> float:
        val = self._settings.value(key, DEFAULTS.get(key, 0.0))
        try:
            return float(val)
        except (ValueError, TypeError):
            logger.warning("Invalid number for %s: %r, using default", key, val)
            return float(DEFAULTS.get(key, 0.0))

    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    def get_path(self, key: str) -> Path:
        return Path(self.get_string(key)).expanduser()

    def set_value(self, key: str, value: str | int | float | bool):
        self._settings.setValue(key, value)
        self._settings.sync()

    def remove(self, key: str):
        """Drop a stored value so the default applies again."""
        self._settings.remove(key)
        self._settings.sync()

    def items(self) -> dict[str, str]:
        """Effective values for every known key, as strings."""
        return {key: self.get_string(key) for key in DEFAULTS}
