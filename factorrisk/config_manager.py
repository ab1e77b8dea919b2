import json
import logging
import os
from threading import Lock
from typing import Any, Dict, Optional

import appdirs

from .constants import (
    DEFAULT_DECOMP,
    DEFAULT_METHOD,
    DEFAULT_N_ROW_PRINT,
    DEFAULT_P,
    DEFAULT_USE,
)

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FACTORRISK_CONFIG"

# Keys a user config may override; anything else in the file is ignored.
REPORT_DEFAULTS: Dict[str, Any] = {
    "n_row_print": DEFAULT_N_ROW_PRINT,
    "p": DEFAULT_P,
    "method": DEFAULT_METHOD.value,
    "decomp": DEFAULT_DECOMP.value,
    "use": DEFAULT_USE,
    "digits": None,
}


class ConfigManager:
    """Report defaults loaded from a user JSON file - singleton"""

    _instance = None
    _lock = Lock()

    APP_NAME = "factorrisk"
    APP_AUTHOR = "factorrisk"

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(ConfigManager, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.config_dir = appdirs.user_config_dir(self.APP_NAME, self.APP_AUTHOR)
        self._config_cache: Optional[Dict[str, Any]] = None
        self._initialized = True

    @property
    def config_file(self) -> str:
        """Explicit ``$FACTORRISK_CONFIG`` wins over the per-user location."""
        return os.environ.get(CONFIG_ENV_VAR) or os.path.join(self.config_dir, "config.json")

    def load_config(self) -> Dict[str, Any]:
        """Load the report defaults, cached after the first read."""
        if self._config_cache is not None:
            return self._config_cache

        config_data: Dict[str, Any] = {}
        path = self.config_file
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
                logger.info(f"Loaded report defaults from {path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to read config file {path}: {e}, using built-in defaults")
                config_data = {}
        else:
            logger.debug(f"Config file {path} not found, using built-in defaults")

        report_section = config_data.get("report", config_data)
        if not isinstance(report_section, dict):
            logger.warning(f"Ignoring malformed 'report' section in {path}")
            report_section = {}

        final_config = dict(REPORT_DEFAULTS)
        for key in REPORT_DEFAULTS:
            if key in report_section:
                final_config[key] = report_section[key]

        self._config_cache = final_config
        return self._config_cache

    def reload_config(self) -> Dict[str, Any]:
        self._config_cache = None
        return self.load_config()

    def get_report_defaults(self) -> Dict[str, Any]:
        return dict(self.load_config())


def get_config_manager(config_path: Optional[str] = None) -> ConfigManager:
    """
    Get the config manager, optionally pointing it at an explicit file.

    Raises:
        RuntimeError: the explicit config file does not exist
    """
    manager = ConfigManager()
    if config_path:
        if not os.path.exists(config_path):
            raise RuntimeError(f"Config file does not exist: {config_path}")
        os.environ[CONFIG_ENV_VAR] = config_path
        manager.reload_config()
    return manager
