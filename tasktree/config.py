"""
Configuration for tasktree.

Settings are read from an INI file (``~/.tasktree/config.ini`` by default):

    [api]
    base_url = https://intranet.example.com
    timeout = 30

    [policy]
    file = ~/.tasktree/policy.toml

Each setting can be overridden with a TASKTREE_* environment variable.
"""

import configparser
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from tasktree.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30.0


class Config:
    """Settings from the INI file, with environment overrides."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: INI file to read; defaults to ~/.tasktree/config.ini
        """
        self.config_path = config_path or Path.home() / ".tasktree" / "config.ini"
        self._parser = configparser.ConfigParser()
        self._read()

    def _read(self) -> None:
        if not self.config_path.exists():
            logger.debug(f"No config file at {self.config_path}, using defaults")
            return
        try:
            self._parser.read(self.config_path)
        except configparser.Error as e:
            logger.warning(f"Ignoring unreadable config file {self.config_path}: {e}")
            return
        logger.info(f"Read configuration from {self.config_path}")

    def _setting(self, env_var: str, section: str, key: str, fallback: str = "") -> str:
        """Environment variable if set and non-empty, else the file value, else fallback."""
        return os.getenv(env_var) or self._parser.get(section, key, fallback=fallback)

    def get_api_config(self) -> Dict[str, Any]:
        """
        Connection settings for the tasks API.

        Overrides: TASKTREE_API_BASE_URL, TASKTREE_API_TIMEOUT.

        Returns:
            Dictionary with ``base_url`` and ``timeout`` (seconds)
        """
        api = {
            'base_url': self._setting('TASKTREE_API_BASE_URL', 'api', 'base_url', DEFAULT_BASE_URL),
            'timeout': float(self._setting('TASKTREE_API_TIMEOUT', 'api', 'timeout', str(DEFAULT_TIMEOUT))),
        }
        logger.debug(f"API config: base_url={api['base_url']}, timeout={api['timeout']}")
        return api

    def get_policy_path(self) -> Optional[Path]:
        """
        Location of the policy TOML file (TASKTREE_POLICY_FILE overrides).

        Returns:
            Path to the file, or None when no policy file is configured
        """
        value = self._setting('TASKTREE_POLICY_FILE', 'policy', 'file')
        return Path(value).expanduser() if value else None

    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        """Raw value from the file, or ``fallback``."""
        return self._parser.get(section, key, fallback=fallback)

    def sections(self) -> List[str]:
        return self._parser.sections()
