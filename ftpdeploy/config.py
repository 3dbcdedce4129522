"""Connection settings for ftpdeploy.

Settings are read from the environment first (``FTPDEPLOY_HOST``,
``FTPDEPLOY_USER``, ``FTPDEPLOY_PASSWORD``, ``FTPDEPLOY_PORT``) and then from
``~/.config/ftpdeploy/config``, a file of ``KEY=value`` lines written by
``ftpdeploy init``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import FtpDeployConfigError
from .utils import DEFAULT_PORT

logger = logging.getLogger(__name__)

ENV_PREFIX = "FTPDEPLOY_"
KEYS = ("HOST", "USER", "PASSWORD", "PORT")


class Config:
    """Resolves connection settings from environment and config file."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Config file location. Defaults to
                ~/.config/ftpdeploy/config
        """
        if config_path is None:
            config_path = Path.home() / ".config" / "ftpdeploy" / "config"
        self.config_path = config_path

    def get_config_path(self) -> Path:
        """Return the config file location."""
        return self.config_path

    def _load_file(self) -> dict[str, str]:
        values: dict[str, str] = {}
        if not self.config_path.exists():
            return values

        try:
            with open(self.config_path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, _, value = line.partition("=")
                    values[key.strip().upper()] = value.strip()
        except OSError as e:
            logger.warning(f"Failed to read config file {self.config_path}: {e}")
        return values

    def get(self, key: str) -> Optional[str]:
        """Look up a setting by short key (``HOST``, ``USER``...)."""
        key = key.upper()
        env_value = os.environ.get(ENV_PREFIX + key)
        if env_value:
            return env_value
        return self._load_file().get(key) or None

    @property
    def host(self) -> Optional[str]:
        return self.get("HOST")

    @property
    def user(self) -> Optional[str]:
        return self.get("USER")

    @property
    def password(self) -> Optional[str]:
        return self.get("PASSWORD")

    @property
    def port(self) -> int:
        value = self.get("PORT")
        if value is None:
            return DEFAULT_PORT
        try:
            return int(value)
        except ValueError as e:
            raise FtpDeployConfigError(f"Invalid port in configuration: {value}") from e

    def is_configured(self) -> bool:
        """Check whether a host and user are available."""
        return bool(self.host and self.user)

    def save(self, **settings: Optional[str]) -> None:
        """Persist settings to the config file.

        Existing keys not passed are kept. Keys with value None are dropped.

        Args:
            **settings: host, user, password, port
        """
        values = self._load_file()
        for key, value in settings.items():
            key = key.upper()
            if key not in KEYS:
                raise FtpDeployConfigError(f"Unknown setting: {key.lower()}")
            if value is None:
                values.pop(key, None)
            else:
                values[key] = str(value)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            for key in KEYS:
                if key in values:
                    f.write(f"{key}={values[key]}\n")
        self.config_path.chmod(0o600)
        logger.debug(f"Saved configuration to {self.config_path}")


config = Config()
