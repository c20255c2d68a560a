"""
Configuration Manager
---------------------
Client configuration loaded from YAML with environment variable overrides.

Rules:
- The API key is never required in a file
- Key resolution order: explicit value, then the configured environment variable
- Environment variables BIBSONOMY_<SECTION>_<KEY> override file values

Example config.yaml:

    bibsonomy:
      user: alice
      base_url: https://www.bibsonomy.org/api
      timeout_seconds: 20
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging
import os

import yaml

from ..core.errors import ConfigurationError
from ..core.models import Credentials

DEFAULT_BASE_URL = "https://www.bibsonomy.org/api"
DEFAULT_API_KEY_ENV = "BIBSONOMY_API_KEY"
ENV_PREFIX = "BIBSONOMY"


@dataclass
class APIConfig:
    """Configuration for the BibSonomy client."""
    user: str
    api_key: Optional[str] = field(default=None, repr=False)
    api_key_env: str = DEFAULT_API_KEY_ENV  # Environment variable name (NOT the actual key)
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 30.0
    user_agent: str = "bibsonomy-client/0.1"
    headers: Dict[str, str] = field(default_factory=dict)

    def resolve_api_key(self) -> Optional[str]:
        """Explicit key first, then the environment."""
        return self.api_key or os.getenv(self.api_key_env)

    def credentials(self) -> Credentials:
        """Build basic-auth credentials; raises if no key can be found."""
        if not self.user:
            raise ConfigurationError("No BibSonomy user configured", key="user")

        api_key = self.resolve_api_key()
        if not api_key:
            raise ConfigurationError(
                f"API key not configured: set it explicitly or via {self.api_key_env}",
                key=self.api_key_env,
            )
        return Credentials(user=self.user, api_key=api_key)


class ConfigManager:
    """
    Centralized configuration management.
    Loads configuration from YAML with environment variable overrides.
    """

    def __init__(self, config_path: str = "config.yaml"):
        self._config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._logger = logging.getLogger("bibsonomy.infra.config")

        self._load_config()

    def _load_config(self) -> None:
        if self._config_path.exists():
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ConfigurationError(
                    f"Config file must contain a mapping: {self._config_path}"
                )
            self._config = loaded
            self._logger.info(f"Loaded config from {self._config_path}")
        else:
            self._config = {}
            self._logger.warning(f"Config file not found: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Supports dot notation: 'section.key'
        Environment variables override file config.
        """
        env_key = f"{ENV_PREFIX}_{key.upper().replace('.', '_')}"
        env_value = os.getenv(env_key)
        if env_value is not None:
            return env_value

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only, not persisted)."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            config = config.setdefault(part, {})

        config[parts[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        return self._config.get(section, {})

    def reload(self) -> None:
        self._load_config()

    def api_config(self, section: str = "bibsonomy") -> APIConfig:
        """Build an APIConfig from one section of the file."""
        headers = self.get(f"{section}.headers") or {}
        if isinstance(headers, str):
            # Environment overrides arrive as text, e.g. '{X-Client: tests}'
            try:
                headers = yaml.safe_load(headers) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"{section}.headers is not valid YAML: {e}",
                    key=f"{section}.headers",
                ) from e
        if not isinstance(headers, dict):
            raise ConfigurationError(
                f"{section}.headers must be a mapping, got {type(headers).__name__}",
                key=f"{section}.headers",
            )

        return APIConfig(
            user=self.get(f"{section}.user", ""),
            api_key=self.get(f"{section}.api_key"),
            api_key_env=self.get(f"{section}.api_key_env", DEFAULT_API_KEY_ENV),
            base_url=self.get(f"{section}.base_url", DEFAULT_BASE_URL),
            timeout_seconds=float(self.get(f"{section}.timeout_seconds", 30.0)),
            user_agent=self.get(f"{section}.user_agent", APIConfig.user_agent),
            headers=dict(headers),
        )


def load_config(config_path: str = "config.yaml", section: str = "bibsonomy") -> APIConfig:
    """Load an APIConfig from a YAML file (environment overrides applied)."""
    return ConfigManager(config_path).api_config(section)
