"""Configuration loader for Kite Session Keeper

Loads configuration from multiple sources with the following priority:
1. Environment variables (highest priority)
2. .env file
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from settings import API_BASE, DEFAULT_ENV_FILE, DEFAULT_REQUEST_TIMEOUT, KITE_VERSION, LOGIN_BASE

# Set up logger for config loader
logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Required application identity is missing from the configuration"""


class ConfigLoader:
    """Handles loading configuration from various sources"""

    def __init__(self, env_path: Optional[str] = None):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to '.env' in the current directory.
        """
        self.env_path = Path(env_path) if env_path else Path(DEFAULT_ENV_FILE)
        self._load_env_file()

    def _load_env_file(self):
        """Load environment variables from .env file if it exists"""
        if self.env_path.exists():
            load_dotenv(dotenv_path=self.env_path)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(f".env file not found at {self.env_path}, using environment variables and defaults only")

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value with priority: env > default

        Args:
            env_var: Environment variable name to check
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = os.getenv(env_var)
        if env_value is not None:
            # Try to parse as appropriate type
            if isinstance(default, bool):
                return env_value.lower() in ('true', '1', 'yes')
            elif isinstance(default, int):
                try:
                    return int(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as int, using default: {default}")
                    return default
            elif isinstance(default, float):
                try:
                    return float(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as float, using default: {default}")
                    return default
            return env_value

        # Expand home directory if it's a path
        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default


@dataclass(frozen=True)
class AppIdentity:
    """Operator-provisioned Kite Connect application credentials"""
    api_key: str
    api_secret: str


@dataclass(frozen=True)
class KiteSettings:
    """Settings for one process run, built once by load_settings()

    access_token and refresh_token are the values found in the environment at
    start-up; the session manager keeps its own copy from there on.
    """
    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    refresh_token: Optional[str] = None
    env_file: Path = field(default_factory=lambda: Path(DEFAULT_ENV_FILE))
    api_base: str = API_BASE
    login_base: str = LOGIN_BASE
    kite_version: str = KITE_VERSION
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    validation_retries: int = 0
    callback_timeout: Optional[float] = None
    log_level: str = "info"

    @property
    def identity(self) -> AppIdentity:
        return AppIdentity(api_key=self.api_key, api_secret=self.api_secret)

    def require_identity(self) -> AppIdentity:
        """Return the application identity or fail if it is incomplete

        Raises:
            ConfigurationError: If KITE_API_KEY or KITE_API_SECRET is missing
        """
        missing = [
            name for name, value in (("KITE_API_KEY", self.api_key), ("KITE_API_SECRET", self.api_secret))
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Please add {' and '.join(missing)} to your environment or {self.env_file}"
            )
        return self.identity


def load_settings(env_path: Optional[str] = None) -> KiteSettings:
    """Build KiteSettings from the environment and the .env credential file

    Args:
        env_path: Optional path to the .env file. Falls back to KITE_ENV_FILE, then '.env'.

    Returns:
        Immutable settings for this run
    """
    env_path = env_path or os.getenv("KITE_ENV_FILE") or DEFAULT_ENV_FILE
    config = ConfigLoader(env_path)

    access_token = config.get("KITE_ACCESS_TOKEN", "").strip()
    refresh_token = config.get("KITE_REFRESH_TOKEN", "").strip() or None
    callback_timeout = config.get("KITE_CALLBACK_TIMEOUT", 0.0)

    settings = KiteSettings(
        api_key=config.get("KITE_API_KEY", "").strip(),
        api_secret=config.get("KITE_API_SECRET", "").strip(),
        access_token=access_token,
        refresh_token=refresh_token,
        env_file=config.env_path,
        api_base=config.get("KITE_API_BASE", API_BASE).rstrip("/"),
        login_base=config.get("KITE_LOGIN_BASE", LOGIN_BASE).rstrip("/"),
        request_timeout=config.get("KITE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        validation_retries=max(0, config.get("KITE_VALIDATION_RETRIES", 0)),
        callback_timeout=callback_timeout if callback_timeout > 0 else None,
        log_level=config.get("LOG_LEVEL", "info"),
    )
    logger.debug(
        f"Settings loaded (env file: {settings.env_file}, access token: "
        f"{'set' if access_token else 'missing'}, refresh token: {'set' if refresh_token else 'missing'})"
    )
    return settings
