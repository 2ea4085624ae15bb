"""
Environment configuration for the staticship client.

Loads client settings from a .env file or environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from staticship.errors import ConfigError

DEFAULT_API_URL = "https://api.shipstatic.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class ClientConfig:
    """Client configuration resolved from the environment."""

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    deploy_token: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        # Credentials never appear in logs
        return (
            f"ClientConfig(api_url={self.api_url!r}, "
            f"api_key={'***' if self.api_key else None}, "
            f"deploy_token={'***' if self.deploy_token else None}, "
            f"timeout_seconds={self.timeout_seconds})"
        )

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "ClientConfig":
        """
        Load configuration from environment variables.

        Loads ``.env`` from the working directory (or ``env_file``) first;
        variables already set in the environment win.

        Variables:
            SHIP_API_URL, SHIP_API_KEY, SHIP_DEPLOY_TOKEN, SHIP_TIMEOUT_SECONDS

        Raises:
            ConfigError: If SHIP_TIMEOUT_SECONDS is not a positive number
        """
        env_path = env_file if env_file is not None else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        raw_timeout = os.getenv("SHIP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"SHIP_TIMEOUT_SECONDS must be a number (got: {raw_timeout})")
        if timeout <= 0:
            raise ConfigError(f"SHIP_TIMEOUT_SECONDS must be positive (got: {raw_timeout})")

        return cls(
            api_url=os.getenv("SHIP_API_URL") or DEFAULT_API_URL,
            api_key=os.getenv("SHIP_API_KEY") or None,
            deploy_token=os.getenv("SHIP_DEPLOY_TOKEN") or None,
            timeout_seconds=timeout,
        )


# Global config instance (lazy-loaded)
_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """
    Get or create the environment configuration singleton.

    Example:
        >>> config = get_config()
        >>> print(config.api_url)
        https://api.shipstatic.com
    """
    global _config
    if _config is None:
        _config = ClientConfig.from_env()
    return _config
