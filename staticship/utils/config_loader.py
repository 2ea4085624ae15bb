"""
Configuration file loader and resolver.

Loads client settings from a ``.shiprc`` or ``ship.yaml`` file and merges
them with explicit options and the environment.

Precedence (highest to lowest):
    1. Explicit options (constructor arguments / CLI flags)
    2. Environment variables (SHIP_API_URL, SHIP_API_KEY, SHIP_DEPLOY_TOKEN)
    3. Config file
    4. Defaults

Example config file (.shiprc, JSON is valid YAML):
    ```json
    {"apiUrl": "https://api.shipstatic.com", "apiKey": "ship-..."}
    ```

Usage:
    >>> from staticship.utils.config_loader import load_config_file, resolve_config
    >>> file_config = load_config_file()
    >>> config = resolve_config({"timeout_seconds": 60}, file_config)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlparse

import yaml

from staticship.errors import ConfigError
from staticship.utils.config import ClientConfig
from staticship.utils.logging import get_logger

logger = get_logger(__name__)

# Searched in the working directory, then in the home directory
CONFIG_FILE_NAMES = [".shiprc", ".shiprc.json", ".shiprc.yaml", "ship.yaml"]

# File keys (camelCase, as written by other ship tooling) -> ClientConfig fields
KNOWN_KEYS = {
    "apiUrl": "api_url",
    "apiKey": "api_key",
    "deployToken": "deploy_token",
    "timeout": "timeout_seconds",
}


@dataclass
class ConfigIssue:
    """Validation problem in a configuration file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def find_config_file(search_dirs: Optional[List[Path]] = None) -> Optional[Path]:
    """First existing config file in the search directories, or None."""
    dirs = search_dirs if search_dirs is not None else [Path.cwd(), Path.home()]
    for directory in dirs:
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_config_file(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load and validate a configuration file.

    Args:
        config_path: Explicit file; searched for when None

    Returns:
        Mapping of ClientConfig field names to values (empty if no file found)

    Raises:
        ConfigError: If an explicit file is missing, unparsable or invalid
    """
    if config_path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No configuration file found")
            return {}
    else:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")

    logger.info(f"Loading configuration from: {path}")

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration file {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    issues = validate_config(raw)
    if issues:
        raise ConfigError(
            f"Configuration validation failed in {path}: " + "; ".join(str(i) for i in issues)
        )

    return {KNOWN_KEYS[key]: value for key, value in raw.items()}


def validate_config(config: Mapping[str, Any]) -> List[ConfigIssue]:
    """
    Validate a raw configuration mapping.

    Returns:
        List of validation issues (empty if valid)

    Example:
        >>> validate_config({"apiUrl": "not a url"})
        [ConfigIssue(field='apiUrl', message='Must be an http(s) URL', value='not a url')]
    """
    issues: List[ConfigIssue] = []

    for key, value in config.items():
        if key not in KNOWN_KEYS:
            issues.append(ConfigIssue(key, "Unknown configuration key"))
            continue

        if key == "timeout":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                issues.append(ConfigIssue(key, "Must be a number", type(value).__name__))
            elif value <= 0:
                issues.append(ConfigIssue(key, "Must be positive", value))
            continue

        if not isinstance(value, str):
            issues.append(ConfigIssue(key, "Must be a string", type(value).__name__))
        elif key == "apiUrl":
            parsed = urlparse(value)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                issues.append(ConfigIssue(key, "Must be an http(s) URL", value))

    if issues:
        logger.warning(f"Configuration validation failed with {len(issues)} issue(s)")

    return issues


def resolve_config(
    options: Optional[Mapping[str, Any]] = None,
    file_config: Optional[Mapping[str, Any]] = None,
    env_config: Optional[ClientConfig] = None,
) -> ClientConfig:
    """
    Merge explicit options, environment and file configuration.

    Args:
        options: Explicit values keyed by ClientConfig field name; None values are ignored
        file_config: Output of load_config_file()
        env_config: Environment configuration (read from the environment when None)

    Returns:
        Fully resolved ClientConfig
    """
    options = {k: v for k, v in (options or {}).items() if v is not None}
    file_config = file_config or {}
    env = env_config if env_config is not None else ClientConfig.from_env()
    defaults = ClientConfig()

    resolved: Dict[str, Any] = {}
    for name in ("api_url", "api_key", "deploy_token", "timeout_seconds"):
        env_value = getattr(env, name)
        if name in options:
            resolved[name] = options[name]
        elif env_value is not None and env_value != getattr(defaults, name):
            resolved[name] = env_value
        elif name in file_config:
            resolved[name] = file_config[name]
        else:
            resolved[name] = getattr(defaults, name)

    return ClientConfig(**resolved)
