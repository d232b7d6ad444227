"""Configuration loading for the Harbor MCP server.

Sources, highest priority first:
- Explicit overrides (CLI flags)
- A TOML config file, optionally narrowed by a ``[profiles.<name>]`` table
- Environment variables with the HARBOR_ prefix, including a .env file
- Schema defaults
"""

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from harbor_mcp.config.schema import AppConfig
from harbor_mcp.observability.logging import get_logger

logger = get_logger(__name__)

# Settings without defaults, reported by their environment variable names
REQUIRED_ENV_VARS = {
    "url": "HARBOR_URL",
    "username": "HARBOR_USERNAME",
    "password": "HARBOR_PASSWORD",
}

CONFIG_FILE_NAME = "harbor-mcp.toml"

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is incomplete."""

    pass


def _expand_reference(match: re.Match) -> str:
    name, has_default, default = match.group(1).partition(":-")
    name = name.strip()
    value = os.getenv(name)
    if value is not None:
        return value
    if has_default:
        return default
    logger.warning("env_var_not_found", var_name=name)
    return ""


def _substitute_env_vars(obj: Any) -> Any:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in every string of ``obj``.

    An unset variable without a default expands to an empty string, so the
    environment or the schema default supplies the setting instead.
    """
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _ENV_REFERENCE.sub(_expand_reference, obj)
    return obj


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    """Remove empty string values so they fall back to environment/defaults."""
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _drop_empty(value)
        if value == "" or value is None:
            continue
        cleaned[key] = value
    return cleaned


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base``, recursing into nested sections."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_config_file(config_path: Path, profile: Optional[str]) -> dict[str, Any]:
    with config_path.open("rb") as f:
        data = tomllib.load(f)
    logger.info("loaded_config_file", path=str(config_path))

    profiles = data.pop("profiles", {})
    if profile:
        if profile not in profiles:
            raise ConfigError(f"Profile '{profile}' not found in {config_path}")
        data = _merge(data, profiles[profile])
        logger.info("applied_profile", profile=profile)

    return _substitute_env_vars(data)


def _describe_validation_error(error: ValidationError) -> str:
    missing = [
        REQUIRED_ENV_VARS.get(str(err["loc"][0]), ".".join(str(p) for p in err["loc"]))
        for err in error.errors()
        if err["type"] == "missing"
    ]
    if missing:
        return f"Missing required settings: {', '.join(missing)}"
    return f"Invalid configuration: {error}"


def load_config(
    config_path: Optional[Path] = None,
    profile: Optional[str] = None,
    env_file: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AppConfig:
    """Load and validate the application configuration.

    Args:
        config_path: TOML config file; ignored when it does not exist
        profile: Name of a ``[profiles.<name>]`` table to apply
        env_file: .env file (defaults to ./.env when present)
        overrides: Values that win over every other source

    Returns:
        Validated configuration

    Raises:
        ConfigError: If a profile is unknown or a setting is missing or invalid
    """
    env_file = env_file or Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        logger.info("loaded_env_file", path=str(env_file))

    file_data: dict[str, Any] = {}
    if config_path and config_path.exists():
        file_data = _read_config_file(config_path, profile)
    elif profile:
        raise ConfigError(f"Profile '{profile}' requested but no config file found")

    try:
        config = AppConfig(**_drop_empty(_merge(file_data, overrides or {})))
    except ValidationError as e:
        raise ConfigError(_describe_validation_error(e)) from e

    logger.info(
        "config_loaded",
        url=config.url,
        username=config.username,
        insecure=config.insecure,
        transport=config.server.transport.value,
        log_level=config.logging.level.value,
    )
    return config


def config_search_paths() -> list[Path]:
    """Candidate config file locations, most specific first."""
    return [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".harbor-mcp" / "config.toml",
        Path("/etc/harbor-mcp/config.toml"),
    ]


def get_default_config_path() -> Path:
    """Return the first existing config file, or ./harbor-mcp.toml if none exists."""
    candidates = config_search_paths()
    return next((path for path in candidates if path.exists()), candidates[0])
