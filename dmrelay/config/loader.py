"""Configuration loading utilities for dmrelay."""

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from dmrelay.config.schema import Config

# Token variable used by most Discord bot deployments
DISCORD_TOKEN_ENV = "DISCORD_BOT_TOKEN"

# Fields whose values are maps with user-chosen keys (HTTP header names)
OPAQUE_KEYS = {"extra_headers"}


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".dmrelay" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Values from ``DMRELAY_*`` environment variables apply to anything the
    file leaves unset.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    data: dict[str, Any] = {}

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            if isinstance(raw, dict):
                data = convert_keys(raw)
            else:
                logger.warning(f"Ignoring config at {path}: expected a JSON object")
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse config from {path}: {e}. Using defaults.")

    try:
        config = Config(**data)
    except ValueError as e:
        logger.warning(f"Invalid config at {path}: {e}. Using defaults.")
        config = Config()

    if not config.discord.token:
        config.discord.token = os.environ.get(DISCORD_TOKEN_ENV, "").strip()
    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {
            camel_to_snake(k): v if camel_to_snake(k) in OPAQUE_KEYS else convert_keys(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): v if k in OPAQUE_KEYS else convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
