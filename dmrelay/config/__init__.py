"""Configuration module for dmrelay."""

from dmrelay.config.loader import load_config, get_config_path
from dmrelay.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
