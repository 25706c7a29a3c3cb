"""Configuration loader for reconciler settings and keyword tables"""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from image_reconciler.models.configs import ReconcilerConfig

DEFAULT_CONFIG_PATH = Path("config/reconciler_config.yaml")
CONFIG_ENV_VAR = "IMAGE_RECONCILER_CONFIG"


def load_config(config_path: Optional[Path] = None) -> ReconcilerConfig:
    """
    Load reconciler configuration from YAML file.

    Without an explicit path the ``IMAGE_RECONCILER_CONFIG`` environment
    variable (``.env`` files are honoured) and then the default path are
    tried; when neither exists the built-in defaults are returned.

    Args:
        config_path: Path to configuration file. If None, uses env var or default.

    Returns:
        ReconcilerConfig object

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValueError: If config is invalid
    """
    if config_path is None:
        load_dotenv()
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            config_path = Path(env_path)
        elif DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
        else:
            return ReconcilerConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    # Load YAML
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    # Validate and create ReconcilerConfig
    return ReconcilerConfig(**config_data)


def format_config(config: ReconcilerConfig) -> str:
    """
    Format the keyword table as readable text.

    Args:
        config: ReconcilerConfig object

    Returns:
        One line per keyword rule
    """
    lines = []
    for rule in config.matching.keyword_rules:
        lines.append(f"{', '.join(rule.keywords)} -> {', '.join(rule.categories)}")
    return "\n".join(lines)
