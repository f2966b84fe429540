"""
Configuration loading utilities for AMMSCOPE.
"""

from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_FILE = "bsc.yaml"


def load_yaml(filename: str | Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory, or an absolute path

    Returns:
        Parsed YAML as dict
    """
    filepath = Path(filename)
    if not filepath.is_absolute():
        filepath = CONFIG_DIR / filepath
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_chain() -> Dict[str, Any]:
    """Load the default chain configuration."""
    return load_yaml(DEFAULT_CONFIG_FILE)
