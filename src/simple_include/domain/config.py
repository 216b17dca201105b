from __future__ import annotations

"""
Configuration Domain Management.

Holds the default runtime configuration consumed by the CLI and the optional
JSON configuration file that can pre-seed it. The core engine never reads
these values itself: it receives them as explicit parameters.
"""

import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
APP_NAME = "simple-include"
APP_VERSION = "0.3.0"

DEFAULT_SOURCE_DIR = "."
DEFAULT_TARGET_DIR = "target"
DEFAULT_INCLUDE_PREFIX = "--include"
DEFAULT_DEBOUNCE_MS = 200

BINARY_INCLUDE_POLICIES = ("splice", "reject")
DEFAULT_BINARY_INCLUDE_POLICY = "splice"


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # IO Paths
        "source": DEFAULT_SOURCE_DIR,
        "target": DEFAULT_TARGET_DIR,

        # Directive Syntax
        "include_prefix": DEFAULT_INCLUDE_PREFIX,
        "binary_includes": DEFAULT_BINARY_INCLUDE_POLICY,

        # Execution Mode
        "watch": False,
        "verbose": False,
        "debounce_ms": DEFAULT_DEBOUNCE_MS,

        # Performance (0 = library default / unbounded)
        "workers": 0,
        "max_scan_bytes": 0,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config(path: str) -> Dict[str, Any]:
    """
    Load a configuration file and merge it over the defaults.

    Unknown keys are discarded. A missing or corrupted file is logged and the
    defaults are returned unchanged.

    Args:
        path: Path to a JSON document holding a flat key/value mapping.

    Returns:
        Dict[str, Any]: The merged configuration.
    """
    config = get_default_config()

    if not os.path.exists(path):
        logger.warning(f"Config file '{path}' not found. Using defaults.")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config '{path}': {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning(f"Corrupted config file '{path}'. Using defaults.")
        return config

    for key, value in data.items():
        if key in config:
            config[key] = value
        else:
            logger.debug(f"Ignoring unknown config key '{key}'")

    return config
