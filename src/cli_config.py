"""Runtime configuration: YAML config file and CLI overrides.

Values land on :class:`constants.Constants`. Precedence, lowest first:
built-in defaults, config file, CLI flags. Problems with the config file are
logged and never abort the run.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)

_BOOL_KEYS = {
    "offline": "CARGO_OFFLINE",
    "strict": "STRICT",
    "skip_hidden": "SKIP_HIDDEN",
    "require_git": "REQUIRE_GIT",
}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the ``depsize`` section of a YAML config file.

    Args:
        config_path: Path to a YAML file; a top-level ``depsize:`` mapping is
            used when present, otherwise the whole document.

    Returns:
        Configuration dict, empty when the file is missing or invalid.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return {}

    if not isinstance(data, dict):
        return {}
    section = data.get(Constants.CONFIG_SECTION, data)
    return section if isinstance(section, dict) else {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognised config keys onto Constants."""
    for key, value in cfg.items():
        if key == "cargo":
            if isinstance(value, str) and value.strip():
                Constants.CARGO_BIN = value.strip()
            else:
                logger.warning("Ignoring invalid config value for cargo: %r", value)
        elif key == "ignore_files":
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                Constants.IGNORE_FILES = list(value)
            else:
                logger.warning("Ignoring invalid config value for ignore_files: %r", value)
        elif key in _BOOL_KEYS:
            if isinstance(value, bool):
                setattr(Constants, _BOOL_KEYS[key], value)
            else:
                logger.warning("Ignoring non-boolean config value for %s: %r", key, value)
        else:
            logger.warning("Unknown config key: %s", key)


def apply_cli_overrides(args) -> None:
    """Apply CLI flags; these take precedence over the config file."""
    if getattr(args, "OFFLINE", False):
        Constants.CARGO_OFFLINE = True
    if getattr(args, "STRICT", False):
        Constants.STRICT = True
