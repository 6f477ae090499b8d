#!/usr/bin/env python3
"""
Configuration Loading

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Reads config.json from the script directory. A missing file falls back to
defaults; anything present must have the right type.
"""
import json
import logging
import os

from filekeeper_pkg.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'target_org_alias': None,
    'dedupe_sibling_links': False,
    'cli_timeout_seconds': 120,
    'allowed_sobjects': ['Account', 'Contact', 'Lead'],
}

_EXPECTED_TYPES = {
    'target_org_alias': (str, type(None)),
    'dedupe_sibling_links': (bool,),
    'cli_timeout_seconds': (int,),
    'allowed_sobjects': (list,),
}


def load_config(script_dir, filename='config.json'):
    """
    Load config.json merged over DEFAULT_CONFIG.

    The legacy key 'target_sandbox_alias' is accepted as an alias for
    'target_org_alias'.

    Args:
        script_dir: Directory holding the config file
        filename: Config file name

    Returns:
        dict: Effective configuration
    """
    config = dict(DEFAULT_CONFIG)
    config_path = os.path.join(script_dir, filename)
    if not os.path.exists(config_path):
        logger.info("No %s found at %s, using defaults", filename, config_path)
        return config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{config_path} is not valid JSON: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")

    if 'target_org_alias' not in loaded and 'target_sandbox_alias' in loaded:
        loaded['target_org_alias'] = loaded['target_sandbox_alias']

    for key, expected in _EXPECTED_TYPES.items():
        if key not in loaded:
            continue
        value = loaded[key]
        # bool is a subclass of int, reject it for integer settings
        if not isinstance(value, expected) or (expected == (int,) and isinstance(value, bool)):
            raise ConfigError(f"'{key}' in {config_path} has the wrong type: {value!r}")
        config[key] = value

    if config['cli_timeout_seconds'] <= 0:
        raise ConfigError("'cli_timeout_seconds' must be positive")

    return config
