# panel_cmdline/config_handler.py

import os
import sys
import json
import re
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_PATH = os.path.join(PACKAGE_DIR, "config", "default_config.json")
USER_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".config", "panel-cmdline", "user_config.json")

# Matches // to the end of the line, or /* ... */ across lines (non-greedy).
# String literals are matched first so "ftp://host" inside a value survives.
_COMMENT_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|//.*?$|/\*.*?\*/', re.DOTALL | re.MULTILINE)


def _strip_comments(content: str) -> str:
    return _COMMENT_PATTERN.sub(lambda m: m.group(1) or '', content)


def load_jsonc_file(filepath: str) -> Optional[Dict[str, Any]]:
    """
    Loads a JSON file that may contain single-line (//) and multi-line (/* */) comments.

    Args:
        filepath (str): The full path to the .jsonc or .json file.

    Returns:
        Optional[Dict[str, Any]]: A dictionary with the file's contents,
                                  or None if the file is not found or cannot be parsed.
    """
    if not os.path.exists(filepath):
        logger.info(f"Configuration file not found at: {filepath}")
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            file_content = f.read()
        return json.loads(_strip_comments(file_content))
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {filepath}: {e}", exc_info=True)
        print(f"❌ Error: Could not parse the configuration file at {filepath}. Please check for syntax errors.", file=sys.stderr)
        return None
    except IOError as e:
        logger.error(f"Error reading file {filepath}: {e}", exc_info=True)
        print(f"❌ Error: Could not read the file at {filepath}.", file=sys.stderr)
        return None


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """ Recursively merges override into a copy of base. """
    merged = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_nested_config(config_dict: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """Safely retrieves a value from a nested dict using a dot-separated path."""
    value = config_dict
    for key in key_path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def load_configuration(default_config_path: str = DEFAULT_CONFIG_PATH,
                       user_config_path: str = USER_CONFIG_PATH) -> Dict[str, Any]:
    """
    Loads the mandatory default configuration and overlays the optional user file.

    Raises:
        FileNotFoundError: If the default configuration is missing or unparsable.
    """
    base_config = load_jsonc_file(default_config_path)
    if base_config is None:
        error_msg = f"CRITICAL ERROR: Default configuration file not found or failed to parse at '{default_config_path}'."
        logger.critical(error_msg)
        raise FileNotFoundError(error_msg)
    logger.info(f"Successfully loaded base configuration from {default_config_path}")

    user_settings = load_jsonc_file(user_config_path)
    if user_settings:
        logger.info(f"Loaded and merged user configurations from {user_config_path}")
        return merge_configs(base_config, user_settings)
    logger.info(f"{user_config_path} not found or is invalid. No user configuration overrides applied.")
    return base_config
