# utils.py
"""
Utility functions for the fireflies framework.

This module provides the logging setup, configuration loading and the
configuration error type. They are shared by the simulation core and the
application shell but do not belong to either.
"""
import logging
import logging.handlers
import json
from pathlib import Path
from typing import Dict, Any

from constants import DEFAULT_LOG_FILE, DEFAULT_LOG_FORMAT, LOG_BACKUP_COUNT, LOG_MAX_BYTES

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary with an optional "logging" key holding "level",
#       "format", and "log_file" sub-keys.
#   - Side Effects: Configures the root Python logger with a console handler
#     and a rotating file handler. Creates the log directory if needed.
#   - Raises: InvalidConfiguration for an unknown level name.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: The parsed JSON document.
#   - Raises: FileNotFoundError, json.JSONDecodeError (logged first),
#     InvalidConfiguration if the top level is not an object.
#
# require_keys(section: Dict[str, Any], keys, section_name: str) -> None:
#   - Raises: InvalidConfiguration if any key is missing.

class InvalidConfiguration(ValueError):
    """Raised when simulation parameters cannot produce a valid simulation."""


def fail_configuration(msg: str) -> None:
    """Logs a configuration error as critical and raises it."""
    logging.critical(msg)
    raise InvalidConfiguration(msg)


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Routes the root logger to the console and to a size-capped log file,
    both using the format from the "logging" config section.
    """
    log_config = config.get('logging', {})
    level_name = str(log_config.get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise InvalidConfiguration(f"Configuration error: unknown log level '{level_name}'.")

    log_file = Path(log_config.get('log_file', DEFAULT_LOG_FILE))
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(log_config.get('format', DEFAULT_LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    for handler in (
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        ),
    ):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.info(f"Logging to console and {log_file} at level {level_name}.")

def load_config(path: str) -> Dict[str, Any]:
    """Reads a JSON configuration document. The top level must be an object."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"{path} is not valid JSON (line {e.lineno}, column {e.colno}).")
        raise
    if not isinstance(config, dict):
        fail_configuration(
            f"Configuration error: {path} must hold a JSON object, "
            f"not {type(config).__name__}."
        )
    return config

def require_keys(section: Dict[str, Any], keys, section_name: str) -> None:
    """Checks that every key in `keys` is present in a config section."""
    missing = [key for key in keys if key not in section]
    if missing:
        fail_configuration(
            f"Configuration error: section '{section_name}' is missing "
            f"required keys: {', '.join(missing)}."
        )
