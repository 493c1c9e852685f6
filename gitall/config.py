#!/usr/bin/env python3

import os
import re
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("gitall")

CONFIG_DIR_NAME = '.gitall'
ENV_PREFIX = "GITALL_"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_dir() -> Path:
    return Path.home() / CONFIG_DIR_NAME


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GITALL_CONFIG environment variable
    2. ~/.gitall/ directory
    """
    if 'GITALL_CONFIG' in os.environ:
        path = Path(os.environ['GITALL_CONFIG'])
        if path.exists():
            return path

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def get_log_path(config=None) -> Path:
    """Location of the append-only subprocess log."""
    configured = (config or {}).get("logging", {}).get("file")
    if configured:
        return Path(os.path.expanduser(configured))
    return get_config_dir() / 'gitall.log'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            # Merge file config with defaults
            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file."""
    config_path = Path(config_path) if config_path else get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.toml']:
        with open(config_path, 'w') as f:
            toml.dump(config, f)
    elif config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        # Default to JSON format
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "protocol": "ssh",              # ssh, https or svn
            "target_directory": ".",
            "host": "github.com",
            "parallel": 1,                  # 1 = one repository at a time
            "process_timeout_seconds": 600
        },
        "github": {
            "api_url": "https://api.github.com",
            "token": "",
            "per_page": 100,
            "max_pages": 10,
            "max_retries": 3,
            "base_delay": 1.0,
            "timeout_seconds": 30
        },
        "filters": {
            "no_forks": False,
            "no_archived": False,
            "name_pattern": ""
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
            "file": ""                      # empty = ~/.gitall/gitall.log
        }
    }


def configure_logging(config, verbose=False):
    """Apply the logging section to the gitall logger hierarchy."""
    section = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(section.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger.setLevel(level)
    fmt = section.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Deep-merge two configuration dictionaries.

    Nested sections are merged key by key; any other value in
    override_config replaces the one in base_config.
    """
    merged = dict(base_config)
    for key, value in override_config.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


_NUMBER = re.compile(r'-?\d+(\.\d+)?')


def _coerce(value):
    """bool, int or float for recognisable strings; the string otherwise."""
    lowered = value.lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    if _NUMBER.fullmatch(value):
        return float(value) if '.' in value else int(value)
    return value


def apply_env_overrides(config, environ=None):
    """
    Apply GITALL_<SECTION>_<KEY> environment variables to known keys.

    Section and key names may themselves contain underscores, e.g.
    GITALL_GENERAL_PROCESS_TIMEOUT_SECONDS=30 sets
    general.process_timeout_seconds. Unknown names are ignored.
    """
    environ = os.environ if environ is None else environ

    for env_key, raw in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        name = env_key[len(ENV_PREFIX):].lower()

        # Longest section name wins
        for section in sorted(config, key=len, reverse=True):
            values = config[section]
            if not isinstance(values, dict) or not name.startswith(section + '_'):
                continue
            key = name[len(section) + 1:]
            if key in values:
                values[key] = _coerce(raw)
            break

    return config
