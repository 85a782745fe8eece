from __future__ import annotations

import logging
import os
import sys
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .settings import BotSettings
from .validator import validate_config, ConfigValidationError


DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "CONFIG_PATH"


def get_config_path() -> tuple[str, bool]:
    """
    Resolve the optional YAML config path, preferring an explicit environment override.

    Returns the path and whether it was given explicitly.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path, True
    return DEFAULT_CONFIG_FILE, False


def _load_yaml_config(path: str, required: bool) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if not required:
            return {}
        logging.error("Config file not found: %s", path)
        sys.exit(1)
    except yaml.YAMLError as e:
        logging.error("YAML parsing error in %s: %s", path, e)
        sys.exit(1)

    if not isinstance(data, dict):
        logging.error("Config root must be a mapping, got %s", type(data).__name__)
        sys.exit(1)

    return {str(k).upper(): v for k, v in data.items()}


def merge_sources(file_cfg: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """
    Environment values win over file values; blank env values do not mask the file.
    """
    merged = dict(file_cfg)
    for key, value in env.items():
        if value is not None and str(value).strip():
            merged[key.upper()] = value
    return merged


def get_settings(
    path: str | None = None,
    env: Mapping[str, str] | None = None,
    use_dotenv: bool = True,
) -> BotSettings:
    """
    Public helper for loading configuration.

    - Loads a .env file (never overriding the real environment).
    - Reads CONFIG_PATH / config.yaml when present.
    - Validates the merged values and exits with code 1 on failure,
      before any connection to Discord is attempted.
    """
    if use_dotenv:
        load_dotenv(override=False)

    if path:
        cfg_path, required = path, True
    else:
        cfg_path, required = get_config_path()

    file_cfg = _load_yaml_config(cfg_path, required)
    cfg = merge_sources(file_cfg, os.environ if env is None else env)
    source = f"environment + {cfg_path}" if file_cfg else "environment"

    try:
        validate_config(cfg, source)
    except ConfigValidationError:
        sys.exit(1)

    return BotSettings.from_mapping(cfg)
