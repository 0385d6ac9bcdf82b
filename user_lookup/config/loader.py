"""Configuration loading.

Load order: config file -> environment variables -> defaults. A key set in
the file wins over the environment; the environment only fills gaps.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from user_lookup.exceptions import ConfigurationError
from user_lookup.utils.logger import get_logger

from .constants import (
    ENV_PREFIX,
    ENV_USER_LOOKUP_CONFIG,
    SECTION_CACHE,
    SECTION_FILES,
    SECTION_KEYS,
    SECTION_LOGGING,
)
from .schema import LookupSettings

logger = get_logger(__name__)


def apply_env_overrides(
    config: configparser.ConfigParser,
    section: str,
    key: str,
    env_var: str | None = None,
) -> None:
    """Fill ``section.key`` from the environment when the file leaves it unset.

    The variable name defaults to ``USER_LOOKUP_<SECTION>_<KEY>``.
    """
    if env_var is None:
        env_var = f"{ENV_PREFIX}{section.upper()}_{key.upper()}"

    value = os.environ.get(env_var)
    if value is None:
        return
    if not config.has_section(section):
        config.add_section(section)
    if config.has_option(section, key):
        logger.debug(
            "Skipping environment override because config already defines the value",
            event="user_lookup.config.env_override_skipped",
            section=section,
            key=key,
        )
        return
    config.set(section, key, value)
    logger.debug(
        "Applied environment override for config key",
        event="user_lookup.config.env_override_applied",
        section=section,
        key=key,
        env_var=env_var,
    )


def apply_all_env_overrides(config: configparser.ConfigParser) -> None:
    for section, keys in SECTION_KEYS.items():
        for key in keys:
            apply_env_overrides(config, section, key)


def read_config_file(source: str | Path) -> configparser.ConfigParser:
    config = configparser.ConfigParser(interpolation=None)
    try:
        found = config.read(source, encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigurationError(f"Invalid configuration file '{source}': {exc}") from exc
    if not found:
        raise ConfigurationError(f"Configuration file not found: {source}")
    return config


def load_settings(path: str | Path | None = None, **overrides: Any) -> LookupSettings:
    """Build validated settings from file, environment, and keyword overrides.

    Keyword overrides (``cache_seconds=5``) beat every other source; ``None``
    values are ignored so command line flags can be passed straight through.
    """
    source = path or os.environ.get(ENV_USER_LOOKUP_CONFIG)
    if source:
        config = read_config_file(source)
    else:
        config = configparser.ConfigParser(interpolation=None)
    apply_all_env_overrides(config)

    raw: dict[str, Any] = {
        "passwd_file": config.get(SECTION_FILES, "passwd", fallback=None),
        "group_file": config.get(SECTION_FILES, "group", fallback=None),
        "cache_seconds": config.get(SECTION_CACHE, "seconds", fallback=None),
        "malformed_lines": config.get(SECTION_CACHE, "malformed_lines", fallback=None),
        "log_level": config.get(SECTION_LOGGING, "level", fallback=None),
    }
    raw.update(overrides)
    values = {key: value for key, value in raw.items() if value is not None}

    try:
        return LookupSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid lookup configuration: {exc}") from exc
