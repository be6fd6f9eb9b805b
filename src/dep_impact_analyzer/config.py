"""Configuration management using lib_layered_config.

Purpose
-------
Provides a centralized configuration loader that merges defaults, application
configs, host configs, user configs, .env files, and environment variables
following a deterministic precedence order.

Contents
--------
* :func:`get_config` – loads configuration with lib_layered_config
* :func:`get_default_config_path` – returns path to bundled default config
* :class:`RegistrySettings` – immutable registry client settings
* :func:`get_registry_settings` – returns registry settings from config

Configuration identifiers (vendor, app, slug) are imported from
:mod:`dep_impact_analyzer.__init__conf__` as LAYEREDCONF_* constants.

System Role
-----------
Acts as the configuration adapter layer. The registry client never reads
configuration itself; callers resolve a :class:`RegistrySettings` here and
pass it into the client's constructor.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

from lib_layered_config import Config, read_config

from . import __init__conf__

logger = logging.getLogger(__name__)

# Environment variable prefix for native (short) env vars
_ENV_PREFIX = "DEP_IMPACT_ANALYZER_"

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_USER_AGENT = "dep-impact-analyzer"


def get_default_config_path() -> Path:
    """Return the path to the bundled default configuration file.

    Returns:
        Absolute path to defaultconfig.toml.

    Example:
        >>> path = get_default_config_path()
        >>> path.name
        'defaultconfig.toml'
        >>> path.exists()
        True
    """
    return Path(__file__).parent / "defaultconfig.toml"


@lru_cache(maxsize=1)
def get_config(*, start_dir: str | None = None) -> Config:
    """Load layered configuration with application defaults.

    Loads configuration from multiple sources in precedence order:
    defaults → app → host → user → dotenv → env

    Args:
        start_dir: Optional directory that seeds .env discovery. Defaults to
            current working directory when None.

    Returns:
        Immutable configuration object with provenance tracking.

    Note:
        This function is cached (maxsize=1); subsequent calls with the same
        start_dir return the cached Config instance immediately.
    """
    return read_config(
        vendor=__init__conf__.LAYEREDCONF_VENDOR,
        app=__init__conf__.LAYEREDCONF_APP,
        slug=__init__conf__.LAYEREDCONF_SLUG,
        default_file=get_default_config_path(),
        start_dir=start_dir,
    )


@dataclass(frozen=True, slots=True)
class RegistrySettings:
    """Immutable settings for the registry client.

    Durations are floats in seconds, the unit httpx takes, not milliseconds.

    Attributes:
        base_url: Registry endpoint; package names are appended as a path.
        max_concurrent: Maximum number of simultaneous HTTP requests.
        timeout: Maximum seconds to wait for a single response.
        retry_attempts: Total attempts per package, including the first.
        retry_base_delay: Seconds before the second attempt; doubles after.
        user_agent: Value of the ``User-Agent`` request header.
    """

    base_url: str = DEFAULT_REGISTRY_URL
    max_concurrent: int = 8
    timeout: float = 15.0
    retry_attempts: int = 2
    retry_base_delay: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Validate the settings."""
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.max_concurrent <= 0:
            raise ValueError(f"max_concurrent must be positive, got {self.max_concurrent}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.retry_attempts <= 0:
            raise ValueError(f"retry_attempts must be positive, got {self.retry_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must not be negative, got {self.retry_base_delay}")

    def backoff_delay(self, attempt: int) -> float:
        """Return the delay in seconds after the given failed attempt (1-based).

        Example:
            >>> [RegistrySettings(retry_base_delay=1.0).backoff_delay(n) for n in (1, 2, 3)]
            [1.0, 2.0, 4.0]
        """
        return self.retry_base_delay * 2 ** (attempt - 1)

    def with_overrides(self, **overrides: Any) -> RegistrySettings:
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def _positive(value: float) -> bool:
    return value > 0


def _non_negative(value: float) -> bool:
    return value >= 0


def _env_override(
    name: str,
    convert: type,
    current: Any,
    valid: Callable[[Any], bool] = bool,
) -> Any:
    """Return the converted native env var value, or ``current``.

    Values that do not convert, or that ``valid`` rejects, are ignored
    with a warning.
    """
    raw = os.environ.get(f"{_ENV_PREFIX}{name}")
    if not raw:
        return current
    try:
        value = convert(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s%s=%r", _ENV_PREFIX, name, raw)
        return current
    if not valid(value):
        logger.warning("Ignoring out-of-range %s%s=%r", _ENV_PREFIX, name, raw)
        return current
    return value


def get_registry_settings() -> RegistrySettings:
    """Get registry settings from configuration with environment overrides.

    Settings are resolved in the following precedence order (highest wins):
    1. Native environment variables (DEP_IMPACT_ANALYZER_TIMEOUT, etc.)
    2. lib_layered_config environment variables
    3. User config file (~/.config/dep-impact-analyzer/config.toml)
    4. Host config file
    5. Application config file
    6. Default config (bundled defaultconfig.toml)

    Returns:
        RegistrySettings with resolved values.
    """
    config = get_config()
    section: dict[str, Any] = config.get("registry", default={}) or {}
    defaults = RegistrySettings()

    base_url = section.get("base_url", defaults.base_url)
    max_concurrent = section.get("max_concurrent", defaults.max_concurrent)
    timeout = section.get("timeout", defaults.timeout)
    retry_attempts = section.get("retry_attempts", defaults.retry_attempts)
    retry_base_delay = section.get("retry_base_delay", defaults.retry_base_delay)
    user_agent = section.get("user_agent", defaults.user_agent)

    # Native environment variables have highest precedence
    base_url = _env_override("REGISTRY_URL", str, base_url, valid=bool)
    max_concurrent = _env_override("MAX_CONCURRENT", int, max_concurrent, valid=_positive)
    timeout = _env_override("TIMEOUT", float, timeout, valid=_positive)
    retry_attempts = _env_override("RETRY_ATTEMPTS", int, retry_attempts, valid=_positive)
    retry_base_delay = _env_override("RETRY_BASE_DELAY", float, retry_base_delay, valid=_non_negative)

    return RegistrySettings(
        base_url=str(base_url),
        max_concurrent=int(max_concurrent),
        timeout=float(timeout),
        retry_attempts=int(retry_attempts),
        retry_base_delay=float(retry_base_delay),
        user_agent=str(user_agent),
    )


__all__ = [
    "DEFAULT_REGISTRY_URL",
    "RegistrySettings",
    "get_config",
    "get_default_config_path",
    "get_registry_settings",
]
