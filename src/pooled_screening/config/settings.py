"""Settings module -- single entry point for application configuration.

:func:`get_config` returns the merged configuration dictionary.  It loads
``config/default.yaml``, overlays ``config/<profile>.yaml`` when the
``PSC_PROFILE`` environment variable names a profile, and finally applies
any ``PSC_`` prefixed environment variable overrides.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import Any

from pooled_screening.domain.models import AppConfig, SimulationSettings

# Project root is three levels up from ``src/pooled_screening/config/``.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

_ENV_PREFIX = "PSC_"


def _paths() -> tuple[Path, Path | None]:
    config_dir = _PROJECT_ROOT / "config"
    profile = os.environ.get(f"{_ENV_PREFIX}PROFILE")
    overlay = config_dir / f"{profile}.yaml" if profile else None
    return config_dir / "default.yaml", overlay


@functools.lru_cache(maxsize=1)
def get_config() -> dict[str, Any]:
    """Return the fully merged configuration dictionary.

    The result is cached; call ``get_config.cache_clear()`` after changing
    the environment.

    Resolution order:

    1. ``config/default.yaml``
    2. ``config/<PSC_PROFILE>.yaml`` if set and present
    3. Environment variables with ``PSC_`` prefix
    """
    default_path, overlay_path = _paths()
    return AppConfig.load(
        default_path=default_path,
        overlay_path=overlay_path,
        env_prefix=_ENV_PREFIX,
    ).data


def get_typed_config() -> AppConfig:
    """Return the cached configuration wrapped for dotted-key access."""
    return AppConfig(data=get_config())


def get_simulation_settings() -> SimulationSettings:
    """Return typed simulation defaults from the merged configuration."""
    return SimulationSettings.from_config(get_typed_config())
