"""Configuration sub-package.

Quick usage::

    from pooled_screening.config import get_config, get_simulation_settings

    cfg = get_config()
    print(cfg["monte_carlo"]["iterations"])
"""

from __future__ import annotations

from pooled_screening.config.settings import (
    get_config,
    get_simulation_settings,
    get_typed_config,
)

__all__ = [
    "get_config",
    "get_simulation_settings",
    "get_typed_config",
]
