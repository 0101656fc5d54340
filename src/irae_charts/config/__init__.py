"""Configuration sub-package.

Quick usage::

    from irae_charts.config import get_config

    cfg = get_config()
    print(cfg["charts"]["sankey"]["width"])
"""

from __future__ import annotations

from irae_charts.config.settings import DEFAULTS, get_config, get_typed_config

__all__ = ["DEFAULTS", "get_config", "get_typed_config"]
