"""Settings module -- single entry point for chart configuration.

:func:`get_config` returns the merged configuration dictionary.  It starts
from the built-in chart defaults, overlays ``config/default.yaml`` when the
file exists, and finally applies any ``IRAE_`` prefixed environment variable
overrides.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

from irae_charts.domain.models import AppConfig

# Project root is three levels up from ``src/irae_charts/config/``.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

DEFAULTS: dict[str, Any] = {
    "charts": {
        "incidence": {"width": 700, "height": 400},
        "sankey": {"width": 900, "height": 500},
        "heatmap": {"cell_size": 50, "label_width": 150},
        "hr_table": {"table_id": "hr-table"},
        "association_table": {"name_column": "Name"},
    },
    "demo": {"seed": 42, "port": 7860},
}


@functools.lru_cache(maxsize=1)
def get_typed_config() -> AppConfig:
    """Return the cached :class:`AppConfig` wrapper for typed access.

    Call ``get_typed_config.cache_clear()`` after changing ``IRAE_``
    environment variables at runtime.
    """
    return AppConfig.load(
        default_path=_PROJECT_ROOT / "config" / "default.yaml",
        defaults=DEFAULTS,
        env_prefix="IRAE_",
    )


def get_config() -> dict[str, Any]:
    """Return the fully merged configuration dictionary.

    Resolution order:

    1. :data:`DEFAULTS`
    2. ``config/default.yaml``
    3. Environment variables with ``IRAE_`` prefix
    """
    return get_typed_config().data
