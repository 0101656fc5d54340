"""Color encodings: categorical lookups and the hazard-ratio diverging scale.

Significance masking is applied here rather than in the renderers so that a
non-significant ratio can never pick up a diverging color by accident.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from plotly.colors import sample_colorscale, unlabel_rgb

from irae_charts.domain.models import HazardCell

# Category palette (MedDRA system organ classes)
CATEGORY_COLORS: dict[str, str] = {
    "Skin and subcutaneous tissue disorders": "#e41a1c",
    "Gastrointestinal disorders": "#377eb8",
    "Endocrine disorders": "#4daf4a",
    "Musculoskeletal and connective tissue disorders": "#984ea3",
    "Respiratory, thoracic and mediastinal disorders": "#ff7f00",
    "Investigation": "#a65628",
    "Hepatobiliary disorders": "#f781bf",
    "Nervous system disorders": "#999999",
    "Blood and lymphatic system disorders": "#66c2a5",
    "Renal and urinary disorders": "#fc8d62",
    "Metabolism and nutrition disorders": "#8da0cb",
    "Cardiac disorders": "#e78ac3",
    "Eye disorders": "#a6d854",
    "Vascular disorders": "#ffd92f",
    "Other": "#888888",
}

SEVERITY_COLORS: dict[str, str] = {
    "Mild": "#4daf4a",
    "Moderate": "#ff7f00",
    "Severe": "#e41a1c",
    "Life-threatening": "#984ea3",
}

# Flow-diagram states: categories plus terminal/absorbing states
STATE_COLORS: dict[str, str] = {
    **CATEGORY_COLORS,
    "Death": "#333333",
    "Censored": "#cccccc",
    "No Event": "#f0f0f0",
}

FALLBACK_COLOR = "#999"

# Heatmap neutrals
DIAGONAL_COLOR = "#f0f0f0"
MISSING_COLOR = "#eee"
NS_COLOR = "#e0e0e0"

# Heatmap significance threshold (inclusive)
HEATMAP_ALPHA = 0.05

HR_DOMAIN: tuple[float, float, float] = (0.25, 1.0, 4.0)


def categorical_color(key: str, color_map: Callable[[str], str] | None = None) -> str:
    """Color for category *key*; *color_map* overrides the built-in lookup."""
    if color_map is not None:
        return color_map(key)
    return CATEGORY_COLORS.get(key, FALLBACK_COLOR)


def state_color(name: str) -> str:
    return STATE_COLORS.get(name, FALLBACK_COLOR)


def _to_hex(rgb: str) -> str:
    r, g, b = (int(round(c)) for c in unlabel_rgb(rgb))
    return f"#{r:02x}{g:02x}{b:02x}"


class DivergingScale:
    """Hazard ratio -> color, centered on 1.0 (no effect).

    Ratios below the midpoint shade toward blue (protective), above toward
    red (risk).  The mapping is piecewise linear on each side of the
    midpoint and clamped to the domain.
    """

    def __init__(self, domain: tuple[float, float, float] = HR_DOMAIN, colorscale: str = "RdBu_r") -> None:
        self.domain = domain
        self.colorscale = colorscale

    def position(self, hr: float) -> float:
        """Position of *hr* on the ``[0, 1]`` interpolator axis."""
        lo, mid, hi = self.domain
        if hr <= mid:
            t = 0.5 * (hr - lo) / (mid - lo)
        else:
            t = 0.5 + 0.5 * (hr - mid) / (hi - mid)
        return float(np.clip(t, 0.0, 1.0))

    def __call__(self, hr: float) -> str:
        return _to_hex(sample_colorscale(self.colorscale, [self.position(hr)])[0])

    def stops(self) -> list[tuple[str, str]]:
        """Gradient stops (offset, color) for the legend."""
        lo, mid, hi = self.domain
        return [("0%", self(lo)), ("50%", self(mid)), ("100%", self(hi))]


def is_heatmap_significant(p_value: float | None) -> bool:
    return p_value is not None and p_value <= HEATMAP_ALPHA


def heatmap_fill(cell: HazardCell, scale: DivergingScale | None = None) -> str:
    """Fill color of a heatmap cell.

    Resolution order: diagonal, absent ratio, non-significant, then the
    diverging scale.
    """
    if cell.diagonal:
        return DIAGONAL_COLOR
    if cell.hr is None:
        return MISSING_COLOR
    if not is_heatmap_significant(cell.p_value):
        return NS_COLOR
    return (scale or DivergingScale())(cell.hr)


def heatmap_text_color(cell: HazardCell) -> str:
    """Label color: inverted for extreme significant ratios."""
    if not is_heatmap_significant(cell.p_value):
        return "#666"
    if cell.hr is not None and (cell.hr > 2 or cell.hr < 0.5):
        return "white"
    return "#333"
