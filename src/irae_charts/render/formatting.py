"""Text formatting shared by tooltips, labels and tables."""

from __future__ import annotations

import math

LABEL_MAX = 20
PLACEHOLDER = "-"


def truncate_label(text: str, limit: int = LABEL_MAX) -> str:
    """Shorten labels longer than *limit* to ``limit - 2`` chars plus ``...``."""
    return text if len(text) <= limit else text[:limit - 2] + "..."


def format_p_value(p: float) -> str:
    return "<0.001" if p < 0.001 else f"{p:.3f}"


def format_ci(lower: float | None, upper: float | None) -> str:
    if lower is None or upper is None:
        return PLACEHOLDER
    return f"{lower:.2f} - {upper:.2f}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_count(value: float) -> str:
    """Patient counts: integers without a decimal point."""
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
