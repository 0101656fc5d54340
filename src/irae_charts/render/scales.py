"""Value-to-pixel scales, tick layouts and step-function geometry."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

from irae_charts.domain.models import MAX_TIME_DAYS, IncidenceSeries

# Fixed time-axis ticks: start, 1y, 2y, 3y (365-day years).
TIME_TICKS: tuple[int, ...] = (0, 365, 730, 1095)
_TIME_TICK_LABELS = {0: "0", 365: "1y", 730: "2y", 1095: "3y"}

Y_TICK_COUNT = 5
Y_HEADROOM = 1.1
Y_MIN_UPPER = 0.1
Y_MAX_UPPER = 1.0

_E10, _E5, _E2 = math.sqrt(50), math.sqrt(10), math.sqrt(2)


class LinearScale:
    """Monotonic linear mapping from *domain* to *range*."""

    def __init__(self, domain: Sequence[float], range: Sequence[float], clamp: bool = False) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))
        self.clamp = clamp

    def __call__(self, value):
        d0, d1 = self.domain
        r0, r1 = self.range
        t = (np.asarray(value, dtype=np.float64) - d0) / (d1 - d0) if d1 != d0 else np.zeros_like(
            np.asarray(value, dtype=np.float64))
        if self.clamp:
            t = np.clip(t, 0.0, 1.0)
        out = r0 + t * (r1 - r0)
        return float(out) if np.ndim(out) == 0 else out

    def ticks(self, count: int = 10) -> list[float]:
        return tick_values(self.domain[0], self.domain[1], count)


def _tick_increment(start: float, stop: float, count: int) -> float:
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power >= 0:
        return factor * 10 ** power
    return -(10 ** -power) / factor


def tick_values(start: float, stop: float, count: int) -> list[float]:
    """Roughly *count* evenly spaced 1/2/5 x 10^n values covering the interval."""
    if count <= 0:
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    inc = _tick_increment(start, stop, count)
    if inc == 0 or not math.isfinite(inc):
        return []
    if inc > 0:
        lo, hi = math.ceil(start / inc), math.floor(stop / inc)
        ticks = [i * inc for i in range(lo, hi + 1)]
    else:
        inc = -inc
        lo, hi = math.ceil(start * inc), math.floor(stop * inc)
        ticks = [i / inc for i in range(lo, hi + 1)]
    return ticks[::-1] if reverse else ticks


def format_time_tick(days: float) -> str:
    return _TIME_TICK_LABELS.get(int(days), f"{days:g}")


def format_percent_tick(value: float) -> str:
    return f"{value:.0%}"


def incidence_y_max(series: Iterable[IncidenceSeries], horizon: float = MAX_TIME_DAYS) -> float:
    """Upper bound of the incidence axis.

    10% headroom over the largest in-horizon incidence, kept within
    ``[0.1, 1.0]``.
    """
    peak = 0.0
    for s in series:
        if s.times.size == 0:
            continue
        values = s.cumulative_incidence[s.in_horizon(horizon)]
        if values.size:
            peak = max(peak, float(np.nanmax(values)))
    return min(max(peak * Y_HEADROOM, Y_MIN_UPPER), Y_MAX_UPPER)


# ---------------------------------------------------------------------------
# Step-after geometry
# ---------------------------------------------------------------------------

def step_after_vertices(xs, ys) -> tuple[np.ndarray, np.ndarray]:
    """Vertices of a curve that holds each value until the next sample.

    ``(x0, y0), (x1, y0), (x1, y1), (x2, y1), ...``
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    if xs.size <= 1:
        return xs.copy(), ys.copy()
    return np.repeat(xs, 2)[1:], np.repeat(ys, 2)[:-1]


def step_value(times, values, t: float) -> float:
    """Value of the step-after curve at time *t* (NaN before the first sample)."""
    times = np.asarray(times, dtype=np.float64)
    idx = int(np.searchsorted(times, t, side="right")) - 1
    if idx < 0:
        return float("nan")
    return float(np.asarray(values, dtype=np.float64)[idx])


def svg_path(xs, ys) -> str:
    """``M``/``L`` path through the given vertices."""
    points = [f"{x:.2f},{y:.2f}" for x, y in zip(xs, ys)]
    if not points:
        return ""
    return "M" + "L".join(points)


def step_line_path(xs, ys) -> str:
    return svg_path(*step_after_vertices(xs, ys))


def step_area_path(xs, y_upper, y_lower) -> str:
    """Closed band between two step-after edges sharing the same x samples."""
    ux, uy = step_after_vertices(xs, y_upper)
    lx, ly = step_after_vertices(xs, y_lower)
    if ux.size == 0:
        return ""
    return svg_path(np.concatenate([ux, lx[::-1]]), np.concatenate([uy, ly[::-1]])) + "Z"


def horizontal_link_path(x0: float, y0: float, x1: float, y1: float) -> str:
    """Cubic curve leaving and entering horizontally, as used for flow links."""
    mid = (x0 + x1) / 2
    return f"M{x0:.2f},{y0:.2f}C{mid:.2f},{y0:.2f} {mid:.2f},{y1:.2f} {x1:.2f},{y1:.2f}"
