"""Cumulative incidence chart: step curves, CI bands, hover points, legend.

Series are truncated at :data:`MAX_TIME_DAYS` and drawn with step-after
interpolation.  The y-axis is fixed from the full dataset at render time;
toggling a series in the legend only fades it.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import numpy as np

from irae_charts.domain.events import SERIES_TOGGLED
from irae_charts.domain.models import (
    MAX_TIME_DAYS,
    ChartOptions,
    IncidenceSeries,
    VisibilityState,
    coerce_incidence,
)
from irae_charts.render.colors import categorical_color
from irae_charts.render.dom import Document, Element, PointerEvent
from irae_charts.render.formatting import round_half_up
from irae_charts.render.interaction import ChartInteraction, RenderedChart
from irae_charts.render.scales import (
    TIME_TICKS,
    Y_TICK_COUNT,
    LinearScale,
    format_percent_tick,
    format_time_tick,
    incidence_y_max,
    step_area_path,
    step_line_path,
)
from irae_charts.render.tooltip import TooltipController

logger = logging.getLogger(__name__)

MARGIN = {"top": 20, "right": 20, "bottom": 50, "left": 60}

BAND_OPACITY = 0.1
FADED_OPACITY = 0.1
LEGEND_FADED_OPACITY = 0.4
POINT_RADIUS = 3


@dataclass(frozen=True)
class SeriesGeometry:
    """Pixel geometry of one in-horizon series."""

    key: str
    color: str
    n_events: int
    times: np.ndarray
    values: np.ndarray
    xs: np.ndarray
    ys: np.ndarray
    line_path: str
    band_path: str | None = None


@dataclass(frozen=True)
class IncidenceLayout:
    width: float
    height: float
    x_scale: LinearScale
    y_scale: LinearScale
    y_max: float
    y_ticks: list[float]
    series: list[SeriesGeometry] = field(default_factory=list)


def series_slug(key: str) -> str:
    return re.sub(r"\s+", "-", key)


def compute_incidence_layout(
    series: list[IncidenceSeries],
    width: float,
    height: float,
    color_map: Callable[[str], str] | None = None,
    horizon: float = MAX_TIME_DAYS,
) -> IncidenceLayout:
    """Scales and per-series geometry for a plot area of *width* x *height*."""
    y_max = incidence_y_max(series, horizon)
    x_scale = LinearScale((0, horizon), (0, width))
    y_scale = LinearScale((0, y_max), (height, 0))

    geometries: list[SeriesGeometry] = []
    for s in series:
        if s.times.size == 0:
            logger.debug("Skipping series %r without time points", s.key)
            continue
        mask = s.in_horizon(horizon)
        if not mask.any():
            logger.debug("Skipping series %r with no samples within %s days", s.key, horizon)
            continue
        times = s.times[mask]
        values = s.cumulative_incidence[mask]
        xs, ys = x_scale(times), y_scale(values)
        band = None
        if s.has_ci:
            band = step_area_path(xs, y_scale(s.ci_upper[mask]), y_scale(s.ci_lower[mask]))
        geometries.append(SeriesGeometry(
            key=s.key, color=categorical_color(s.key, color_map), n_events=s.n_events,
            times=times, values=values, xs=np.atleast_1d(xs), ys=np.atleast_1d(ys),
            line_path=step_line_path(xs, ys), band_path=band,
        ))
    return IncidenceLayout(
        width=width, height=height, x_scale=x_scale, y_scale=y_scale, y_max=y_max,
        y_ticks=y_scale.ticks(Y_TICK_COUNT), series=geometries,
    )


def _draw_axes(g: Element, layout: IncidenceLayout) -> None:
    w, h = layout.width, layout.height
    x_axis = g.append("g", {"transform": f"translate(0,{h:g})"}, cls="axis x-axis")
    for t in TIME_TICKS:
        tick = x_axis.append("g", {"transform": f"translate({layout.x_scale(t):.2f},0)"}, cls="tick")
        tick.append("line", {"y2": 6, "stroke": "currentColor"})
        tick.append("text", {"y": 9, "dy": "0.71em", "text-anchor": "middle"}, text=format_time_tick(t))
    x_axis.append("text", {"x": w / 2, "y": 40, "fill": "#333", "text-anchor": "middle"},
                  text="Time from Treatment Start")

    y_axis = g.append("g", cls="axis y-axis")
    for v in layout.y_ticks:
        tick = y_axis.append("g", {"transform": f"translate(0,{layout.y_scale(v):.2f})"}, cls="tick")
        tick.append("line", {"x2": -6, "stroke": "currentColor"})
        tick.append("text", {"x": -9, "dy": "0.32em", "text-anchor": "end"}, text=format_percent_tick(v))
    y_axis.append("text", {"transform": "rotate(-90)", "x": -h / 2, "y": -45, "fill": "#333",
                           "text-anchor": "middle"}, text="Cumulative Incidence")

    grid = g.append("g", {"opacity": 0.1}, cls="grid")
    for v in layout.y_ticks:
        y = layout.y_scale(v)
        grid.append("line", {"x1": 0, "x2": w, "y1": y, "y2": y, "stroke": "currentColor"})


def _point_tooltip(key: str, time: float, value: float) -> str:
    return (
        f'<div class="label">{html.escape(key)}</div>'
        f'<div class="value">Time: {round_half_up(time)} days</div>'
        f'<div class="value">Incidence: {value * 100:.1f}%</div>'
    )


def render_cumulative_incidence(
    document: Document,
    container_selector: str,
    data: Mapping[str, Any],
    options: Mapping[str, Any] | ChartOptions | None = None,
    *,
    tooltip: TooltipController | None = None,
) -> RenderedChart:
    """Render cumulative incidence curves into *container_selector*.

    Parameters
    ----------
    data:
        Mapping of category key -> :class:`IncidenceSeries` (or the
        equivalent dict with ``times``, ``cumulative_incidence``,
        ``ci_lower``, ``ci_upper`` and ``n_events``).
    options:
        ``width``, ``height`` and ``colorMap``.

    Returns
    -------
    RenderedChart
        ``state`` is the chart's :class:`VisibilityState`; ``elements``
        maps ``"series"`` to the per-key curve, band, points and legend row.
    """
    opts = ChartOptions.resolve("incidence", options)
    tip = tooltip or document.tooltip
    container = document.select(container_selector)
    container.clear()

    series = coerce_incidence(data)
    width = opts.width - MARGIN["left"] - MARGIN["right"]
    height = opts.height - MARGIN["top"] - MARGIN["bottom"]
    layout = compute_incidence_layout(series, width, height, opts.color_map)

    wrapper = container.append("div", style={"display": "flex", "align-items": "flex-start", "gap": "20px"})
    chart_div = wrapper.append("div")
    svg = chart_div.append("svg", {"width": opts.width, "height": opts.height}, cls="chart-svg")
    g = svg.append("g", {"transform": f"translate({MARGIN['left']},{MARGIN['top']})"})
    _draw_axes(g, layout)

    interaction = ChartInteraction("incidence")
    visibility = VisibilityState({s.key: True for s in series})
    handles: dict[str, dict[str, Any]] = {}

    for geom in layout.series:
        slug = series_slug(geom.key)
        band = None
        if geom.band_path is not None:
            band = g.append("path", {"fill": geom.color, "opacity": BAND_OPACITY, "d": geom.band_path},
                            cls=f"ci-area ci-area-{slug}")
        curve = g.append("path", {"fill": "none", "stroke": geom.color, "stroke-width": 2,
                                  "d": geom.line_path}, cls=f"curve curve-{slug}")
        points = []
        for t, v, x, y in zip(geom.times, geom.values, geom.xs, geom.ys):
            point = g.append("circle", {"cx": float(x), "cy": float(y), "r": POINT_RADIUS,
                                        "fill": geom.color, "opacity": 0}, cls=f"point point-{slug}")
            content = _point_tooltip(geom.key, float(t), float(v))

            def _enter(event: PointerEvent, point: Element = point, content: str = content) -> None:
                point.set_attr("opacity", 1)
                tip.show(content, event)

            def _leave(event: PointerEvent, point: Element = point) -> None:
                point.set_attr("opacity", 0)
                tip.hide()

            interaction.hover(point, _enter, _leave, {"series": geom.key, "time": float(t)})
            points.append(point)
        handles[geom.key] = {"curve": curve, "band": band, "points": points}

    legend = wrapper.append("div", cls="legend-right", style={"font-size": "11px", "max-width": "200px"})
    for geom in layout.series:
        item = legend.append("div", cls="legend-item", style={
            "cursor": "pointer", "margin-bottom": "4px", "display": "flex", "align-items": "center"})
        item.append("div", style={"width": "14px", "height": "3px", "background-color": geom.color,
                                  "margin-right": "6px", "flex-shrink": "0"})
        item.append("span", style={"line-height": "1.2"}, text=f"{geom.key} (n={geom.n_events})")
        handles[geom.key]["legend"] = item

        def _toggle(event: PointerEvent, key: str = geom.key) -> None:
            shown = visibility.toggle(key)
            _apply_visibility(handles[key], shown)
            interaction.events.publish(SERIES_TOGGLED, {"chart": "incidence", "key": key, "shown": shown})

        interaction.click(item, _toggle, {"series": geom.key})

    logger.debug("Rendered %d of %d incidence series (y max %.3f)", len(layout.series), len(series), layout.y_max)
    return RenderedChart(root=wrapper, interaction=interaction, state=visibility,
                         layout=layout, elements={"series": handles})


def _apply_visibility(handle: dict[str, Any], shown: bool) -> None:
    handle["legend"].set_style("opacity", 1 if shown else LEGEND_FADED_OPACITY)
    handle["curve"].set_attr("opacity", 1 if shown else FADED_OPACITY)
    if handle["band"] is not None:
        handle["band"].set_attr("opacity", BAND_OPACITY if shown else 0)
    for point in handle["points"]:
        point.set_style("display", None if shown else "none")
