"""Hazard-ratio heatmap with significance masking.

Cells are colored on a diverging scale centered at HR = 1 only when the
comparison is significant (``p <= 0.05``); everything else is drawn in a
fixed neutral.  Diagonal (self-comparison) cells carry a ``-`` glyph and
no hover behaviour.
"""

from __future__ import annotations

import html
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from irae_charts.domain.models import ChartOptions, HazardCell, coerce_matrix
from irae_charts.render.colors import (
    HR_DOMAIN,
    NS_COLOR,
    DivergingScale,
    heatmap_fill,
    heatmap_text_color,
    is_heatmap_significant,
)
from irae_charts.render.dom import Document, Element
from irae_charts.render.formatting import format_p_value, truncate_label
from irae_charts.render.interaction import ChartInteraction, RenderedChart, placeholder
from irae_charts.render.tooltip import TooltipController

logger = logging.getLogger(__name__)

NO_DATA = "Insufficient data for heatmap"
DIAGONAL_GLYPH = "-"
LEGEND_WIDTH = 200
LEGEND_HEIGHT = 15


@dataclass(frozen=True)
class CellStyle:
    """Resolved presentation of one cell."""

    fill: str
    label: str | None
    text_color: str | None
    interactive: bool


def cell_style(cell: HazardCell, scale: DivergingScale | None = None) -> CellStyle:
    fill = heatmap_fill(cell, scale)
    if cell.diagonal:
        return CellStyle(fill=fill, label=DIAGONAL_GLYPH, text_color="#999", interactive=False)
    if cell.hr is None:
        return CellStyle(fill=fill, label=None, text_color=None, interactive=False)
    return CellStyle(fill=fill, label=f"{cell.hr:.1f}", text_color=heatmap_text_color(cell),
                     interactive=True)


def cell_tooltip_lines(row: str, col: str, cell: HazardCell) -> list[str]:
    """Plain-text tooltip lines for a cell with a defined HR, label first."""
    lines = [f"{row} → {col}", f"HR: {cell.hr:.2f}"]
    if cell.ci_lower is not None and cell.ci_upper is not None:
        lines.append(f"95% CI: {cell.ci_lower:.2f} - {cell.ci_upper:.2f}")
    if cell.p_value is not None:
        ns = "" if is_heatmap_significant(cell.p_value) else " (n.s.)"
        lines.append(f"p-value: {format_p_value(cell.p_value)}{ns}")
    return lines


def cell_tooltip(row: str, col: str, cell: HazardCell) -> str:
    label, *values = cell_tooltip_lines(row, col, cell)
    return f'<div class="label">{html.escape(label)}</div>' + "".join(
        f'<div class="value">{html.escape(v)}</div>' for v in values)


def render_hr_heatmap(
    document: Document,
    container_selector: str,
    data: Mapping[str, Mapping[str, Any]] | None,
    options: Mapping[str, Any] | ChartOptions | None = None,
    *,
    tooltip: TooltipController | None = None,
) -> RenderedChart:
    """Render a row x column hazard-ratio matrix into *container_selector*.

    Columns are taken from the first row.  ``elements["cells"]`` maps
    ``(row, col)`` to the cell rectangle.
    """
    opts = ChartOptions.resolve("heatmap", options)
    tip = tooltip or document.tooltip
    container = document.select(container_selector)
    container.clear()

    matrix = coerce_matrix(data)
    rows = list(matrix)
    if not rows:
        return placeholder(container, "heatmap", NO_DATA)

    cols = list(matrix[rows[0]])
    size = opts.cell_size
    margin = {"top": opts.label_width, "right": 20, "bottom": 20, "left": opts.label_width}
    width, height = len(cols) * size, len(rows) * size
    scale = DivergingScale()
    interaction = ChartInteraction("heatmap")

    svg = container.append("svg", {"width": width + margin["left"] + margin["right"],
                                   "height": height + margin["top"] + margin["bottom"]})
    g = svg.append("g", {"transform": f"translate({margin['left']},{margin['top']})"})

    cells: dict[tuple[str, str], Element] = {}
    for i, row in enumerate(rows):
        for j, col in enumerate(cols):
            cell = matrix[row].get(col) or HazardCell()
            style = cell_style(cell, scale)
            rect = g.append("rect", {"x": j * size, "y": i * size, "width": size - 1,
                                     "height": size - 1, "fill": style.fill}, cls="heatmap-cell")
            cells[(row, col)] = rect
            if style.interactive:
                content = cell_tooltip(row, col, cell)
                interaction.hover(rect, lambda event, content=content: tip.show(content, event),
                                  lambda event: tip.hide(), {"row": row, "col": col})
            if style.label is not None:
                g.append("text", {"x": j * size + size / 2, "y": i * size + size / 2, "dy": "0.35em",
                                  "text-anchor": "middle", "fill": style.text_color},
                         cls="heatmap-value", text=style.label, style={"font-size": "10px"})

    for i, row in enumerate(rows):
        g.append("text", {"x": -5, "y": i * size + size / 2, "dy": "0.35em", "text-anchor": "end"},
                 cls="heatmap-label row-label", text=truncate_label(row))
    for j, col in enumerate(cols):
        x = j * size + size / 2
        g.append("text", {"x": x, "y": -5, "transform": f"rotate(-45, {x:g}, -5)", "text-anchor": "start"},
                 cls="heatmap-label col-label", text=truncate_label(col))

    legend = _render_legend(container, scale)
    logger.debug("Rendered %dx%d heatmap", len(rows), len(cols))
    return RenderedChart(root=svg, interaction=interaction,
                         elements={"cells": cells, "legend": legend})


def _render_legend(container: Element, scale: DivergingScale) -> Element:
    gradient_id = f"hr-gradient-{uuid.uuid4().hex[:9]}"
    wrapper = container.append("div", cls="heatmap-legend", style={
        "margin-top": "10px", "display": "flex", "align-items": "center", "gap": "20px"})

    svg = wrapper.append("svg", {"width": LEGEND_WIDTH + 100, "height": 40})
    gradient = svg.append("defs").append("linearGradient", {"id": gradient_id})
    for offset, color in scale.stops():
        gradient.append("stop", {"offset": offset, "stop-color": color})
    svg.append("rect", {"x": 30, "y": 5, "width": LEGEND_WIDTH, "height": LEGEND_HEIGHT},
               style={"fill": f"url(#{gradient_id})"})

    lo, mid, hi = HR_DOMAIN
    ticks = ((30, "start", f"{lo:g}"), (30 + LEGEND_WIDTH / 2, "middle", f"{mid:.1f}"),
             (30 + LEGEND_WIDTH, "end", f"{hi:.1f}+"))
    for x, anchor, label in ticks:
        svg.append("text", {"x": x, "y": 32, "text-anchor": anchor}, cls="legend-tick",
                   text=label, style={"font-size": "10px"})
    svg.append("text", {"x": 30 + LEGEND_WIDTH + 10, "y": 15}, text="HR", style={"font-size": "10px"})

    ns = wrapper.append("div", cls="ns-legend", style={
        "display": "flex", "align-items": "center", "gap": "5px", "font-size": "12px"})
    ns.append("div", style={"width": "20px", "height": "15px", "background-color": NS_COLOR,
                            "border": "1px solid #ccc"})
    ns.append("span", text="p > 0.05")
    return wrapper
