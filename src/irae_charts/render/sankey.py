"""Flow diagram of patient state transitions over time."""

from __future__ import annotations

import html
import logging
from typing import Any, Mapping

from irae_charts.domain.models import ChartOptions, FlowGraph
from irae_charts.render.colors import state_color
from irae_charts.render.dom import Document, PointerEvent
from irae_charts.render.formatting import format_count, truncate_label
from irae_charts.render.interaction import ChartInteraction, RenderedChart, placeholder
from irae_charts.render.scales import horizontal_link_path
from irae_charts.render.sankey_layout import CircularFlowError, compute_sankey
from irae_charts.render.tooltip import TooltipController

logger = logging.getLogger(__name__)

MARGIN = {"top": 20, "right": 20, "bottom": 30, "left": 20}
NO_DATA = "Insufficient data for Sankey diagram"
DEFAULT_TIME_POINTS = (0, 90, 180, 270, 365)

LINK_REST_OPACITY = 0.4
LINK_HOVER_OPACITY = 0.7
LABEL_GAP = 6


def render_sankey(
    document: Document,
    container_selector: str,
    data: FlowGraph | Mapping[str, Any] | None,
    options: Mapping[str, Any] | ChartOptions | None = None,
    *,
    tooltip: TooltipController | None = None,
) -> RenderedChart:
    """Render the state-transition flow diagram into *container_selector*.

    An empty link set renders the "insufficient data" placeholder and no
    SVG.  ``layout`` on the returned handle is the :class:`SankeyLayout`.
    """
    opts = ChartOptions.resolve("sankey", options)
    tip = tooltip or document.tooltip
    container = document.select(container_selector)
    container.clear()

    graph = data if isinstance(data, FlowGraph) else FlowGraph.from_dict(data)
    if not graph.nodes or not graph.links:
        return placeholder(container, "sankey", NO_DATA)

    width = opts.width - MARGIN["left"] - MARGIN["right"]
    height = opts.height - MARGIN["top"] - MARGIN["bottom"]
    try:
        layout = compute_sankey(graph, width, height)
    except CircularFlowError:
        logger.warning("Flow graph with %d links is circular; not drawn", len(graph.links))
        return placeholder(container, "sankey", NO_DATA)
    if not layout.links:
        return placeholder(container, "sankey", NO_DATA)

    svg = container.append("svg", {"width": opts.width, "height": opts.height})
    g = svg.append("g", {"transform": f"translate({MARGIN['left']},{MARGIN['top']})"})
    interaction = ChartInteraction("sankey")

    link_group = g.append("g", cls="sankey-links")
    link_elements = []
    for link in layout.links:
        path = link_group.append("path", {
            "d": horizontal_link_path(link.source.x1, link.y0, link.target.x0, link.y1),
            "stroke": state_color(link.source.name),
            "stroke-width": max(1.0, link.width),
            "stroke-opacity": LINK_REST_OPACITY,
            "fill": "none",
        }, cls="sankey-link")
        content = (
            f'<div class="label">{html.escape(link.source.name)} → {html.escape(link.target.name)}</div>'
            f'<div class="value">Patients: {format_count(link.value)}</div>'
        )

        def _enter(event: PointerEvent, path=path, content=content) -> None:
            path.set_attr("stroke-opacity", LINK_HOVER_OPACITY)
            tip.show(content, event)

        def _leave(event: PointerEvent, path=path) -> None:
            path.set_attr("stroke-opacity", LINK_REST_OPACITY)
            tip.hide()

        interaction.hover(path, _enter, _leave,
                          {"source": link.source.name, "target": link.target.name})
        link_elements.append(path)

    node_group = g.append("g", cls="sankey-nodes")
    node_elements = []
    for node in layout.nodes:
        group = node_group.append("g", cls="sankey-node")
        rect = group.append("rect", {
            "x": node.x0, "y": node.y0,
            "height": max(1.0, node.y1 - node.y0),
            "width": node.x1 - node.x0,
            "fill": state_color(node.name),
        })
        content = (
            f'<div class="label">{html.escape(node.name)}</div>'
            f'<div class="value">Patients: {format_count(node.value)}</div>'
        )
        interaction.hover(rect, lambda event, content=content: tip.show(content, event),
                          lambda event: tip.hide(), {"node": node.name})
        left_half = node.x0 < width / 2
        group.append("text", {
            "x": node.x1 + LABEL_GAP if left_half else node.x0 - LABEL_GAP,
            "y": (node.y0 + node.y1) / 2,
            "dy": "0.35em",
            "text-anchor": "start" if left_half else "end",
        }, cls="sankey-node-label", text=truncate_label(node.name), style={"font-size": "10px"})
        node_elements.append(rect)

    time_points = list(graph.time_points or DEFAULT_TIME_POINTS)
    positions = layout.column_positions()
    time_group = g.append("g", cls="time-labels")
    for i, tp in enumerate(time_points):
        time_group.append("text", {
            "x": positions[i] if i < len(positions) else 0,
            "y": height + 20,
            "text-anchor": "middle",
        }, cls="time-label", text=f"{format_count(tp)} days", style={"font-size": "11px"})

    logger.debug("Rendered flow diagram: %d nodes, %d links", len(layout.nodes), len(layout.links))
    return RenderedChart(root=svg, interaction=interaction, layout=layout,
                         elements={"links": link_elements, "nodes": node_elements})
