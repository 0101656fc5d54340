"""Chart rendering and interaction engine.

Quick usage::

    from irae_charts.render import Document, render_hr_heatmap

    doc = Document()
    doc.create_mount("heatmap")
    chart = render_hr_heatmap(doc, "#heatmap", matrix)
    html = doc.to_html()
"""

from __future__ import annotations

from irae_charts.render.dom import Document, Element, PointerEvent
from irae_charts.render.heatmap import render_hr_heatmap
from irae_charts.render.incidence import render_cumulative_incidence
from irae_charts.render.interaction import ChartInteraction, InteractionState, RenderedChart
from irae_charts.render.sankey import render_sankey
from irae_charts.render.sorting import TableSorter, init_sortable_table
from irae_charts.render.tables import render_association_table, render_hr_table
from irae_charts.render.tooltip import TooltipController

__all__ = [
    "ChartInteraction",
    "Document",
    "Element",
    "InteractionState",
    "PointerEvent",
    "RenderedChart",
    "TableSorter",
    "TooltipController",
    "init_sortable_table",
    "render_association_table",
    "render_cumulative_incidence",
    "render_hr_heatmap",
    "render_hr_table",
    "render_sankey",
]
