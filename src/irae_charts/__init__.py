"""Interactive charts for immune-related adverse-event trajectories.

Renders cumulative incidence curves, a state-transition flow diagram, a
hazard-ratio significance heatmap and sortable hazard-ratio tables from an
already-computed statistical payload.

Quick usage::

    import irae_charts

    doc = irae_charts.Document()
    doc.create_mount("ci")
    irae_charts.render_cumulative_incidence(doc, "#ci", curves)
"""

from __future__ import annotations

from irae_charts.render import (
    Document,
    PointerEvent,
    init_sortable_table,
    render_association_table,
    render_cumulative_incidence,
    render_hr_heatmap,
    render_hr_table,
    render_sankey,
)
from irae_charts.render.colors import CATEGORY_COLORS, SEVERITY_COLORS, STATE_COLORS

__version__ = "0.1.0"

__all__ = [
    "CATEGORY_COLORS",
    "SEVERITY_COLORS",
    "STATE_COLORS",
    "Document",
    "PointerEvent",
    "init_sortable_table",
    "render_association_table",
    "render_cumulative_incidence",
    "render_hr_heatmap",
    "render_hr_table",
    "render_sankey",
]
