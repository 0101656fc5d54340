"""Callback helpers for the irAE chart demo.

Kept free of Gradio imports so the dashboard logic can be exercised
without a UI server.
"""
from __future__ import annotations

import logging
from typing import Any

from irae_charts.render import (
    Document,
    render_association_table,
    render_cumulative_incidence,
    render_hr_heatmap,
    render_hr_table,
    render_sankey,
)
from irae_charts.ui.components import (
    create_hr_heatmap_figure, create_incidence_figure,
    create_sankey_figure, format_association_table, format_hr_table,
)

logger = logging.getLogger(__name__)

_MOUNTS = ("incidence", "flow", "heatmap", "hr-table-mount", "associations")


def render_snapshot(payload: dict[str, Any]) -> str:
    """Render every chart into one document and return its markup."""
    doc = Document()
    for mount in _MOUNTS:
        doc.create_mount(mount)
    render_cumulative_incidence(doc, "#incidence", payload.get("cumulative_incidence"))
    render_sankey(doc, "#flow", payload.get("sankey"))
    render_hr_heatmap(doc, "#heatmap", payload.get("hr_matrix"))
    render_hr_table(doc, "#hr-table-mount", payload.get("hr_table"))
    render_association_table(doc, "#associations", payload.get("associations"),
                             {"nameColumn": "Risk Factor"})
    return doc.to_html()


def load_dashboard(seed: int | float | None):
    """Generate a demo payload and build every dashboard output.

    Returns ``(incidence_fig, sankey_fig, heatmap_fig, hr_df, assoc_df, html)``.
    """
    from irae_charts.data.synthetic import generate_demo_payload

    seed = 42 if seed is None else int(seed)
    payload = generate_demo_payload(seed)
    logger.info("Building dashboard for seed %d", seed)
    return (
        create_incidence_figure(payload["cumulative_incidence"]),
        create_sankey_figure(payload["sankey"]),
        create_hr_heatmap_figure(payload["hr_matrix"]),
        format_hr_table(payload["hr_table"]),
        format_association_table(payload["associations"], name_column="Risk Factor"),
        render_snapshot(payload),
    )
