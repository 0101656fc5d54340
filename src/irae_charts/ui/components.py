"""Plotly/pandas renditions of the irAE charts for notebooks and the demo UI.

These figures reuse the core encodings (horizon truncation, step-after
curves, the fixed y-domain, significance masking) so a chart looks the same
whether it is drawn by the visual-tree renderers or by plotly.
"""
from __future__ import annotations

import html
import logging
from typing import Any, Callable, Iterable, Mapping

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from irae_charts.domain.models import (
    MAX_TIME_DAYS,
    AssociationRow,
    FlowGraph,
    HazardCell,
    HRRow,
    coerce_incidence,
    coerce_matrix,
)
from irae_charts.render.colors import (
    DIAGONAL_COLOR,
    MISSING_COLOR,
    NS_COLOR,
    DivergingScale,
    categorical_color,
    heatmap_text_color,
    is_heatmap_significant,
    state_color,
)
from irae_charts.render.formatting import PLACEHOLDER, format_ci, format_p_value, truncate_label
from irae_charts.render.heatmap import cell_tooltip_lines
from irae_charts.render.scales import TIME_TICKS, format_time_tick, incidence_y_max
from irae_charts.render.tables import BIDIRECTIONAL_HEADERS, UNIDIRECTIONAL_HEADERS

logger = logging.getLogger(__name__)

# -- Theme constants --
_TEXT = "#333"
_GRID = "rgba(0,0,0,0.1)"

_LIGHT_LAYOUT = dict(
    template="plotly_white", paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="#ffffff",
    font=dict(color=_TEXT, family="Inter, system-ui, sans-serif", size=12),
    xaxis=dict(gridcolor=_GRID, zeroline=False),
    yaxis=dict(gridcolor=_GRID, zeroline=False),
    margin=dict(l=60, r=20, t=40, b=50),
    hoverlabel=dict(bgcolor="#ffffff", font_color=_TEXT, font_size=12),
)


def _hex_rgb(h: str) -> str:
    h = h.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    return f"{int(h[:2],16)},{int(h[2:4],16)},{int(h[4:6],16)}" if len(h) == 6 else "128,128,128"


def _empty_figure(message: str, height: int = 320) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, xref="paper", yref="paper", x=0.5, y=0.5,
                       showarrow=False, font=dict(color=_TEXT, size=14))
    fig.update_layout(**_LIGHT_LAYOUT, height=height,
                      xaxis_visible=False, yaxis_visible=False)
    return fig


# =========================================================================
# 1. CUMULATIVE INCIDENCE
# =========================================================================

def create_incidence_figure(
    data: Mapping[str, Any], color_map: Callable[[str], str] | None = None,
    width: int = 700, height: int = 400,
) -> go.Figure:
    """Step curves with CI bands; legend clicks toggle a category's traces."""
    series = coerce_incidence(data)
    y_max = incidence_y_max(series)
    fig = go.Figure()
    for s in series:
        mask = s.in_horizon()
        if s.times.size == 0 or not mask.any():
            continue
        t, v = s.times[mask], s.cumulative_incidence[mask]
        c = categorical_color(s.key, color_map)
        if s.has_ci:
            fig.add_trace(go.Scatter(
                x=t, y=s.ci_lower[mask], mode="lines", line=dict(width=0, shape="hv"),
                legendgroup=s.key, showlegend=False, hoverinfo="skip"))
            fig.add_trace(go.Scatter(
                x=t, y=s.ci_upper[mask], mode="lines", line=dict(width=0, shape="hv"),
                fill="tonexty", fillcolor=f"rgba({_hex_rgb(c)},0.1)",
                legendgroup=s.key, showlegend=False, hoverinfo="skip"))
        fig.add_trace(go.Scatter(
            x=t, y=v, mode="lines+markers", name=f"{s.key} (n={s.n_events})",
            legendgroup=s.key, line=dict(color=c, width=2, shape="hv"),
            marker=dict(size=5, color=c, opacity=0),
            hovertemplate=f"{s.key}<br>Time: %{{x:.0f}} days<br>Incidence: %{{y:.1%}}<extra></extra>"))
    fig.update_layout(
        **{k: v for k, v in _LIGHT_LAYOUT.items() if k not in ("xaxis", "yaxis")},
        width=width, height=height, legend=dict(font=dict(size=11), groupclick="togglegroup"),
        xaxis=dict(title="Time from Treatment Start", range=[0, MAX_TIME_DAYS],
                   tickvals=list(TIME_TICKS), ticktext=[format_time_tick(t) for t in TIME_TICKS],
                   gridcolor=_GRID, zeroline=False),
        yaxis=dict(title="Cumulative Incidence", range=[0, y_max], tickformat=".0%",
                   nticks=6, gridcolor=_GRID, zeroline=False))
    return fig


# =========================================================================
# 2. STATE-TRANSITION FLOW
# =========================================================================

def create_sankey_figure(data: FlowGraph | Mapping[str, Any] | None, width: int = 900,
                         height: int = 500) -> go.Figure:
    """Flow diagram with links colored by their source state."""
    graph = data if isinstance(data, FlowGraph) else FlowGraph.from_dict(data)
    if not graph.nodes or not graph.links:
        return _empty_figure("Insufficient data for Sankey diagram", height)
    n = len(graph.nodes)
    links = [l for l in graph.links if 0 <= l.source < n and 0 <= l.target < n]
    names = [node.name for node in graph.nodes]
    fig = go.Figure(go.Sankey(
        arrangement="snap",
        node=dict(label=[truncate_label(nm) for nm in names], pad=10, thickness=15,
                  color=[state_color(nm) for nm in names], customdata=names,
                  hovertemplate="%{customdata}<br>Patients: %{value}<extra></extra>"),
        link=dict(source=[l.source for l in links], target=[l.target for l in links],
                  value=[l.value for l in links],
                  color=[f"rgba({_hex_rgb(state_color(names[l.source]))},0.4)" for l in links],
                  hovertemplate="%{source.customdata} → %{target.customdata}"
                                "<br>Patients: %{value}<extra></extra>"),
    ))
    fig.update_layout(**{k: v for k, v in _LIGHT_LAYOUT.items() if k not in ("xaxis", "yaxis")},
                      width=width, height=height, font_size=10)
    return fig


# =========================================================================
# 3. HAZARD-RATIO HEATMAP
# =========================================================================

def create_hr_heatmap_figure(data: Mapping[str, Mapping[str, Any]] | None,
                             cell_size: int = 50, label_width: int = 150) -> go.Figure:
    """Significance-masked heatmap: neutral layers under a diverging layer."""
    matrix = coerce_matrix(data)
    rows = list(matrix)
    if not rows:
        return _empty_figure("Insufficient data for heatmap")
    cols = list(matrix[rows[0]])
    scale = DivergingScale()

    shape = (len(rows), len(cols))
    neutral = np.full(shape, np.nan)   # 0 diagonal, 1 missing, 2 non-significant
    signif = np.full(shape, np.nan)
    hover_mask = np.full(shape, np.nan)
    hover = np.full(shape, "", dtype=object)
    labels: list[tuple[str, str, str, str]] = []  # (col, row, text, color)
    for i, r in enumerate(rows):
        for j, c in enumerate(cols):
            cell = matrix[r].get(c) or HazardCell()
            if cell.diagonal:
                neutral[i, j] = 0
                labels.append((c, r, "-", "#999"))
                continue
            if cell.hr is None:
                neutral[i, j] = 1
                continue
            hover_mask[i, j] = 0
            hover[i, j] = "<br>".join(html.escape(s) for s in cell_tooltip_lines(r, c, cell))
            if is_heatmap_significant(cell.p_value):
                signif[i, j] = scale.position(cell.hr)
            else:
                neutral[i, j] = 2
            labels.append((c, r, f"{cell.hr:.1f}", heatmap_text_color(cell)))

    fig = go.Figure()
    fig.add_trace(go.Heatmap(
        z=neutral, x=cols, y=rows, zmin=0, zmax=2, showscale=False, hoverinfo="skip",
        colorscale=[[0, DIAGONAL_COLOR], [0.5, MISSING_COLOR], [1, NS_COLOR]], xgap=1, ygap=1))
    fig.add_trace(go.Heatmap(
        z=signif, x=cols, y=rows, zmin=0, zmax=1, colorscale=scale.colorscale,
        xgap=1, ygap=1, hoverongaps=False, hoverinfo="skip",
        colorbar=dict(title="HR", tickvals=[0, 0.5, 1], ticktext=["0.25", "1.0", "4.0+"])))
    # Transparent layer carrying the tooltip of every non-diagonal cell with an HR
    fig.add_trace(go.Heatmap(
        z=hover_mask, x=cols, y=rows, text=hover, hoverinfo="text", hoverongaps=False,
        colorscale=[[0, "rgba(0,0,0,0)"], [1, "rgba(0,0,0,0)"]], showscale=False,
        xgap=1, ygap=1))
    text_x, text_y, text, text_color = (list(v) for v in zip(*labels)) if labels else ([], [], [], [])
    fig.add_trace(go.Scatter(
        x=text_x, y=text_y, mode="text", text=text, textfont=dict(size=10, color=text_color),
        hoverinfo="skip", showlegend=False))
    fig.update_layout(
        **{k: v for k, v in _LIGHT_LAYOUT.items() if k not in ("xaxis", "yaxis", "margin")},
        width=label_width + len(cols) * cell_size + 120,
        height=label_width + len(rows) * cell_size + 20,
        margin=dict(l=label_width, r=20, t=label_width, b=20),
        xaxis=dict(side="top", tickangle=-45, tickvals=cols,
                   ticktext=[truncate_label(c) for c in cols], showgrid=False),
        yaxis=dict(autorange="reversed", tickvals=rows,
                   ticktext=[truncate_label(r) for r in rows], showgrid=False))
    return fig


# =========================================================================
# DATA TABLES
# =========================================================================

def _estimate_cols(est) -> list[str]:
    if est is None:
        return [PLACEHOLDER] * 3
    p = PLACEHOLDER if est.p_value is None else format_p_value(est.p_value)
    return [f"{est.hr:.2f}", format_ci(est.ci_lower, est.ci_upper), p]


def format_hr_table(rows: Iterable[HRRow | Mapping[str, Any]] | None) -> pd.DataFrame:
    """HR rows as a display DataFrame with the same text as the HTML table."""
    parsed = [r if isinstance(r, HRRow) else HRRow.from_dict(r) for r in (rows or [])]
    if not parsed:
        return pd.DataFrame(columns=UNIDIRECTIONAL_HEADERS)
    bidirectional = parsed[0].bidirectional
    hdrs = BIDIRECTIONAL_HEADERS if bidirectional else UNIDIRECTIONAL_HEADERS
    data = [
        [r.comparison_category] + _estimate_cols(r.forward)
        + (_estimate_cols(r.reverse) if bidirectional else [])
        for r in parsed]
    # Duplicate "95% CI"/"p-value" titles in the bidirectional layout
    return pd.DataFrame(data, columns=pd.Index(hdrs, tupleize_cols=False))


def format_association_table(rows: Iterable[AssociationRow | Mapping[str, Any]] | None,
                             name_column: str = "Name") -> pd.DataFrame:
    parsed = [r if isinstance(r, AssociationRow) else AssociationRow.from_dict(r) for r in (rows or [])]
    hdrs = [name_column, "HR", "95% CI", "p-value"]
    return pd.DataFrame([[r.name] + _estimate_cols(r.estimate) for r in parsed], columns=hdrs)
