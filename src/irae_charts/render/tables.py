"""Sortable hazard-ratio tables.

Unlike the heatmap, tables flag a p-value as significant only when it is
strictly below 0.05.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping

from irae_charts.domain.models import (
    AssociationRow,
    ChartOptions,
    HazardEstimate,
    HRRow,
)
from irae_charts.render.dom import Document, Element
from irae_charts.render.formatting import PLACEHOLDER, format_ci, format_p_value
from irae_charts.render.interaction import RenderedChart, placeholder
from irae_charts.render.sorting import TableSorter

logger = logging.getLogger(__name__)

HR_HIGH = 1.5
HR_LOW = 0.67
TABLE_ALPHA = 0.05

HR_NO_DATA = "Insufficient data for HR table"
ASSOC_NO_DATA = "No significant associations found"

UNIDIRECTIONAL_HEADERS = ["Comparison Category", "HR", "95% CI", "p-value"]
BIDIRECTIONAL_HEADERS = [
    "Category", "HR (Other→This)", "95% CI", "p-value",
    "HR (This→Other)", "95% CI", "p-value",
]


def hr_flag(hr: float) -> str | None:
    if hr > HR_HIGH:
        return "hr-high"
    if hr < HR_LOW:
        return "hr-low"
    return None


def is_table_significant(p_value: float | None) -> bool:
    return p_value is not None and p_value < TABLE_ALPHA


def _estimate_cells(tr: Element, estimate: HazardEstimate | None) -> None:
    if estimate is None:
        for _ in range(3):
            tr.append("td", cls="numeric", text=PLACEHOLDER)
        return
    hr_cell = tr.append("td", cls="numeric", text=f"{estimate.hr:.2f}")
    flag = hr_flag(estimate.hr)
    if flag:
        hr_cell.add_class(flag)
    tr.append("td", cls="numeric", text=format_ci(estimate.ci_lower, estimate.ci_upper))
    p = estimate.p_value
    p_cell = tr.append("td", cls="numeric", text=PLACEHOLDER if p is None else format_p_value(p))
    if is_table_significant(p):
        p_cell.add_class("significant")


def _table(container: Element, table_id: str, headers: Iterable[str]) -> tuple[Element, Element]:
    table = container.append("table", {"id": table_id}, cls="data-table hr-table")
    header_row = table.append("thead").append("tr")
    for title in headers:
        header_row.append("th", text=title)
    return table, table.append("tbody")


def _coerce_rows(data: Any, model) -> list:
    return [r if isinstance(r, model) else model.from_dict(r) for r in (data or [])]


def render_hr_table(
    document: Document,
    container_selector: str,
    data: Iterable[HRRow | Mapping[str, Any]] | None,
    options: Mapping[str, Any] | ChartOptions | None = None,
) -> RenderedChart:
    """Render HR rows, with a reverse-direction block when the first row has one.

    ``state`` on the returned handle is the table's :class:`TableSorter`.
    """
    opts = ChartOptions.resolve("hr_table", options)
    container = document.select(container_selector)
    container.clear()

    rows: list[HRRow] = _coerce_rows(data, HRRow)
    if not rows:
        return placeholder(container, "hr_table", HR_NO_DATA)

    bidirectional = rows[0].bidirectional
    table, tbody = _table(container, opts.table_id or "hr-table",
                          BIDIRECTIONAL_HEADERS if bidirectional else UNIDIRECTIONAL_HEADERS)
    for row in rows:
        tr = tbody.append("tr")
        tr.append("td", text=row.comparison_category)
        _estimate_cells(tr, row.forward)
        if bidirectional:
            _estimate_cells(tr, row.reverse)

    sorter = TableSorter(table)
    logger.debug("Rendered HR table %r with %d rows", table.attr("id"), len(rows))
    return RenderedChart(root=table, interaction=sorter.interaction, state=sorter)


def render_association_table(
    document: Document,
    container_selector: str,
    data: Iterable[AssociationRow | Mapping[str, Any]] | None,
    options: Mapping[str, Any] | ChartOptions | None = None,
) -> RenderedChart:
    """Render named associations; the first column header is ``nameColumn``."""
    opts = ChartOptions.resolve("association_table", options)
    container = document.select(container_selector)
    container.clear()

    rows: list[AssociationRow] = _coerce_rows(data, AssociationRow)
    if not rows:
        return placeholder(container, "association_table", ASSOC_NO_DATA)

    table_id = opts.table_id or f"assoc-table-{uuid.uuid4().hex[:9]}"
    table, tbody = _table(container, table_id, [opts.name_column or "Name", "HR", "95% CI", "p-value"])
    for row in rows:
        tr = tbody.append("tr")
        tr.append("td", text=row.name)
        _estimate_cells(tr, row.estimate)

    sorter = TableSorter(table)
    logger.debug("Rendered association table %r with %d rows", table_id, len(rows))
    return RenderedChart(root=table, interaction=sorter.interaction, state=sorter)
