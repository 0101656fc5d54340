"""Click-to-sort behaviour attachable to any rendered table."""

from __future__ import annotations

import functools
import locale
import logging
import re

from irae_charts.domain.events import TABLE_SORTED
from irae_charts.domain.models import SortDirection, SortState
from irae_charts.render.dom import Document, Element
from irae_charts.render.interaction import ChartInteraction

logger = logging.getLogger(__name__)

SORTED_ASC = "sorted-asc"
SORTED_DESC = "sorted-desc"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"[-+]?(\d+\.?\d*|\.\d+)")


def parse_number(text: str) -> float | None:
    """Leading number of *text* once everything but digits, ``.`` and ``-`` is dropped.

    ``"<0.001"`` parses as ``0.001`` and ``"0.80 - 1.20"`` as ``0.8``; a
    lone ``"-"`` placeholder does not parse.
    """
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", text))
    return float(match.group(0)) if match else None


def compare_cells(a: str, b: str) -> int:
    """Numeric comparison when both texts parse, locale collation otherwise.

    Collation follows the process ``LC_COLLATE`` category, which the CLI
    takes from the environment; under the default C locale it is by code
    point.
    """
    an, bn = parse_number(a), parse_number(b)
    if an is not None and bn is not None:
        return (an > bn) - (an < bn)
    return locale.strcoll(a, b)


def cell_text(row: Element, column: int) -> str:
    cells = [c for c in row.children if c.tag in ("td", "th")]
    return cells[column].text_content.strip() if column < len(cells) else ""


class TableSorter:
    """Sort state and header wiring of one table.

    Clicking a header sorts the body rows by that column's displayed text:
    ascending first, flipping on each re-click of the same header.  Rows are
    moved within the ``tbody``; the underlying data is untouched.
    """

    def __init__(self, table: Element, interaction: ChartInteraction | None = None) -> None:
        self.table = table
        self.headers = table.find_all("th")
        self.tbody = table.find("tbody")
        self.state = SortState()
        self.interaction = interaction or ChartInteraction(f"table:{table.attr('id', '')}")
        for index, header in enumerate(self.headers):
            self.interaction.click(
                header, lambda event, index=index: self.sort_by(index), {"column": index})

    @property
    def rows(self) -> list[Element]:
        if self.tbody is None:
            return []
        return [r for r in self.tbody.children if r.tag == "tr"]

    def sort_by(self, column: int) -> SortState:
        """Apply a header click on *column* and return the new state."""
        self.state = self.state.next_for(column)
        descending = self.state.direction is SortDirection.DESCENDING
        key = functools.cmp_to_key(compare_cells)
        rows = sorted(self.rows, key=lambda r: key(cell_text(r, column)))
        if descending:
            rows.reverse()

        for header in self.headers:
            header.remove_class(SORTED_ASC, SORTED_DESC)
        self.headers[column].add_class(SORTED_DESC if descending else SORTED_ASC)

        if self.tbody is not None:
            for row in rows:
                self.tbody.append_child(row)
        self.interaction.events.publish(TABLE_SORTED, {
            "table": self.table.attr("id"), "column": column,
            "direction": self.state.direction.value,
        })
        return self.state


def init_sortable_table(document: Document, table_id: str) -> TableSorter | None:
    """Attach sorting to the table with id *table_id*; ``None`` if absent."""
    table = document.get_element_by_id(table_id)
    if table is None:
        logger.debug("No table with id %r to make sortable", table_id)
        return None
    return TableSorter(table)
