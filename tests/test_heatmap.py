"""Tests for the hazard-ratio heatmap."""

from __future__ import annotations

import pytest

from irae_charts.render.colors import DIAGONAL_COLOR, MISSING_COLOR, NS_COLOR, DivergingScale
from irae_charts.render.heatmap import NO_DATA, render_hr_heatmap


@pytest.fixture()
def chart(document, hr_matrix):
    return render_hr_heatmap(document, "#chart", hr_matrix)


def _label_at(chart, row_index, col_index, size=50):
    x, y = col_index * size + size / 2, row_index * size + size / 2
    for text in chart.root.find_all("text", cls="heatmap-value"):
        if text.attr("x") == x and text.attr("y") == y:
            return text
    return None


class TestCells:
    """Significance masking and cell kinds."""

    def test_grid_size(self, chart):
        assert len(chart.elements["cells"]) == 9
        assert chart.root.attr("width") == 3 * 50 + 150 + 20
        assert chart.root.attr("height") == 3 * 50 + 150 + 20

    def test_diagonal(self, chart):
        rect = chart.elements["cells"][("A", "A")]
        assert rect.attr("fill") == DIAGONAL_COLOR
        assert rect.handlers("mouseover") == []
        assert _label_at(chart, 0, 0).text == "-"

    def test_significant_cell_colored(self, chart):
        rect = chart.elements["cells"][("A", "B")]
        assert rect.attr("fill") == DivergingScale()(2.5)
        label = _label_at(chart, 0, 1)
        assert label.text == "2.5"
        assert label.attr("fill") == "white"

    def test_boundary_p_value_is_significant(self, chart):
        assert chart.elements["cells"][("B", "A")].attr("fill") == DivergingScale()(0.5)

    def test_non_significant_masked(self, chart):
        rect = chart.elements["cells"][("A", "C")]
        assert rect.attr("fill") == NS_COLOR
        assert _label_at(chart, 0, 2).attr("fill") == "#666"

    def test_missing_hr(self, chart):
        rect = chart.elements["cells"][("B", "C")]
        assert rect.attr("fill") == MISSING_COLOR
        assert rect.handlers("mouseover") == []
        assert _label_at(chart, 1, 2) is None

    def test_axis_labels(self, document):
        long_name = "Respiratory, thoracic and mediastinal disorders"
        matrix = {long_name: {long_name: {"diagonal": True}}}
        chart = render_hr_heatmap(document, "#chart", matrix)
        row = chart.root.find("text", cls="row-label")
        col = chart.root.find("text", cls="col-label")
        assert row.text == col.text == "Respiratory, thora..."
        assert col.attr("transform").startswith("rotate(-45")

    def test_cell_size_option(self, document, hr_matrix):
        chart = render_hr_heatmap(document, "#chart", hr_matrix, {"cellSize": 20, "labelWidth": 100})
        assert chart.elements["cells"][("A", "B")].attr("x") == 20
        assert chart.root.attr("width") == 3 * 20 + 100 + 20


class TestTooltip:

    def test_significant_tooltip(self, document, chart):
        chart.elements["cells"][("A", "B")].dispatch("mouseover", 5, 5)
        content = document.tooltip.content
        assert "A → B" in content
        assert "HR: 2.50" in content
        assert "95% CI: 1.40 - 4.10" in content
        assert "p-value: 0.010</div>" in content

    def test_non_significant_tooltip(self, document, chart):
        chart.elements["cells"][("A", "C")].dispatch("mouseover")
        assert "(n.s.)" in document.tooltip.content

    def test_tooltip_without_ci(self, document, chart):
        chart.elements["cells"][("C", "A")].dispatch("mouseover")
        assert "95% CI" not in document.tooltip.content

    def test_mouseout_hides(self, document, chart):
        rect = chart.elements["cells"][("A", "B")]
        rect.dispatch("mouseover")
        rect.dispatch("mouseout")
        assert not document.tooltip.visible


class TestLegendAndEmpty:

    def test_legend(self, chart):
        legend = chart.elements["legend"]
        ticks = [t.text for t in legend.find_all("text", cls="legend-tick")]
        assert ticks == ["0.25", "1.0", "4.0+"]
        assert len(legend.find_all("stop")) == 3
        assert legend.find("span").text == "p > 0.05"

    def test_gradient_ids_unique(self, document, hr_matrix):
        document.create_mount("other")
        a = render_hr_heatmap(document, "#chart", hr_matrix).elements["legend"]
        b = render_hr_heatmap(document, "#other", hr_matrix).elements["legend"]
        assert a.find("linearGradient").attr("id") != b.find("linearGradient").attr("id")

    @pytest.mark.parametrize("data", [None, {}])
    def test_placeholder(self, document, data):
        chart = render_hr_heatmap(document, "#chart", data)
        assert chart.placeholder
        assert document.select("#chart").find("div", cls="no-data").text == NO_DATA
