"""Tests for the cumulative incidence chart."""

from __future__ import annotations

import numpy as np
import pytest

from irae_charts.domain.events import SERIES_TOGGLED
from irae_charts.domain.models import MAX_TIME_DAYS, VisibilityState
from irae_charts.render.colors import CATEGORY_COLORS
from irae_charts.render.dom import PointerEvent
from irae_charts.render.incidence import render_cumulative_incidence, series_slug
from irae_charts.render.tooltip import TooltipController

ENDO = "Endocrine disorders"
GI = "Gastrointestinal disorders"


@pytest.fixture()
def chart(document, incidence_data):
    return render_cumulative_incidence(document, "#chart", incidence_data)


class TestLayout:
    """Truncation, scales and what gets drawn."""

    def test_only_drawable_series_rendered(self, chart):
        assert [s.key for s in chart.layout.series] == [ENDO, GI]

    def test_truncated_at_horizon(self, chart):
        for geom in chart.layout.series:
            assert geom.times.max() <= MAX_TIME_DAYS
        endo = chart.layout.series[0]
        np.testing.assert_array_equal(endo.times, [30, 400])
        assert len(chart.elements["series"][ENDO]["points"]) == 2

    def test_y_domain_from_in_horizon_peak(self, chart):
        assert chart.layout.y_max == pytest.approx(0.165)
        assert chart.layout.y_scale.domain == pytest.approx((0, 0.165))

    def test_step_curve(self, chart):
        curve = chart.elements["series"][GI]["curve"]
        # Two samples: move, horizontal run, vertical rise.
        assert curve.attr("d").count("L") == 2
        assert curve.attr("stroke") == CATEGORY_COLORS[GI]

    def test_band_only_with_ci(self, chart):
        assert chart.elements["series"][ENDO]["band"].attr("opacity") == 0.1
        assert chart.elements["series"][GI]["band"] is None

    def test_axis_ticks(self, chart):
        x_labels = [t.text for t in chart.root.find("g", cls="x-axis").find_all("text")]
        assert x_labels[:4] == ["0", "1y", "2y", "3y"]
        y_labels = [t.text for t in chart.root.find("g", cls="y-axis").find_all("text")]
        assert y_labels[0] == "0%"

    def test_legend_lists_rendered_series_only(self, chart):
        items = chart.root.find_all("div", cls="legend-item")
        assert [i.text_content for i in items] == [f"{ENDO} (n=12)", f"{GI} (n=4)"]

    def test_color_map_option(self, document, incidence_data):
        chart = render_cumulative_incidence(document, "#chart", incidence_data,
                                            {"colorMap": lambda key: "#010203"})
        assert chart.elements["series"][ENDO]["curve"].attr("stroke") == "#010203"

    def test_rerender_clears_container(self, document, incidence_data):
        render_cumulative_incidence(document, "#chart", incidence_data)
        render_cumulative_incidence(document, "#chart", incidence_data)
        assert len(document.select("#chart").find_all("svg")) == 1

    def test_empty_data_draws_axes_only(self, document):
        chart = render_cumulative_incidence(document, "#chart", {})
        assert chart.layout.series == []
        assert chart.layout.y_max == pytest.approx(0.1)

    def test_missing_container_raises(self, document, incidence_data):
        with pytest.raises(KeyError):
            render_cumulative_incidence(document, "#nowhere", incidence_data)

    def test_slug(self):
        assert series_slug("Eye  disorders") == "Eye-disorders"


class TestHover:

    def test_point_tooltip(self, document, chart):
        point = chart.elements["series"][ENDO]["points"][0]
        assert point.dispatch(PointerEvent("mouseover", 30, 100))
        tip = document.tooltip
        assert tip.visible
        assert "Time: 30 days" in tip.content
        assert "Incidence: 5.0%" in tip.content
        assert point.attr("opacity") == 1
        point.dispatch("mouseout")
        assert not tip.visible
        assert point.attr("opacity") == 0

    def test_injected_tooltip(self, document, incidence_data):
        tip = TooltipController(document)
        chart = render_cumulative_incidence(document, "#chart", incidence_data, tooltip=tip)
        chart.elements["series"][GI]["points"][1].dispatch("mouseover")
        assert tip.visible
        assert "Incidence: 6.0%" in tip.content


class TestLegendToggle:
    """Hiding a series fades it without rescaling the chart."""

    def _click_legend(self, chart, key):
        chart.elements["series"][key]["legend"].dispatch("click")

    def test_toggle_off(self, chart):
        y_domain = chart.layout.y_scale.domain
        self._click_legend(chart, ENDO)
        handle = chart.elements["series"][ENDO]
        assert isinstance(chart.state, VisibilityState)
        assert not chart.state.is_shown(ENDO)
        assert handle["legend"].style["opacity"] == 0.4
        assert handle["curve"].attr("opacity") == 0.1
        assert handle["band"].attr("opacity") == 0
        assert all(p.style["display"] == "none" for p in handle["points"])
        assert chart.layout.y_scale.domain == y_domain

    def test_hidden_points_do_not_hover(self, document, chart):
        self._click_legend(chart, ENDO)
        point = chart.elements["series"][ENDO]["points"][0]
        assert point.dispatch("mouseover") is False
        assert not document.tooltip.visible

    def test_toggle_back_on(self, chart):
        self._click_legend(chart, ENDO)
        self._click_legend(chart, ENDO)
        handle = chart.elements["series"][ENDO]
        assert chart.state.is_shown(ENDO)
        assert handle["legend"].style["opacity"] == 1
        assert handle["curve"].attr("opacity") == 1
        assert handle["band"].attr("opacity") == 0.1
        assert all("display" not in p.style for p in handle["points"])

    def test_other_series_unaffected(self, chart):
        self._click_legend(chart, ENDO)
        assert chart.state.is_shown(GI)
        assert "opacity" not in chart.elements["series"][GI]["curve"].attrs

    def test_toggle_event(self, chart):
        seen = []
        chart.events.subscribe(SERIES_TOGGLED, seen.append)
        self._click_legend(chart, GI)
        assert seen[0].payload == {"chart": "incidence", "key": GI, "shown": False}
