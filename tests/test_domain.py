"""Tests for domain models, events, options and configuration."""

from __future__ import annotations

import numpy as np
import pytest
import yaml

from irae_charts.config.settings import DEFAULTS, get_config, get_typed_config
from irae_charts.domain.events import ANY_EVENT, Event, EventBus
from irae_charts.domain.models import (
    AppConfig,
    AssociationRow,
    ChartOptions,
    FlowGraph,
    HazardCell,
    HazardEstimate,
    HRRow,
    IncidenceSeries,
    SortDirection,
    SortState,
    VisibilityState,
    coerce_incidence,
    coerce_matrix,
)


# =====================================================================
# Payload models
# =====================================================================


class TestPayloadModels:
    """Building models from the pipeline's JSON shape."""

    def test_incidence_series_from_dict(self, incidence_data):
        s = IncidenceSeries.from_dict("Endocrine disorders", incidence_data["Endocrine disorders"])
        np.testing.assert_array_equal(s.times, [30, 400, 1200])
        assert s.has_ci
        assert s.n_events == 12
        np.testing.assert_array_equal(s.in_horizon(), [True, True, False])

    def test_incidence_series_without_ci(self, incidence_data):
        s = IncidenceSeries.from_dict("GI", incidence_data["Gastrointestinal disorders"])
        assert not s.has_ci
        assert s.ci_lower is None

    def test_coerce_incidence_fills_missing_key(self):
        raw = IncidenceSeries(times=np.array([1.0]), cumulative_incidence=np.array([0.1]))
        (series,) = coerce_incidence({"Eye disorders": raw})
        assert series.key == "Eye disorders"

    def test_coerce_incidence_none(self):
        assert coerce_incidence(None) == []

    def test_flow_graph_from_dict(self, flow_graph):
        g = FlowGraph.from_dict(flow_graph)
        assert [n.name for n in g.nodes][:2] == ["Skin and subcutaneous tissue disorders", "No Event"]
        assert g.links[0].source == 0 and g.links[0].value == 30
        assert g.time_points == [0, 90]

    def test_flow_graph_empty(self):
        g = FlowGraph.from_dict(None)
        assert g.nodes == [] and g.links == [] and g.time_points is None

    def test_flow_node_value_alias(self):
        g = FlowGraph.from_dict({"nodes": [{"name": "A", "value": 7}], "links": []})
        assert g.nodes[0].count == 7

    def test_coerce_matrix(self, hr_matrix):
        m = coerce_matrix(hr_matrix)
        assert isinstance(m["A"]["B"], HazardCell)
        assert m["A"]["A"].diagonal
        assert m["B"]["C"].hr is None

    def test_hr_row_unidirectional(self, hr_rows):
        row = HRRow.from_dict(hr_rows[0])
        assert not row.bidirectional
        assert row.forward.hr == 2.0
        assert row.reverse is None

    def test_hr_row_bidirectional_with_missing_reverse(self):
        row = HRRow.from_dict({"comparison_category": "X", "hr": 1.0, "hr_reverse": None})
        assert row.bidirectional
        assert row.reverse is None

    def test_hr_row_direct_construction_infers_direction(self):
        est = HazardEstimate(hr=1.0)
        assert HRRow(forward=est, reverse=est).bidirectional
        assert not HRRow(forward=est).bidirectional
        assert not HRRow(forward=est, reverse=est, bidirectional=False).bidirectional

    def test_association_row(self):
        row = AssociationRow.from_dict({"name": "Age > 65", "hr": 1.3, "p_value": 0.01})
        assert row.name == "Age > 65"
        assert row.estimate.p_value == 0.01
        assert row.estimate.ci_lower is None

    def test_frozen(self):
        cell = HazardCell(hr=1.0)
        with pytest.raises(AttributeError):
            cell.hr = 2.0  # type: ignore[misc]


# =====================================================================
# Interaction state
# =====================================================================


class TestVisibilityState:

    def test_default_shown(self):
        assert VisibilityState().is_shown("anything")

    def test_toggle_round_trip(self):
        vis = VisibilityState()
        assert vis.toggle("A") is False
        assert vis.toggle("A") is True


class TestSortState:
    """Header clicks: ascending first, re-click flips."""

    def test_first_click_ascending(self):
        s = SortState().next_for(2)
        assert s == SortState(2, SortDirection.ASCENDING)

    def test_reclick_descending(self):
        s = SortState().next_for(2).next_for(2)
        assert s.direction is SortDirection.DESCENDING

    def test_third_click_ascending_again(self):
        s = SortState().next_for(2).next_for(2).next_for(2)
        assert s.direction is SortDirection.ASCENDING

    def test_other_column_resets_to_ascending(self):
        s = SortState(1, SortDirection.DESCENDING).next_for(3)
        assert s == SortState(3, SortDirection.ASCENDING)


# =====================================================================
# Options
# =====================================================================


class TestChartOptions:

    def test_configured_defaults(self):
        opts = ChartOptions.resolve("incidence")
        assert (opts.width, opts.height) == (700, 400)
        assert ChartOptions.resolve("sankey").width == 900
        assert ChartOptions.resolve("hr_table").table_id == "hr-table"

    def test_camel_and_snake_case(self):
        fn = lambda key: "#123456"  # noqa: E731
        a = ChartOptions.resolve("incidence", {"colorMap": fn, "width": 500})
        b = ChartOptions.resolve("incidence", {"color_map": fn, "width": 500})
        assert a.color_map is fn and b.color_map is fn
        assert a.width == b.width == 500

    def test_unknown_keys_ignored(self):
        opts = ChartOptions.resolve("heatmap", {"cellSize": 30, "bogus": 1})
        assert opts.cell_size == 30

    def test_none_values_keep_default(self):
        assert ChartOptions.resolve("incidence", {"width": None}).width == 700

    @pytest.mark.parametrize("bad", [0, -5, "wide", True])
    def test_invalid_size_rejected(self, bad):
        with pytest.raises(ValueError):
            ChartOptions.resolve("incidence", {"width": bad})

    def test_non_callable_color_map_rejected(self):
        with pytest.raises(ValueError):
            ChartOptions.resolve("incidence", {"colorMap": {"A": "#fff"}})

    def test_instance_passes_through(self):
        opts = ChartOptions(width=123)
        assert ChartOptions.resolve("incidence", opts) is opts

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("IRAE_CHARTS__INCIDENCE__WIDTH", "800")
        get_typed_config.cache_clear()
        assert ChartOptions.resolve("incidence").width == 800


# =====================================================================
# EventBus
# =====================================================================


class TestEventBus:

    def test_subscribe_and_publish(self):
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("series.toggled", received.append)
        bus.publish("series.toggled", {"key": "A"})
        assert len(received) == 1
        assert received[0].payload == {"key": "A"}

    def test_publish_event_object(self):
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("x", received.append)
        bus.publish(Event(type="x"))
        assert received[0].payload == {}

    def test_unsubscribe(self):
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("x", received.append)
        bus.unsubscribe("x", received.append)
        bus.unsubscribe("x", received.append)
        bus.publish("x")
        assert received == []

    def test_handler_error_propagates(self):
        bus = EventBus()
        calls = []

        def boom(event):
            raise RuntimeError("boom")

        bus.subscribe("x", boom)
        bus.subscribe("x", calls.append)
        with pytest.raises(RuntimeError):
            bus.publish("x")
        assert calls == []

    def test_wildcard_receives_everything_after_specific(self):
        bus = EventBus()
        order: list[str] = []
        bus.subscribe(ANY_EVENT, lambda e: order.append(f"*:{e.type}"))
        bus.subscribe("a", lambda e: order.append("a"))
        bus.publish("a")
        bus.publish("b")
        assert order == ["a", "*:a", "*:b"]

    def test_introspection(self):
        bus = EventBus()
        bus.subscribe("b", lambda e: None)
        bus.subscribe("a", lambda e: None)
        assert bus.event_types == ["a", "b"]
        assert bus.handler_count("a") == 1
        bus.clear()
        assert bus.event_types == []


# =====================================================================
# AppConfig
# =====================================================================


class TestAppConfig:
    """Test configuration loading from YAML and environment variables."""

    def test_load_from_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as fh:
            yaml.dump({"charts": {"sankey": {"width": 1200}}}, fh)
        cfg = AppConfig.load(default_path=str(config_file), defaults=DEFAULTS)
        assert cfg.get("charts.sankey.width") == 1200
        assert cfg.get("charts.sankey.height") == 500

    def test_load_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IRAE_DEMO__SEED", "7")
        monkeypatch.setenv("IRAE_DEMO__SHARE", "true")
        cfg = AppConfig.load(default_path=str(tmp_path / "missing.yaml"), defaults=DEFAULTS)
        assert cfg.get("demo.seed") == 7
        assert cfg.get("demo.share") is True

    def test_load_nonexistent_file(self, tmp_path):
        cfg = AppConfig.load(default_path=str(tmp_path / "does_not_exist.yaml"))
        assert cfg.data == {}

    def test_defaults_not_mutated(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as fh:
            yaml.dump({"charts": {"heatmap": {"cell_size": 10}}}, fh)
        AppConfig.load(default_path=str(config_file), defaults=DEFAULTS)
        assert DEFAULTS["charts"]["heatmap"]["cell_size"] == 50

    def test_get_default_value(self):
        cfg = AppConfig(data={"a": 1})
        assert cfg.get("a.b", "fallback") == "fallback"

    def test_section(self):
        cfg = AppConfig(data={"charts": {"x": 1}, "flag": True})
        assert cfg.section("charts") == {"x": 1}
        assert cfg.section("flag") == {}
        assert cfg.section("missing") == {}

    def test_get_config_has_chart_sections(self):
        cfg = get_config()
        assert set(DEFAULTS["charts"]) <= set(cfg["charts"])
