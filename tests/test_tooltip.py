"""Tests for the visual tree, the shared tooltip and the interaction layer."""

from __future__ import annotations

import pytest

from irae_charts.domain.events import ELEMENT_CLICKED, POINTER_ENTERED, POINTER_LEFT
from irae_charts.render.dom import Document, Element, PointerEvent
from irae_charts.render.interaction import ChartInteraction, InteractionState
from irae_charts.render.tooltip import TooltipController


# =====================================================================
# Visual tree
# =====================================================================


class TestElement:

    def test_append_child_moves(self):
        a, b = Element("g"), Element("g")
        child = a.append("rect")
        b.append_child(child)
        assert a.children == [] and child.parent is b

    def test_hidden_elements_ignore_events(self):
        parent = Element("g", style={"display": "none"})
        child = parent.append("circle")
        calls = []
        child.on("mouseover", calls.append)
        assert child.dispatch("mouseover") is False
        assert calls == []

    def test_dispatch_builds_event(self):
        el = Element("rect")
        seen: list[PointerEvent] = []
        el.on("click", seen.append)
        assert el.dispatch("click", 3, 4)
        assert seen[0].page_x == 3 and seen[0].target is el

    def test_to_html_escapes(self):
        el = Element("text", {"x": 1.23456}, cls="label", text="A < B")
        assert el.to_html() == '<text x="1.235" class="label">A &lt; B</text>'

    def test_find_and_text_content(self):
        root = Element("div")
        row = root.append("tr")
        row.append("td", text="a")
        row.append("td", text="b")
        assert row.text_content == "ab"
        assert len(root.find_all("td")) == 2
        assert root.find("th") is None


class TestDocument:

    def test_select(self):
        doc = Document()
        mount = doc.create_mount("x")
        assert doc.select("#x") is mount
        assert doc.select("body") is doc.body

    def test_select_missing_raises(self):
        with pytest.raises(KeyError):
            Document().select("#nope")

    def test_tooltip_is_shared(self):
        doc = Document()
        assert doc.tooltip is doc.tooltip


# =====================================================================
# Tooltip
# =====================================================================


class TestTooltipController:

    def test_hide_before_show_is_noop(self):
        doc = Document()
        tip = TooltipController(doc)
        tip.hide()
        assert tip.element is None
        assert doc.body.find("div", cls="tooltip") is None

    def test_show_positions_at_pointer(self):
        tip = TooltipController(Document())
        tip.show("<b>hi</b>", PointerEvent("mouseover", 30, 100))
        assert tip.visible
        assert tip.content == "<b>hi</b>"
        assert tip.element.style["left"] == "40px"
        assert tip.element.style["top"] == "90px"
        assert tip.element.style["opacity"] == 1

    def test_latest_show_wins(self):
        doc = Document()
        tip = TooltipController(doc)
        tip.show("first", PointerEvent("mouseover", 0, 0))
        tip.show("second", PointerEvent("mouseover", 5, 5))
        assert tip.content == "second"
        assert len(doc.body.find_all("div", cls="tooltip")) == 1

    def test_hide(self):
        tip = TooltipController(Document())
        tip.show("x", PointerEvent("mouseover"))
        tip.hide()
        assert not tip.visible
        assert tip.element.style["opacity"] == 0


# =====================================================================
# Interaction state machine
# =====================================================================


class TestChartInteraction:

    def test_hover_transitions_and_events(self):
        interaction = ChartInteraction("test")
        published = []
        interaction.events.subscribe(POINTER_ENTERED, published.append)
        interaction.events.subscribe(POINTER_LEFT, published.append)
        el = Element("rect")
        entered, left = [], []
        interaction.hover(el, entered.append, left.append, {"row": "A"})

        el.dispatch("mouseover")
        assert interaction.state is InteractionState.HOVERING
        assert interaction.target is el
        el.dispatch("mouseout")
        assert interaction.state is InteractionState.IDLE
        assert len(entered) == len(left) == 1
        assert [e.type for e in published] == [POINTER_ENTERED, POINTER_LEFT]
        assert published[0].payload == {"chart": "test", "row": "A"}

    def test_leave_of_stale_element_keeps_current_target(self):
        interaction = ChartInteraction("test")
        a, b = Element("rect"), Element("rect")
        for el in (a, b):
            interaction.hover(el, lambda e: None, lambda e: None)
        a.dispatch("mouseover")
        b.dispatch("mouseover")
        a.dispatch("mouseout")
        assert interaction.target is b
        assert interaction.state is InteractionState.HOVERING

    def test_click_publishes(self):
        interaction = ChartInteraction("test")
        clicks = []
        interaction.events.subscribe(ELEMENT_CLICKED, clicks.append)
        el = Element("div")
        interaction.click(el, lambda e: None, {"column": 1})
        el.dispatch("click")
        assert clicks[0].payload == {"chart": "test", "column": 1}
