"""Interaction wiring: a small hover/click state machine per chart.

Renderers compute geometry first and then attach behaviour through a
:class:`ChartInteraction`.  The controller is either ``IDLE`` or
``HOVERING`` one element; the only transitions are pointer-enter,
pointer-leave and click, each of which is also published on the chart's
:class:`~irae_charts.domain.events.EventBus`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from irae_charts.domain.events import (
    ELEMENT_CLICKED,
    POINTER_ENTERED,
    POINTER_LEFT,
    EventBus,
)
from irae_charts.render.dom import Element, PointerEvent

logger = logging.getLogger(__name__)

Callback = Callable[[PointerEvent], None]


class InteractionState(enum.Enum):
    IDLE = "idle"
    HOVERING = "hovering"


class ChartInteraction:
    """Hover/click state of one rendered chart."""

    def __init__(self, chart: str, events: EventBus | None = None) -> None:
        self.chart = chart
        self.events = events or EventBus()
        self.state = InteractionState.IDLE
        self.target: Element | None = None

    def hover(
        self,
        element: Element,
        on_enter: Callback,
        on_leave: Callback,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Register pointer-enter/pointer-leave behaviour on *element*."""
        info = {"chart": self.chart, **(payload or {})}

        def _enter(event: PointerEvent) -> None:
            self.state = InteractionState.HOVERING
            self.target = element
            on_enter(event)
            self.events.publish(POINTER_ENTERED, info)

        def _leave(event: PointerEvent) -> None:
            if self.target is element:
                self.state = InteractionState.IDLE
                self.target = None
            on_leave(event)
            self.events.publish(POINTER_LEFT, info)

        element.on("mouseover", _enter)
        element.on("mouseout", _leave)

    def click(
        self,
        element: Element,
        handler: Callback,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Register a click handler on *element*."""
        info = {"chart": self.chart, **(payload or {})}

        def _click(event: PointerEvent) -> None:
            handler(event)
            self.events.publish(ELEMENT_CLICKED, info)

        element.on("click", _click)


@dataclass
class RenderedChart:
    """Handle returned by every renderer.

    ``state`` holds the chart's mutable interaction state (visibility or
    sort state) and ``layout`` the computed geometry, when any.
    """

    root: Element
    interaction: ChartInteraction
    placeholder: bool = False
    state: Any = None
    layout: Any = None
    elements: dict[str, Any] = field(default_factory=dict)

    @property
    def events(self) -> EventBus:
        return self.interaction.events


def placeholder(container: Element, chart: str, message: str) -> RenderedChart:
    """Render the ``div.no-data`` message into *container*."""
    logger.debug("%s: rendering placeholder %r", chart, message)
    node = container.append("div", cls="no-data", text=message)
    return RenderedChart(root=node, interaction=ChartInteraction(chart), placeholder=True)
