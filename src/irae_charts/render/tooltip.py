"""Floating label shared by every renderer of a document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from irae_charts.render.dom import Document, Element, PointerEvent

logger = logging.getLogger(__name__)

OFFSET_X = 10
OFFSET_Y = -10


class TooltipController:
    """Single tooltip surface positioned at the pointer.

    The ``div.tooltip`` element is created in the document body on the first
    :meth:`show`.  Each call overwrites content and position, so the most
    recent hover always owns the tooltip.
    """

    def __init__(self, document: Document) -> None:
        self._document = document
        self._element: Element | None = None

    @property
    def element(self) -> Element | None:
        return self._element

    @property
    def visible(self) -> bool:
        return self._element is not None and self._element.style.get("display") == "block"

    @property
    def content(self) -> str:
        if self._element is None:
            return ""
        return self._element.inner_html or ""

    def _ensure(self) -> Element:
        if self._element is None:
            self._element = self._document.body.append(
                "div", cls="tooltip", style={"opacity": 0, "display": "none"})
        return self._element

    def show(self, content: str, event: PointerEvent) -> None:
        """Display *content* offset from the pointer position of *event*."""
        tip = self._ensure()
        tip.set_html(content)
        tip.set_style("display", "block")
        tip.set_style("opacity", 1)
        tip.set_style("left", f"{_px(event.page_x + OFFSET_X)}px")
        tip.set_style("top", f"{_px(event.page_y + OFFSET_Y)}px")

    def hide(self, event: PointerEvent | None = None) -> None:
        """Fade out and hide; a no-op before the first :meth:`show`."""
        if self._element is not None:
            self._element.set_style("opacity", 0)
            self._element.set_style("display", "none")


def _px(value: float) -> str:
    return f"{value:g}"
