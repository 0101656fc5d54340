"""In-process visual tree standing in for the host page.

A :class:`Document` owns the mount points a host page would provide; the
renderers clear a mount point and append :class:`Element` nodes to it.
Elements carry attributes, inline styles, classes, text (or raw HTML) and
event handlers, and serialize to HTML/SVG markup with :meth:`Element.to_html`.

Events are delivered one at a time by the host through
:meth:`Element.dispatch`; elements hidden with ``display: none`` (on
themselves or an ancestor) do not receive them.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping

if TYPE_CHECKING:
    from irae_charts.render.tooltip import TooltipController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerEvent:
    """A pointer or click event in page coordinates."""

    type: str
    page_x: float = 0.0
    page_y: float = 0.0
    target: Element | None = field(default=None, compare=False, repr=False)


Handler = Callable[[PointerEvent], None]


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return f"{round(value, 3):g}"
    return str(value)


class Element:
    """A node of the visual tree."""

    def __init__(
        self,
        tag: str,
        attrs: Mapping[str, Any] | None = None,
        *,
        cls: str | None = None,
        text: str | None = None,
        style: Mapping[str, Any] | None = None,
    ) -> None:
        self.tag = tag
        self.attrs: dict[str, Any] = dict(attrs or {})
        self.style: dict[str, Any] = dict(style or {})
        self.classes: list[str] = cls.split() if cls else []
        self.text = text
        self.inner_html: str | None = None
        self.children: list[Element] = []
        self.parent: Element | None = None
        self._handlers: dict[str, list[Handler]] = {}

    def __repr__(self) -> str:
        ident = f"#{self.attrs['id']}" if "id" in self.attrs else ""
        dots = "".join(f".{c}" for c in self.classes)
        return f"<Element {self.tag}{ident}{dots}>"

    # -- construction ------------------------------------------------------

    def append(
        self,
        tag: str,
        attrs: Mapping[str, Any] | None = None,
        *,
        cls: str | None = None,
        text: str | None = None,
        style: Mapping[str, Any] | None = None,
    ) -> Element:
        """Create a child element and return it."""
        return self.append_child(Element(tag, attrs, cls=cls, text=text, style=style))

    def append_child(self, child: Element) -> Element:
        """Append *child*, moving it if it already has a parent."""
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def clear(self) -> None:
        """Remove all children and content."""
        for child in self.children:
            child.parent = None
        self.children = []
        self.text = None
        self.inner_html = None

    # -- attributes / styles / classes --------------------------------------

    def set_attr(self, name: str, value: Any) -> Element:
        if value is None:
            self.attrs.pop(name, None)
        else:
            self.attrs[name] = value
        return self

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def set_style(self, name: str, value: Any) -> Element:
        if value is None:
            self.style.pop(name, None)
        else:
            self.style[name] = value
        return self

    def add_class(self, *names: str) -> Element:
        for name in names:
            if name not in self.classes:
                self.classes.append(name)
        return self

    def remove_class(self, *names: str) -> Element:
        self.classes = [c for c in self.classes if c not in names]
        return self

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def set_html(self, markup: str) -> Element:
        """Replace the content with raw markup (used by the tooltip)."""
        self.clear()
        self.inner_html = markup
        return self

    # -- events ------------------------------------------------------------

    def on(self, event_type: str, handler: Handler) -> Element:
        self._handlers.setdefault(event_type, []).append(handler)
        return self

    def handlers(self, event_type: str) -> list[Handler]:
        return list(self._handlers.get(event_type, []))

    @property
    def is_displayed(self) -> bool:
        node: Element | None = self
        while node is not None:
            if node.style.get("display") == "none":
                return False
            node = node.parent
        return True

    def dispatch(self, event: PointerEvent | str, page_x: float = 0.0, page_y: float = 0.0) -> bool:
        """Deliver *event* to this element's handlers.

        Returns ``True`` if at least one handler ran.
        """
        if isinstance(event, str):
            event = PointerEvent(type=event, page_x=page_x, page_y=page_y, target=self)
        if not self.is_displayed:
            return False
        handlers = self.handlers(event.type)
        for handler in handlers:
            handler(event)
        return bool(handlers)

    # -- queries -----------------------------------------------------------

    def iter(self) -> Iterator[Element]:
        """Depth-first iteration over this element and its descendants."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find_all(self, tag: str | None = None, cls: str | None = None) -> list[Element]:
        return [
            el for el in self.iter()
            if el is not self
            and (tag is None or el.tag == tag)
            and (cls is None or cls in el.classes)
        ]

    def find(self, tag: str | None = None, cls: str | None = None) -> Element | None:
        found = self.find_all(tag, cls)
        return found[0] if found else None

    def get_by_id(self, element_id: str) -> Element | None:
        for el in self.iter():
            if el.attrs.get("id") == element_id:
                return el
        return None

    @property
    def text_content(self) -> str:
        parts = [self.text or ""]
        parts.extend(child.text_content for child in self.children)
        return "".join(parts)

    # -- serialization -----------------------------------------------------

    def to_html(self) -> str:
        attrs = dict(self.attrs)
        if self.classes:
            attrs["class"] = " ".join(self.classes)
        if self.style:
            attrs["style"] = ";".join(f"{k}:{_fmt(v)}" for k, v in self.style.items())
        rendered = "".join(
            f' {name}="{html.escape(_fmt(value), quote=True)}"'
            for name, value in attrs.items()
        )
        if self.inner_html is not None:
            body = self.inner_html
        else:
            body = html.escape(self.text) if self.text else ""
            body += "".join(child.to_html() for child in self.children)
        return f"<{self.tag}{rendered}>{body}</{self.tag}>"


class Document:
    """The host page: a body holding mount points and the shared tooltip."""

    def __init__(self) -> None:
        self.body = Element("body")
        self._tooltip: TooltipController | None = None

    def create_mount(self, element_id: str, tag: str = "div") -> Element:
        """Add an empty mount point with id *element_id* to the body."""
        return self.body.append(tag, {"id": element_id})

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self.body.get_by_id(element_id)

    def select(self, selector: str) -> Element:
        """Resolve ``"#id"`` or ``"body"`` to an element.

        Raises
        ------
        KeyError
            If no element matches.
        """
        if selector == "body":
            return self.body
        element = self.get_element_by_id(selector[1:] if selector.startswith("#") else selector)
        if element is None:
            raise KeyError(f"No element matches selector {selector!r}")
        return element

    @property
    def tooltip(self) -> TooltipController:
        """The document's tooltip, constructed on first access."""
        if self._tooltip is None:
            from irae_charts.render.tooltip import TooltipController

            self._tooltip = TooltipController(self)
        return self._tooltip

    def to_html(self) -> str:
        return self.body.to_html()
