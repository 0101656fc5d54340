"""Layered flow layout for the state-transition diagram.

Nodes are assigned to columns by the longest path from a source (nodes
without outgoing links are justified to the last column), stacked within
each column with a height proportional to their through-flow, and relaxed
toward the weighted position of their neighbours.  Link breadths are then
stacked along each node in the order of the node at the other end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from irae_charts.domain.models import FlowGraph

logger = logging.getLogger(__name__)

NODE_WIDTH = 15
NODE_PADDING = 10
ITERATIONS = 6


class CircularFlowError(ValueError):
    """Raised when the link set contains a cycle."""


@dataclass(eq=False)
class LayoutNode:
    index: int
    name: str
    value: float = 0.0
    depth: int = 0
    layer: int = 0
    x0: float = 0.0
    x1: float = 0.0
    y0: float = 0.0
    y1: float = 0.0
    source_links: list[LayoutLink] = field(default_factory=list)
    target_links: list[LayoutLink] = field(default_factory=list)


@dataclass(eq=False)
class LayoutLink:
    index: int
    source: LayoutNode
    target: LayoutNode
    value: float
    width: float = 0.0
    y0: float = 0.0
    y1: float = 0.0


@dataclass
class SankeyLayout:
    nodes: list[LayoutNode]
    links: list[LayoutLink]
    width: float
    height: float

    def column_positions(self) -> list[float]:
        """Distinct node x positions in ascending order."""
        return sorted({n.x0 for n in self.nodes})


def compute_sankey(
    graph: FlowGraph,
    width: float,
    height: float,
    node_width: float = NODE_WIDTH,
    node_padding: float = NODE_PADDING,
    iterations: int = ITERATIONS,
) -> SankeyLayout:
    """Lay out *graph* inside ``[0, width] x [0, height]``.

    Raises
    ------
    CircularFlowError
        If the links form a cycle.
    """
    nodes = [LayoutNode(index=i, name=n.name) for i, n in enumerate(graph.nodes)]
    links: list[LayoutLink] = []
    for link in graph.links:
        if not (0 <= link.source < len(nodes) and 0 <= link.target < len(nodes)):
            logger.warning("Dropping link %d->%d: unknown node index", link.source, link.target)
            continue
        ll = LayoutLink(index=len(links), source=nodes[link.source],
                        target=nodes[link.target], value=float(link.value))
        ll.source.source_links.append(ll)
        ll.target.target_links.append(ll)
        links.append(ll)

    for node in nodes:
        node.value = max(sum(l.value for l in node.source_links),
                         sum(l.value for l in node.target_links))

    _compute_depths(nodes)
    columns = _compute_layers(nodes, width, node_width)
    py = node_padding
    longest = max((len(c) for c in columns), default=0)
    if longest > 1:
        py = min(node_padding, height / (longest - 1))
    _initialize_breadths(columns, height, py)
    for i in range(iterations):
        alpha = 0.99 ** i
        beta = max(1 - alpha, (i + 1) / iterations)
        _relax_right_to_left(columns, alpha, beta, py, height)
        _relax_left_to_right(columns, alpha, beta, py, height)
    _compute_link_breadths(nodes)
    return SankeyLayout(nodes=nodes, links=links, width=width, height=height)


def _compute_depths(nodes: list[LayoutNode]) -> None:
    current = list(nodes)
    depth = 0
    while current:
        following: dict[int, LayoutNode] = {}
        for node in current:
            node.depth = depth
            for link in node.source_links:
                following.setdefault(link.target.index, link.target)
        depth += 1
        if depth > len(nodes):
            raise CircularFlowError("circular link")
        current = list(following.values())


def _compute_layers(nodes: list[LayoutNode], width: float, node_width: float) -> list[list[LayoutNode]]:
    n_layers = max((n.depth for n in nodes), default=-1) + 1
    kx = (width - node_width) / (n_layers - 1) if n_layers > 1 else 0.0
    columns: list[list[LayoutNode]] = [[] for _ in range(n_layers)]
    for node in nodes:
        layer = node.depth if node.source_links else n_layers - 1
        node.layer = max(0, min(n_layers - 1, layer))
        node.x0 = node.layer * kx
        node.x1 = node.x0 + node_width
        columns[node.layer].append(node)
    return columns


def _initialize_breadths(columns: list[list[LayoutNode]], height: float, py: float) -> None:
    scales = [
        (height - (len(c) - 1) * py) / total
        for c in columns
        if (total := sum(n.value for n in c)) > 0
    ]
    ky = min(scales) if scales else 0.0
    for column in columns:
        y = 0.0
        for node in column:
            node.y0 = y
            node.y1 = y + node.value * ky
            y = node.y1 + py
            for link in node.source_links:
                link.width = link.value * ky
        y = (height - y + py) / (len(column) + 1)
        for i, node in enumerate(column):
            node.y0 += y * (i + 1)
            node.y1 += y * (i + 1)
        for node in column:
            _sort_links(node)


def _sort_links(node: LayoutNode) -> None:
    node.source_links.sort(key=lambda l: (l.target.y0, l.index))
    node.target_links.sort(key=lambda l: (l.source.y0, l.index))


def _reorder_node_links(node: LayoutNode) -> None:
    for link in node.target_links:
        link.source.source_links.sort(key=lambda l: (l.target.y0, l.index))
    for link in node.source_links:
        link.target.target_links.sort(key=lambda l: (l.source.y0, l.index))


def _target_top(source: LayoutNode, target: LayoutNode, py: float) -> float:
    y = source.y0 - (len(source.source_links) - 1) * py / 2
    for link in source.source_links:
        if link.target is target:
            break
        y += link.width + py
    for link in target.target_links:
        if link.source is source:
            break
        y -= link.width
    return y


def _source_top(source: LayoutNode, target: LayoutNode, py: float) -> float:
    y = target.y0 - (len(target.target_links) - 1) * py / 2
    for link in target.target_links:
        if link.source is source:
            break
        y += link.width + py
    for link in source.source_links:
        if link.target is target:
            break
        y -= link.width
    return y


def _shift(node: LayoutNode, dy: float) -> None:
    node.y0 += dy
    node.y1 += dy


def _relax_left_to_right(columns, alpha: float, beta: float, py: float, height: float) -> None:
    for column in columns[1:]:
        for target in column:
            y = w = 0.0
            for link in target.target_links:
                v = link.value * (target.layer - link.source.layer)
                y += _target_top(link.source, target, py) * v
                w += v
            if not w > 0:
                continue
            _shift(target, (y / w - target.y0) * alpha)
            _reorder_node_links(target)
        column.sort(key=lambda n: n.y0)
        _resolve_collisions(column, beta, py, height)


def _relax_right_to_left(columns, alpha: float, beta: float, py: float, height: float) -> None:
    for column in reversed(columns[:-1]):
        for source in column:
            y = w = 0.0
            for link in source.source_links:
                v = link.value * (link.target.layer - source.layer)
                y += _source_top(source, link.target, py) * v
                w += v
            if not w > 0:
                continue
            _shift(source, (y / w - source.y0) * alpha)
            _reorder_node_links(source)
        column.sort(key=lambda n: n.y0)
        _resolve_collisions(column, beta, py, height)


def _resolve_collisions(nodes: list[LayoutNode], alpha: float, py: float, height: float) -> None:
    if not nodes:
        return
    i = len(nodes) >> 1
    subject = nodes[i]
    _bottom_to_top(nodes, subject.y0 - py, i - 1, alpha, py)
    _top_to_bottom(nodes, subject.y1 + py, i + 1, alpha, py)
    _bottom_to_top(nodes, height, len(nodes) - 1, alpha, py)
    _top_to_bottom(nodes, 0.0, 0, alpha, py)


def _top_to_bottom(nodes: list[LayoutNode], y: float, i: int, alpha: float, py: float) -> None:
    for node in nodes[i:]:
        dy = (y - node.y0) * alpha
        if dy > 1e-6:
            _shift(node, dy)
        y = node.y1 + py


def _bottom_to_top(nodes: list[LayoutNode], y: float, i: int, alpha: float, py: float) -> None:
    for node in reversed(nodes[:i + 1]):
        dy = (node.y1 - y) * alpha
        if dy > 1e-6:
            _shift(node, -dy)
        y = node.y0 - py


def _compute_link_breadths(nodes: list[LayoutNode]) -> None:
    for node in nodes:
        y0 = y1 = node.y0
        for link in node.source_links:
            link.y0 = y0 + link.width / 2
            y0 += link.width
        for link in node.target_links:
            link.y1 = y1 + link.width / 2
            y1 += link.width
