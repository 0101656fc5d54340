"""Domain layer -- payload models, interaction state and events.

Re-exports all public domain types for convenient access::

    from irae_charts.domain import IncidenceSeries, HazardCell, SortState
"""

from __future__ import annotations

from irae_charts.domain.events import (
    ANY_EVENT,
    ELEMENT_CLICKED,
    POINTER_ENTERED,
    POINTER_LEFT,
    SERIES_TOGGLED,
    TABLE_SORTED,
    Event,
    EventBus,
)
from irae_charts.domain.models import (
    MAX_TIME_DAYS,
    AppConfig,
    AssociationRow,
    ChartOptions,
    FlowGraph,
    FlowLink,
    FlowNode,
    HazardCell,
    HazardEstimate,
    HazardMatrix,
    HRRow,
    IncidenceSeries,
    SortDirection,
    SortState,
    VisibilityState,
)

__all__ = [
    "ANY_EVENT",
    "ELEMENT_CLICKED",
    "MAX_TIME_DAYS",
    "POINTER_ENTERED",
    "POINTER_LEFT",
    "SERIES_TOGGLED",
    "TABLE_SORTED",
    "AppConfig",
    "AssociationRow",
    "ChartOptions",
    "Event",
    "EventBus",
    "FlowGraph",
    "FlowLink",
    "FlowNode",
    "HRRow",
    "HazardCell",
    "HazardEstimate",
    "HazardMatrix",
    "IncidenceSeries",
    "SortDirection",
    "SortState",
    "VisibilityState",
]
