"""Domain models for the irAE trajectory charts.

All payload models are frozen dataclasses built from the already-computed
statistical payload (survival/incidence estimates, hazard ratios, confidence
intervals, p-values). Mutable default values use ``field(default_factory=...)``.
Every ``from_dict`` factory accepts the JSON shape produced by the analysis
pipeline so hosts can pass either form to the renderers.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import numpy as np
import yaml

logger = logging.getLogger(__name__)

# Truncation horizon for cumulative incidence curves (3 years).
MAX_TIME_DAYS = 1095


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _empty_array() -> np.ndarray:
    """Return an empty float64 array."""
    return np.empty(0, dtype=np.float64)


def _empty_dict() -> dict[str, Any]:
    """Return an empty dictionary."""
    return {}


def _empty_list() -> list[Any]:
    """Return an empty list."""
    return []


def _as_array(values: Any) -> np.ndarray:
    if values is None:
        return _empty_array()
    return np.asarray(values, dtype=np.float64)


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)


# ---------------------------------------------------------------------------
# Cumulative incidence
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IncidenceSeries:
    """Cumulative incidence estimates for one category.

    ``times`` are days from treatment start, strictly increasing.  The
    incidence and optional CI arrays are parallel to ``times``.
    """

    key: str = ""
    times: np.ndarray = field(default_factory=_empty_array)
    cumulative_incidence: np.ndarray = field(default_factory=_empty_array)
    ci_lower: np.ndarray | None = None
    ci_upper: np.ndarray | None = None
    n_events: int = 0

    @staticmethod
    def from_dict(key: str, raw: Mapping[str, Any]) -> IncidenceSeries:
        """Build a series from a payload entry keyed by *key*."""
        lower, upper = raw.get("ci_lower"), raw.get("ci_upper")
        return IncidenceSeries(
            key=key,
            times=_as_array(raw.get("times")),
            cumulative_incidence=_as_array(raw.get("cumulative_incidence")),
            ci_lower=None if lower is None else _as_array(lower),
            ci_upper=None if upper is None else _as_array(upper),
            n_events=int(raw.get("n_events") or 0),
        )

    @property
    def has_ci(self) -> bool:
        return self.ci_lower is not None and self.ci_upper is not None

    def in_horizon(self, horizon: float = MAX_TIME_DAYS) -> np.ndarray:
        """Boolean mask of samples with ``time <= horizon``."""
        return self.times <= horizon


def coerce_incidence(data: Any) -> list[IncidenceSeries]:
    """Normalise a mapping of key -> series (dict or dataclass) to a list."""
    series: list[IncidenceSeries] = []
    for key, raw in (data or {}).items():
        if isinstance(raw, IncidenceSeries):
            series.append(raw if raw.key else IncidenceSeries(
                key=key, times=raw.times,
                cumulative_incidence=raw.cumulative_incidence,
                ci_lower=raw.ci_lower, ci_upper=raw.ci_upper,
                n_events=raw.n_events))
        else:
            series.append(IncidenceSeries.from_dict(key, raw or {}))
    return series


# ---------------------------------------------------------------------------
# Flow graph
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlowNode:
    """A patient state at one time point."""

    name: str = ""
    count: float = 0.0


@dataclass(frozen=True)
class FlowLink:
    """Patients moving from node index *source* to node index *target*."""

    source: int = 0
    target: int = 0
    value: float = 0.0


@dataclass(frozen=True)
class FlowGraph:
    """Nodes and links of the state-transition diagram."""

    nodes: list[FlowNode] = field(default_factory=_empty_list)
    links: list[FlowLink] = field(default_factory=_empty_list)
    time_points: list[float] | None = None

    @staticmethod
    def from_dict(raw: Mapping[str, Any] | None) -> FlowGraph:
        if not raw:
            return FlowGraph()
        nodes = [
            FlowNode(name=str(n.get("name", "")),
                     count=float(n.get("count", n.get("value", 0)) or 0))
            for n in raw.get("nodes") or []
        ]
        links = [
            FlowLink(source=int(l["source"]), target=int(l["target"]),
                     value=float(l.get("value", 0)))
            for l in raw.get("links") or []
        ]
        tp = raw.get("time_points")
        return FlowGraph(nodes=nodes, links=links,
                         time_points=list(tp) if tp else None)


# ---------------------------------------------------------------------------
# Hazard ratios
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HazardCell:
    """One (row, column) comparison of the hazard-ratio matrix.

    ``hr`` is ``None`` when there was insufficient data to estimate it.
    """

    hr: float | None = None
    ci_lower: float | None = None
    ci_upper: float | None = None
    p_value: float | None = None
    diagonal: bool = False

    @staticmethod
    def from_dict(raw: Mapping[str, Any] | None) -> HazardCell:
        raw = raw or {}
        return HazardCell(
            hr=_opt_float(raw.get("hr")),
            ci_lower=_opt_float(raw.get("ci_lower")),
            ci_upper=_opt_float(raw.get("ci_upper")),
            p_value=_opt_float(raw.get("p_value")),
            diagonal=bool(raw.get("diagonal", False)),
        )


HazardMatrix = dict[str, dict[str, HazardCell]]


def coerce_matrix(data: Any) -> HazardMatrix:
    """Normalise a row -> column -> cell mapping to :class:`HazardCell` values."""
    matrix: HazardMatrix = {}
    for row, cols in (data or {}).items():
        matrix[row] = {
            col: cell if isinstance(cell, HazardCell) else HazardCell.from_dict(cell)
            for col, cell in (cols or {}).items()
        }
    return matrix


@dataclass(frozen=True)
class HazardEstimate:
    """Hazard ratio with its 95% CI and p-value."""

    hr: float
    ci_lower: float | None = None
    ci_upper: float | None = None
    p_value: float | None = None

    @staticmethod
    def from_fields(raw: Mapping[str, Any], suffix: str = "") -> HazardEstimate | None:
        hr = raw.get("hr" + suffix)
        if hr is None:
            return None
        return HazardEstimate(
            hr=float(hr),
            ci_lower=_opt_float(raw.get("ci_lower" + suffix)),
            ci_upper=_opt_float(raw.get("ci_upper" + suffix)),
            p_value=_opt_float(raw.get("p_value" + suffix)),
        )


@dataclass(frozen=True)
class HRRow:
    """A row of the HR table, optionally with the reverse direction.

    ``bidirectional`` defaults to whether a reverse estimate is present;
    payloads with an explicit but empty ``hr_reverse`` pass it as ``True``.
    """

    comparison_category: str = ""
    forward: HazardEstimate | None = None
    reverse: HazardEstimate | None = None
    bidirectional: bool | None = None

    def __post_init__(self) -> None:
        if self.bidirectional is None:
            object.__setattr__(self, "bidirectional", self.reverse is not None)

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> HRRow:
        return HRRow(
            comparison_category=str(raw.get("comparison_category", "")),
            forward=HazardEstimate.from_fields(raw),
            reverse=HazardEstimate.from_fields(raw, "_reverse"),
            bidirectional="hr_reverse" in raw,
        )


@dataclass(frozen=True)
class AssociationRow:
    """A named association with a single hazard estimate."""

    name: str = ""
    estimate: HazardEstimate | None = None

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> AssociationRow:
        return AssociationRow(name=str(raw.get("name", "")),
                              estimate=HazardEstimate.from_fields(raw))


# ---------------------------------------------------------------------------
# Interaction state
# ---------------------------------------------------------------------------

@dataclass
class VisibilityState:
    """Per-chart mapping of series key -> shown."""

    shown: dict[str, bool] = field(default_factory=_empty_dict)

    def is_shown(self, key: str) -> bool:
        return self.shown.get(key, True)

    def toggle(self, key: str) -> bool:
        self.shown[key] = not self.is_shown(key)
        return self.shown[key]


class SortDirection(enum.Enum):
    UNSORTED = "unsorted"
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class SortState:
    """Active sort column and direction of a table."""

    column: int | None = None
    direction: SortDirection = SortDirection.UNSORTED

    def next_for(self, column: int) -> SortState:
        """State after a click on header *column*.

        Re-clicking the ascending column flips to descending; anything else
        starts ascending.
        """
        if self.column == column and self.direction is SortDirection.ASCENDING:
            return SortState(column=column, direction=SortDirection.DESCENDING)
        return SortState(column=column, direction=SortDirection.ASCENDING)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

_OPTION_ALIASES: dict[str, str] = {
    "width": "width",
    "height": "height",
    "colorMap": "color_map",
    "color_map": "color_map",
    "cellSize": "cell_size",
    "cell_size": "cell_size",
    "labelWidth": "label_width",
    "label_width": "label_width",
    "tableId": "table_id",
    "table_id": "table_id",
    "nameColumn": "name_column",
    "name_column": "name_column",
}


@dataclass(frozen=True)
class ChartOptions:
    """Validated render options.

    Defaults for ``width``/``height``/``cell_size``/``label_width`` come from
    the ``charts.<kind>`` configuration section.
    """

    width: int = 700
    height: int = 400
    color_map: Callable[[str], str] | None = None
    cell_size: int = 50
    label_width: int = 150
    table_id: str | None = None
    name_column: str = "Name"

    @staticmethod
    def resolve(kind: str, options: Mapping[str, Any] | ChartOptions | None = None) -> ChartOptions:
        """Merge *options* over the configured defaults for chart *kind*.

        Raises
        ------
        ValueError
            If a geometry option is not a positive number or ``color_map``
            is not callable.
        """
        if isinstance(options, ChartOptions):
            return options
        from irae_charts.config.settings import get_typed_config

        values: dict[str, Any] = {}
        for key, value in get_typed_config().section("charts").get(kind, {}).items():
            if key in _OPTION_ALIASES:
                values[_OPTION_ALIASES[key]] = value
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key)
            if name is None:
                logger.debug("Ignoring unrecognised %s option %r", kind, key)
                continue
            if value is not None:
                values[name] = value

        for name in ("width", "height", "cell_size", "label_width"):
            if name in values:
                num = values[name]
                if isinstance(num, bool) or not isinstance(num, (int, float)) or num <= 0:
                    raise ValueError(f"{name} must be a positive number, got {num!r}")
        if values.get("color_map") is not None and not callable(values["color_map"]):
            raise ValueError("color_map must be callable")
        return ChartOptions(**values)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppConfig:
    """Application configuration loaded from YAML with environment overlays.

    Configuration is resolved in order:
      1. Built-in defaults
      2. ``config/default.yaml``
      3. Environment variables prefixed with ``IRAE_``
    """

    data: dict[str, Any] = field(default_factory=_empty_dict)

    # -- factory -----------------------------------------------------------

    @staticmethod
    def load(
        default_path: str | Path = "config/default.yaml",
        defaults: Mapping[str, Any] | None = None,
        env_prefix: str = "IRAE_",
    ) -> AppConfig:
        """Load configuration from a YAML file and environment variables.

        Parameters
        ----------
        default_path:
            Path to the configuration file; silently skipped when missing.
        defaults:
            Base tree the file is merged over.
        env_prefix:
            Prefix for environment variable overrides.  A variable named
            ``IRAE_CHARTS__SANKEY__WIDTH`` maps to
            ``config["charts"]["sankey"]["width"]``.
        """
        import os

        merged: dict[str, Any] = _deep_merge({}, dict(defaults or {}))

        path = Path(default_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            merged = _deep_merge(merged, raw)

        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                parts = key[len(env_prefix):].lower().split("__")
                _set_nested(merged, parts, _coerce(value))

        return AppConfig(data=merged)

    # -- typed accessors ---------------------------------------------------

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Retrieve a value using dot-separated path, e.g. ``charts.sankey.width``."""
        node: Any = self.data
        for part in dotted_key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def section(self, name: str) -> dict[str, Any]:
        """Return a top-level section as a dict (empty dict if missing)."""
        val = self.data.get(name)
        if isinstance(val, dict):
            return dict(val)
        return {}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (non-destructive)."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        elif isinstance(value, dict):
            merged[key] = _deep_merge({}, value)
        else:
            merged[key] = value
    return merged


def _set_nested(d: dict[str, Any], parts: list[str], value: Any) -> None:
    """Set a value in a nested dict using a list of keys."""
    for part in parts[:-1]:
        d = d.setdefault(part, {})
    if parts:
        d[parts[-1]] = value


def _coerce(value: str) -> Any:
    """Best-effort coercion from string to bool / int / float / str."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
