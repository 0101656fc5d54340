"""Synthetic irAE payload for the demo host and for smoke tests.

Produces a statistically plausible (but invented) payload in the JSON shape
the analysis pipeline emits: cumulative incidence per adverse-event category,
a state-transition flow graph, a pairwise hazard-ratio matrix and HR table
rows.  All values are reproducible via a fixed numpy RNG seed.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CATEGORIES = [
    "Skin and subcutaneous tissue disorders",
    "Gastrointestinal disorders",
    "Endocrine disorders",
    "Hepatobiliary disorders",
    "Respiratory, thoracic and mediastinal disorders",
]

_FOLLOW_UP_DAYS = 1460  # extends past the 3-year chart horizon
_TIME_POINTS = [0, 90, 180, 365]


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------

def _incidence_curve(rng: np.random.Generator, ceiling: float) -> dict[str, Any]:
    n = int(rng.integers(15, 40))
    times = np.unique(rng.integers(1, _FOLLOW_UP_DAYS, size=n)).astype(float)
    steps = rng.exponential(1.0, size=times.size)
    ci = np.cumsum(steps) / steps.sum() * ceiling
    half_width = 0.02 + 0.1 * ci
    return {
        "times": times.tolist(),
        "cumulative_incidence": ci.round(4).tolist(),
        "ci_lower": np.clip(ci - half_width, 0.0, 1.0).round(4).tolist(),
        "ci_upper": np.clip(ci + half_width, 0.0, 1.0).round(4).tolist(),
        "n_events": int(times.size),
    }


def _flow_graph(rng: np.random.Generator, categories: list[str]) -> dict[str, Any]:
    states = categories[:3] + ["No Event"]
    nodes: list[dict[str, Any]] = []
    links: list[dict[str, Any]] = []
    cohort = 400
    prev: list[int] = []
    inflow: dict[int, float] = {}
    for step in range(len(_TIME_POINTS) - 1):
        layer_states = states if step < len(_TIME_POINTS) - 2 else states + ["Death", "Censored"]
        if not prev:
            prev = list(range(len(nodes), len(nodes) + len(states)))
            inflow = {i: cohort / len(states) for i in prev}
            nodes.extend({"name": s} for s in states)
        nxt = list(range(len(nodes), len(nodes) + len(layer_states)))
        nodes.extend({"name": s} for s in layer_states)
        for src in prev:
            weights = rng.dirichlet(np.ones(len(nxt)))
            flows = np.floor(weights * inflow.get(src, 0)).astype(int)
            for dst, value in zip(nxt, flows):
                if value > 0:
                    inflow[dst] = inflow.get(dst, 0) + int(value)
                    links.append({"source": src, "target": dst, "value": int(value)})
        prev = nxt
    for node_index, node in enumerate(nodes):
        node["count"] = max(
            sum(l["value"] for l in links if l["source"] == node_index),
            sum(l["value"] for l in links if l["target"] == node_index),
        )
    return {"nodes": nodes, "links": links, "time_points": _TIME_POINTS}


def _hazard_matrix(rng: np.random.Generator, categories: list[str]) -> dict[str, Any]:
    matrix: dict[str, dict[str, Any]] = {}
    for row in categories:
        matrix[row] = {}
        for col in categories:
            if row == col:
                matrix[row][col] = {"hr": None, "ci_lower": None, "ci_upper": None,
                                    "p_value": None, "diagonal": True}
                continue
            if rng.random() < 0.1:
                matrix[row][col] = {"hr": None, "ci_lower": None, "ci_upper": None,
                                    "p_value": None, "diagonal": False}
                continue
            log_hr = rng.normal(0.0, 0.7)
            se = rng.uniform(0.15, 0.5)
            p = math.erfc(abs(log_hr / se) / math.sqrt(2))
            matrix[row][col] = {
                "hr": round(float(np.exp(log_hr)), 3),
                "ci_lower": round(float(np.exp(log_hr - 1.96 * se)), 3),
                "ci_upper": round(float(np.exp(log_hr + 1.96 * se)), 3),
                "p_value": round(p, 4),
                "diagonal": False,
            }
    return matrix


def _hr_rows(matrix: dict[str, Any], focus: str) -> list[dict[str, Any]]:
    rows = []
    for other in matrix:
        if other == focus:
            continue
        fwd, rev = matrix[other][focus], matrix[focus][other]
        rows.append({
            "comparison_category": other,
            "hr": fwd["hr"], "ci_lower": fwd["ci_lower"],
            "ci_upper": fwd["ci_upper"], "p_value": fwd["p_value"],
            "hr_reverse": rev["hr"], "ci_lower_reverse": rev["ci_lower"],
            "ci_upper_reverse": rev["ci_upper"], "p_value_reverse": rev["p_value"],
        })
    return rows


def generate_demo_payload(seed: int = 42) -> dict[str, Any]:
    """Return a reproducible payload covering every chart type.

    Keys: ``cumulative_incidence``, ``sankey``, ``hr_matrix``, ``hr_table``
    and ``associations``.
    """
    rng = np.random.default_rng(seed)
    categories = list(_CATEGORIES)
    curves = {
        c: _incidence_curve(rng, ceiling=float(rng.uniform(0.05, 0.35)))
        for c in categories
    }
    matrix = _hazard_matrix(rng, categories)
    associations = [
        {"name": name, "hr": round(float(np.exp(rng.normal(0, 0.5))), 3),
         "ci_lower": None, "ci_upper": None, "p_value": round(float(rng.uniform(0, 0.2)), 4)}
        for name in ("Age > 65", "Female sex", "Prior ipilimumab", "PD-L1 high", "Baseline TSH > 4")
    ]
    for a in associations:
        a["ci_lower"] = round(a["hr"] * 0.7, 3)
        a["ci_upper"] = round(a["hr"] * 1.4, 3)

    logger.info("Generated demo payload (seed=%d, %d categories)", seed, len(categories))
    return {
        "cumulative_incidence": curves,
        "sankey": _flow_graph(rng, categories),
        "hr_matrix": matrix,
        "hr_table": _hr_rows(matrix, categories[0]),
        "associations": associations,
    }
