"""Shared pytest fixtures for the irAE chart test suite."""

from __future__ import annotations

import pytest

from irae_charts.config.settings import get_typed_config
from irae_charts.render.dom import Document


@pytest.fixture(autouse=True)
def _fresh_config():
    """Drop the cached configuration around every test."""
    get_typed_config.cache_clear()
    yield
    get_typed_config.cache_clear()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def document() -> Document:
    """A document with one ``#chart`` mount point."""
    doc = Document()
    doc.create_mount("chart")
    return doc


# ---------------------------------------------------------------------------
# Payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def incidence_data() -> dict:
    """Two drawable series, one past the horizon only, one empty."""
    return {
        "Endocrine disorders": {
            "times": [30, 400, 1200],
            "cumulative_incidence": [0.05, 0.15, 0.9],
            "ci_lower": [0.02, 0.10, 0.8],
            "ci_upper": [0.08, 0.20, 0.95],
            "n_events": 12,
        },
        "Gastrointestinal disorders": {
            "times": [100, 200],
            "cumulative_incidence": [0.03, 0.06],
            "n_events": 4,
        },
        "Eye disorders": {
            "times": [1500],
            "cumulative_incidence": [0.5],
            "n_events": 1,
        },
        "Cardiac disorders": {
            "times": [],
            "cumulative_incidence": [],
            "n_events": 0,
        },
    }


@pytest.fixture()
def flow_graph() -> dict:
    """Two states flowing into two states over one interval."""
    return {
        "nodes": [
            {"name": "Skin and subcutaneous tissue disorders", "count": 60},
            {"name": "No Event", "count": 40},
            {"name": "Endocrine disorders", "count": 50},
            {"name": "Death", "count": 50},
        ],
        "links": [
            {"source": 0, "target": 2, "value": 30},
            {"source": 0, "target": 3, "value": 30},
            {"source": 1, "target": 2, "value": 20},
            {"source": 1, "target": 3, "value": 20},
        ],
        "time_points": [0, 90],
    }


@pytest.fixture()
def hr_matrix() -> dict:
    """A 3x3 matrix covering every cell kind."""
    def cell(hr, p, lo=None, hi=None):
        return {"hr": hr, "ci_lower": lo, "ci_upper": hi, "p_value": p, "diagonal": False}

    diag = {"hr": None, "ci_lower": None, "ci_upper": None, "p_value": None, "diagonal": True}
    return {
        "A": {"A": diag, "B": cell(2.5, 0.01, 1.4, 4.1), "C": cell(3.0, 0.2, 0.7, 9.0)},
        "B": {"A": cell(0.5, 0.05, 0.25, 0.99), "B": diag, "C": cell(None, None)},
        "C": {"A": cell(1.2, 0.03), "B": cell(0.9, 0.6), "C": diag},
    }


@pytest.fixture()
def hr_rows() -> list[dict]:
    """Unidirectional HR table rows."""
    return [
        {"comparison_category": "Hepatobiliary disorders", "hr": 2.0,
         "ci_lower": 1.2, "ci_upper": 3.4, "p_value": 0.0004},
        {"comparison_category": "Endocrine disorders", "hr": 0.5,
         "ci_lower": 0.3, "ci_upper": 0.8, "p_value": 0.05},
        {"comparison_category": "Gastrointestinal disorders", "hr": 1.1,
         "ci_lower": 0.9, "ci_upper": 1.3, "p_value": 0.049},
    ]
