# tests/conftest.py
"""Shared test fixtures and helpers.

Graph fixtures are built with the factories in ``mapwright.testing`` so a
constructor change only touches the factories.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import copy
import logging
import os
from collections.abc import Iterator
from datetime import date
from typing import Any

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from mapwright.contracts.enums import FieldType
from mapwright.contracts.graph import MappingGraph
from mapwright.core.config import ResolutionSettings
from mapwright.testing import make_edge, make_field, make_graph, make_source, make_target

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so handlers never outlive a captured stream."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(logging.WARNING)


# =============================================================================
# Graph fixtures
# =============================================================================

ORDER_ROW: dict[str, Any] = {
    "customer": {"name": "Ada Lovelace", "email": " ada@example.org "},
    "status": "A",
    "amount": "15",
    "lines": [{"sku": "S-1", "qty": 2}],
    "tags": "red,green,blue",
    "shipped": "2024-12-01",
}


@pytest.fixture
def order_row() -> dict[str, Any]:
    return copy.deepcopy(ORDER_ROW)


@pytest.fixture
def order_source(order_row: dict[str, Any]):
    """Source node whose field ids are the paths of ORDER_ROW."""
    fields = [
        make_field(
            "customer",
            type=FieldType.OBJECT,
            children=[make_field("customer.name"), make_field("customer.email")],
        ),
        make_field("status"),
        make_field("amount"),
        make_field(
            "lines",
            type=FieldType.ARRAY,
            children=[make_field("lines[0].sku"), make_field("lines[0].qty", type=FieldType.NUMBER)],
        ),
        make_field("tags"),
        make_field("shipped", type=FieldType.DATE),
    ]
    return make_source("src", fields, [order_row])


@pytest.fixture
def invoice_target():
    """Target with a flat field, a nested object and a grouped array."""
    fields = [
        make_field("full_name"),
        make_field("state"),
        make_field("contact", type=FieldType.OBJECT, children=[make_field("contact.email")]),
        make_field(
            "items",
            type=FieldType.ARRAY,
            group_by="code",
            children=[make_field("items[0].code"), make_field("items[0].count", type=FieldType.NUMBER)],
        ),
    ]
    return make_target("tgt", fields)


@pytest.fixture
def direct_graph(order_source, invoice_target) -> MappingGraph:
    """Source fields wired straight into the invoice target."""
    return make_graph(
        [order_source, invoice_target],
        [
            make_edge("src", "customer.name", "tgt", "full_name", edge_id="e-name"),
            make_edge("src", "customer.email", "tgt", "contact.email", edge_id="e-email"),
            make_edge("src", "lines[0].sku", "tgt", "items[0].code", edge_id="e-sku"),
            make_edge("src", "lines[0].qty", "tgt", "items[0].count", edge_id="e-qty"),
        ],
    )


@pytest.fixture
def fixed_today() -> date:
    return date(2025, 1, 15)


@pytest.fixture
def resolution_settings(fixed_today: date) -> ResolutionSettings:
    return ResolutionSettings(today=fixed_today)
