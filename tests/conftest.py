"""Root conftest: suite markers and per-test metric isolation."""

from __future__ import annotations

from pathlib import Path

import pytest

from inventory_graph.observability import reset_resolution_metrics


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Attach suite markers from test path.

    - `tests/unit/*` -> `unit`
    """
    root = Path(__file__).resolve().parents[1]
    for item in items:
        item_path = Path(str(item.fspath)).resolve()
        try:
            rel = item_path.relative_to(root)
        except ValueError:
            continue

        parts = rel.parts
        if len(parts) < 2 or parts[0] != "tests":
            continue
        if parts[1] == "unit":
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def clean_resolution_metrics():
    """Reset in-process resolution counters around each test."""
    reset_resolution_metrics()
    yield
    reset_resolution_metrics()
