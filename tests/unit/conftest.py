"""Unit test fixtures: in-memory collections for a small container inventory."""

from __future__ import annotations

import pytest

from inventory_graph.collection import InventoryCollection
from inventory_graph.config import CollectionConfig
from inventory_graph.config import SaverStrategy


@pytest.fixture()
def vms():
    """Parallel-safe collection keyed by ``ems_ref``."""
    return InventoryCollection(
        "vms",
        config=CollectionConfig(
            saver_strategy=SaverStrategy.concurrent_safe,
            secondary_refs={"by_name": ("name",)},
        ),
    )


@pytest.fixture()
def hosts():
    """Collection with the default (ordered) save strategy."""
    return InventoryCollection("hosts")


@pytest.fixture()
def stacks():
    """Stacks indexed by ``uid`` with a secondary ``ems_ref`` index."""
    return InventoryCollection(
        "orchestration_stacks",
        config=CollectionConfig(
            manager_ref=("uid",),
            secondary_refs={"by_ems_ref": ("ems_ref",)},
        ),
    )


@pytest.fixture()
def resources():
    """Stack resources with a secondary index on their ``stack`` id."""
    return InventoryCollection(
        "orchestration_resources",
        config=CollectionConfig(secondary_refs={"by_stack": ("stack",)}),
    )
