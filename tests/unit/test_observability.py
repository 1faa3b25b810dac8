"""Unit tests for in-process resolution counters."""

from __future__ import annotations

import pytest

from inventory_graph.observability import record_resolution
from inventory_graph.observability import reset_resolution_metrics
from inventory_graph.observability import resolution_metrics_snapshot


class TestResolutionMetrics:
    def test_records_counts_per_collection(self):
        record_resolution(collection="vms", outcome="found")
        record_resolution(collection="vms", outcome="found")
        record_resolution(collection="hosts", outcome="missing")

        snapshot = resolution_metrics_snapshot()
        assert snapshot["vms"] == {
            "found": 2,
            "missing": 0,
            "unconnected_edge": 0,
            "skeletal_precreate": 0,
        }
        assert snapshot["hosts"]["missing"] == 1
        assert list(snapshot) == ["hosts", "vms"]

    def test_rejects_unknown_outcome(self):
        with pytest.raises(ValueError, match="Invalid outcome"):
            record_resolution(collection="vms", outcome="exploded")

    def test_reset(self):
        record_resolution(collection="vms", outcome="found")
        reset_resolution_metrics()
        assert resolution_metrics_snapshot() == {}
