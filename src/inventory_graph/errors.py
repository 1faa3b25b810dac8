"""Exceptions raised while resolving inventory references."""

from __future__ import annotations


class InventoryGraphError(Exception):
    """Base class for inventory graph errors."""


class MalformedGraphError(InventoryGraphError):
    """The ingestion graph is cyclic or corrupt. Not retriable."""


class NestedReferenceTooDeepError(MalformedGraphError):
    """Nested secondary-index references exceed the flattening depth limit."""

    def __init__(self, depth: int, limit: int) -> None:
        self.depth = depth
        self.limit = limit
        super().__init__(
            f"references nested too deep: depth {depth} exceeds limit {limit}"
        )


class UnknownReferenceError(InventoryGraphError, KeyError):
    """A collection was asked for a ref name it does not declare."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
