"""Contracts the lazy resolution engine consumes from its host.

``InventoryCollection`` implements all of them in memory; hosts backed by
a real store provide their own.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from inventory_graph.config import ResolutionConfig

if TYPE_CHECKING:
    from inventory_graph.lazy import LazyHandle
    from inventory_graph.reference import Reference


@runtime_checkable
class SkeletalIndexLike(Protocol):
    """Placeholder store keyed by primary natural key.

    ``build`` must be an atomic find-or-create: concurrent calls with the
    same natural key return the same placeholder.
    """

    def build(self, data: dict[str, Any]) -> Any: ...


@runtime_checkable
class CollectionLike(Protocol):
    """Per-entity-type store the handles resolve against."""

    resolution_config: ResolutionConfig
    dependency_attributes: Mapping[str, Any]
    association_to_foreign_key_mapping: Mapping[str, str | None]

    @property
    def parallel_safe(self) -> bool: ...

    @property
    def saved(self) -> bool: ...

    @property
    def skeletal_primary_index(self) -> SkeletalIndexLike: ...

    def build_reference(self, data: Any, ref: str) -> Reference: ...

    def find(self, reference: Reference) -> Any: ...

    def store_unconnected_edges(
        self,
        owner: Any,
        owner_attribute: str,
        handle: LazyHandle,
    ) -> None: ...


class OwnerLike(Protocol):
    """Record holding a lazy handle as one of its attribute values."""

    collection: CollectionLike
