"""Lazy references and dependency resolution for inventory ingestion.

Exports are loaded lazily so that ``reference`` and ``lazy`` can import
each other's module without cycles at package import time.
"""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "CollectionConfig",
    "CollectionLike",
    "InventoryCollection",
    "InventoryGraphError",
    "InventoryRecord",
    "LazyHandle",
    "MalformedGraphError",
    "NestedReferenceTooDeepError",
    "Reference",
    "ResolutionConfig",
    "SaverStrategy",
    "SkeletalIndexLike",
    "SkeletalPrimaryIndex",
    "UnconnectedEdge",
    "UnknownReferenceError",
    "is_association_key",
    "read_attribute",
]


_EXPORT_TO_MODULE = {
    "CollectionConfig": "inventory_graph.config",
    "ResolutionConfig": "inventory_graph.config",
    "SaverStrategy": "inventory_graph.config",
    "InventoryGraphError": "inventory_graph.errors",
    "MalformedGraphError": "inventory_graph.errors",
    "NestedReferenceTooDeepError": "inventory_graph.errors",
    "UnknownReferenceError": "inventory_graph.errors",
    "LazyHandle": "inventory_graph.lazy",
    "is_association_key": "inventory_graph.lazy",
    "InventoryRecord": "inventory_graph.records",
    "read_attribute": "inventory_graph.records",
    "Reference": "inventory_graph.reference",
    "CollectionLike": "inventory_graph.protocols",
    "SkeletalIndexLike": "inventory_graph.protocols",
    "InventoryCollection": "inventory_graph.collection",
    "SkeletalPrimaryIndex": "inventory_graph.collection",
    "UnconnectedEdge": "inventory_graph.collection",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(module_name)
    return getattr(module, name)
