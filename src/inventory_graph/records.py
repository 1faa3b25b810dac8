"""Inventory records: entities under construction and skeletal placeholders.

An ``InventoryRecord`` keeps its attributes in a construction bag
(``data``) until it is saved. Placeholders pushed by skeletal pre-create
are ``InventoryRecord`` objects flagged ``skeletal`` that carry only
natural-key attributes; full ingestion data later fills the same record.

Anything else a collection returns from ``find`` is treated as an
already-persisted entity exposing its values as attributes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    from inventory_graph.lazy import LazyHandle
    from inventory_graph.protocols import CollectionLike
    from inventory_graph.reference import Reference


class InventoryRecord:
    """One record of a collection, before persistence."""

    def __init__(
        self,
        collection: CollectionLike,
        data: dict[str, Any],
        *,
        skeletal: bool = False,
    ) -> None:
        self.collection = collection
        self.data = data
        self.skeletal = skeletal

    def __getitem__(self, attribute: str) -> Any:
        return self.data.get(attribute)

    def __setitem__(self, attribute: str, value: Any) -> None:
        self.data[attribute] = value

    def __repr__(self) -> str:
        kind = "skeletal " if self.skeletal else ""
        return f"InventoryRecord:({kind}'{self.stringified_reference}', {self.collection})"

    @property
    def reference(self) -> Reference:
        return self.collection.build_reference(
            self.data, self.collection.resolution_config.primary_ref
        )

    @property
    def stringified_reference(self) -> str:
        return self.reference.stringified_reference

    def assign_attributes(self, attributes: dict[str, Any]) -> InventoryRecord:
        """Merge *attributes* into the construction bag, keeping the reference."""
        self.data.update(attributes)
        return self

    def lazy_attributes(self) -> list[tuple[str, LazyHandle]]:
        """Return ``(attribute, handle)`` pairs for every lazy value in ``data``.

        Lists of handles contribute one pair per handle.
        """
        from inventory_graph.lazy import LazyHandle

        pairs: list[tuple[str, LazyHandle]] = []
        for attribute, value in self.data.items():
            values = value if isinstance(value, list) else [value]
            pairs.extend(
                (attribute, item) for item in values if isinstance(item, LazyHandle)
            )
        return pairs

    def dependencies(self) -> list[tuple[str, LazyHandle]]:
        """Lazy attributes that force this record to be saved after their target."""
        return [
            (attribute, handle)
            for attribute, handle in self.lazy_attributes()
            if handle.is_dependency()
        ]

    def load(self) -> dict[str, Any]:
        """Resolve every lazy value and return the concrete attributes.

        Unresolvable loadable references are stored as unconnected edges
        on this record's collection.
        """
        from inventory_graph.lazy import LazyHandle

        def _resolve(attribute: str, value: Any) -> Any:
            if isinstance(value, LazyHandle):
                return value.load(self, attribute)
            return value

        attributes: dict[str, Any] = {}
        for attribute, value in self.data.items():
            if isinstance(value, list):
                attributes[attribute] = [_resolve(attribute, item) for item in value]
            else:
                attributes[attribute] = _resolve(attribute, value)
        return attributes


def read_attribute(found: Any, key: str) -> Any:
    """Read *key* from a record returned by ``find``.

    Records still under construction (including skeletal placeholders)
    hold values in their construction bag; persisted entities expose them
    as attributes.
    """
    if isinstance(found, InventoryRecord):
        return found.data.get(key)
    return getattr(found, key, None)
