"""Lazy handles: deferred lookups of inventory records.

A ``LazyHandle`` wraps a ``Reference`` into a target collection plus an
optional attribute projection (``key``). Ingestion code creates handles
while records are still being built; they are resolved with ``load`` when
the owning record is saved.

Three concerns live here:
    1. Dependency classification (``is_dependency`` /
       ``is_transitive_dependency``), used to order saves.
    2. Skeletal pre-create: a primary handle without ``key`` pushes a
       placeholder record into the target's skeletal index so that
       parallel-safe collections can be saved out of order.
    3. Resolution, including flattening of nested secondary-index
       references and registration of unconnected edges.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING
from typing import Any

from inventory_graph.errors import NestedReferenceTooDeepError
from inventory_graph.observability import record_resolution
from inventory_graph.records import read_attribute

if TYPE_CHECKING:
    from inventory_graph.protocols import CollectionLike
    from inventory_graph.protocols import OwnerLike
    from inventory_graph.reference import Reference

logger = logging.getLogger(__name__)


def is_association_key(
    key: str,
    *,
    structural_keys: frozenset[str],
    dependency_attributes: Mapping[str, Any],
    association_to_foreign_key_mapping: Mapping[str, str | None],
) -> bool:
    """Return True if *key* names a relation on the target collection.

    A key is an association when it is a structural hierarchy link, a
    declared dependency attribute, or maps to a foreign key.
    """
    if key in structural_keys:
        return True
    if key in dependency_attributes:
        return True
    return association_to_foreign_key_mapping.get(key) is not None


class LazyHandle:
    """Deferred lookup of a record, or of one attribute of it."""

    def __init__(
        self,
        collection: CollectionLike,
        index_data: Any,
        *,
        ref: str | None = None,
        key: str | None = None,
        default: Any = None,
        transform_nested_lazy_finds: bool = False,
    ) -> None:
        self.collection = collection
        self.key = key
        self.default = default
        self.transform_nested_lazy_finds = transform_nested_lazy_finds
        self._reference = collection.build_reference(
            index_data, ref or collection.resolution_config.primary_ref
        )

        # A projected key is only available on a loaded record, never on a
        # placeholder, so pre-create is limited to whole-record handles.
        if key is None:
            self.skeletal_precreate()

    @property
    def reference(self) -> Reference:
        return self._reference

    @property
    def ref(self) -> str:
        return self._reference.ref

    @property
    def stringified_reference(self) -> str:
        return self._reference.stringified_reference

    def __getitem__(self, attribute: str) -> Any:
        return self._reference[attribute]

    def __str__(self) -> str:
        return self.stringified_reference

    def __repr__(self) -> str:
        suffix = f", ref: {self.ref}"
        if self.key is not None:
            suffix += f", key: {self.key}"
        return f"LazyHandle:('{self}', {self.collection}{suffix})"

    # ------------------------------------------------------------------
    # Dependency classification
    # ------------------------------------------------------------------

    def is_dependency(self) -> bool:
        """True if the owner must be saved after the target.

        A handle without ``key`` points at the record itself and is always
        a dependency; a projected handle only when the projection is a
        relation.
        """
        return self.key is None or self.is_transitive_dependency()

    def is_transitive_dependency(self) -> bool:
        """True if ``key`` projects an attribute that is itself a relation."""
        return self.key is not None and self.is_association(self.key)

    def is_association(self, key: str) -> bool:
        return is_association_key(
            key,
            structural_keys=self.collection.resolution_config.structural_association_keys,
            dependency_attributes=self.collection.dependency_attributes,
            association_to_foreign_key_mapping=self.collection.association_to_foreign_key_mapping,
        )

    # ------------------------------------------------------------------
    # Skeletal pre-create
    # ------------------------------------------------------------------

    def skeletal_precreate(self) -> Any:
        """Add a placeholder for the referenced record to the skeletal index.

        Returns the found or created placeholder, or ``None`` when any
        precondition fails.
        """
        if self.key is not None:
            return None
        collection = self.collection
        # Placeholders are upserted, so a unique index must back the save.
        if not collection.parallel_safe:
            return None
        if collection.saved:
            return None
        # Only the primary index is backed by a unique constraint.
        if not self._reference.primary:
            return None
        full_reference = self._reference.full_reference
        if not full_reference:
            return None
        # A null natural key would bypass the unique index.
        if any(full_reference.get(attribute) is None for attribute in self._reference.keys):
            return None

        logger.debug(
            "Skeletal pre-create in %s for %s",
            collection,
            self.stringified_reference,
        )
        record_resolution(collection=str(collection), outcome="skeletal_precreate")
        return collection.skeletal_primary_index.build(dict(full_reference))

    # ------------------------------------------------------------------
    # Nested reference flattening
    # ------------------------------------------------------------------

    def transform_nested_secondary_indexes(
        self, depth: int = 0, *, record_metrics: bool = True
    ) -> None:
        """Replace nested secondary-index handles with their loaded values.

        Recurses into nested handles that are themselves nested, then
        swaps in a new reference built from the concrete values.

        Raises:
            NestedReferenceTooDeepError: recursion went past
                ``max_nesting_depth``.
        """
        limit = self.collection.resolution_config.max_nesting_depth
        if depth > limit:
            logger.error(
                "Nested references too deep in %s for %s (depth %d)",
                self.collection,
                self.stringified_reference,
                depth,
            )
            raise NestedReferenceTooDeepError(depth, limit)

        flattened: dict[str, Any] = {}
        for attribute in self._reference.nested_lazy_keys:
            nested = self._reference.full_reference[attribute]
            if nested.reference.primary:
                continue
            if nested.reference.nested_secondary_index:
                nested.transform_nested_secondary_indexes(
                    depth + 1, record_metrics=record_metrics
                )
            flattened[attribute] = nested._resolve(None, None, record_metrics=record_metrics)

        self._reference = self._reference.with_values(flattened)
        logger.debug(
            "Flattened nested references in %s to %s",
            self.collection,
            self.stringified_reference,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def load(self, owner: OwnerLike | None = None, owner_attribute: str | None = None) -> Any:
        """Resolve to the found record, or to its ``key`` attribute.

        When *owner* and *owner_attribute* are given and a loadable
        reference finds nothing, the relation is stored as an unconnected
        edge on the owner's collection. Missing values resolve to
        ``default``.
        """
        return self._resolve(owner, owner_attribute, record_metrics=True)

    def peek(self) -> Any:
        """Resolve like ``load`` without counting the outcome.

        Collections use this to compute index keys of stored records.
        """
        return self._resolve(None, None, record_metrics=False)

    def _resolve(
        self,
        owner: OwnerLike | None,
        owner_attribute: str | None,
        *,
        record_metrics: bool,
    ) -> Any:
        if self.transform_nested_lazy_finds and self._reference.nested_secondary_index:
            self.transform_nested_secondary_indexes(record_metrics=record_metrics)

        return self._load_object(owner, owner_attribute, record_metrics=record_metrics)

    def _load_object(
        self,
        owner: OwnerLike | None,
        owner_attribute: str | None,
        *,
        record_metrics: bool,
    ) -> Any:
        loaded = self.collection.find(self._reference)

        if loaded is not None:
            outcome = "found"
        elif owner is not None and owner_attribute and self._reference.loadable:
            logger.info(
                "Unconnected edge %s.%s -> %r",
                owner.collection,
                owner_attribute,
                self,
            )
            outcome = "unconnected_edge"
            owner.collection.store_unconnected_edges(owner, owner_attribute, self)
        else:
            outcome = "missing"
        if record_metrics:
            record_resolution(collection=str(self.collection), outcome=outcome)

        if self.key is None:
            return loaded
        return self._load_object_with_key(loaded)

    def _load_object_with_key(self, loaded: Any) -> Any:
        if loaded is None:
            return self.default
        value = read_attribute(loaded, self.key)
        return self.default if value is None else value
