"""In-memory inventory collection.

``InventoryCollection`` stores the records of one entity type, indexes
them by their primary and secondary refs, and exposes everything lazy
handles need: reference building, lookup, dependency metadata, the
skeletal index, and the unconnected-edge registry.

Lookups consult, in order: records built during ingestion, skeletal
placeholders, and entities registered as already persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from threading import Lock
from threading import local
from typing import Any

from pydantic import BaseModel
from pydantic import Field

from inventory_graph.config import CollectionConfig
from inventory_graph.config import ResolutionConfig
from inventory_graph.errors import NestedReferenceTooDeepError
from inventory_graph.errors import UnknownReferenceError
from inventory_graph.lazy import LazyHandle
from inventory_graph.records import InventoryRecord
from inventory_graph.records import read_attribute
from inventory_graph.reference import STRINGIFIED_SEPARATOR
from inventory_graph.reference import Reference

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Unconnected edges
# ---------------------------------------------------------------------------


class UnconnectedEdge(BaseModel):
    """A relation whose target could not be found when it was loaded."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    owner: Any = Field(description="Record holding the lazy handle.")
    owner_attribute: str = Field(description="Attribute of the owner holding the handle.")
    handle: LazyHandle = Field(description="The handle that failed to resolve.")


# ---------------------------------------------------------------------------
# Skeletal index
# ---------------------------------------------------------------------------


class SkeletalPrimaryIndex:
    """Placeholder records keyed by primary stringified reference.

    ``build`` is an atomic find-or-create guarded by a lock, so concurrent
    pre-creates of the same natural key share one placeholder.
    """

    def __init__(self, collection: InventoryCollection) -> None:
        self._collection = collection
        self._lock = Lock()
        self._index: dict[str, InventoryRecord] = {}

    def __len__(self) -> int:
        return len(self._index)

    def find(self, stringified_reference: str) -> InventoryRecord | None:
        return self._index.get(stringified_reference)

    def promote(
        self,
        stringified_reference: str,
        records: dict[str, InventoryRecord],
    ) -> InventoryRecord:
        """Move the placeholder for *stringified_reference* into *records*.

        Returns the record already in *records*, the promoted placeholder,
        or a new empty record. Runs under the same lock as ``build``, so a
        concurrent pre-create either sees the full record or is promoted.
        """
        with self._lock:
            record = records.get(stringified_reference)
            if record is None:
                record = self._index.pop(stringified_reference, None)
                if record is None:
                    record = InventoryRecord(self._collection, {})
                record.skeletal = False
                records[stringified_reference] = record
            return record

    def records(self) -> list[InventoryRecord]:
        return list(self._index.values())

    def build(self, data: dict[str, Any]) -> InventoryRecord:
        """Find or create the placeholder for the natural key in *data*.

        Only the primary key attributes are stored on a new placeholder.
        A record already built from full ingestion data is returned as is.
        """
        collection = self._collection
        reference = collection.build_reference(data, collection.resolution_config.primary_ref)
        uuid = reference.stringified_reference

        with self._lock:
            existing = collection.find_record(uuid)
            if existing is not None:
                return existing
            placeholder = self._index.get(uuid)
            if placeholder is None:
                placeholder = InventoryRecord(
                    collection, reference.index_data(), skeletal=True
                )
                self._index[uuid] = placeholder
                logger.debug("Built skeletal record %s in %s", uuid, collection)
            return placeholder


# ---------------------------------------------------------------------------
# InventoryCollection
# ---------------------------------------------------------------------------


class InventoryCollection:
    """Records of one entity type plus the metadata lazy handles consult."""

    def __init__(
        self,
        name: str,
        *,
        config: CollectionConfig | None = None,
        resolution_config: ResolutionConfig | None = None,
        dependency_attributes: Mapping[str, Iterable[str]] | None = None,
        association_to_foreign_key_mapping: Mapping[str, str | None] | None = None,
    ) -> None:
        self.name = name
        self.config = config or CollectionConfig()
        self.resolution_config = resolution_config or ResolutionConfig()
        self.dependency_attributes: dict[str, set[str]] = {
            attribute: set(targets)
            for attribute, targets in (dependency_attributes or {}).items()
        }
        self.transitive_dependency_attributes: dict[str, set[str]] = {}
        self.association_to_foreign_key_mapping = dict(
            association_to_foreign_key_mapping or {}
        )
        self.skeletal_primary_index = SkeletalPrimaryIndex(self)
        self.unconnected_edges: list[UnconnectedEdge] = []
        self._records: dict[str, InventoryRecord] = {}
        self._persisted: dict[str, Any] = {}
        self._saved = False

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"InventoryCollection:<{self.name}>"

    # ----- Flags -----

    @property
    def parallel_safe(self) -> bool:
        return self.config.saver_strategy.parallel_safe

    @property
    def saved(self) -> bool:
        return self._saved

    def mark_saved(self) -> None:
        self._saved = True

    # ----- References -----

    def ref_keys(self, ref: str) -> tuple[str, ...]:
        """Return the natural-key attributes of index *ref*."""
        if ref == self.resolution_config.primary_ref:
            return self.config.manager_ref
        keys = self.config.secondary_refs.get(ref)
        if keys is None:
            msg = f"Collection {self.name!r} has no ref {ref!r}"
            raise UnknownReferenceError(msg)
        return keys

    def build_reference(self, data: Any, ref: str) -> Reference:
        return Reference.build(
            data,
            ref,
            self.ref_keys(ref),
            primary=ref == self.resolution_config.primary_ref,
        )

    def lazy_find(
        self,
        index_data: Any,
        *,
        ref: str | None = None,
        key: str | None = None,
        default: Any = None,
        transform_nested_lazy_finds: bool = False,
    ) -> LazyHandle:
        """Return a handle resolving *index_data* against this collection."""
        return LazyHandle(
            self,
            index_data,
            ref=ref,
            key=key,
            default=default,
            transform_nested_lazy_finds=transform_nested_lazy_finds,
        )

    # ----- Records -----

    @property
    def records(self) -> list[InventoryRecord]:
        return list(self._records.values())

    def build(self, data: dict[str, Any]) -> InventoryRecord:
        """Add a record, merging into an existing record or placeholder.

        A skeletal placeholder for the same natural key is promoted to a
        full record; its identity and reference are kept.
        """
        uuid = self.build_reference(data, self.resolution_config.primary_ref).stringified_reference
        record = self.skeletal_primary_index.promote(uuid, self._records)
        return record.assign_attributes(data)

    def add_persisted(self, entity: Any) -> None:
        """Register an entity that already exists in the store."""
        values = {key: getattr(entity, key, None) for key in self.config.manager_ref}
        uuid = self.build_reference(values, self.resolution_config.primary_ref).stringified_reference
        self._persisted[uuid] = entity

    def find_record(self, stringified_reference: str) -> InventoryRecord | None:
        return self._records.get(stringified_reference)

    def find(self, reference: Reference | Any, *, ref: str | None = None) -> Any:
        """Return the entity matching *reference*, or ``None``.

        *reference* may also be raw index data, built against *ref*.
        """
        if not isinstance(reference, Reference):
            reference = self.build_reference(
                reference, ref or self.resolution_config.primary_ref
            )
        uuid = reference.stringified_reference

        if reference.primary:
            return (
                self._records.get(uuid)
                or self.skeletal_primary_index.find(uuid)
                or self._persisted.get(uuid)
            )

        candidates = [
            *self._records.values(),
            *self.skeletal_primary_index.records(),
            *self._persisted.values(),
        ]
        evaluating = _evaluating()
        for candidate in candidates:
            # A record whose key is being computed up the stack cannot match
            # its own nested lookup.
            if any(candidate is other for other in evaluating):
                continue
            if self._index_key(candidate, reference.keys) == uuid:
                return candidate
        return None

    def _index_key(self, entity: Any, keys: tuple[str, ...]) -> str:
        """Secondary index key of *entity*, projected handles resolved to values.

        Raises:
            NestedReferenceTooDeepError: nested key lookups went past
                ``max_nesting_depth``.
        """
        evaluating = _evaluating()
        limit = self.resolution_config.max_nesting_depth
        if len(evaluating) > limit:
            logger.error("Secondary index keys nested too deep in %s", self)
            raise NestedReferenceTooDeepError(len(evaluating), limit)

        evaluating.append(entity)
        try:
            parts: list[str] = []
            for key in keys:
                value = read_attribute(entity, key)
                if isinstance(value, LazyHandle):
                    value = value.peek() if value.key is not None else value.stringified_reference
                parts.append("" if value is None else str(value))
        finally:
            evaluating.pop()
        return STRINGIFIED_SEPARATOR.join(parts)

    # ----- Unconnected edges -----

    def store_unconnected_edges(
        self,
        owner: Any,
        owner_attribute: str,
        handle: LazyHandle,
    ) -> None:
        self.unconnected_edges.append(
            UnconnectedEdge(owner=owner, owner_attribute=owner_attribute, handle=handle)
        )

    # ----- Dependency scan -----

    def scan(self) -> None:
        """Collect dependency attributes from the lazy values of all records."""
        for record in self._records.values():
            for attribute, handle in record.lazy_attributes():
                target = str(handle.collection)
                if handle.is_dependency():
                    self.dependency_attributes.setdefault(attribute, set()).add(target)
                if handle.is_transitive_dependency():
                    self.transitive_dependency_attributes.setdefault(attribute, set()).add(
                        target
                    )

    def dependency_collections(self) -> set[str]:
        """Names of collections that must be saved before this one."""
        return {target for targets in self.dependency_attributes.values() for target in targets}


_LOCAL = local()


def _evaluating() -> list[Any]:
    """Records whose secondary index key is being computed on this thread."""
    stack = getattr(_LOCAL, "evaluating", None)
    if stack is None:
        stack = _LOCAL.evaluating = []
    return stack
