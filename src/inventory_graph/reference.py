"""Natural-key references used to look up inventory records.

A ``Reference`` identifies a record by the attributes of one of its
collection's indexes: the primary ``manager_ref`` or a named secondary
ref. Key values may themselves be ``LazyHandle`` objects pointing into
another collection; such references are flattened before they are used
against a secondary index.

References are immutable. Flattening builds a new ``Reference`` via
``with_values`` and swaps it into the owning handle.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import Field

from inventory_graph.lazy import LazyHandle

STRINGIFIED_SEPARATOR = "__"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, LazyHandle):
        return value.stringified_reference
    return str(value)


class Reference(BaseModel):
    """Immutable natural-key lookup for one record."""

    model_config = {"frozen": True}

    ref: str = Field(description="Name of the index this reference targets.")
    keys: tuple[str, ...] = Field(
        description="Ordered attribute names forming the natural key.",
    )
    full_reference: dict[str, Any] = Field(
        default_factory=dict,
        description="Attribute values; key values may be lazy handles.",
    )
    primary: bool = Field(
        default=False,
        description="True when ``ref`` is the collection's primary index.",
    )

    @classmethod
    def build(
        cls,
        data: Any,
        ref: str,
        keys: tuple[str, ...],
        *,
        primary: bool = False,
    ) -> Reference:
        """Build a reference from a mapping or a single scalar key value.

        A scalar is shorthand for ``{keys[0]: scalar}``.
        """
        if isinstance(data, Mapping):
            full_reference = dict(data)
        else:
            full_reference = {keys[0]: data}
        return cls(ref=ref, keys=tuple(keys), full_reference=full_reference, primary=primary)

    def __getitem__(self, attribute: str) -> Any:
        return self.full_reference.get(attribute)

    def __str__(self) -> str:
        return self.stringified_reference

    @property
    def stringified_reference(self) -> str:
        """Index key: key values joined with ``__``."""
        return STRINGIFIED_SEPARATOR.join(
            _stringify(self.full_reference.get(key)) for key in self.keys
        )

    @property
    def loadable(self) -> bool:
        """True when every key has a non-null value."""
        return all(self.full_reference.get(key) is not None for key in self.keys)

    @property
    def nested_lazy_keys(self) -> list[str]:
        """Keys whose values are lazy handles."""
        return [
            key for key in self.keys if isinstance(self.full_reference.get(key), LazyHandle)
        ]

    @property
    def nested_secondary_index(self) -> bool:
        """True if some key value is a lazy handle into a secondary index."""
        return any(
            not self.full_reference[key].reference.primary for key in self.nested_lazy_keys
        )

    def index_data(self) -> dict[str, Any]:
        """Return only the natural-key attributes."""
        return {key: self.full_reference.get(key) for key in self.keys}

    def with_values(self, values: Mapping[str, Any]) -> Reference:
        """Return a copy with *values* merged over ``full_reference``."""
        return Reference(
            ref=self.ref,
            keys=self.keys,
            full_reference={**self.full_reference, **values},
            primary=self.primary,
        )
