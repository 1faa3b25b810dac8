"""Configuration dataclasses for reference resolution and collections.

Frozen dataclasses with sensible defaults. No env-var loading or YAML
parsing; hosts override values at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum

PRIMARY_REF = "manager_ref"

# Hierarchy links that cannot be introspected from the collection metadata
# but always point at another record.
STRUCTURAL_ASSOCIATION_KEYS = frozenset({"parent", "genealogy_parent"})


class SaverStrategy(str, Enum):
    """How a collection persists its records."""

    default = "default"
    batch = "batch"
    concurrent_safe = "concurrent_safe"
    concurrent_safe_batch = "concurrent_safe_batch"

    @property
    def parallel_safe(self) -> bool:
        """True for strategies that upsert against a unique natural key."""
        return self in (SaverStrategy.concurrent_safe, SaverStrategy.concurrent_safe_batch)


@dataclass(frozen=True)
class ResolutionConfig:
    """Knobs for lazy reference resolution."""

    max_nesting_depth: int = 20
    structural_association_keys: frozenset[str] = STRUCTURAL_ASSOCIATION_KEYS
    primary_ref: str = PRIMARY_REF

    def __post_init__(self) -> None:
        if self.max_nesting_depth < 1:
            raise ValueError("max_nesting_depth must be >= 1")
        if not self.primary_ref:
            raise ValueError("primary_ref must be a non-empty string")


@dataclass(frozen=True)
class CollectionConfig:
    """Index layout and save strategy of one inventory collection."""

    saver_strategy: SaverStrategy = SaverStrategy.default
    manager_ref: tuple[str, ...] = ("ems_ref",)
    secondary_refs: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.manager_ref:
            raise ValueError("manager_ref must contain at least one key")
        for name, keys in self.secondary_refs.items():
            if not keys:
                msg = f"Secondary ref {name!r} must contain at least one key"
                raise ValueError(msg)
