"""
Identifier to storage position translation.

Meshes usually number their nodes and elements 1..N in storage order, in
which case an identifier maps to its position by subtracting one. Meshes
that have been renumbered or clipped carry sparse identifiers and need an
explicit lookup table. The two cases are separate types so that the
sequential case never allocates a mapping.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple, Union

import numpy as np

from adcmesh.core.errors import MalformedRecordError, MeshNotFoundError

logger = logging.getLogger(__name__)


class SequentialOrdering:
    """Position ``i`` holds identifier ``i + 1``."""

    is_sequential = True

    def __init__(self, kind: str, count: int):
        self.kind = kind
        self.count = count

    def index_of(self, identifier: int) -> int:
        """Return the storage position of ``identifier``.

        Raises:
            MeshNotFoundError: If the identifier is outside 1..count
        """
        if 0 < identifier <= self.count:
            return identifier - 1
        raise MeshNotFoundError(f"{self.kind.capitalize()} id {identifier} not found")

    def contains(self, identifier: int) -> bool:
        return 0 < identifier <= self.count

    def positions(self, identifiers) -> np.ndarray:
        """Vectorised :meth:`index_of` over an integer array of any shape."""
        identifiers = np.asarray(identifiers, dtype=np.int64)
        if identifiers.size:
            bad = (identifiers < 1) | (identifiers > self.count)
            if bad.any():
                raise MeshNotFoundError(f"{self.kind.capitalize()} id {identifiers[bad].flat[0]} not found")
        return identifiers - 1

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"SequentialOrdering(kind={self.kind!r}, count={self.count})"


class IndexedOrdering:
    """Explicit identifier to position mapping for sparse numbering."""

    is_sequential = False

    def __init__(self, kind: str, mapping: Dict[int, int]):
        self.kind = kind
        self.mapping = mapping
        self._sorted: Optional[Tuple[np.ndarray, np.ndarray]] = None

    @classmethod
    def from_identifiers(cls, kind: str, identifiers: Iterable[int]) -> "IndexedOrdering":
        """Build the mapping from identifiers listed in storage order.

        Raises:
            MalformedRecordError: If an identifier appears more than once
        """
        mapping: Dict[int, int] = {}
        for position, identifier in enumerate(identifiers):
            if identifier in mapping:
                raise MalformedRecordError(
                    f"Duplicate {kind} id {identifier} at positions {mapping[identifier]} and {position}"
                )
            mapping[identifier] = position
        return cls(kind, mapping)

    def index_of(self, identifier: int) -> int:
        try:
            return self.mapping[identifier]
        except KeyError:
            raise MeshNotFoundError(f"{self.kind.capitalize()} id {identifier} not found") from None

    def contains(self, identifier: int) -> bool:
        return identifier in self.mapping

    def positions(self, identifiers) -> np.ndarray:
        """Vectorised :meth:`index_of` using a sorted copy of the mapping."""
        identifiers = np.asarray(identifiers, dtype=np.int64)
        if self._sorted is None:
            keys = np.fromiter(self.mapping.keys(), dtype=np.int64, count=len(self.mapping))
            values = np.fromiter(self.mapping.values(), dtype=np.int64, count=len(self.mapping))
            order = np.argsort(keys)
            self._sorted = keys[order], values[order]
        keys, values = self._sorted

        if identifiers.size == 0:
            return np.zeros(identifiers.shape, dtype=np.int64)
        if keys.size == 0:
            raise MeshNotFoundError(f"{self.kind.capitalize()} id {identifiers.flat[0]} not found")

        loc = np.clip(np.searchsorted(keys, identifiers), 0, keys.size - 1)
        missing = keys[loc] != identifiers
        if missing.any():
            raise MeshNotFoundError(f"{self.kind.capitalize()} id {identifiers[missing].flat[0]} not found")
        return values[loc]

    def __len__(self) -> int:
        return len(self.mapping)

    def __repr__(self) -> str:
        return f"IndexedOrdering(kind={self.kind!r}, count={len(self.mapping)})"


Ordering = Union[SequentialOrdering, IndexedOrdering]


class OrderingTracker:
    """Decide the ordering of a record kind while its records are streamed in.

    Call :meth:`observe` once per record in storage order, then
    :meth:`finalize` with the complete identifier sequence.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self.count = 0
        self.sequential = True

    def observe(self, identifier: int) -> None:
        if self.sequential and identifier != self.count + 1:
            self.sequential = False
            logger.debug(f"{self.kind} ordering is not sequential (id {identifier} at position {self.count})")
        self.count += 1

    def finalize(self, identifiers: Iterable[int]) -> Ordering:
        if self.sequential:
            return SequentialOrdering(self.kind, self.count)
        ordering = IndexedOrdering.from_identifiers(self.kind, identifiers)
        logger.debug(f"Built {self.kind} lookup table with {len(ordering)} entries")
        return ordering


def build_ordering(kind: str, identifiers: Iterable[int]) -> Ordering:
    """Determine the ordering of an already materialised identifier sequence."""
    identifiers = list(identifiers)
    tracker = OrderingTracker(kind)
    for identifier in identifiers:
        tracker.observe(identifier)
    return tracker.finalize(identifiers)
