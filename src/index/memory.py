"""InMemoryVectorIndex — exact numpy search over an id → vector map.

Used for development and tests. Production substitutes an ANN-backed index
implementing the same interface.
"""

from collections.abc import Mapping, Sequence

import numpy as np

from src.index.base import IndexHit, VectorIndex, rank_hits


class InMemoryVectorIndex(VectorIndex):
    """In-memory vector collection. Pre-stacks vectors into a matrix."""

    def __init__(
        self,
        vectors: Mapping[str, Sequence[float]] | None = None,
        *,
        name: str = "memory",
    ) -> None:
        self._name = name
        self._vectors: dict[str, list[float]] = {
            rid: list(v) for rid, v in (vectors or {}).items()
        }
        self._rebuild()

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        return len(self._ids)

    def _rebuild(self) -> None:
        self._ids: list[str] = list(self._vectors)
        if self._ids:
            self._matrix = np.asarray(
                [self._vectors[i] for i in self._ids], dtype=np.float64,
            )
        else:
            self._matrix = np.zeros((0, 0), dtype=np.float64)

    def upsert(self, record_id: str, vector: Sequence[float]) -> None:
        """Store exactly one vector per record id."""
        self._vectors[record_id] = list(vector)
        self._rebuild()

    def remove(self, record_id: str) -> bool:
        removed = self._vectors.pop(record_id, None) is not None
        if removed:
            self._rebuild()
        return removed

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        min_similarity: float,
    ) -> list[IndexHit]:
        return rank_hits(
            self._ids,
            self._matrix,
            vector,
            top_k=top_k,
            min_similarity=min_similarity,
        )
