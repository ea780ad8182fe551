"""CatalogVectorIndex — vector search over embeddings stored in the catalog.

Loads the ``(record_id, vector)`` snapshot of one collection through a
repository on first query, then ranks exactly with numpy. Built per request,
so each matching call sees a consistent catalog snapshot.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence

import numpy as np

from src.index.base import Collection, IndexHit, VectorIndex, rank_hits

logger = logging.getLogger(__name__)

EmbeddingLoader = Callable[[], Awaitable[list[tuple[str, list[float]]]]]


class CatalogVectorIndex(VectorIndex):
    """Exact cosine search over one catalog collection."""

    def __init__(self, collection: Collection, loader: EmbeddingLoader) -> None:
        self._collection = collection
        self._loader = loader
        self._ids: list[str] | None = None
        self._matrix: np.ndarray | None = None

    @property
    def name(self) -> str:
        return f"catalog:{self._collection.value}"

    async def _ensure_loaded(self) -> None:
        if self._ids is not None:
            return
        rows = await self._loader()
        dims = {len(vec) for _, vec in rows}
        if len(dims) > 1:
            # Mixed dimensions mean a model change mid-catalog; keep the majority
            counts = {d: sum(1 for _, v in rows if len(v) == d) for d in dims}
            keep_dim = max(counts, key=counts.__getitem__)
            logger.warning(
                "Collection %s has mixed embedding dimensions %s; using %d",
                self._collection.value, sorted(dims), keep_dim,
            )
            rows = [(rid, vec) for rid, vec in rows if len(vec) == keep_dim]

        self._ids = [rid for rid, _ in rows]
        self._matrix = (
            np.asarray([vec for _, vec in rows], dtype=np.float64)
            if rows else np.zeros((0, 0), dtype=np.float64)
        )
        logger.debug(
            "Loaded %d vectors for collection %s",
            len(self._ids), self._collection.value,
        )

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        min_similarity: float,
    ) -> list[IndexHit]:
        await self._ensure_loaded()
        assert self._ids is not None and self._matrix is not None
        return rank_hits(
            self._ids,
            self._matrix,
            vector,
            top_k=top_k,
            min_similarity=min_similarity,
        )
