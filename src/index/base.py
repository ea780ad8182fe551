"""VectorIndex abstract interface and exact cosine ranking.

Two logical collections exist (questions, patterns); each is one VectorIndex
instance. ``query`` returns at most ``top_k`` hits whose cosine similarity is
>= ``min_similarity`` (inclusive), sorted descending.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

import numpy as np


class Collection(StrEnum):
    QUESTIONS = "questions"
    PATTERNS = "patterns"


@dataclass(frozen=True)
class IndexHit:
    """A record id with its similarity to the query vector."""

    record_id: str
    similarity: float


class VectorIndex(ABC):
    """Nearest-neighbour lookup over one collection of stored vectors."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        min_similarity: float,
    ) -> list[IndexHit]:
        """Return up to top_k hits with similarity >= min_similarity."""
        ...


def cosine_similarities(
    query: Sequence[float],
    matrix: np.ndarray,
) -> np.ndarray:
    """Cosine similarity of ``query`` against each row of ``matrix``.

    Rows (or a query) with zero norm score 0.0. Results are clipped to
    [-1, 1] to absorb floating point drift.
    """
    q = np.asarray(query, dtype=np.float64)
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float64)
    if matrix.shape[1] != q.shape[0]:
        msg = f"Dimension mismatch: query has {q.shape[0]}, index has {matrix.shape[1]}"
        raise ValueError(msg)

    row_norms = np.linalg.norm(matrix, axis=1)
    q_norm = np.linalg.norm(q)
    denom = row_norms * q_norm
    dots = matrix @ q
    sims = np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)
    return np.clip(sims, -1.0, 1.0)


def rank_hits(
    record_ids: Sequence[str],
    matrix: np.ndarray,
    query: Sequence[float],
    *,
    top_k: int,
    min_similarity: float,
) -> list[IndexHit]:
    """Exact top-k search with an inclusive similarity floor."""
    if top_k <= 0 or not record_ids:
        return []

    sims = cosine_similarities(query, matrix)
    keep = np.flatnonzero(sims >= min_similarity)
    # Stable sort keeps insertion order among equal scores
    order = keep[np.argsort(-sims[keep], kind="stable")][:top_k]
    return [
        IndexHit(record_id=record_ids[i], similarity=float(sims[i]))
        for i in order
    ]
