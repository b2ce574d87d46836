"""Cosine similarity ranking over stored embeddings (numpy)."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarities(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Return the cosine similarity of *query* against each row of *vectors*.

    Zero-norm rows (and a zero-norm query) score ``0.0``.
    """
    if not vectors:
        return np.zeros(0, dtype=np.float64)
    matrix = np.asarray(vectors, dtype=np.float64)
    q = np.asarray(query, dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores


def rank(
    query: Sequence[float],
    vectors: Sequence[Sequence[float]],
    top_k: int,
    min_similarity: float = 0.0,
) -> list[tuple[int, float]]:
    """Return ``(row_index, similarity)`` pairs, best first.

    Rows whose dimension differs from the query are skipped.
    """
    dim = len(query)
    candidates = [i for i, v in enumerate(vectors) if len(v) == dim]
    if not candidates or top_k <= 0:
        return []

    scores = cosine_similarities(query, [vectors[i] for i in candidates])
    order = np.argsort(-scores, kind="stable")
    ranked: list[tuple[int, float]] = []
    for pos in order:
        score = float(scores[pos])
        if score < min_similarity:
            break
        ranked.append((candidates[pos], score))
        if len(ranked) >= top_k:
            break
    return ranked
