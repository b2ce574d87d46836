"""Unit tests for numpy cosine ranking."""

from __future__ import annotations

import pytest

from contentdesk.providers.vector_store.similarity import cosine_similarities, rank


class TestCosineSimilarities:
    def test_basic_scores(self) -> None:
        scores = cosine_similarities([1.0, 0.0], [[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
        assert scores.tolist() == pytest.approx([1.0, 0.0, -1.0])

    def test_zero_vectors_score_zero(self) -> None:
        assert cosine_similarities([1.0, 0.0], [[0.0, 0.0]]).tolist() == [0.0]
        assert cosine_similarities([0.0, 0.0], [[1.0, 0.0]]).tolist() == [0.0]

    def test_empty(self) -> None:
        assert cosine_similarities([1.0], []).size == 0


class TestRank:
    def test_best_first_with_top_k(self) -> None:
        vectors = [[0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
        ranked = rank([1.0, 0.0], vectors, top_k=2)

        assert [i for i, _ in ranked] == [1, 2]
        assert ranked[0][1] == pytest.approx(1.0)

    def test_min_similarity_cuts_off(self) -> None:
        vectors = [[1.0, 0.0], [0.0, 1.0]]
        assert [i for i, _ in rank([1.0, 0.0], vectors, top_k=5, min_similarity=0.5)] == [0]

    def test_mismatched_dimensions_skipped(self) -> None:
        vectors = [[1.0, 0.0, 0.0], [1.0, 0.0]]
        assert [i for i, _ in rank([1.0, 0.0], vectors, top_k=5)] == [1]

    def test_non_positive_top_k(self) -> None:
        assert rank([1.0], [[1.0]], top_k=0) == []
