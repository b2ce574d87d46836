"""Abstract base class for vector-store repositories.

One repository instance serves exactly one
:class:`~contentdesk.models.ingestion.VectorTarget`.  Callers never choose a
table by name; they ask the
:class:`~contentdesk.providers.vector_store.registry.VectorStoreRegistry`
for the repository bound to a target.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contentdesk.models.ingestion import VectorMatch, VectorRecord, VectorTarget


# Concrete implementation: SQLiteVectorStore (contentdesk/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for storing and querying embedded chunk rows."""

    @abstractmethod
    def get_target(self) -> VectorTarget:
        """Return the target this repository persists to."""

    @abstractmethod
    async def insert(self, record: VectorRecord) -> int:
        """Insert one vector row and return its id.

        Raises
        ------
        contentdesk.utils.errors.RAGError
            If the row could not be written.
        """

    @abstractmethod
    async def delete_by_ids(self, ids: list[int]) -> int:
        """Delete rows by id and return how many were removed."""

    @abstractmethod
    async def query(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[VectorMatch]:
        """Return the *top_k* rows most similar to *embedding*.

        Parameters
        ----------
        embedding:
            Query vector; must match the stored dimension.
        top_k:
            Maximum number of matches.
        min_similarity:
            Cosine-similarity floor; weaker matches are dropped.
        owner_id:
            Restrict matches to one owner when given.
        """

    @abstractmethod
    async def count(self, owner_id: str | None = None) -> int:
        """Return the number of stored rows."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this repository."""
