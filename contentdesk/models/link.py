"""Link records and search results.

A :class:`LinkRecord` is an independently searchable external URL with its
own embedding, optionally cross-referenced to document ids.  Links are not
chunked; each one is embedded once from its name and description.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkRecord(BaseModel):
    """An external URL stored alongside its embedding."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    description: str = ""
    embedding: list[float] | None = None
    document_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def embedding_text(self) -> str:
        """Text embedded for link-level similarity search."""
        return f"{self.name} {self.description}".strip()

    def vector_content(self) -> str:
        """Content of the vector row auto-ingested for this link."""
        return f"Link: {self.name}\nDescription: {self.description}\nURL: {self.url}"


class SearchHit(BaseModel):
    """One merged search result (a vector chunk or a link)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["document", "link"]
    id: str
    content: str
    similarity: float
    metadata: dict[str, Any] = Field(default_factory=dict)
