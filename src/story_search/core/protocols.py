"""
Core protocols defining contracts for the entire system.

All infrastructure components implement these protocols,
enabling dependency injection and easy testing.

PATTERN: This follows the same structure as embeddings/openai_embeddings.py
- Protocol defines the contract
- Multiple implementations possible
- Factory functions for instantiation
- Test doubles for fast unit tests
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from story_search.retrieval.document import Document, RankedHit


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations:
    - OpenAIEmbeddings (production, any OpenAI-compatible endpoint)
    - MockEmbeddings (testing)

    Raises EmbeddingError on failure; never returns an empty vector.
    """

    @property
    def dimensions(self) -> int:
        ...

    async def embed(self, text: str, *, model: str | None = None) -> np.ndarray:
        """Generate embedding for a single text."""
        ...


# ---------------------------------------------------------------------------
# SUMMARIZER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class Summarizer(Protocol):
    """
    Contract for text summarization.

    Implementations:
    - ChatSummarizer (production)
    - MockSummarizer (testing)
    """

    async def summarize(self, text: str, *, model: str | None = None) -> str:
        """Return the final summary text (streaming is internal)."""
        ...


# ---------------------------------------------------------------------------
# DOCUMENT STORE PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentStore(Protocol):
    """
    Contract for the stories store.

    Implementations:
    - PgDocumentStore (production with PostgreSQL + pgvector)
    - InMemoryDocumentStore (testing/development)

    Both ranked queries apply ordering and limit inside the store and raise
    StoreError instead of returning an empty list on failure.
    """

    async def open(self) -> None:
        """Establish connections to the store."""
        ...

    async def close(self) -> None:
        """Release connections to the store."""
        ...

    async def create_schema(self) -> None:
        """Create tables and indexes if missing."""
        ...

    async def lexical_search(self, query: str, limit: int) -> list[RankedHit]:
        """Rank documents by full-text match against a web-style query."""
        ...

    async def semantic_search(self, vector: np.ndarray, limit: int) -> list[RankedHit]:
        """Rank documents by cosine similarity to the query vector."""
        ...

    async def list_documents(self) -> list[Document]:
        """Return every stored document, ordered by id."""
        ...

    async def get_document(self, document_id: int) -> Document | None:
        """Return one document or None."""
        ...

    async def get_by_title(self, title: str) -> Document | None:
        """Return the document with this title, or None."""
        ...

    async def apply_changes(
        self,
        inserts: Sequence[Document],
        replacements: Sequence[Document],
    ) -> None:
        """Persist all inserts and full replacements as one batch."""
        ...
