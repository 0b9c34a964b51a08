"""
Document store implementations following the gold standard pattern.

Pattern: Protocol → Production impl → Test double → Factory

This module contains:
1. StoreConfig - Configuration dataclass
2. PgDocumentStore - PostgreSQL with pgvector + full-text search (production)
3. InMemoryDocumentStore - In-memory store (testing/development)
4. get_document_store() - Factory function

Ranking and LIMIT always run inside the store. The production store relies
on an HNSW index for cosine distance and a GIN index over a generated
tsvector column; Python only maps rows to RankedHit.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np
import psycopg
from pgvector.psycopg import register_vector_async
from psycopg_pool import AsyncConnectionPool

from story_search.core.errors import StoreError
from story_search.core.protocols import DocumentStore
from story_search.retrieval.document import Document, RankedHit

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


@dataclass
class StoreConfig:
    """Configuration for the document store."""

    connection_string: str = "postgresql://localhost/stories"
    table_name: str = "stories"
    embedding_dim: int = 768
    text_search_config: str = "english"
    pool_min_size: int = 1
    pool_max_size: int = 4
    pool_timeout: float = 10.0


# Embeddings are written but never read back through search paths
_COLUMNS = "id, title, author, genre, published_year, summary, content, content_hash"


def _row_to_document(row: Sequence) -> Document:
    return Document(
        id=row[0],
        title=row[1],
        author=row[2] or "",
        genre=row[3] or "",
        published_year=row[4] or 0,
        summary=row[5] or "",
        content=row[6] or "",
        content_hash=row[7],
    )


# ---------------------------------------------------------------------------
# PGVECTOR STORE (Production)
# ---------------------------------------------------------------------------


class PgDocumentStore:
    """
    PostgreSQL store using pgvector and built-in full-text search.

    Connections come from an async pool so the lexical and semantic queries
    of one hybrid search run on separate connections at the same time.
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self._pool: AsyncConnectionPool | None = None

    async def _configure(self, conn: psycopg.AsyncConnection) -> None:
        await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
        await register_vector_async(conn)

    async def open(self) -> None:
        """Create and open the connection pool."""
        if self._pool is not None:
            return
        self._pool = AsyncConnectionPool(
            self.config.connection_string,
            min_size=self.config.pool_min_size,
            max_size=self.config.pool_max_size,
            timeout=self.config.pool_timeout,
            kwargs={"autocommit": True},
            configure=self._configure,
            open=False,
        )
        await self._pool.open()
        logger.info(f"Opened connection pool for table {self.config.table_name}")

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _fetch(self, query: str, params: tuple) -> list[tuple]:
        if self._pool is None:
            await self.open()
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, params)
                return await cur.fetchall()
        except psycopg.Error as e:
            raise StoreError(f"Query on {self.config.table_name} failed: {e}") from e

    async def create_schema(self) -> None:
        """Create the stories table and its search indexes."""
        table = self.config.table_name
        ts_config = self.config.text_search_config
        statements = [
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                title TEXT NOT NULL,
                author TEXT,
                genre TEXT,
                published_year INTEGER NOT NULL DEFAULT 0,
                summary TEXT,
                content TEXT,
                content_hash TEXT,
                embedding vector({self.config.embedding_dim}),
                search_vector tsvector GENERATED ALWAYS AS (
                    to_tsvector('{ts_config}',
                        coalesce(title, '') || ' ' ||
                        coalesce(author, '') || ' ' ||
                        coalesce(genre, '') || ' ' ||
                        coalesce(summary, '') || ' ' ||
                        coalesce(content, ''))
                ) STORED
            )
            """,
            # Two racing ingestion runs must not both insert the same title
            f"CREATE UNIQUE INDEX IF NOT EXISTS {table}_title_idx ON {table} (title)",
            f"""
            CREATE INDEX IF NOT EXISTS {table}_embedding_idx
            ON {table}
            USING hnsw (embedding vector_cosine_ops)
            """,
            f"""
            CREATE INDEX IF NOT EXISTS {table}_search_vector_idx
            ON {table}
            USING GIN (search_vector)
            """,
        ]
        if self._pool is None:
            await self.open()
        try:
            async with self._pool.connection() as conn:
                for statement in statements:
                    await conn.execute(statement)
        except psycopg.Error as e:
            raise StoreError(f"Schema creation for {table} failed: {e}") from e
        logger.info(f"Schema ready for table {table}")

    async def lexical_search(self, query: str, limit: int) -> list[RankedHit]:
        """Rank by ts_rank against websearch_to_tsquery; non-matches excluded."""
        if limit <= 0:
            return []
        rows = await self._fetch(
            f"""
            SELECT {_COLUMNS},
                   ts_rank(search_vector, websearch_to_tsquery(%s::regconfig, %s)) AS score
            FROM {self.config.table_name}
            WHERE search_vector @@ websearch_to_tsquery(%s::regconfig, %s)
            ORDER BY score DESC, id
            LIMIT %s
            """,
            (
                self.config.text_search_config,
                query,
                self.config.text_search_config,
                query,
                limit,
            ),
        )
        return [RankedHit(document=_row_to_document(row), score=float(row[8])) for row in rows]

    async def semantic_search(self, vector: np.ndarray, limit: int) -> list[RankedHit]:
        """Rank by cosine similarity; documents without embeddings excluded."""
        if limit <= 0:
            return []
        # ORDER BY the bare distance expression so the HNSW index is used
        rows = await self._fetch(
            f"""
            SELECT {_COLUMNS},
                   1 - (embedding <=> %s) AS score
            FROM {self.config.table_name}
            WHERE embedding IS NOT NULL
            ORDER BY embedding <=> %s
            LIMIT %s
            """,
            (vector, vector, limit),
        )
        return [RankedHit(document=_row_to_document(row), score=float(row[8])) for row in rows]

    async def list_documents(self) -> list[Document]:
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM {self.config.table_name} ORDER BY id", ()
        )
        return [_row_to_document(row) for row in rows]

    async def get_document(self, document_id: int) -> Document | None:
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM {self.config.table_name} WHERE id = %s",
            (document_id,),
        )
        return _row_to_document(rows[0]) if rows else None

    async def get_by_title(self, title: str) -> Document | None:
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM {self.config.table_name} WHERE title = %s",
            (title,),
        )
        return _row_to_document(rows[0]) if rows else None

    async def apply_changes(
        self,
        inserts: Sequence[Document],
        replacements: Sequence[Document],
    ) -> None:
        """Write inserts and full-row replacements in a single transaction."""
        if not inserts and not replacements:
            return
        if self._pool is None:
            await self.open()

        table = self.config.table_name
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    for doc in inserts:
                        cur = await conn.execute(
                            f"""
                            INSERT INTO {table}
                                (title, author, genre, published_year, summary,
                                 content, content_hash, embedding)
                            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                            RETURNING id
                            """,
                            (
                                doc.title, doc.author, doc.genre, doc.published_year,
                                doc.summary, doc.content, doc.content_hash, doc.embedding,
                            ),
                        )
                        doc.id = (await cur.fetchone())[0]
                    for doc in replacements:
                        await conn.execute(
                            f"""
                            UPDATE {table} SET
                                title = %s,
                                author = %s,
                                genre = %s,
                                published_year = %s,
                                summary = %s,
                                content = %s,
                                content_hash = %s,
                                embedding = %s
                            WHERE id = %s
                            """,
                            (
                                doc.title, doc.author, doc.genre, doc.published_year,
                                doc.summary, doc.content, doc.content_hash, doc.embedding,
                                doc.id,
                            ),
                        )
        except psycopg.Error as e:
            raise StoreError(f"Committing ingestion batch to {table} failed: {e}") from e


# ---------------------------------------------------------------------------
# IN-MEMORY STORE (Testing/Development)
# ---------------------------------------------------------------------------

_QUERY_TOKEN = re.compile(r'-?"[^"]*"|\S+')
_WORD = re.compile(r"\w+")


def _words(text: str) -> list[str]:
    return _WORD.findall(text.lower())


def _contains_phrase(words: list[str], phrase: list[str]) -> bool:
    n = len(phrase)
    return any(words[i:i + n] == phrase for i in range(len(words) - n + 1))


class InMemoryDocumentStore:
    """
    In-memory document store for development/testing.

    Implements the same interface as PgDocumentStore without Postgres.
    Lexical matching understands bare terms, "quoted phrases" and -negation
    with an exact-word match (no stemming). Scores are term frequency over
    document length, so only the ordering is comparable to ts_rank.
    """

    def __init__(self, documents: Sequence[Document] = ()):
        self._documents: dict[int, Document] = {}
        self._next_id = 1
        for doc in documents:
            self._add(doc)

    def _add(self, doc: Document) -> None:
        if doc.id is None:
            doc.id = self._next_id
        self._next_id = max(self._next_id, doc.id + 1)
        self._documents[doc.id] = doc

    async def open(self) -> None:
        """No-op for in-memory store."""
        pass

    async def close(self) -> None:
        """No-op for in-memory store."""
        pass

    async def create_schema(self) -> None:
        """No-op for in-memory store."""
        pass

    def _parse_query(self, query: str) -> tuple[list[list[str]], list[list[str]]]:
        include, exclude = [], []
        for token in _QUERY_TOKEN.findall(query):
            negated = token.startswith("-") and len(token) > 1
            words = _words(token[1:] if negated else token)
            if words:
                (exclude if negated else include).append(words)
        return include, exclude

    async def lexical_search(self, query: str, limit: int) -> list[RankedHit]:
        if limit <= 0:
            return []
        include, exclude = self._parse_query(query)
        if not include:
            return []

        scored = []
        for doc in self._documents.values():
            words = _words(
                " ".join([doc.title, doc.author, doc.genre, doc.summary, doc.content])
            )
            if not words:
                continue
            if not all(_contains_phrase(words, phrase) for phrase in include):
                continue
            if any(_contains_phrase(words, phrase) for phrase in exclude):
                continue
            hits = sum(words.count(phrase[0]) for phrase in include)
            scored.append((doc, hits / len(words)))

        scored.sort(key=lambda x: (-x[1], x[0].id))
        return [RankedHit(document=doc, score=score) for doc, score in scored[:limit]]

    def _cosine_similarity(self, a: np.ndarray, b: np.ndarray) -> float:
        """Calculate cosine similarity between two vectors."""
        return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))

    async def semantic_search(self, vector: np.ndarray, limit: int) -> list[RankedHit]:
        if limit <= 0:
            return []
        scored = [
            (doc, self._cosine_similarity(vector, doc.embedding))
            for doc in self._documents.values()
            if doc.embedding is not None
        ]
        scored.sort(key=lambda x: (-x[1], x[0].id))
        return [RankedHit(document=doc, score=score) for doc, score in scored[:limit]]

    async def list_documents(self) -> list[Document]:
        return [self._documents[key] for key in sorted(self._documents)]

    async def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    async def get_by_title(self, title: str) -> Document | None:
        return next((d for d in self._documents.values() if d.title == title), None)

    async def apply_changes(
        self,
        inserts: Sequence[Document],
        replacements: Sequence[Document],
    ) -> None:
        # Validate everything first so a bad batch leaves the store untouched
        titles = {d.title for d in self._documents.values()}
        for doc in inserts:
            if doc.title in titles:
                raise StoreError(f"Duplicate title: {doc.title}")
            titles.add(doc.title)
        for doc in replacements:
            if doc.id not in self._documents:
                raise StoreError(f"No document with id {doc.id} to replace")

        for doc in inserts:
            self._add(doc)
        for doc in replacements:
            self._documents[doc.id] = replace(doc)


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_document_store(
    use_postgres: bool = False,
    config: StoreConfig | None = None,
) -> DocumentStore:
    """
    Factory function to get the appropriate document store.

    Args:
        use_postgres: Use PostgreSQL store (default: False for dev)
        config: Store configuration (uses defaults if not provided)

    Returns:
        DocumentStore implementation
    """
    if use_postgres:
        return PgDocumentStore(config or StoreConfig())
    return InMemoryDocumentStore()
