"""
Search service - turns one query into one ranked list.

Modes:
- lexical:  full-text search only
- semantic: embed the query, then cosine-similarity search
- hybrid:   embed, then lexical + semantic concurrently, then RRF

An embedding failure aborts semantic and hybrid searches. There is no
silent fallback to lexical-only; degrading is the caller's decision.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass

from story_search.core.protocols import DocumentStore, EmbeddingProvider
from story_search.observability import attributes, get_tracer
from story_search.retrieval.document import RankedHit
from story_search.retrieval.fusion import reciprocal_rank_fusion

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
# Each retriever fetches this many times the final limit before fusion
OVERFETCH_FACTOR = 2


class SearchMode(str, enum.Enum):
    LEXICAL = "lexical"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: "str | SearchMode | None") -> "SearchMode":
        """Parse a mode name. None means the field was absent: hybrid."""
        if value is None:
            return cls.HYBRID
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown search mode {value!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class SearchRequest:
    """One search query."""
    query: str
    mode: SearchMode = SearchMode.HYBRID
    limit: int = DEFAULT_LIMIT


class SearchService:
    """
    Orchestrates embedding, store queries and fusion for a query.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingProvider,
        embedding_model: str | None = None,
        default_timeout: float | None = None,
    ):
        self._store = store
        self._embeddings = embeddings
        self._embedding_model = embedding_model
        self._default_timeout = default_timeout

    async def search(
        self,
        request: SearchRequest,
        *,
        timeout: float | None = None,
    ) -> list[RankedHit]:
        """
        Run one search.

        Args:
            request: Query text, mode and limit
            timeout: Deadline in seconds for the whole search, covering the
                embedding call and both store calls. Falls back to the
                service default; None disables it.

        Returns:
            At most request.limit hits, best first. Empty for a blank query
            or a non-positive limit.

        Raises:
            EmbeddingError: semantic/hybrid query could not be embedded
            StoreError: the store failed
            TimeoutError: the deadline expired
        """
        mode = SearchMode.parse(request.mode)
        if not request.query or not request.query.strip() or request.limit <= 0:
            return []

        deadline = timeout if timeout is not None else self._default_timeout
        logger.info(f"Search: query={request.query!r} mode={mode.value} limit={request.limit}")

        start = time.perf_counter()
        with get_tracer().start_span(
            "search",
            attributes=attributes.search_attributes(
                mode.value, request.limit, self._embedding_model
            ),
        ) as span:
            try:
                async with asyncio.timeout(deadline):
                    hits = await self._dispatch(mode, request.query, request.limit, span)
            except Exception as e:
                logger.error(f"Search failed ({mode.value}): {e}")
                span.set_attribute(attributes.ERROR_TYPE, type(e).__name__)
                raise
            span.set_attribute(attributes.SEARCH_RESULT_COUNT, len(hits))
            span.set_attribute(
                attributes.SEARCH_LATENCY_MS, (time.perf_counter() - start) * 1000
            )
        return hits

    async def _dispatch(self, mode: SearchMode, query: str, limit: int, span) -> list[RankedHit]:
        if mode is SearchMode.LEXICAL:
            return await self._store.lexical_search(query, limit)

        vector = await self._embeddings.embed(query, model=self._embedding_model)

        if mode is SearchMode.SEMANTIC:
            return await self._store.semantic_search(vector, limit)

        lexical, semantic = await self._gather_candidates(query, vector, limit * OVERFETCH_FACTOR)
        span.set_attribute(attributes.SEARCH_LEXICAL_COUNT, len(lexical))
        span.set_attribute(attributes.SEARCH_SEMANTIC_COUNT, len(semantic))
        return reciprocal_rank_fusion(lexical, semantic, limit)

    async def _gather_candidates(self, query, vector, fetch_limit: int):
        """Run both store queries concurrently; one failure cancels the other."""
        try:
            async with asyncio.TaskGroup() as tg:
                lexical_task = tg.create_task(self._store.lexical_search(query, fetch_limit))
                semantic_task = tg.create_task(self._store.semantic_search(vector, fetch_limit))
        except ExceptionGroup as group:
            # Surface the first real failure, not the group wrapper
            raise group.exceptions[0] from None
        return lexical_task.result(), semantic_task.result()
