"""
Retrieval module - hybrid lexical + semantic search over stories.

This module provides:
- Document / RankedHit: the data model
- StoreConfig, PgDocumentStore, InMemoryDocumentStore, get_document_store()
- reciprocal_rank_fusion(): rank-based fusion of two hit lists
- SearchService, SearchRequest, SearchMode: the per-query orchestrator

ARCHITECTURE:
-------------
1. Protocol defines the contract (in core.protocols)
2. Multiple implementations (PgDocumentStore, InMemoryDocumentStore)
3. Factory function for instantiation
4. Test doubles for fast unit tests
"""

from story_search.retrieval.document import Document, RankedHit
from story_search.retrieval.store import (
    StoreConfig,
    PgDocumentStore,
    InMemoryDocumentStore,
    get_document_store,
)
from story_search.retrieval.fusion import RRF_K, reciprocal_rank_fusion
from story_search.retrieval.service import (
    DEFAULT_LIMIT,
    SearchMode,
    SearchRequest,
    SearchService,
)

__all__ = [
    # Model
    "Document",
    "RankedHit",
    # Stores
    "StoreConfig",
    "PgDocumentStore",
    "InMemoryDocumentStore",
    "get_document_store",
    # Fusion
    "RRF_K",
    "reciprocal_rank_fusion",
    # Service
    "DEFAULT_LIMIT",
    "SearchMode",
    "SearchRequest",
    "SearchService",
]
