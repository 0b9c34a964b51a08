"""
Core module - shared protocols and error types for the entire system.

USAGE:
------
from story_search.core import DocumentStore, EmbeddingProvider, StoreError

class MyStore:
    '''Implements DocumentStore protocol.'''
    ...
"""

from story_search.core.errors import (
    StorySearchError,
    ProviderError,
    EmbeddingError,
    SummarizationError,
    StoreError,
    ManifestError,
    IngestionItemError,
)
from story_search.core.protocols import (
    EmbeddingProvider,
    Summarizer,
    DocumentStore,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "Summarizer",
    "DocumentStore",
    # Errors
    "StorySearchError",
    "ProviderError",
    "EmbeddingError",
    "SummarizationError",
    "StoreError",
    "ManifestError",
    "IngestionItemError",
]
