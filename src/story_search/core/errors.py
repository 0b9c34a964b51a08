"""
Error taxonomy shared by retrieval and ingestion.

Failures are raised, never folded into "no results". Callers decide whether
a failure is fatal (search) or skips one item (ingestion).
"""

from __future__ import annotations


class StorySearchError(Exception):
    """Base class for every error raised by story_search."""


# ---------------------------------------------------------------------------
# PROVIDERS (embedding / summarization)
# ---------------------------------------------------------------------------


class ProviderError(StorySearchError):
    """An external model provider was unreachable or returned unusable output."""

    def __init__(self, message: str, *, model: str | None = None):
        super().__init__(message)
        self.model = model


class EmbeddingError(ProviderError):
    """Embedding call failed or produced an empty/degenerate vector."""


class SummarizationError(ProviderError):
    """Summarization call failed or produced an empty summary."""


# ---------------------------------------------------------------------------
# STORE
# ---------------------------------------------------------------------------


class StoreError(StorySearchError):
    """The document store could not execute a query or transaction."""


# ---------------------------------------------------------------------------
# INGESTION
# ---------------------------------------------------------------------------


class ManifestError(StorySearchError):
    """The ingestion manifest is missing or unreadable. Fails the whole run."""


class IngestionItemError(StorySearchError):
    """A single manifest entry could not be processed. Skips only that entry."""

    def __init__(self, title: str, reason: str):
        super().__init__(f"{title}: {reason}")
        self.title = title
        self.reason = reason
