"""
Embeddings Module - Single Responsibility: Generate text embeddings.

It has ONE job: convert text to vector embeddings, or fail loudly.

Talks to any OpenAI-compatible endpoint. The default base URL is Ollama's
/v1 API, so the same client serves nomic-embed-text locally and a hosted
model in other deployments.
"""

from __future__ import annotations

import hashlib
import logging

import numpy as np
import openai
from openai import AsyncOpenAI

from story_search.core.errors import EmbeddingError
from story_search.core.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "nomic-embed-text"
DEFAULT_EMBEDDING_DIM = 768


class OpenAIEmbeddings:
    """
    Embedding provider for OpenAI-compatible APIs.

    The model is chosen per call; the constructor only fixes the default.
    The client keeps no mutable "selected model", so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = DEFAULT_EMBEDDING_DIM,
        base_url: str | None = "http://localhost:11434/v1",
        api_key: str | None = "ollama",
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self._dimensions = dimensions
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str, *, model: str | None = None) -> np.ndarray:
        """Generate embedding for a single text."""
        model = model or self.model
        try:
            response = await self._client.embeddings.create(input=[text], model=model)
        except openai.NotFoundError as e:
            raise EmbeddingError(
                f"Embedding model '{model}' is not loaded on the provider", model=model
            ) from e
        except openai.OpenAIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}", model=model) from e

        data = response.data or []
        if len(data) != 1:
            raise EmbeddingError(f"Provider returned {len(data)} embeddings for 1 input", model=model)
        if not data[0].embedding:
            raise EmbeddingError("Provider returned an empty embedding", model=model)

        vector = np.asarray(data[0].embedding, dtype=np.float32)
        if vector.shape[0] != self._dimensions:
            raise EmbeddingError(
                f"Expected {self._dimensions} dimensions, got {vector.shape[0]}",
                model=model,
            )
        return vector


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic unit vectors seeded from a text hash.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = DEFAULT_EMBEDDING_DIM):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str, *, model: str | None = None) -> np.ndarray:
        """Generate deterministic pseudo-embedding from text hash."""
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self._dimensions)
        return (vector / np.linalg.norm(vector)).astype(np.float32)


def get_embedding_provider(
    use_mock: bool = False,
    model: str = DEFAULT_EMBEDDING_MODEL,
    dimensions: int = DEFAULT_EMBEDDING_DIM,
    base_url: str | None = None,
    api_key: str | None = None,
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing)
    """
    if use_mock:
        logger.debug("Using mock embeddings")
        return MockEmbeddings(dimensions=dimensions)
    return OpenAIEmbeddings(
        model=model,
        dimensions=dimensions,
        base_url=base_url or "http://localhost:11434/v1",
        api_key=api_key or "ollama",
    )
