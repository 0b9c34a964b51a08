"""
Tests for the HTTP API

Uses FastAPI's TestClient with an in-memory store and a stubbed embedding
provider, so every route runs without Postgres or Ollama.
"""

import asyncio

import numpy as np
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from story_search.api import create_app
from story_search.config import Settings
from story_search.core.errors import EmbeddingError, StoreError
from story_search.retrieval import Document, InMemoryDocumentStore, SearchService


def _doc(title, content, embedding):
    return Document(
        id=None,
        title=title,
        author="Ada Byron",
        genre="Mystery",
        published_year=1923,
        content=content,
        summary=f"A story about {title.lower()}.",
        content_hash="h-" + title,
        embedding=np.array(embedding, dtype=np.float32),
    )


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    return Settings(use_postgres=False, use_mock_providers=True, tracing_enabled=False)


@pytest.fixture
def store():
    return InMemoryDocumentStore([
        _doc("Lighthouse", "The keeper lit the lighthouse lamp.", [1.0, 0.0]),
        _doc("Harbor", "Boats waited in the harbor.", [0.0, 1.0]),
    ])


@pytest.fixture
def embeddings():
    provider = MagicMock()
    provider.embed = AsyncMock(return_value=np.array([0.0, 1.0], dtype=np.float32))
    return provider


@pytest.fixture
def client(settings, store, embeddings):
    service = SearchService(store, embeddings, embedding_model="nomic-embed-text")
    app = create_app(settings=settings, store=store, search_service=service)
    with TestClient(app) as client:
        yield client


# ---------------------------------------------------------------------------
# SEARCH
# ---------------------------------------------------------------------------


class TestSearchEndpoint:
    """Test POST /api/stories/search."""

    def test_hybrid_default(self, client):
        response = client.post("/api/stories/search", json={"query": "harbor"})

        assert response.status_code == 200
        body = response.json()
        assert body[0]["story"]["title"] == "Harbor"
        assert body[0]["score"] > 0

    def test_response_uses_camel_case(self, client):
        response = client.post("/api/stories/search", json={"query": "lamp", "mode": "lexical"})
        story = response.json()[0]["story"]

        assert story["publishedYear"] == 1923
        assert story["contentHash"] == "h-Lighthouse"
        assert "embedding" not in story

    def test_semantic_mode(self, client, embeddings):
        response = client.post(
            "/api/stories/search", json={"query": "boats", "mode": "semantic", "limit": 1}
        )

        assert [hit["story"]["title"] for hit in response.json()] == ["Harbor"]
        embeddings.embed.assert_awaited_once()

    def test_mode_is_case_insensitive(self, client):
        response = client.post("/api/stories/search", json={"query": "harbor", "mode": "Hybrid"})

        assert response.status_code == 200

    def test_limit_respected(self, client):
        response = client.post(
            "/api/stories/search", json={"query": "the", "mode": "hybrid", "limit": 1}
        )

        assert len(response.json()) == 1

    def test_no_results(self, client):
        response = client.post("/api/stories/search", json={"query": "submarine", "mode": "lexical"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_is_bad_request(self, client, query):
        response = client.post("/api/stories/search", json={"query": query})

        assert response.status_code == 400
        assert response.json()["detail"] == "Query cannot be empty."

    def test_missing_query_is_bad_request(self, client):
        response = client.post("/api/stories/search", json={"mode": "lexical"})

        assert response.status_code == 400

    def test_unknown_mode_rejected(self, client):
        response = client.post("/api/stories/search", json={"query": "harbor", "mode": "fuzzy"})

        assert response.status_code == 422

    def test_null_mode_rejected(self, client):
        response = client.post("/api/stories/search", json={"query": "harbor", "mode": None})

        assert response.status_code == 422


# ---------------------------------------------------------------------------
# ERROR MAPPING
# ---------------------------------------------------------------------------


class TestSearchErrors:
    """Failures become problem responses, never empty result lists."""

    def test_embedding_failure_is_problem(self, client, embeddings):
        embeddings.embed.side_effect = EmbeddingError("model 'nomic-embed-text' is not loaded")

        response = client.post("/api/stories/search", json={"query": "harbor"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/problem+json")
        problem = response.json()
        assert problem["status"] == 500
        assert "not loaded" in problem["detail"]

    def test_lexical_mode_survives_embedding_outage(self, client, embeddings):
        embeddings.embed.side_effect = EmbeddingError("down")

        response = client.post("/api/stories/search", json={"query": "harbor", "mode": "lexical"})

        assert response.status_code == 200

    def test_store_failure_is_problem(self, client, store):
        store.lexical_search = AsyncMock(side_effect=StoreError("relation does not exist"))

        response = client.post("/api/stories/search", json={"query": "harbor", "mode": "lexical"})

        assert response.status_code == 500
        assert response.json()["title"] == "Document store query failed"

    def test_timeout_is_gateway_timeout(self, settings, store, embeddings):
        async def slow_embed(text, *, model=None):
            await asyncio.sleep(30)

        embeddings.embed = AsyncMock(side_effect=slow_embed)
        service = SearchService(store, embeddings, default_timeout=0.05)
        app = create_app(settings=settings, store=store, search_service=service)

        with TestClient(app) as client:
            response = client.post("/api/stories/search", json={"query": "harbor"})

        assert response.status_code == 504
        assert response.json()["title"] == "Search timed out"


# ---------------------------------------------------------------------------
# BROWSING
# ---------------------------------------------------------------------------


class TestStoryEndpoints:
    """Test GET /api/stories and GET /api/stories/{id}."""

    def test_list_stories(self, client):
        response = client.get("/api/stories")

        assert response.status_code == 200
        assert [s["title"] for s in response.json()] == ["Lighthouse", "Harbor"]

    def test_get_story(self, client):
        response = client.get("/api/stories/2")

        assert response.status_code == 200
        assert response.json()["title"] == "Harbor"

    def test_get_missing_story(self, client):
        response = client.get("/api/stories/99")

        assert response.status_code == 404

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestLifespan:
    """The store is opened on startup and closed on shutdown."""

    def test_store_opened_and_closed(self, settings, embeddings):
        store = InMemoryDocumentStore()
        store.open = AsyncMock()
        store.close = AsyncMock()
        app = create_app(settings=settings, store=store, search_service=SearchService(store, embeddings))

        with TestClient(app):
            store.open.assert_awaited_once()
            store.close.assert_not_called()

        store.close.assert_awaited_once()
