"""Build concrete components from Settings."""

from __future__ import annotations

from story_search.config import Settings
from story_search.core.protocols import DocumentStore, EmbeddingProvider, Summarizer
from story_search.embeddings import get_embedding_provider
from story_search.ingestion import IngestionPipeline
from story_search.retrieval import SearchService, StoreConfig, get_document_store
from story_search.summaries import get_summarizer


def build_store(settings: Settings) -> DocumentStore:
    return get_document_store(
        use_postgres=settings.use_postgres,
        config=StoreConfig(
            connection_string=settings.database_url,
            table_name=settings.table_name,
            embedding_dim=settings.embedding_dim,
        ),
    )


def build_embeddings(settings: Settings) -> EmbeddingProvider:
    return get_embedding_provider(
        use_mock=settings.use_mock_providers,
        model=settings.embedding_model,
        dimensions=settings.embedding_dim,
        base_url=settings.provider_base_url,
        api_key=settings.provider_api_key,
    )


def build_summarizer(settings: Settings) -> Summarizer:
    return get_summarizer(
        use_mock=settings.use_mock_providers,
        model=settings.chat_model,
        base_url=settings.provider_base_url,
        api_key=settings.provider_api_key,
    )


def build_search_service(
    settings: Settings,
    store: DocumentStore,
    embeddings: EmbeddingProvider | None = None,
) -> SearchService:
    return SearchService(
        store,
        embeddings or build_embeddings(settings),
        embedding_model=settings.embedding_model,
        default_timeout=settings.search_timeout_seconds,
    )


def build_ingestion_pipeline(settings: Settings, store: DocumentStore) -> IngestionPipeline:
    return IngestionPipeline(
        store,
        build_embeddings(settings),
        build_summarizer(settings),
        settings.stories_path,
        embedding_model=settings.embedding_model,
        chat_model=settings.chat_model,
    )
