"""
Runtime configuration loaded from environment variables.

Every component receives its settings explicitly; get_settings() is only
used at the edges (CLI, app factory) to build them from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Settings:
    """Configuration for story-search.

    Environment Variables:
        DATABASE_URL: PostgreSQL connection string
        STORIES_TABLE: Table holding the stories (default: stories)
        OLLAMA_BASE_URL: OpenAI-compatible endpoint (default: local Ollama /v1)
        OLLAMA_API_KEY: API key sent to the endpoint (Ollama ignores it)
        EMBEDDING_MODEL: Embedding model name (default: nomic-embed-text)
        EMBEDDING_DIM: Embedding dimension (default: 768)
        CHAT_MODEL: Summarization model name (default: gemma3:1b)
        STORIES_PATH: Directory holding metadata.json and the story files
        SEARCH_TIMEOUT_SECONDS: Deadline applied to each search (default: 30)
        USE_POSTGRES: Use PostgreSQL store instead of in-memory (default: true)
        USE_MOCK_PROVIDERS: Use deterministic mock embeddings/summaries
        TRACING_ENABLED: Export OpenTelemetry spans to Phoenix (default: false)
        PHOENIX_PROJECT_NAME: Project name in Phoenix UI
        PHOENIX_COLLECTOR_ENDPOINT: Remote OTLP endpoint (local Phoenix if empty)
    """

    database_url: str = "postgresql://localhost/stories"
    table_name: str = "stories"
    provider_base_url: str = "http://localhost:11434/v1"
    provider_api_key: str = "ollama"
    embedding_model: str = "nomic-embed-text"
    embedding_dim: int = 768
    chat_model: str = "gemma3:1b"
    stories_path: Path = Path("Stories")
    search_timeout_seconds: float | None = 30.0
    use_postgres: bool = True
    use_mock_providers: bool = False
    tracing_enabled: bool = False
    project_name: str = "story-search"
    collector_endpoint: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        timeout = float(os.environ.get("SEARCH_TIMEOUT_SECONDS", "30"))
        return cls(
            database_url=os.environ.get("DATABASE_URL", "postgresql://localhost/stories"),
            table_name=os.environ.get("STORIES_TABLE", "stories"),
            provider_base_url=os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434/v1"),
            provider_api_key=os.environ.get("OLLAMA_API_KEY", "ollama"),
            embedding_model=os.environ.get("EMBEDDING_MODEL", "nomic-embed-text"),
            embedding_dim=int(os.environ.get("EMBEDDING_DIM", "768")),
            chat_model=os.environ.get("CHAT_MODEL", "gemma3:1b"),
            stories_path=Path(os.environ.get("STORIES_PATH", "Stories")),
            # Zero or negative disables the deadline
            search_timeout_seconds=timeout if timeout > 0 else None,
            use_postgres=_env_bool("USE_POSTGRES", "true"),
            use_mock_providers=_env_bool("USE_MOCK_PROVIDERS", "false"),
            tracing_enabled=_env_bool("TRACING_ENABLED", "false"),
            project_name=os.environ.get("PHOENIX_PROJECT_NAME", "story-search"),
            collector_endpoint=os.environ.get("PHOENIX_COLLECTOR_ENDPOINT") or None,
        )


# Global settings singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings (lazy-loaded from env)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
