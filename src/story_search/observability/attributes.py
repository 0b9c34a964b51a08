"""
Span attribute keys for search and ingestion.

GenAI keys follow the OpenTelemetry semantic conventions:
https://opentelemetry.io/docs/specs/semconv/gen-ai/
"""

# ---------------------------------------------------------------------------
# GENAI NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
ERROR_TYPE = "error.type"


# ---------------------------------------------------------------------------
# SEARCH NAMESPACE
# ---------------------------------------------------------------------------

SEARCH_MODE = "search.mode"  # "lexical", "semantic", "hybrid"
SEARCH_LIMIT = "search.limit"
SEARCH_RESULT_COUNT = "search.result_count"
SEARCH_LEXICAL_COUNT = "search.lexical_count"
SEARCH_SEMANTIC_COUNT = "search.semantic_count"
SEARCH_LATENCY_MS = "search.latency_ms"


# ---------------------------------------------------------------------------
# INGEST NAMESPACE
# ---------------------------------------------------------------------------

INGEST_TITLE = "ingest.title"
INGEST_ACTION = "ingest.action"  # "insert", "replace", "skip"
INGEST_INSERTED = "ingest.inserted"
INGEST_REPLACED = "ingest.replaced"
INGEST_SKIPPED = "ingest.skipped"
INGEST_FAILED = "ingest.failed"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def search_attributes(mode: str, limit: int, model: str | None = None) -> dict:
    """Create attributes dict for a search span."""
    attrs = {
        SEARCH_MODE: mode,
        SEARCH_LIMIT: limit,
    }
    if model:
        attrs[GEN_AI_REQUEST_MODEL] = model
    return attrs


def ingest_run_attributes(inserted: int, replaced: int, skipped: int, failed: int) -> dict:
    """Create attributes dict summarizing an ingestion run."""
    return {
        INGEST_INSERTED: inserted,
        INGEST_REPLACED: replaced,
        INGEST_SKIPPED: skipped,
        INGEST_FAILED: failed,
    }
