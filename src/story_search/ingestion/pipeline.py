"""
Content-addressed ingestion pipeline.

For every manifest entry the canonical story text is hashed and compared
with the hash stored for the same title:

    no stored document  -> insert  (summarize + embed)
    hash differs        -> replace (summarize + embed, full row rewrite)
    hash matches        -> skip    (no provider calls)

Summaries and embeddings are the expensive, failure-prone step, so re-runs
cost only as much as what changed. All writes are committed as one batch
at the end. A failing entry is logged and skipped; only an unreadable
manifest or a failed commit fails the run.

Runs assume a single writer. Schedule them so two never overlap.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from story_search.core.errors import IngestionItemError, ProviderError, StoreError
from story_search.core.protocols import DocumentStore, EmbeddingProvider, Summarizer
from story_search.ingestion.manifest import (
    MANIFEST_FILENAME,
    ManifestEntry,
    canonical_content,
    content_hash,
    find_source_file,
    list_source_files,
    parse_entry,
    read_manifest,
    sanitize_title,
)
from story_search.observability import attributes, get_tracer
from story_search.retrieval.document import Document

logger = logging.getLogger(__name__)


class IngestionAction(str, enum.Enum):
    INSERT = "insert"
    REPLACE = "replace"
    SKIP = "skip"


@dataclass
class IngestionFailure:
    title: str
    reason: str


@dataclass
class IngestionReport:
    """Outcome of one ingestion run, by title."""
    inserted: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[IngestionFailure] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.inserted) + len(self.replaced) + len(self.skipped) + len(self.failed)

    @property
    def changed(self) -> int:
        return len(self.inserted) + len(self.replaced)

    def summary(self) -> str:
        return (
            f"Ingestion: {self.total} entries in {self.duration_seconds:.1f}s | "
            f"inserted {len(self.inserted)} | replaced {len(self.replaced)} | "
            f"skipped {len(self.skipped)} | failed {len(self.failed)}"
        )


class IngestionPipeline:
    """
    Synchronizes the store with a stories directory.

    Args:
        store: Target document store
        embeddings: Embedding provider for new/changed stories
        summarizer: Summarizer for new/changed stories
        stories_path: Directory with metadata.json and the .txt sources
        embedding_model: Embedding model passed on every call
        chat_model: Summarization model passed on every call
    """

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingProvider,
        summarizer: Summarizer,
        stories_path: Path | str,
        embedding_model: str | None = None,
        chat_model: str | None = None,
    ):
        self._store = store
        self._embeddings = embeddings
        self._summarizer = summarizer
        self._stories_path = Path(stories_path)
        self._embedding_model = embedding_model
        self._chat_model = chat_model

    @property
    def manifest_path(self) -> Path:
        return self._stories_path / MANIFEST_FILENAME

    async def run(self) -> IngestionReport:
        """
        Run one ingestion pass.

        Raises:
            ManifestError: the manifest cannot be read
            StoreError: the final batch could not be committed
        """
        start = time.perf_counter()
        report = IngestionReport()
        tracer = get_tracer()

        records = read_manifest(self.manifest_path)
        sources = list_source_files(self._stories_path)

        inserts: list[Document] = []
        replacements: list[Document] = []
        seen_titles: set[str] = set()

        with tracer.start_span("ingest") as run_span:
            for position, record in enumerate(records):
                try:
                    entry = parse_entry(record, position)
                    if entry.title in seen_titles:
                        raise IngestionItemError(entry.title, "duplicate title in manifest")
                    seen_titles.add(entry.title)

                    with tracer.start_span(
                        "ingest.entry", attributes={attributes.INGEST_TITLE: entry.title}
                    ) as span:
                        action, document = await self._plan(entry, sources)
                        span.set_attribute(attributes.INGEST_ACTION, action.value)
                except (IngestionItemError, ProviderError, StoreError, OSError, UnicodeDecodeError) as e:
                    title = e.title if isinstance(e, IngestionItemError) else _label(record, position)
                    reason = e.reason if isinstance(e, IngestionItemError) else str(e)
                    logger.warning(f"Skipping {title!r}: {reason}")
                    report.failed.append(IngestionFailure(title=title, reason=reason))
                    continue
                except Exception as e:
                    title = _label(record, position)
                    logger.exception(f"Skipping {title!r}: unexpected error")
                    report.failed.append(IngestionFailure(title=title, reason=f"{type(e).__name__}: {e}"))
                    continue

                logger.info(f"{action.value}: {entry.title}")
                if action is IngestionAction.INSERT:
                    inserts.append(document)
                    report.inserted.append(entry.title)
                elif action is IngestionAction.REPLACE:
                    replacements.append(document)
                    report.replaced.append(entry.title)
                else:
                    report.skipped.append(entry.title)

            if inserts or replacements:
                logger.info(f"Committing {len(inserts)} inserts and {len(replacements)} replacements")
            await self._store.apply_changes(inserts, replacements)

            report.duration_seconds = time.perf_counter() - start
            for key, value in attributes.ingest_run_attributes(
                len(report.inserted), len(report.replaced), len(report.skipped), len(report.failed)
            ).items():
                run_span.set_attribute(key, value)

        logger.info(report.summary())
        return report

    async def _plan(
        self, entry: ManifestEntry, sources: dict[str, Path]
    ) -> tuple[IngestionAction, Document | None]:
        """Decide what to do with one entry and build its document if needed."""
        path = find_source_file(entry.title, sources)
        if path is None:
            raise IngestionItemError(
                entry.title, f"source file not found (expected {sanitize_title(entry.title)}.txt)"
            )

        content = canonical_content(path.read_text(encoding="utf-8"), entry)
        if not content.strip():
            raise IngestionItemError(entry.title, f"{path.name} has no story content")
        digest = content_hash(content)

        existing = await self._store.get_by_title(entry.title)
        if existing is not None and existing.content_hash == digest:
            return IngestionAction.SKIP, None

        summary = await self._summarizer.summarize(content, model=self._chat_model)
        embedding = await self._embeddings.embed(content, model=self._embedding_model)

        document = Document(
            id=existing.id if existing is not None else None,
            title=entry.title,
            author=entry.author,
            genre=entry.genre,
            published_year=entry.published_year,
            content=content,
            summary=summary,
            content_hash=digest,
            embedding=embedding,
        )
        action = IngestionAction.INSERT if existing is None else IngestionAction.REPLACE
        return action, document


def _label(record, position: int) -> str:
    if isinstance(record, dict):
        for key in ("title", "Title"):
            if record.get(key):
                return str(record[key])
    return f"entry #{position}"
