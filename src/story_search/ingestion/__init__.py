"""
Ingestion module - keep the store in sync with a stories directory.

Only stories whose canonical content hash changed are summarized and
embedded again; everything else is skipped.
"""

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
from story_search.ingestion.pipeline import (
    IngestionAction,
    IngestionFailure,
    IngestionPipeline,
    IngestionReport,
)

__all__ = [
    "MANIFEST_FILENAME",
    "ManifestEntry",
    "canonical_content",
    "content_hash",
    "find_source_file",
    "list_source_files",
    "parse_entry",
    "read_manifest",
    "sanitize_title",
    "IngestionAction",
    "IngestionFailure",
    "IngestionPipeline",
    "IngestionReport",
]
