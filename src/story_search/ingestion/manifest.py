"""
Manifest and source-file conventions for ingestion.

A stories directory holds metadata.json (an ordered list of
{title, author, genre, published_year} records) and one <Title>.txt per
story, named by sanitize_title(). Story files may open with a header of
Title / Author / Year / Genre lines and a blank line, which is stripped
before hashing so that only the story text drives change detection.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from story_search.core.errors import IngestionItemError, ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "metadata.json"
SOURCE_SUFFIX = ".txt"


class ManifestEntry(BaseModel):
    """One logical story as listed in the manifest."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    author: str = ""
    genre: str = ""
    published_year: int = 0


def read_manifest(path: Path) -> list[dict[str, Any]]:
    """
    Read the raw manifest records.

    Raises:
        ManifestError: the file is missing, is not JSON, or is not a list
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    if not isinstance(data, list):
        raise ManifestError(f"Manifest {path} must contain a JSON list")
    logger.info(f"Loaded manifest with {len(data)} entries from {path}")
    return data


def parse_entry(record: Any, position: int) -> ManifestEntry:
    """Validate one manifest record. Keys are matched case-insensitively."""
    if not isinstance(record, dict):
        raise IngestionItemError(f"entry #{position}", "manifest record is not an object")
    try:
        return ManifestEntry.model_validate({str(k).lower(): v for k, v in record.items()})
    except ValidationError as e:
        label = str(record.get("title") or record.get("Title") or f"entry #{position}")
        raise IngestionItemError(label, f"invalid manifest record: {e.error_count()} error(s)") from e


def sanitize_title(title: str) -> str:
    """
    Map a title to its source file stem.

    "The Lighthouse Keeper's Daughter" -> "The_Lighthouse_Keepers_Daughter"
    """
    stem = "".join(c if c.isalnum() else "_" for c in title.replace("'", ""))
    return re.sub(r"_+", "_", stem).strip("_")


def list_source_files(directory: Path) -> dict[str, Path]:
    """Index the directory's .txt files by lower-cased stem."""
    if not directory.is_dir():
        logger.warning(f"Stories directory {directory} does not exist")
        return {}
    files: dict[str, Path] = {}
    for path in sorted(directory.glob(f"*{SOURCE_SUFFIX}")):
        files.setdefault(path.stem.lower(), path)
    return files


def find_source_file(title: str, sources: dict[str, Path]) -> Path | None:
    """Case-insensitive lookup of the file for a title."""
    return sources.get(sanitize_title(title).lower())


def canonical_content(raw: str, entry: ManifestEntry) -> str:
    """
    Strip the leading metadata header from a story file.

    The header is recognized only when line 0 is the title and line 1 the
    author (case-insensitive), then any blank lines are dropped with it.

    Extension over a title/author-only header: up to two lines right after
    the author that equal the manifest's published year or genre are also
    treated as header, since story files carry them there. Any other line
    ends the header. Changing this rule changes every stored hash and
    forces a full re-embed.

    A story whose first sentence repeats its title and author is
    indistinguishable from a header.
    """
    lines = [line.rstrip("\r") for line in raw.split("\n")]

    if (
        len(lines) > 1
        and lines[0].strip().lower() == entry.title.lower()
        and lines[1].strip().lower() == entry.author.lower()
    ):
        skip = 2
        header_values = {str(entry.published_year), entry.genre.lower()}
        while skip < min(4, len(lines)):
            value = lines[skip].strip().lower()
            if not value or value not in header_values:
                break
            skip += 1
        while skip < len(lines) and not lines[skip].strip():
            skip += 1
        lines = lines[skip:]

    return "\n".join(lines)


def content_hash(content: str) -> str:
    """Hex SHA-256 of canonical content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
