"""
Request/response models for the HTTP API.

JSON uses camelCase keys; unknown search modes fail validation (422).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from story_search.retrieval import DEFAULT_LIMIT, Document, RankedHit, SearchMode


class SearchBody(BaseModel):
    """POST /api/stories/search body. A missing mode means hybrid."""

    query: str = ""
    mode: SearchMode = SearchMode.HYBRID
    limit: int = Field(default=DEFAULT_LIMIT)

    @field_validator("mode", mode="before")
    @classmethod
    def _lowercase_mode(cls, value):
        # Accept "Hybrid", "LEXICAL", ...
        return value.lower() if isinstance(value, str) else value


class StoryOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    author: str
    genre: str
    published_year: int
    summary: str
    content: str
    content_hash: str | None = None

    @classmethod
    def from_document(cls, doc: Document) -> "StoryOut":
        return cls(
            id=doc.id,
            title=doc.title,
            author=doc.author,
            genre=doc.genre,
            published_year=doc.published_year,
            summary=doc.summary,
            content=doc.content,
            content_hash=doc.content_hash,
        )


class SearchHitOut(BaseModel):
    story: StoryOut
    score: float

    @classmethod
    def from_hit(cls, hit: RankedHit) -> "SearchHitOut":
        return cls(story=StoryOut.from_document(hit.document), score=hit.score)


class Problem(BaseModel):
    """RFC 7807 style error body."""

    title: str
    status: int
    detail: str
