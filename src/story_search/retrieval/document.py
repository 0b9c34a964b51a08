"""
Document model for the retrieval system.

Single responsibility: Define the structure of stories stored in the
document store and of the ranked hits returned from it.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class Document:
    """
    A story with its derived artifacts.

    id is None until the store assigns one. The lexical search vector is a
    generated column in the store and is not carried here.
    """
    id: int | None
    title: str
    author: str
    genre: str
    published_year: int
    content: str
    summary: str = ""
    content_hash: str | None = None
    embedding: np.ndarray | None = None


@dataclass
class RankedHit:
    """A document with its relevance score for one query."""
    document: Document
    score: float
