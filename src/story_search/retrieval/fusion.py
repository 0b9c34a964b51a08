"""
Reciprocal Rank Fusion of lexical and semantic result lists.

Lexical ts_rank scores are unbounded and cosine similarities sit in [0, 1],
so the two lists are combined by rank position only:

    score(d) = sum over lists containing d of 1 / (RRF_K + rank + 1)

with 0-based rank. A document found by one retriever keeps that single
contribution and is not penalized for missing from the other list.

Ties keep first-seen order (lexical list first, then semantic). For lexical
[A, B, C] and semantic [B, A, D] the fused order is A, B, C, D.
"""

from __future__ import annotations

from typing import Sequence

from story_search.retrieval.document import Document, RankedHit

RRF_K = 60
SCORE_SCALE = 100.0


def reciprocal_rank_fusion(
    lexical: Sequence[RankedHit],
    semantic: Sequence[RankedHit],
    limit: int,
    scale: float = SCORE_SCALE,
) -> list[RankedHit]:
    """
    Fuse two ranked lists into one list of at most `limit` hits.

    Args:
        lexical: Lexical hits, best first
        semantic: Semantic hits, best first
        limit: Maximum number of fused hits to return
        scale: Positive display multiplier applied after summing

    Returns:
        Hits sorted by fused score, descending
    """
    if limit <= 0:
        return []

    # dict preserves insertion order, which is the tie-break order
    scores: dict[int, float] = {}
    documents: dict[int, Document] = {}

    for hits in (lexical, semantic):
        for rank, hit in enumerate(hits):
            key = hit.document.id
            documents.setdefault(key, hit.document)
            scores[key] = scores.get(key, 0.0) + 1.0 / (RRF_K + rank + 1)

    # sorted() is stable, so equal scores stay in first-seen order
    ordered = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    return [
        RankedHit(document=documents[key], score=score * scale)
        for key, score in ordered[:limit]
    ]
