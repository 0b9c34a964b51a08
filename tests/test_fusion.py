"""
Unit Tests for Reciprocal Rank Fusion

Fusion is a pure function over two ranked lists, so every test builds the
lists by hand and checks exact scores and ordering.
"""

import pytest

from story_search.retrieval.document import Document, RankedHit
from story_search.retrieval.fusion import RRF_K, SCORE_SCALE, reciprocal_rank_fusion


def _doc(doc_id: int, title: str) -> Document:
    return Document(
        id=doc_id,
        title=title,
        author="Author",
        genre="Fiction",
        published_year=2020,
        content=f"Content of {title}",
    )


def _hits(*docs: Document) -> list[RankedHit]:
    # Scores are irrelevant to RRF; make them decreasing like a real list
    return [RankedHit(document=d, score=1.0 - i * 0.1) for i, d in enumerate(docs)]


@pytest.fixture
def docs():
    return {name: _doc(i, name) for i, name in enumerate("ABCD", start=1)}


# ---------------------------------------------------------------------------
# WORKED EXAMPLE
# ---------------------------------------------------------------------------


class TestWorkedExample:
    """lexical [A, B, C] + semantic [B, A, D] with k = 60."""

    def test_fused_order_is_a_b_c_d(self, docs):
        fused = reciprocal_rank_fusion(
            _hits(docs["A"], docs["B"], docs["C"]),
            _hits(docs["B"], docs["A"], docs["D"]),
            limit=10,
        )

        assert [h.document.title for h in fused] == ["A", "B", "C", "D"]

    def test_fused_scores(self, docs):
        fused = reciprocal_rank_fusion(
            _hits(docs["A"], docs["B"], docs["C"]),
            _hits(docs["B"], docs["A"], docs["D"]),
            limit=10,
        )
        scores = {h.document.title: h.score for h in fused}

        assert scores["A"] == pytest.approx((1 / 61 + 1 / 62) * 100)
        assert scores["B"] == pytest.approx((1 / 62 + 1 / 61) * 100)
        assert scores["C"] == pytest.approx(100 / 63)
        assert scores["D"] == pytest.approx(100 / 63)

    def test_tied_scores_are_exactly_equal(self, docs):
        """A and B tie exactly; the lexical leader wins the tie."""
        fused = reciprocal_rank_fusion(
            _hits(docs["A"], docs["B"], docs["C"]),
            _hits(docs["B"], docs["A"], docs["D"]),
            limit=10,
        )

        assert fused[0].score == fused[1].score
        assert fused[0].document.title == "A"


# ---------------------------------------------------------------------------
# CONTRIBUTIONS
# ---------------------------------------------------------------------------


class TestContributions:
    """Test how each list contributes to the fused score."""

    def test_constant_k_is_sixty(self):
        assert RRF_K == 60
        assert SCORE_SCALE == 100.0

    def test_single_list_document_gets_single_contribution(self, docs):
        fused = reciprocal_rank_fusion(_hits(docs["A"]), _hits(docs["B"]), limit=5)
        scores = {h.document.title: h.score for h in fused}

        assert scores["A"] == pytest.approx(100 / 61)
        assert scores["B"] == pytest.approx(100 / 61)

    def test_tie_between_lists_prefers_lexical_first(self, docs):
        fused = reciprocal_rank_fusion(_hits(docs["C"]), _hits(docs["D"]), limit=5)

        assert [h.document.title for h in fused] == ["C", "D"]

    def test_document_in_both_lists_outranks_single_list(self, docs):
        fused = reciprocal_rank_fusion(
            _hits(docs["A"], docs["B"]),
            _hits(docs["C"], docs["B"]),
            limit=5,
        )

        assert fused[0].document.title == "B"

    def test_input_scores_are_ignored(self, docs):
        lexical = [RankedHit(docs["A"], 0.001), RankedHit(docs["B"], 999.0)]
        fused = reciprocal_rank_fusion(lexical, [], limit=5)

        assert [h.document.title for h in fused] == ["A", "B"]

    def test_scale_does_not_change_order(self, docs):
        lexical = _hits(docs["A"], docs["B"], docs["C"])
        semantic = _hits(docs["C"], docs["D"])

        scaled = reciprocal_rank_fusion(lexical, semantic, limit=10)
        raw = reciprocal_rank_fusion(lexical, semantic, limit=10, scale=1.0)

        assert [h.document.id for h in scaled] == [h.document.id for h in raw]
        assert scaled[0].score == pytest.approx(raw[0].score * 100)


# ---------------------------------------------------------------------------
# LIMITS
# ---------------------------------------------------------------------------


class TestLimits:
    """Test truncation and degenerate inputs."""

    def test_truncates_to_limit(self, docs):
        fused = reciprocal_rank_fusion(
            _hits(docs["A"], docs["B"], docs["C"]),
            _hits(docs["D"]),
            limit=2,
        )

        assert len(fused) == 2

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_returns_empty(self, docs, limit):
        assert reciprocal_rank_fusion(_hits(docs["A"]), _hits(docs["B"]), limit=limit) == []

    def test_both_lists_empty(self):
        assert reciprocal_rank_fusion([], [], limit=5) == []

    def test_scores_non_increasing(self, docs):
        fused = reciprocal_rank_fusion(
            _hits(docs["D"], docs["C"], docs["B"], docs["A"]),
            _hits(docs["A"], docs["C"]),
            limit=10,
        )
        scores = [h.score for h in fused]

        assert scores == sorted(scores, reverse=True)
