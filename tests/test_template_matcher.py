"""Unit tests for template ranking (no database)."""
from types import SimpleNamespace

import pytest

from docsight.services.template_matcher import TemplateMatcher, _jaccard, _match_reason


def _template(template_id, embedding, headings=(), name=None, template_type="memo"):
    return SimpleNamespace(
        id=template_id,
        template_name=name or f"T{template_id}",
        template_type=template_type,
        embedding=embedding,
        structure_json={"headings": [{"level": 1, "text": h, "line_number": i + 1} for i, h in enumerate(headings)]},
    )


def test_rank_orders_by_similarity_and_drops_below_threshold():
    templates = [
        _template(1, [1.0, 1.0, 0.0]),   # cos = 0.7071
        _template(2, [3.0, 0.0, 0.0]),   # cos = 1.0 after normalising
        _template(3, [0.0, 1.0, 0.0]),   # cos = 0.0
    ]
    matches = TemplateMatcher(threshold=0.5, limit=5).rank([1.0, 0.0, 0.0], [], templates)

    assert [m.template_id for m in matches] == [2, 1]
    assert matches[0].similarity_score == 1.0
    assert matches[1].similarity_score == pytest.approx(0.7071)
    assert matches[0].content_alignment == matches[0].similarity_score


def test_rank_breaks_ties_by_template_id_and_applies_limit():
    templates = [_template(9, [1.0, 0.0]), _template(4, [2.0, 0.0]), _template(6, [5.0, 0.0])]
    matches = TemplateMatcher(threshold=0.0, limit=2).rank([1.0, 0.0], [], templates)
    assert [m.template_id for m in matches] == [4, 6]


def test_rank_skips_missing_and_mismatched_embeddings():
    templates = [_template(1, None), _template(2, [1.0, 0.0, 0.0, 0.0]), _template(3, [0.0, 2.0])]
    matches = TemplateMatcher(threshold=-1.0).rank([0.0, 1.0], [], templates)
    assert [m.template_id for m in matches] == [3]


def test_rank_structure_alignment_uses_heading_overlap():
    template = _template(1, [1.0, 0.0], headings=["Overview", "Budget", "Timeline"])
    matches = TemplateMatcher(threshold=0.0).rank([1.0, 0.0], ["  overview ", "BUDGET"], [template])

    assert matches[0].structure_alignment == pytest.approx(0.6667)
    assert matches[0].match_reason == "Very similar content and closely matching section headings"


def test_default_threshold_and_limit_from_settings():
    matcher = TemplateMatcher()
    assert matcher.threshold == 0.7
    assert matcher.limit == 5


def test_jaccard():
    assert _jaccard(set(), set()) == 0.0
    assert _jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(0.3333)
    assert _jaccard({"a"}, {"a"}) == 1.0


@pytest.mark.parametrize(
    "similarity, structure, expected",
    [
        (0.95, 0.0, "Very similar content"),
        (0.85, 0.2, "Similar content with some shared section headings"),
        (0.72, 0.5, "Related content and closely matching section headings"),
    ],
)
def test_match_reason(similarity, structure, expected):
    assert _match_reason(similarity, structure) == expected
