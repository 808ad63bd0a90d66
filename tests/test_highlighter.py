"""
Test: Highlight reconciliation of grader segments into the student's answer.
"""
from teacherspet.models import AnalysisSegment
from teacherspet.services.highlighter import (
    find_segment_spans, reconcile, rehighlight, strip_markup,
)


def seg(segment, sentiment="positive", id=None):
    return AnalysisSegment(id=id or f"seg-{segment[:6]}", segment=segment,
                           comment="c", sentiment=sentiment)


class TestReconcile:
    def test_positive_and_negative_segments(self):
        analysis = [
            seg("sky is blue", "positive", "seg-1"),
            seg("grass is green", "negative", "seg-2"),
        ]
        result = reconcile("The sky is blue and grass is green.", analysis)
        assert result == (
            'The <mark id="seg-1" class="highlight highlight-positive">sky is blue</mark>'
            ' and <mark id="seg-2" class="highlight highlight-negative">grass is green</mark>.'
        )

    def test_neutral_segments_are_not_highlighted(self):
        result = reconcile("The sky is blue.", [seg("sky is blue", "neutral")])
        assert result == "The sky is blue."

    def test_paraphrased_segment_finds_nothing(self):
        answer = "Plants make sugar from light."
        result = reconcile(answer, [seg("plants produce glucose")])
        assert result == answer

    def test_empty_analysis(self):
        assert reconcile("Anything at all.", []) == "Anything at all."

    def test_empty_answer(self):
        assert reconcile("", [seg("word")]) == ""

    def test_blank_segment_is_skipped(self):
        assert reconcile("a b c", [seg("   ")]) == "a b c"

    def test_every_occurrence_is_marked(self):
        result = reconcile("ATP and more ATP.", [seg("ATP", id="s1")])
        assert result.count('<mark id="s1"') == 2

    def test_matching_ignores_case_but_keeps_original_text(self):
        result = reconcile("Chlorophyll is green.", [seg("chlorophyll", id="s1")])
        assert result == ('<mark id="s1" class="highlight highlight-positive">'
                          'Chlorophyll</mark> is green.')

    def test_does_not_match_inside_a_word(self):
        result = reconcile("this is it", [seg("is", id="s1")])
        assert result == 'this <mark id="s1" class="highlight highlight-positive">is</mark> it'

    def test_punctuation_counts_as_a_boundary(self):
        result = reconcile("(energy), energy!", [seg("energy", id="e")])
        assert result.count('<mark id="e"') == 2

    def test_regex_metacharacters_are_literal(self):
        answer = "It costs $5 (approx.) per cell."
        result = reconcile(answer, [seg("$5 (approx.)", id="m")])
        assert '<mark id="m" class="highlight highlight-positive">$5 (approx.)</mark>' in result

    def test_later_overlapping_segment_is_dropped(self):
        analysis = [
            seg("powerhouse of the cell", "positive", "first"),
            seg("the cell", "negative", "second"),
        ]
        result = reconcile("It is the powerhouse of the cell.", analysis)
        assert 'id="first"' in result
        assert 'id="second"' not in result
        assert result.count("<mark") == 1

    def test_segment_order_decides_overlaps(self):
        analysis = [
            seg("the cell", "negative", "second"),
            seg("powerhouse of the cell", "positive", "first"),
        ]
        result = reconcile("It is the powerhouse of the cell.", analysis)
        assert 'id="second"' in result
        assert 'id="first"' not in result

    def test_answer_text_is_html_escaped(self):
        result = reconcile("a < b & c", [seg("c", id="x")])
        assert result == 'a &lt; b &amp; <mark id="x" class="highlight highlight-positive">c</mark>'

    def test_segment_id_is_escaped_in_attribute(self):
        result = reconcile("word", [seg("word", id='x"y')])
        assert 'id="x&quot;y"' in result


class TestFindSegmentSpans:
    def test_spans_are_sorted_and_disjoint(self):
        analysis = [seg("green"), seg("blue")]
        spans = find_segment_spans("blue then green then blue", analysis)
        starts = [s.start for s in spans]
        assert starts == sorted(starts)
        for a, b in zip(spans, spans[1:]):
            assert a.end <= b.start

    def test_neutral_segment_claims_nothing(self):
        assert find_segment_spans("blue", [seg("blue", "neutral")]) == []


class TestStripMarkup:
    def test_recovers_plain_answer(self):
        answer = "The sky is blue & the grass <is> green."
        highlighted = reconcile(answer, [seg("sky is blue"), seg("green", "negative")])
        assert strip_markup(highlighted) == answer

    def test_plain_text_unchanged(self):
        assert strip_markup("no marks here") == "no marks here"


class TestRehighlight:
    def test_idempotent(self):
        answer = "Mitochondria produce ATP through cellular respiration."
        analysis = [seg("produce ATP", id="a"), seg("cellular respiration", "negative", id="b")]
        once = reconcile(answer, analysis)
        assert rehighlight(once, analysis) == once

    def test_replaces_old_highlights(self):
        answer = "Mitochondria produce ATP."
        old = reconcile(answer, [seg("Mitochondria", id="old")])
        new = rehighlight(old, [seg("ATP", "negative", id="new")])
        assert 'id="old"' not in new
        assert new == 'Mitochondria produce <mark id="new" class="highlight highlight-negative">ATP</mark>.'
