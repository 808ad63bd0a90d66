"""
Highlight Reconciliation
========================

Re-embeds the grader's segment annotations into the student's original
answer as <mark> spans the UI can link to the analysis comments.

Matching works on the plain answer text:

1. Neutral segments are skipped (they only appear in the comment list).
2. Every case-insensitive literal occurrence of a segment is a candidate.
3. A candidate must not split a word: if the character just outside the
   match and the match's own edge character are both word characters, it is
   rejected ("is" never matches inside "this"). Whitespace, punctuation and
   tag brackets are all boundaries.
4. A candidate that overlaps a span claimed by an earlier segment (or an
   earlier occurrence) is rejected, so highlights never nest. This makes the
   result depend on segment order.

Segments the model paraphrased instead of quoting simply find no match.
"""
import re
import html
import logging
from typing import List, NamedTuple

from teacherspet.models import AnalysisSegment

logger = logging.getLogger(__name__)

SENTIMENT_CLASSES = {
    "positive": "highlight highlight-positive",
    "negative": "highlight highlight-negative",
    "neutral": "highlight highlight-neutral",
}

TAG_RE = re.compile(r'<[^>]*>')


class Span(NamedTuple):
    start: int
    end: int
    item: AnalysisSegment


def _is_word_char(c: str) -> bool:
    return c.isalnum() or c == '_'


def _on_boundary(text: str, start: int, end: int) -> bool:
    """True when text[start:end] does not cut into a word on either side."""
    if start > 0 and _is_word_char(text[start - 1]) and _is_word_char(text[start]):
        return False
    if end < len(text) and _is_word_char(text[end - 1]) and _is_word_char(text[end]):
        return False
    return True


def _overlaps(start: int, end: int, spans: List[Span]) -> bool:
    return any(start < s.end and s.start < end for s in spans)


def find_segment_spans(text: str, analysis: List[AnalysisSegment]) -> List[Span]:
    """Claim non-overlapping spans of `text` for each highlightable segment."""
    claimed = []

    for item in analysis:
        if item.sentiment == "neutral" or not item.segment.strip():
            continue

        pattern = re.compile(re.escape(item.segment), re.IGNORECASE)
        found = False
        pos = 0
        while True:
            match = pattern.search(text, pos)
            if match is None:
                break
            start, end = match.span()
            pos = start + 1

            if not _on_boundary(text, start, end) or _overlaps(start, end, claimed):
                continue

            claimed.append(Span(start, end, item))
            found = True

        if not found:
            logger.debug("Segment %s not found in answer: %r", item.id, item.segment[:40])

    return sorted(claimed, key=lambda s: s.start)


def render_mark(item: AnalysisSegment, text: str) -> str:
    return '<mark id="{}" class="{}">{}</mark>'.format(
        html.escape(item.id, quote=True),
        SENTIMENT_CLASSES[item.sentiment],
        html.escape(text),
    )


def reconcile(answer: str, analysis: List[AnalysisSegment]) -> str:
    """
    Return `answer` as HTML with each non-neutral segment wrapped in a mark.

    All text outside the marks is the original answer, HTML-escaped.
    """
    answer = answer or ''
    parts = []
    pos = 0
    for span in find_segment_spans(answer, analysis):
        parts.append(html.escape(answer[pos:span.start]))
        parts.append(render_mark(span.item, answer[span.start:span.end]))
        pos = span.end
    parts.append(html.escape(answer[pos:]))
    return ''.join(parts)


def strip_markup(highlighted: str) -> str:
    """Recover the plain answer from a reconciled string."""
    return html.unescape(TAG_RE.sub('', highlighted or ''))


def rehighlight(highlighted: str, analysis: List[AnalysisSegment]) -> str:
    """Rebuild highlights from a previously highlighted answer."""
    return reconcile(strip_markup(highlighted), analysis)
