"""Whole-text formatting.

Runs the 1H NMR and HRMS pipelines over the same pasted text and substitutes
each citation's replacement for its source substring, producing the full
plain output and the full annotated segment stream.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from .annotation import Citation, Classification, Segment, worst_classification
from .grammar import split_lines
from .h1 import format_h1
from .hrms import format_hrms
from .options import ParseOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormattedText:
    """Formatted version of a whole input text."""

    citations: tuple[Citation, ...]
    plain: str
    annotated: tuple[Segment, ...]

    @property
    def classification(self) -> Classification:
        return worst_classification(a for c in self.citations for a in c.annotations)

    @property
    def is_citation_ready(self) -> bool:
        return all(c.is_citation_ready for c in self.citations)


def _place(line: str, citations: list[Citation]) -> list[tuple[int, int, Citation]]:
    """Locate each citation's source in ``line`` without overlaps."""
    taken: list[tuple[int, int, Citation]] = []
    for citation in citations:
        start = line.find(citation.source)
        while start >= 0:
            end = start + len(citation.source)
            if all(end <= s or start >= e for s, e, _ in taken):
                taken.append((start, end, citation))
                break
            start = line.find(citation.source, start + 1)
        else:
            logger.warning(f"Could not place citation in line: {citation.source!r}")
    return sorted(taken, key=lambda t: t[0])


def format_text(text: str, options: ParseOptions | None = None) -> FormattedText:
    """Format all 1H NMR and HRMS records in ``text``.

    Text outside any record is copied through unchanged. Line breaks are
    normalized to ``\\n``.
    """
    options = options or ParseOptions()
    citations = format_h1(text, options) + format_hrms(text, options)

    by_line: dict[int, list[Citation]] = defaultdict(list)
    for citation in citations:
        by_line[citation.line].append(citation)

    plain_parts: list[str] = []
    segments: list[Segment] = []
    for line_no, line in enumerate(split_lines(text)):
        if line_no:
            plain_parts.append('\n')
            segments.append(Segment('\n'))
        cursor = 0
        for start, end, citation in _place(line, by_line.get(line_no, [])):
            if start > cursor:
                plain_parts.append(line[cursor:start])
                segments.append(Segment(line[cursor:start]))
            plain_parts.append(citation.plain)
            segments.extend(citation.annotated)
            cursor = end
        if cursor < len(line):
            plain_parts.append(line[cursor:])
            segments.append(Segment(line[cursor:]))

    n_ready = sum(c.is_citation_ready for c in citations)
    logger.info(f"Formatted {len(citations)} record(s), {n_ready} citation-ready")
    return FormattedText(
        citations=tuple(citations),
        plain=''.join(plain_parts),
        annotated=tuple(segments),
    )
