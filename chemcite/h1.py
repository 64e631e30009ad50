"""1H NMR record pipeline.

Each ``1H NMR (...) δ ...`` record found in the input becomes one
:class:`~chemcite.annotation.Citation`. A record whose metadata cannot be
read is flagged as a whole and its peaks are not parsed; otherwise every peak
token is parsed, corrected with the record's frequency and re-rendered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .annotation import (
    Citation,
    Classification,
    Err,
    Ok,
    Segment,
    Style,
    annotate,
    highlight,
    plain_text,
)
from .constants import SOLVENTS, find_solvent
from .errors import DataError, FormatError
from .grammar import (
    H1Match,
    H1Record,
    find_h1_records,
    grammar_for,
    match_h1_metadata,
    split_lines,
    split_peak_tokens,
)
from .messages import message
from .options import ParseOptions
from .peaks import PeakEntry, fix_peak_data, parse_peak_token, render_peak_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpectrumMetadata:
    """Spectrometer frequency (MHz) and solvent key of one record."""

    frequency: float
    solvent: str
    kind: str = 'H1'


def parse_metadata(record: str, options: ParseOptions) -> Ok[SpectrumMetadata] | Err:
    """Read frequency and solvent from the head of a record."""
    return _read_metadata(record, match_h1_metadata(record, grammar_for(options.strict)), options)


def _read_metadata(
    record: str,
    match: H1Match | None,
    options: ParseOptions,
) -> Ok[SpectrumMetadata] | Err:
    if match is None:
        return Err(record, annotate(
            record, Classification.DANGER, message('h1.data', options.language), FormatError,
        ))

    solvent = find_solvent(match.solvent)
    frequency = float(match.frequency)
    if solvent is None or frequency <= 0:
        logger.debug(f"Unknown solvent or frequency: {match.solvent!r}, {match.frequency!r}")
        return Err(record, annotate(
            record, Classification.DANGER, message('h1.info', options.language), DataError,
        ))
    return Ok(SpectrumMetadata(frequency=frequency, solvent=solvent.key))


def render_metadata(metadata: SpectrumMetadata) -> tuple[Segment, ...]:
    """Citation head, e.g. ``1H NMR (400 MHz, CDCl3) δ `` with styled parts."""
    return (
        Segment('1', Style.SUPERSCRIPT),
        Segment(f"H NMR ({metadata.frequency:g} MHz, "),
        *SOLVENTS[metadata.solvent].formatted,
        Segment(') δ '),
    )


def parse_peaks(
    peaks: str,
    metadata: SpectrumMetadata,
    options: ParseOptions,
) -> list[Ok[PeakEntry] | Err]:
    """Parse and correct every peak token of a peak list."""
    results = []
    for token in split_peak_tokens(peaks):
        result = parse_peak_token(token, options)
        if isinstance(result, Ok):
            result = Ok(fix_peak_data(result.value, metadata.frequency, options))
        results.append(result)
    return results


def format_h1_record(record: H1Record, options: ParseOptions, line: int = 0) -> Citation:
    """Format one located record."""
    match = match_h1_metadata(record.record, grammar_for(options.strict))
    meta = _read_metadata(record.record, match, options)
    if isinstance(meta, Err):
        return Citation(
            kind='h1',
            source=record.source,
            plain=record.source,
            annotated=highlight(record.source, meta.annotation),
            annotations=(meta.annotation,),
            line=line,
        )

    segments = list(render_metadata(meta.value))
    for i, result in enumerate(parse_peaks(match.peaks, meta.value, options)):
        if i:
            segments.append(Segment(', '))
        segments.extend(render_peak_result(result))
    if record.tail:
        segments.append(Segment(record.tail))

    annotations = tuple(seg.annotation for seg in segments if seg.annotation is not None)
    return Citation(
        kind='h1',
        source=record.source,
        plain=plain_text(segments),
        annotated=tuple(segments),
        annotations=annotations,
        line=line,
    )


def format_h1(text: str, options: ParseOptions | None = None) -> list[Citation]:
    """Format every 1H NMR record in ``text``.

    Args:
        text: Raw pasted text, possibly several lines
        options: Mode flags

    Returns:
        One citation per record, in input order

    """
    options = options or ParseOptions()
    citations = []
    for line_no, line in enumerate(split_lines(text)):
        for record in find_h1_records(line):
            citations.append(format_h1_record(record, options, line=line_no))
    logger.debug(f"Formatted {len(citations)} 1H NMR record(s)")
    return citations
