"""Grammar matcher for pasted spectrum descriptions.

Two named grammar variants exist, :data:`STRICT` and :data:`LENIENT`. Both
capture the same named groups so downstream code never needs to know which
one matched; they differ only in how much whitespace, punctuation and decimal
freedom they allow.

1H NMR records look like::

    1H NMR (400 MHz, Chloroform-d) δ 7.26 (d, J = 8.0 Hz, 2H), 7.10 – 6.68 (m, 1H), 4.46 (s, 3H).

HRMS clauses look like::

    HRMS (ESI) m/z: [M + H]+ Calcd for C10H13N2O 177.1022; Found 177.1025.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')

# A record runs from "1H NMR" to the first ")" followed by "." or ";" (the
# tail), or to the end of the line. A ";" followed by another shift separates
# peaks and does not end the record.
_H1_RECORD_RE = re.compile(
    r'(?P<record>1H\s*NMR.*?(?:\)(?=\.|;(?!\s*-?\d+\.\d))|$))(?P<tail>[.;]?)'
)

_YIELD_RE = re.compile(r'(?P<value>\d+(?:\.\d+)?)(?P<gap>\s*)%')
_WEIGHT_RE = re.compile(r'(?P<value>\d+(?:\.\d+)?)(?P<gap>\s*)mg\b')

_NUM = r'\d+(?:\.\d+)?'
# Shifts may be negative (upfield of TMS)
_SHIFT = r'-?\d+\.\d+'
_LENIENT_SHIFT = rf'-?{_NUM}'
_DASH = r'[–−-]'
# Multiplicity: one word, or two words for "br s"
_MULT = r'[a-z]+(?: [a-z]+)?'

# Range separators accepted in strict mode, exactly as written
VALID_RANGE_SEPARATORS = frozenset({'–', ' – ', '−', ' − ', ' - ', '-'})


@dataclass(frozen=True)
class Grammar:
    """A complete set of compiled patterns for one strictness level."""

    name: str
    h1_metadata: re.Pattern
    peak_with_j: re.Pattern
    peak_without_j: re.Pattern
    hrms: re.Pattern


STRICT = Grammar(
    name='strict',
    h1_metadata=re.compile(
        r'^1H NMR \((?P<frequency>\d+) MHz, (?P<solvent>[^()]+?)\) δ (?P<peaks>.*)$'
    ),
    peak_with_j=re.compile(
        rf'^(?P<shift>{_SHIFT}) \((?P<multiplicity>{_MULT}), J = (?P<j1>\d+\.\d+)'
        r'(?:, (?P<j2>\d+\.\d+))?(?:, (?P<j3>\d+\.\d+))? Hz, (?P<count>\d+)H\)$'
    ),
    peak_without_j=re.compile(
        rf'^(?P<shift>(?P<first>{_SHIFT})'
        rf'(?:(?P<separator>\s*{_DASH}\s*)(?P<second>{_SHIFT}))?)'
        rf' \((?P<multiplicity>{_MULT}), (?P<count>\d+)(?P<rest>[^()]*?)\)?$'
    ),
    hrms=re.compile(
        r'HRMS \((?P<source>[^()]+)\) m/z: \[M(?P<sign>\s*\+\s*)?(?P<ion>[A-Za-z]*)\]\+ '
        rf'[Cc]alcd for (?P<formula>[A-Za-z0-9]+) (?P<exact>{_NUM}); '
        rf'[Ff]ound (?P<found>{_NUM})'
    ),
)

LENIENT = Grammar(
    name='lenient',
    h1_metadata=re.compile(
        r'^1H\s*NMR\s*\(\s*(?P<frequency>\d+(?:\.\d+)?)\s*MHz\s*[,，]\s*(?P<solvent>[^()]+?)\s*\)'
        r'\s*(?:δ|delta)?\s*:?\s*(?P<peaks>.*)$'
    ),
    peak_with_j=re.compile(
        rf'^(?P<shift>{_LENIENT_SHIFT})\s*\(\s*(?P<multiplicity>{_MULT})\s*,\s*J\s*=\s*(?P<j1>{_NUM})'
        rf'(?:\s*,\s*(?P<j2>{_NUM}))?(?:\s*,\s*(?P<j3>{_NUM}))?\s*Hz\s*,\s*(?P<count>\d+)\s*H\s*\)?$'
    ),
    peak_without_j=re.compile(
        rf'^(?P<shift>(?P<first>{_LENIENT_SHIFT})'
        rf'(?:(?P<separator>\s*{_DASH}\s*)(?P<second>{_LENIENT_SHIFT}))?)'
        rf'\s*\(\s*(?P<multiplicity>{_MULT})\s*,\s*(?P<count>\d+)(?P<rest>[^()]*?)\)?$'
    ),
    hrms=re.compile(
        r'HRMS\s*\(\s*(?P<source>[^()]+?)\s*\)\s*(?:m/z)?\s*:?\s*'
        r'[\[(]\s*M(?P<sign>\s*\+\s*)?(?P<ion>[A-Za-z]*)\s*[\])]\s*\+?\s*,?\s*'
        r'(?:[Cc]alc(?:ulate)?d?\.?)\s*(?:for)?\s*(?P<formula>[A-Za-z0-9]+)\s*[:,]?\s*'
        rf'(?P<exact>{_NUM})\s*[;,]?\s*[Ff]ound\s*:?\s*(?P<found>{_NUM})'
    ),
)


def grammar_for(strict: bool) -> Grammar:
    """Select the grammar variant for the given mode."""
    return STRICT if strict else LENIENT


@dataclass(frozen=True)
class H1Record:
    """A located 1H NMR record within a line."""

    source: str  # record text plus tail, as it appears in the input
    record: str
    tail: str


@dataclass(frozen=True)
class H1Match:
    """Metadata and peak-list substrings of a record."""

    frequency: str
    solvent: str
    peaks: str


@dataclass(frozen=True)
class HrmsMatch:
    """Captured parts of an HRMS clause."""

    clause: str
    source: str
    sign: str
    ion: str
    formula: str
    exact: str
    found: str
    # Offsets within the clause
    formula_start: int = -1
    exact_start: int = -1
    found_start: int = -1


@dataclass(frozen=True)
class FieldMatch:
    """A yield or weight field with the whitespace before its unit."""

    text: str
    value: str
    gap: str


def split_lines(text: str) -> list[str]:
    """Split raw input on any line break."""
    return _LINE_BREAK_RE.split(text)


def find_h1_records(line: str) -> list[H1Record]:
    """Locate every 1H NMR record in ``line``."""
    records = []
    for m in _H1_RECORD_RE.finditer(line):
        record = m.group('record').rstrip()
        tail = m.group('tail')
        if not record:
            continue
        records.append(H1Record(source=record + tail, record=record, tail=tail))
    logger.debug(f"Found {len(records)} 1H NMR record(s) in line")
    return records


def match_h1_metadata(record: str, grammar: Grammar) -> H1Match | None:
    """Split a record into frequency, solvent and the peak-list substring."""
    m = grammar.h1_metadata.match(record)
    if not m:
        logger.debug(f"{grammar.name} metadata grammar rejected: {record!r}")
        return None
    return H1Match(
        frequency=m.group('frequency'),
        solvent=m.group('solvent'),
        peaks=m.group('peaks'),
    )


def split_peak_tokens(peaks: str) -> list[str]:
    """Split a peak list into peak tokens.

    Only commas and semicolons outside parentheses separate peaks. Dashes are
    never separators: ``7.10 – 6.68 (m, 1H)`` is one token, and the commas in
    ``(dd, J = 8.0, 2.0 Hz, 1H)`` stay inside theirs.
    """
    tokens = []
    depth = 0
    start = 0
    for i, ch in enumerate(peaks):
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth = max(depth - 1, 0)
        elif ch in ',;' and depth == 0:
            tokens.append(peaks[start:i])
            start = i + 1
    tokens.append(peaks[start:])
    return [t.strip() for t in tokens if t.strip()]


def match_hrms_line(line: str, grammar: Grammar) -> HrmsMatch | None:
    """Find the HRMS clause in ``line``."""
    m = grammar.hrms.search(line)
    if not m:
        logger.debug(f"{grammar.name} HRMS grammar rejected: {line!r}")
        return None
    return HrmsMatch(
        clause=m.group(0),
        source=m.group('source'),
        sign=m.group('sign') or '',
        ion=m.group('ion') or '',
        formula=m.group('formula'),
        exact=m.group('exact'),
        found=m.group('found'),
        formula_start=m.start('formula') - m.start(),
        exact_start=m.start('exact') - m.start(),
        found_start=m.start('found') - m.start(),
    )


def _find_field(pattern: re.Pattern, line: str) -> FieldMatch | None:
    m = pattern.search(line)
    if not m:
        return None
    return FieldMatch(text=m.group(0), value=m.group('value'), gap=m.group('gap'))


def find_yield(line: str) -> FieldMatch | None:
    """Find a percentage yield such as ``85%``."""
    return _find_field(_YIELD_RE, line)


def find_weight(line: str) -> FieldMatch | None:
    """Find a product weight such as ``45.2 mg``."""
    return _find_field(_WEIGHT_RE, line)
