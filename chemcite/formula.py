"""Formula engine: element-count strings, exact masses and Hill notation.

The grammar is deliberately small: a formula is a run of element symbols
(capital letter, optional lowercase letter) each followed by an optional
positive count, e.g. ``C10H13N2O`` or ``C15H14NaO3``. Parentheses, charges,
hydrates and isotope labels are not supported.

Examples:
    >>> f = parse_formula('H13C10ON2')
    >>> canonical_string(f)
    'C10H13N2O'
    >>> round(exact_mass(f), 5)
    177.10279

"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass

from .annotation import Segment, Style, plain_text
from .constants import ELEMENT_MASSES
from .errors import InvalidFormulaError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r'([A-Z][a-z]?)(\d*)')


@dataclass(frozen=True)
class Formula:
    """Ordered (symbol, count) pairs as written in the source text."""

    pairs: tuple[tuple[str, int], ...]

    @classmethod
    def parse(cls, text: str) -> Formula:
        return parse_formula(text)

    @property
    def exact_mass(self) -> float:
        return exact_mass(self)

    def __str__(self) -> str:
        return canonical_string(self)


def parse_formula(text: str) -> Formula:
    """Tokenize ``text`` into a :class:`Formula`.

    Args:
        text: Formula such as ``C10H13N2O``; surrounding whitespace is ignored

    Returns:
        Parsed formula preserving the written order of pairs

    Raises:
        InvalidFormulaError: On empty text, residual characters, unknown
            element symbols or zero counts

    """
    stripped = text.strip()
    if not stripped:
        raise InvalidFormulaError('Formula is empty')

    pairs = []
    pos = 0
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if not match:
            raise InvalidFormulaError(
                f"Unexpected '{stripped[pos:]}' at position {pos} in formula '{text}'"
            )
        symbol, digits = match.groups()
        if symbol not in ELEMENT_MASSES:
            raise InvalidFormulaError(f"Unknown element '{symbol}' in formula '{text}'")
        count = int(digits) if digits else 1
        if count == 0:
            raise InvalidFormulaError(f"Zero count for '{symbol}' in formula '{text}'")
        pairs.append((symbol, count))
        pos = match.end()

    return Formula(tuple(pairs))


def is_valid_formula(text: str) -> bool:
    """Return True when ``text`` parses as a formula."""
    try:
        parse_formula(text)
    except InvalidFormulaError as e:
        logger.debug(f"Invalid formula: {e}")
        return False
    return True


def element_counts(formula: Formula) -> dict[str, int]:
    """Total count per element, independent of the written order."""
    counts: Counter[str] = Counter()
    for symbol, count in formula.pairs:
        counts[symbol] += count
    return dict(counts)


def exact_mass(formula: Formula) -> float:
    """Monoisotopic mass of ``formula`` in Da."""
    return sum(ELEMENT_MASSES[symbol] * count for symbol, count in formula.pairs)


def _hill_order(counts: dict[str, int]) -> list[str]:
    if 'C' not in counts:
        return sorted(counts)
    rest = sorted(s for s in counts if s not in ('C', 'H'))
    return ['C', 'H', *rest] if 'H' in counts else ['C', *rest]


def formatted_segments(formula: Formula) -> tuple[Segment, ...]:
    """Hill-ordered formula with every count tagged as a subscript."""
    counts = element_counts(formula)
    segments: list[Segment] = []
    for symbol in _hill_order(counts):
        segments.append(Segment(symbol))
        if counts[symbol] > 1:
            segments.append(Segment(str(counts[symbol]), Style.SUBSCRIPT))
    return tuple(segments)


def canonical_string(formula: Formula) -> str:
    """Hill-ordered formula, duplicates merged, counts of one omitted."""
    return plain_text(formatted_segments(formula))
