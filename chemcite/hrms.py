"""HRMS validator.

Checks a clause such as::

    HRMS (ESI) m/z: [M + H]+ Calcd for C10H13N2O 177.1022; Found 177.1025.

The reported formula is the formula of the observed ion, so the calculated
value is its monoisotopic mass minus one electron mass whenever a counter ion
is present. The same single electron deduction is applied for every counter
ion (H, Na, K, Cs); bare molecular ions ``[M]+`` get no adjustment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .annotation import (
    Annotation,
    Citation,
    Classification,
    Err,
    Ok,
    Segment,
    annotate,
    highlight,
    highlight_spans,
)
from .constants import (
    COUNTER_IONS,
    ELECTRON_MASS,
    ION_SOURCES,
    MAX_CALCULATED_DEVIATION,
    MAX_FOUND_DEVIATION,
    REQUIRED_DECIMALS,
)
from .errors import (
    ConsistencyError,
    DataError,
    DecimalPrecisionError,
    FormatError,
    InvalidFormulaError,
    ToleranceError,
)
from .formula import Formula, canonical_string, exact_mass, formatted_segments, parse_formula
from .grammar import (
    FieldMatch,
    HrmsMatch,
    find_weight,
    find_yield,
    grammar_for,
    match_hrms_line,
    split_lines,
)
from .messages import message
from .options import ParseOptions

logger = logging.getLogger(__name__)

# Separator required between "M" and the counter ion in strict mode
STRICT_ION_SIGN = ' + '


@dataclass(frozen=True)
class HrmsRecord:
    """A parsed HRMS clause. ``calculated_mass`` is always derived."""

    raw_text: str
    ion_source: str
    counter_ion: str
    formula: Formula
    formula_text: str
    exact_mass_reported: str
    found_mass_reported: str
    calculated_mass: float
    formula_start: int = -1
    exact_start: int = -1
    found_start: int = -1


def round_half_up(value: float, ndigits: int) -> float:
    """Round on the decimal representation, halves away from zero.

    381.087745 rounds to 381.08775 at five places, not 381.08774 as binary
    rounding would give.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def ion_mass_adjustment(ion: str) -> float:
    """Mass added to the formula mass for the given counter ion."""
    return 0.0 if ion == '' else -ELECTRON_MASS


def calculate_mass(formula: Formula, ion: str) -> float:
    """Calculated m/z to four places (rounded to five first, then four)."""
    return round_half_up(round_half_up(exact_mass(formula) + ion_mass_adjustment(ion), 5), 4)


def decimal_places(mass: str) -> int:
    """Number of digits after the decimal point of a reported mass."""
    _, _, fraction = mass.partition('.')
    return len(fraction)


def _clause_error(
    match: HrmsMatch,
    target: str,
    key: str,
    kind: type[Exception],
    options: ParseOptions,
) -> Err:
    logger.debug(f"HRMS clause rejected ({kind.__name__}): {target!r}")
    return Err(match.clause, annotate(
        target, Classification.DANGER, message(key, options.language), kind,
    ))


def parse_hrms_clause(match: HrmsMatch, options: ParseOptions | None = None) -> Ok[HrmsRecord] | Err:
    """Validate the vocabulary of a matched clause and compute its mass.

    Args:
        match: Clause captured by :func:`chemcite.grammar.match_hrms_line`
        options: Mode flags

    Returns:
        ``Ok(HrmsRecord)``, or ``Err`` naming the offending part

    """
    options = options or ParseOptions()

    if not any(source in match.source for source in ION_SOURCES):
        return _clause_error(match, match.source, 'hrms.data', DataError, options)

    ion_text = f"M{match.sign}{match.ion}"
    if match.ion == '':
        # Bare molecular ion: "[M]+" only, a dangling sign is an error
        if match.sign:
            return _clause_error(match, ion_text, 'hrms.data', DataError, options)
    elif match.ion in COUNTER_IONS:
        if options.strict and match.sign != STRICT_ION_SIGN:
            return _clause_error(match, ion_text, 'hrms.format', FormatError, options)
    else:
        return _clause_error(match, ion_text, 'hrms.data', DataError, options)

    try:
        formula = parse_formula(match.formula)
    except InvalidFormulaError as e:
        logger.debug(str(e))
        return _clause_error(match, match.formula, 'hrms.data', DataError, options)

    return Ok(HrmsRecord(
        raw_text=match.clause,
        ion_source=match.source,
        counter_ion=match.ion,
        formula=formula,
        formula_text=match.formula,
        exact_mass_reported=match.exact,
        found_mass_reported=match.found,
        calculated_mass=calculate_mass(formula, match.ion),
        formula_start=match.formula_start,
        exact_start=match.exact_start,
        found_start=match.found_start,
    ))


def validate_hrms_record(record: HrmsRecord, options: ParseOptions | None = None) -> list[Annotation]:
    """Check reported masses against format rules and the calculated mass.

    In strict mode both masses must have four decimals and the found mass
    must be within 0.003 of the exact mass; the first of these failures is
    reported. In lenient mode the exact mass is read at four decimals and
    those checks are skipped. The calculated-mass check always runs.

    Returns:
        Danger annotations, empty when the record is valid

    """
    return [annotation for _, annotation in _check_masses(record, options or ParseOptions())]


def _check_masses(record: HrmsRecord, options: ParseOptions) -> list[tuple[int, Annotation]]:
    """Mass annotations paired with the clause offset of the mass they flag."""
    language = options.language
    exact = record.exact_mass_reported
    found = record.found_mass_reported
    flagged = []

    if options.strict:
        if decimal_places(exact) != REQUIRED_DECIMALS:
            flagged.append((record.exact_start, annotate(
                exact, Classification.DANGER, message('hrms.decimal', language), DecimalPrecisionError,
            )))
        elif decimal_places(found) != REQUIRED_DECIMALS:
            flagged.append((record.found_start, annotate(
                found, Classification.DANGER, message('hrms.decimal', language), DecimalPrecisionError,
            )))
        elif round_half_up(abs(float(found) - float(exact)), REQUIRED_DECIMALS) > MAX_FOUND_DEVIATION:
            flagged.append((record.found_start, annotate(
                found, Classification.DANGER,
                message('hrms.found', language, tolerance=MAX_FOUND_DEVIATION), ToleranceError,
            )))
    else:
        exact = f"{float(exact):.{REQUIRED_DECIMALS}f}"

    deviation = round_half_up(abs(float(exact) - record.calculated_mass), REQUIRED_DECIMALS)
    if deviation > MAX_CALCULATED_DEVIATION:
        flagged.append((record.exact_start, annotate(
            record.exact_mass_reported, Classification.DANGER,
            message('hrms.calc', language, mass=f"{record.calculated_mass:.{REQUIRED_DECIMALS}f}"),
            ConsistencyError,
        )))
    return flagged


def _field_citations(line: str, line_no: int, options: ParseOptions) -> list[Citation]:
    """Strict-mode spacing checks for yield (``85%``) and weight (``45.2 mg``)."""
    if not options.strict:
        return []
    checks: list[tuple[str, FieldMatch | None, str]] = [
        ('yield', find_yield(line), ''),
        ('weight', find_weight(line), ' '),
    ]
    citations = []
    for kind, field, expected_gap in checks:
        if field is None or field.gap == expected_gap:
            continue
        annotation = annotate(
            field.text, Classification.DANGER, message('hrms.format', options.language), FormatError,
        )
        citations.append(Citation(
            kind=kind,
            source=field.text,
            plain=field.text,
            annotated=highlight(field.text, annotation),
            annotations=(annotation,),
            line=line_no,
        ))
    return citations


def format_hrms_line(line: str, options: ParseOptions | None = None, line_no: int = 0) -> list[Citation]:
    """Format the HRMS clause of one line, plus any flagged yield/weight fields."""
    options = options or ParseOptions()
    match = match_hrms_line(line, grammar_for(options.strict))
    if match is None:
        annotation = annotate(
            line, Classification.DANGER, message('hrms.format', options.language), FormatError,
        )
        return [Citation(
            kind='hrms', source=line, plain=line,
            annotated=highlight(line, annotation), annotations=(annotation,), line=line_no,
        )]

    citations = _field_citations(line, line_no, options)
    result = parse_hrms_clause(match, options)
    if isinstance(result, Err):
        citations.insert(0, Citation(
            kind='hrms', source=result.text, plain=result.text,
            annotated=highlight(result.text, result.annotation),
            annotations=(result.annotation,), line=line_no,
        ))
        return citations

    record = result.value
    flagged = _check_masses(record, options)
    if flagged:
        annotations = [annotation for _, annotation in flagged]
        segments = highlight_spans(record.raw_text, [
            (start if start >= 0 else record.raw_text.find(annotation.target), annotation)
            for start, annotation in flagged
        ])
        citation = Citation(
            kind='hrms', source=record.raw_text, plain=record.raw_text, annotated=segments,
            annotations=tuple(annotations), calculated_mass=record.calculated_mass, line=line_no,
        )
    else:
        start = record.formula_start
        if start < 0:
            start = record.raw_text.find(record.formula_text)
        before = record.raw_text[:start]
        after = record.raw_text[start + len(record.formula_text):]
        citation = Citation(
            kind='hrms',
            source=record.raw_text,
            plain=before + canonical_string(record.formula) + after,
            annotated=tuple(
                seg for seg in (Segment(before), *formatted_segments(record.formula), Segment(after))
                if seg.text
            ),
            calculated_mass=record.calculated_mass,
            line=line_no,
        )
    citations.insert(0, citation)
    return citations


def format_hrms(text: str, options: ParseOptions | None = None) -> list[Citation]:
    """Format every line of ``text`` that mentions HRMS.

    Lines without ``HRMS`` are not HRMS records and are skipped; a line that
    mentions it but does not match the grammar is flagged as a whole.
    """
    options = options or ParseOptions()
    citations = []
    for line_no, line in enumerate(split_lines(text)):
        if 'HRMS' not in line:
            continue
        citations.extend(format_hrms_line(line, options, line_no))
    logger.debug(f"Formatted {len(citations)} HRMS citation(s)")
    return citations
