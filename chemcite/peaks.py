"""Peak parser and corrector for 1H NMR peak tokens.

A peak token is one comma-separated entry of a peak list, e.g.
``7.26 (d, J = 8.0 Hz, 2H)`` or ``7.10 – 6.68 (m, 1H)``. Parsing is purely
syntactic; :func:`fix_peak_data` then applies the chemistry rules once:

1. unknown multiplicities are flagged
2. multiplets (m) must be reported as a shift interval and carry no J
3. everything else must have a single shift; singlets carry no J
4. J-carrying multiplicities must report J (when auto-fix-J is on)
5. J must be a multiple of frequency / 1000 Hz; otherwise all J of the
   peak are snapped and the originals are kept in a warning
6. multiplicities outside the J-carrying set of the current mode are
   turned into a multiplet with a placeholder shift to be filled in by hand
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType

import numpy as np

from .annotation import (
    Annotation,
    Classification,
    Err,
    Ok,
    Segment,
    Style,
    annotate,
    highlight,
    worst_classification,
)
from .errors import FormatError, PeakTypeError, QuantizationWarning
from .grammar import VALID_RANGE_SEPARATORS, grammar_for
from .messages import message
from .options import ParseOptions

logger = logging.getLogger(__name__)

PEAK_RANGE_PLACEHOLDER = 'PEAKRANGE'

# Digital resolution of J is frequency / MAGNIFICATION Hz
MAGNIFICATION = 1000

# Expected number of coupling constants per multiplicity; the keys are the
# recognized multiplet alphabet.
J_COUNT = MappingProxyType({
    's': 0, 'br s': 0, 'm': 0,
    'd': 1, 't': 1, 'q': 1, 'p': 1, 'h': 1, 'hept': 1,
    'dd': 2, 'dt': 2, 'td': 2, 'tt': 2, 'dq': 2, 'qd': 2,
    'ddd': 3, 'ddt': 3, 'dtd': 3, 'tdd': 3,
})

SINGLET_TYPES = frozenset({'s', 'br s'})
RANGE_TYPES = frozenset({'m'})
J_TYPES = frozenset(k for k, n in J_COUNT.items() if n > 0)
# J-carrying set when general-multiplet mode is on
BASIC_J_TYPES = frozenset({'d', 't', 'q', 'dd'})

# Last character (closing parenthesis removed) of a peak token without J
VALID_ENDINGS = ('H', '.', ';')

SHIFT = 'shift'
MULTIPLICITY = 'multiplicity'
COUPLINGS = 'couplings'


@dataclass
class PeakEntry:
    """One parsed peak.

    ``shift`` holds the reported values as strings: one value, two values for
    an interval (in the order written), or none for the placeholder.
    ``couplings`` is None when the token had no ``J =`` clause.
    """

    shift: tuple[str, ...]
    multiplicity: str
    couplings: tuple[float, ...] | None
    hydrogen_count: int
    flags: dict[str, Annotation] = field(default_factory=dict)
    corrected: bool = False

    @property
    def is_range(self) -> bool:
        return len(self.shift) == 2

    @property
    def is_placeholder(self) -> bool:
        return not self.shift

    @property
    def annotation(self) -> Annotation | None:
        """The most severe field annotation."""
        return max(self.flags.values(), key=lambda a: a.classification, default=None)

    @property
    def classification(self) -> Classification:
        return worst_classification(self.flags.values())


def is_peak(multiplicity: str) -> bool:
    """True for any multiplicity in the recognized alphabet."""
    return multiplicity in J_COUNT


def is_j_multiplicity(multiplicity: str, general_multiplet: bool = False) -> bool:
    """True when ``multiplicity`` carries coupling constants in this mode."""
    return multiplicity in (BASIC_J_TYPES if general_multiplet else J_TYPES)


def is_j_valid(j: float | None, frequency: float) -> bool:
    """True when ``j`` is a non-zero multiple of ``frequency / 1000`` Hz.

    At 400 MHz the quantum is 0.4 Hz, so 7.6 Hz is valid and 7.5 Hz is not.
    """
    if not j:
        return False
    quanta = MAGNIFICATION * j / frequency
    return abs(quanta - round(quanta)) < 1e-6


def round_j_values(values, frequency: float) -> tuple[float, ...]:
    """Snap each J to the nearest multiple of ``frequency / 1000`` Hz.

    Halves round up, so 7.4 Hz at 400 MHz (18.5 quanta) becomes 7.6 Hz.
    """
    arr = np.asarray(values, dtype=float)
    snapped = np.floor(MAGNIFICATION * arr / frequency + 0.5) * frequency / MAGNIFICATION
    return tuple(float(v) for v in snapped)


def round_j(j: float, frequency: float) -> float:
    return round_j_values([j], frequency)[0]


def format_shift(entry: PeakEntry) -> str:
    if entry.is_placeholder:
        return PEAK_RANGE_PLACEHOLDER
    return '–'.join(f"{float(v):.2f}" for v in entry.shift)


def format_couplings(couplings) -> str:
    return ', '.join(f"{j:.1f}" for j in couplings or ())


def _field_text(entry: PeakEntry, name: str) -> str:
    if name == SHIFT:
        return format_shift(entry)
    if name == MULTIPLICITY:
        return entry.multiplicity
    return format_couplings(entry.couplings)


def _flag(
    entry: PeakEntry,
    name: str,
    classification: Classification,
    text: str,
    kind: type[Exception],
) -> None:
    """Attach an annotation to field ``name`` unless it already holds a worse one."""
    current = entry.flags.get(name)
    if current is not None and current.classification > classification:
        return
    entry.flags[name] = annotate(_field_text(entry, name), classification, text, kind)


def _format_error(token: str, options: ParseOptions) -> Err:
    logger.debug(f"Malformed peak token: {token!r}")
    return Err(
        text=token,
        annotation=annotate(
            token, Classification.DANGER, message('peak.format', options.language), FormatError
        ),
    )


def parse_peak_token(token: str, options: ParseOptions | None = None) -> Ok[PeakEntry] | Err:
    """Parse one peak token.

    The with-J grammar is tried first, then the without-J grammar. A J count
    that disagrees with :data:`J_COUNT` flags the multiplicity but still
    returns the entry.

    Args:
        token: Peak token such as ``7.26 (d, J = 8.0 Hz, 2H)``
        options: Mode flags (defaults to strict, English)

    Returns:
        ``Ok(PeakEntry)`` or ``Err`` carrying a format-error annotation

    """
    options = options or ParseOptions()
    grammar = grammar_for(options.strict)
    language = options.language

    m = grammar.peak_with_j.match(token)
    if m:
        if not int(m.group('count')):
            return _format_error(token, options)
        multiplicity = m.group('multiplicity')
        # Zero-valued constants are dropped
        couplings = tuple(
            float(v) for v in (m.group('j1'), m.group('j2'), m.group('j3')) if v and float(v)
        )
        entry = PeakEntry(
            shift=(m.group('shift'),),
            multiplicity=multiplicity,
            couplings=couplings,
            hydrogen_count=int(m.group('count')),
        )
        expected = J_COUNT.get(multiplicity)
        # s and m with J, and unknown types, are left to fix_peak_data
        if expected and len(couplings) != expected:
            key = 'peak.j_count_one' if expected == 1 else 'peak.j_count_many'
            _flag(
                entry, MULTIPLICITY, Classification.DANGER,
                message(key, language, peak_type=multiplicity, count=expected),
                PeakTypeError,
            )
        return Ok(entry)

    m = grammar.peak_without_j.match(token)
    if not m or not int(m.group('count')):
        return _format_error(token, options)

    body = token[:-1] if token.endswith(')') else token
    body = body.rstrip()
    if not body or body[-1] not in VALID_ENDINGS:
        return _format_error(token, options)

    first, second = m.group('first'), m.group('second')
    entry = PeakEntry(
        shift=(first, second) if second else (first,),
        multiplicity=m.group('multiplicity'),
        couplings=None,
        hydrogen_count=int(m.group('count')),
    )
    if second:
        separator = m.group('separator')
        if options.strict and separator not in VALID_RANGE_SEPARATORS:
            _flag(entry, SHIFT, Classification.DANGER, message('peak.format', language), FormatError)
        elif float(first) < float(second):
            # Intervals are written from low field (high ppm) to high field;
            # equal bounds are accepted.
            _flag(entry, SHIFT, Classification.DANGER, message('peak.order', language), FormatError)
    return Ok(entry)


def fix_peak_data(
    entry: PeakEntry,
    frequency: float,
    options: ParseOptions | None = None,
) -> PeakEntry:
    """Apply the multiplicity and coupling-constant rules to a parsed peak.

    Returns a corrected copy; an entry that was already corrected is returned
    unchanged.

    Args:
        entry: Peak from :func:`parse_peak_token`
        frequency: Spectrometer frequency in MHz
        options: Mode flags

    """
    if entry.corrected:
        return entry
    options = options or ParseOptions()
    language = options.language
    fixed = replace(entry, flags=dict(entry.flags), corrected=True)
    peak_type = fixed.multiplicity

    if not is_peak(peak_type):
        _flag(
            fixed, MULTIPLICITY, Classification.DANGER,
            message('peak.unknown_type', language, peak_type=peak_type), PeakTypeError,
        )
    elif peak_type in RANGE_TYPES:
        if not fixed.is_range:
            _flag(fixed, SHIFT, Classification.DANGER,
                  message('peak.needs_interval', language), FormatError)
        if fixed.couplings is not None:
            _flag(fixed, COUPLINGS, Classification.WARNING,
                  message('peak.multiplet_j', language), PeakTypeError)
    else:
        if fixed.is_range:
            _flag(
                fixed, SHIFT, Classification.DANGER,
                message('peak.single_shift', language, peak_type=peak_type), FormatError,
            )
        if peak_type in SINGLET_TYPES:
            if fixed.couplings is not None:
                _flag(
                    fixed, MULTIPLICITY, Classification.DANGER,
                    message('peak.no_j', language, peak_type=peak_type), PeakTypeError,
                )
        elif is_j_multiplicity(peak_type, options.general_multiplet):
            if options.auto_fix_j:
                _fix_couplings(fixed, frequency, options)
        else:
            logger.debug(f"Reporting '{peak_type}' peak as a general multiplet")
            fixed.multiplicity = 'm'
            fixed.shift = ()
            fixed.couplings = None
            fixed.flags.pop(COUPLINGS, None)
            _flag(
                fixed, SHIFT, Classification.DANGER,
                message('peak.coerced', language, peak_type=peak_type), PeakTypeError,
            )
    return fixed


def _fix_couplings(entry: PeakEntry, frequency: float, options: ParseOptions) -> None:
    if not entry.couplings:
        _flag(
            entry, MULTIPLICITY, Classification.DANGER,
            message('peak.needs_j', options.language, peak_type=entry.multiplicity),
            PeakTypeError,
        )
        return
    if MULTIPLICITY in entry.flags or all(is_j_valid(j, frequency) for j in entry.couplings):
        return
    original = format_couplings(entry.couplings)
    entry.couplings = round_j_values(entry.couplings, frequency)
    logger.debug(f"Rounded J = {original} Hz to {format_couplings(entry.couplings)} Hz "
                 f"at {frequency} MHz")
    _flag(
        entry, COUPLINGS, Classification.WARNING,
        message('peak.original_j', options.language, values=original), QuantizationWarning,
    )


def _field_segment(entry: PeakEntry, name: str, style: Style | None = None) -> Segment:
    text = _field_text(entry, name)
    annotation = entry.flags.get(name)
    if annotation is None:
        return Segment(text, style)
    return Segment(text, style, replace(annotation, target=text))


def render_peak(entry: PeakEntry) -> tuple[Segment, ...]:
    """Publication form of a peak, e.g. ``7.26 (d, J = 8.0 Hz, 2H)``."""
    segments = [
        _field_segment(entry, SHIFT),
        Segment(' ('),
        _field_segment(entry, MULTIPLICITY),
        Segment(', '),
    ]
    if entry.couplings is not None:
        segments += [
            Segment('J', Style.ITALIC),
            Segment(' = '),
            _field_segment(entry, COUPLINGS),
            Segment(' Hz, '),
        ]
    segments.append(Segment(f"{entry.hydrogen_count}H)"))
    return tuple(segments)


def render_peak_result(result: Ok[PeakEntry] | Err) -> tuple[Segment, ...]:
    """Render a parsed peak, or the flagged original token for a failed parse."""
    if isinstance(result, Err):
        return highlight(result.text, result.annotation)
    return render_peak(result.value)
