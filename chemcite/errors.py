"""Error taxonomy for ChemCite.

The pipelines never raise these for bad input text. Each problem is attached
to the record it came from as an :class:`~chemcite.annotation.Annotation`
whose ``kind`` names one of the classes below. The classes are raised only by
APIs that are called directly on a single value, such as
:func:`chemcite.formula.parse_formula`.
"""

from __future__ import annotations


class ChemCiteError(ValueError):
    """Base class for all ChemCite errors."""


class FormatError(ChemCiteError):
    """Text does not match the grammar; the record cannot be parsed."""


class DataError(ChemCiteError):
    """Grammar matched but a vocabulary item is unknown (element, source, ion, solvent)."""


class InvalidFormulaError(DataError):
    """Formula text does not tokenize into known elements with positive counts."""


class DecimalPrecisionError(ChemCiteError):
    """Reported mass has the wrong number of decimal digits."""


class ToleranceError(ChemCiteError):
    """Found mass deviates too far from the reported exact mass."""


class ConsistencyError(ChemCiteError):
    """Reported exact mass disagrees with the mass computed from the formula."""


class PeakTypeError(ChemCiteError):
    """Multiplicity is unknown or inconsistent with the coupling constants."""


class QuantizationWarning(UserWarning):
    """Coupling constants were snapped to the spectrometer's digital resolution."""
