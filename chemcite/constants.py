"""Closed, read-only lookup tables.

All tables are built once at import and exposed through ``MappingProxyType``
or ``frozenset`` so they can be read from any thread without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from .annotation import Segment, Style

# Electron mass deducted once for any non-empty counter ion (Da)
ELECTRON_MASS = 0.000549

# HRMS masses are reported to this many decimal places
REQUIRED_DECIMALS = 4
# Maximum |found - exact| accepted in strict mode (Da)
MAX_FOUND_DEVIATION = 0.003
# Maximum |exact - calculated| accepted after rounding to 4 places (Da)
MAX_CALCULATED_DEVIATION = 0.0001

# Monoisotopic masses of the most abundant isotope (Da)
ELEMENT_MASSES = MappingProxyType({
    'H': 1.00782503207,
    'D': 2.0141017778,
    'Li': 7.01600455,
    'B': 11.0093054,
    'C': 12.0,
    'N': 14.0030740048,
    'O': 15.99491461956,
    'F': 18.99840322,
    'Na': 22.9897692809,
    'Mg': 23.9850417,
    'Al': 26.98153863,
    'Si': 27.9769265325,
    'P': 30.97376163,
    'S': 31.972071,
    'Cl': 34.96885268,
    'K': 38.96370668,
    'Ca': 39.96259098,
    'Ti': 47.9479463,
    'Cr': 51.9405075,
    'Mn': 54.9380451,
    'Fe': 55.9349375,
    'Co': 58.933195,
    'Ni': 57.9353429,
    'Cu': 62.9295975,
    'Zn': 63.9291422,
    'Ga': 68.9255736,
    'Ge': 73.9211778,
    'As': 74.9215965,
    'Se': 79.9165213,
    'Br': 78.9183371,
    'Rb': 84.911789738,
    'Sr': 87.9056121,
    'Zr': 89.9047044,
    'Mo': 97.9054082,
    'Ru': 101.9043493,
    'Rh': 102.905504,
    'Pd': 105.903486,
    'Ag': 106.905097,
    'Cd': 113.9033585,
    'In': 114.903878,
    'Sn': 119.9021947,
    'Sb': 120.9038157,
    'Te': 129.9062244,
    'I': 126.904473,
    'Cs': 132.905451933,
    'Ba': 137.9052472,
    'W': 183.9509312,
    'Re': 186.9557531,
    'Os': 191.9614807,
    'Ir': 192.9629264,
    'Pt': 194.9647911,
    'Au': 196.9665687,
    'Hg': 201.970643,
    'Tl': 204.9744275,
    'Pb': 207.9766521,
    'Bi': 208.9803987,
})

# Ionization sources, matched as case-sensitive substrings of the reported source
ION_SOURCES = (
    'ESI', 'APCI', 'EI', 'MALDI', 'CI', 'FD', 'FI', 'FAB', 'APPI', 'TS', 'PB', 'DART',
)

# Counter ions; '' is the bare molecular ion [M]+
COUNTER_IONS = frozenset({'', 'H', 'Na', 'K', 'Cs'})


@dataclass(frozen=True)
class Solvent:
    """NMR solvent with its accepted spellings and publication rendering."""

    key: str
    aliases: tuple[str, ...]
    formatted: tuple[Segment, ...]

    @property
    def name(self) -> str:
        return ''.join(seg.text for seg in self.formatted)


def _sub(text: str) -> Segment:
    return Segment(text, Style.SUBSCRIPT)


def _d(count: str) -> tuple[Segment, Segment]:
    # Deuteration label: italic d followed by subscript count
    return Segment('d', Style.ITALIC), _sub(count)


_SOLVENT_LIST = (
    Solvent('cdcl3', ('cdcl3', 'chloroform-d', 'chloroform'),
            (Segment('CDCl'), _sub('3'))),
    Solvent('dmso', ('dmso', 'dmso-d6', 'd6-dmso', 'dimethyl sulfoxide-d6'),
            (Segment('DMSO-'), *_d('6'))),
    Solvent('cd3od', ('cd3od', 'methanol-d4', 'methanol'),
            (Segment('CD'), _sub('3'), Segment('OD'))),
    Solvent('acetone', ('acetone', 'acetone-d6', 'd6-acetone'),
            (Segment('acetone-'), *_d('6'))),
    Solvent('c6d6', ('c6d6', 'benzene-d6', 'benzene'),
            (Segment('C'), _sub('6'), Segment('D'), _sub('6'))),
    Solvent('d2o', ('d2o', 'deuterium oxide', 'water-d2'),
            (Segment('D'), _sub('2'), Segment('O'))),
    Solvent('cd3cn', ('cd3cn', 'acetonitrile-d3', 'acetonitrile'),
            (Segment('CD'), _sub('3'), Segment('CN'))),
    Solvent('cd2cl2', ('cd2cl2', 'dichloromethane-d2', 'methylene chloride-d2'),
            (Segment('CD'), _sub('2'), Segment('Cl'), _sub('2'))),
    Solvent('toluene', ('toluene', 'toluene-d8'),
            (Segment('toluene-'), *_d('8'))),
    Solvent('thf', ('thf', 'thf-d8', 'tetrahydrofuran-d8'),
            (Segment('THF-'), *_d('8'))),
    Solvent('pyridine', ('pyridine', 'pyridine-d5'),
            (Segment('pyridine-'), *_d('5'))),
)

SOLVENTS = MappingProxyType({s.key: s for s in _SOLVENT_LIST})

_SOLVENT_ALIASES = MappingProxyType({
    alias: s.key for s in _SOLVENT_LIST for alias in s.aliases
})


def find_solvent(text: str) -> Solvent | None:
    """Look up a solvent by any accepted spelling (case-insensitive)."""
    key = _SOLVENT_ALIASES.get(' '.join(text.split()).lower())
    return SOLVENTS[key] if key else None
