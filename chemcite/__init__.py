"""
ChemCite: citation formatting for NMR and HRMS characterization data

Parses 1H NMR peak lists and HRMS clauses pasted from peak analysis programs,
corrects what can be corrected (coupling constant resolution, range order,
formula order) and annotates what cannot, producing publication strings plus
a segment stream for rich rendering.
"""

__version__ = "0.1.0"

from .annotation import (
    Annotation,
    Citation,
    Classification,
    Err,
    Ok,
    Segment,
    Style,
)
from .citation import (
    FormattedText,
    format_text,
)
from .formula import (
    Formula,
    canonical_string,
    exact_mass,
    formatted_segments,
    is_valid_formula,
    parse_formula,
)
from .h1 import (
    SpectrumMetadata,
    format_h1,
)
from .hrms import (
    HrmsRecord,
    calculate_mass,
    format_hrms,
)
from .messages import Language
from .options import ParseOptions
from .peaks import (
    PeakEntry,
    fix_peak_data,
    is_j_valid,
    parse_peak_token,
    round_j,
)
from .validation import (
    CitationSummary,
    generate_qc_report,
    summarize_citations,
)
