"""Data I/O module for loading characterization text and writing citation reports."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from .annotation import Citation

logger = logging.getLogger(__name__)

# Suffixes read verbatim as pasted text
TEXT_SUFFIXES = {'.txt', '.text', '.md', ''}

# Tabular inputs: one characterization paragraph per row
TABLE_SEPARATORS = {
    '.csv': ',',
    '.tsv': '\t',
    '.tab': '\t',
}

# Column names searched, in order, when no text column is given
DEFAULT_TEXT_COLUMNS = [
    'characterization',
    'Characterization',
    'data',
    'Data',
    'text',
    'Text',
    'SI',
]

REPORT_COLUMNS = [
    'line',
    'kind',
    'classification',
    'citation_ready',
    'source',
    'plain',
    'calculated_mass',
    'n_annotations',
    'error_kinds',
    'messages',
]

ANNOTATION_COLUMNS = [
    'line',
    'kind',
    'classification',
    'error_kind',
    'target',
    'message',
]


@dataclass
class InputValidationResult:
    """Result of validating an input file."""

    is_valid: bool
    filepath: Path
    text_column: Optional[str] = None
    n_rows: int = 0
    n_lines: int = 0
    warnings: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        if self.is_valid:
            return f"Valid: {self.filepath.name} ({self.n_rows} rows, {self.n_lines} lines)"
        return f"Invalid: {self.filepath.name} - {'; '.join(self.warnings)}"


def _read_table(filepath: Path) -> pd.DataFrame:
    suffix = filepath.suffix.lower()
    if suffix == '.parquet':
        return pd.read_parquet(filepath)
    return pd.read_csv(filepath, sep=TABLE_SEPARATORS[suffix], dtype=str, keep_default_na=False)


def _pick_text_column(df: pd.DataFrame, text_column: Optional[str]) -> Optional[str]:
    if text_column is not None:
        return text_column if text_column in df.columns else None
    for col in DEFAULT_TEXT_COLUMNS:
        if col in df.columns:
            return col
    # Single-column tables need no name
    if len(df.columns) == 1:
        return df.columns[0]
    return None


def validate_input_file(filepath: Path, text_column: Optional[str] = None) -> InputValidationResult:
    """Validate that an input file can be read as characterization text.

    Args:
        filepath: Plain text, CSV/TSV or Parquet file
        text_column: Column holding the text for tabular inputs

    Returns:
        InputValidationResult with validation details

    """
    filepath = Path(filepath)
    result = InputValidationResult(is_valid=True, filepath=filepath)
    suffix = filepath.suffix.lower()

    if not filepath.exists():
        result.is_valid = False
        result.warnings.append("File not found")
        return result

    if suffix in TEXT_SUFFIXES:
        text = filepath.read_text(encoding='utf-8')
        result.n_rows = 1
        result.n_lines = len(text.splitlines())
    elif suffix in TABLE_SEPARATORS or suffix == '.parquet':
        try:
            df = _read_table(filepath)
        except (OSError, ValueError, pd.errors.ParserError) as e:
            result.is_valid = False
            result.warnings.append(f"Error reading file: {str(e)}")
            return result
        column = _pick_text_column(df, text_column)
        if column is None:
            result.is_valid = False
            wanted = text_column or ' / '.join(DEFAULT_TEXT_COLUMNS)
            result.warnings.append(f"No text column found (looked for {wanted})")
            return result
        result.text_column = column
        result.n_rows = len(df)
        result.n_lines = int(df[column].astype(str).str.count('\n').sum()) + len(df)
    else:
        result.is_valid = False
        result.warnings.append(f"Unsupported file type: {suffix}")
        return result

    if result.n_lines == 0:
        result.warnings.append("Input is empty")
    return result


def load_input_text(filepath: Path, text_column: Optional[str] = None) -> str:
    """Load characterization text from a file.

    Tabular rows are joined with newlines, so each row becomes its own line
    (or lines) of the formatted text.

    Raises:
        ValueError: If the file cannot be used as input

    """
    filepath = Path(filepath)
    validation = validate_input_file(filepath, text_column)
    if not validation.is_valid:
        raise ValueError(f"Invalid input file: {validation}")
    for warning in validation.warnings:
        logger.warning(f"{filepath.name}: {warning}")

    if filepath.suffix.lower() in TEXT_SUFFIXES:
        return filepath.read_text(encoding='utf-8')

    df = _read_table(filepath)
    rows = df[validation.text_column].fillna('').astype(str)
    logger.info(f"Loaded {len(rows)} rows from {filepath.name} (column {validation.text_column!r})")
    return '\n'.join(rows)


def citations_to_frame(citations: Iterable[Citation]) -> pd.DataFrame:
    """One row per citation, in input order."""
    rows = []
    for c in citations:
        rows.append({
            'line': c.line + 1,
            'kind': c.kind,
            'classification': c.classification.name.lower(),
            'citation_ready': c.is_citation_ready,
            'source': c.source,
            'plain': c.plain,
            'calculated_mass': c.calculated_mass,
            'n_annotations': len(c.annotations),
            'error_kinds': ';'.join(a.kind for a in c.annotations if a.kind),
            'messages': ' | '.join(a.message for a in c.annotations),
        })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def annotations_to_frame(citations: Iterable[Citation]) -> pd.DataFrame:
    """One row per annotation, for reviewing what needs fixing."""
    rows = []
    for c in citations:
        for a in c.annotations:
            rows.append({
                'line': c.line + 1,
                'kind': c.kind,
                'classification': a.classification.name.lower(),
                'error_kind': a.kind,
                'target': a.target,
                'message': a.message,
            })
    return pd.DataFrame(rows, columns=ANNOTATION_COLUMNS)


def write_report(df: pd.DataFrame, output_path: Path) -> Path:
    """Write a report table, choosing the format from the file suffix.

    ``.parquet`` goes through pyarrow; ``.csv`` is comma separated; anything
    else is written tab separated.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = output_path.suffix.lower()

    if suffix == '.parquet':
        table = pa.Table.from_pandas(df, preserve_index=False)
        pq.write_table(table, output_path)
    elif suffix == '.csv':
        df.to_csv(output_path, index=False)
    else:
        df.to_csv(output_path, sep='\t', index=False)

    logger.info(f"Wrote {len(df)} rows to {output_path}")
    return output_path
