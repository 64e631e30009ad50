"""Tests for data I/O module."""

import pandas as pd
import pytest

from chemcite.citation import format_text
from chemcite.data_io import (
    ANNOTATION_COLUMNS,
    REPORT_COLUMNS,
    annotations_to_frame,
    citations_to_frame,
    load_input_text,
    validate_input_file,
    write_report,
)

H1 = '1H NMR (400 MHz, CDCl3) δ 7.26 (d, J = 7.5 Hz, 2H), 4.46 (s, 3H).'
HRMS = 'HRMS (ESI) m/z: [M + H]+ Calcd for C10H12N2O 195.0866; Found 195.0868.'


@pytest.fixture
def citations():
    return list(format_text(H1 + '\n' + HRMS).citations)


class TestValidateInputFile:
    """Tests for input file validation."""

    def test_text_file(self, tmp_path):
        path = tmp_path / "si.txt"
        path.write_text(H1 + '\n' + HRMS, encoding='utf-8')

        result = validate_input_file(path)

        assert result.is_valid
        assert result.n_lines == 2
        assert 'Valid: si.txt' in str(result)

    def test_csv_detects_column(self, tmp_path):
        path = tmp_path / "compounds.csv"
        pd.DataFrame({
            'compound': ['3a', '3b'],
            'characterization': [H1, HRMS],
        }).to_csv(path, index=False)

        result = validate_input_file(path)

        assert result.is_valid
        assert result.text_column == 'characterization'
        assert result.n_rows == 2

    def test_missing_column(self, tmp_path):
        path = tmp_path / "compounds.tsv"
        pd.DataFrame({'compound': ['3a'], 'notes': ['x']}).to_csv(path, sep='\t', index=False)

        result = validate_input_file(path)

        assert not result.is_valid
        assert 'No text column' in str(result)

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "si.docx"
        path.write_bytes(b'')
        assert not validate_input_file(path).is_valid

    def test_missing_file(self, tmp_path):
        assert not validate_input_file(tmp_path / "nope.txt").is_valid


class TestLoadInputText:
    """Tests for loading input text."""

    def test_text_file(self, tmp_path):
        path = tmp_path / "si.txt"
        path.write_text(H1, encoding='utf-8')
        assert load_input_text(path) == H1

    def test_rows_joined_by_newline(self, tmp_path):
        path = tmp_path / "compounds.csv"
        pd.DataFrame({'Data': [H1, HRMS]}).to_csv(path, index=False)
        assert load_input_text(path) == H1 + '\n' + HRMS

    def test_explicit_column(self, tmp_path):
        path = tmp_path / "compounds.parquet"
        pd.DataFrame({'a': ['x'], 'spectra': [H1]}).to_parquet(path, index=False)
        assert load_input_text(path, text_column='spectra') == H1

    def test_invalid_raises(self, tmp_path):
        path = tmp_path / "compounds.csv"
        pd.DataFrame({'a': ['x'], 'b': ['y']}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="Invalid input file"):
            load_input_text(path)


class TestReports:
    """Tests for citation report tables."""

    def test_citations_to_frame(self, citations):
        df = citations_to_frame(citations)

        assert list(df.columns) == REPORT_COLUMNS
        assert list(df['kind']) == ['h1', 'hrms']
        assert list(df['line']) == [1, 2]
        assert list(df['classification']) == ['warning', 'danger']
        assert list(df['citation_ready']) == [True, False]
        assert df['error_kinds'].iloc[1] == 'ConsistencyError'

    def test_annotations_to_frame(self, citations):
        df = annotations_to_frame(citations)

        assert list(df.columns) == ANNOTATION_COLUMNS
        assert len(df) == 2
        assert list(df['error_kind']) == ['QuantizationWarning', 'ConsistencyError']
        assert df['target'].iloc[1] == '195.0866'

    def test_empty_frames_keep_columns(self):
        assert list(citations_to_frame([]).columns) == REPORT_COLUMNS
        assert list(annotations_to_frame([]).columns) == ANNOTATION_COLUMNS

    @pytest.mark.parametrize('name', ['report.tsv', 'report.csv', 'report.parquet'])
    def test_write_report(self, tmp_path, citations, name):
        df = citations_to_frame(citations)
        path = write_report(df, tmp_path / "out" / name)

        assert path.exists()
        if name.endswith('.parquet'):
            loaded = pd.read_parquet(path)
        else:
            loaded = pd.read_csv(path, sep='\t' if name.endswith('.tsv') else ',')
        assert list(loaded['kind']) == ['h1', 'hrms']
        assert list(loaded['plain']) == list(df['plain'])
