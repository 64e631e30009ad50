"""Tests for validation module."""

import pytest

from chemcite.citation import format_text
from chemcite.validation import CitationSummary, generate_qc_report, summarize_citations

GOOD = (
    '1H NMR (400 MHz, CDCl3) δ 7.26 (d, J = 7.5 Hz, 2H), 4.46 (s, 3H).\n'
    'HRMS (ESI) m/z: [M + H]+ Calcd for C10H13N2O 177.1022; Found 177.1025.'
)
BAD = 'HRMS (ESI) m/z: [M + H]+ Calcd for C10H12N2O 195.086; Found 195.0868.'


@pytest.fixture
def good_citations():
    return list(format_text(GOOD).citations)


@pytest.fixture
def bad_citations():
    return list(format_text(GOOD + '\n' + BAD).citations)


class TestSummarizeCitations:
    """Tests for run summaries."""

    def test_all_ready(self, good_citations):
        summary = summarize_citations(good_citations)

        assert summary.n_records == 2
        assert summary.n_success == 1
        assert summary.n_warning == 1
        assert summary.n_danger == 0
        assert summary.records_by_kind == {'h1': 1, 'hrms': 1}
        assert summary.errors_by_kind == {'QuantizationWarning': 1}
        assert summary.passed
        assert summary.ready_fraction == 1.0

    def test_danger_fails(self, bad_citations):
        summary = summarize_citations(bad_citations)

        assert summary.n_danger == 1
        assert not summary.passed
        assert summary.errors_by_kind['DecimalPrecisionError'] == 1
        assert summary.ready_fraction == pytest.approx(2 / 3)
        assert any(w.startswith('Line 3 (hrms)') for w in summary.warnings)

    def test_empty_input(self):
        summary = summarize_citations([])

        assert summary.passed
        assert summary.warnings == ["No 1H NMR or HRMS records found in input"]

    def test_passed_property(self):
        assert CitationSummary(n_records=1, n_success=0, n_warning=1, n_danger=0).passed
        assert not CitationSummary(n_records=1, n_success=0, n_warning=0, n_danger=1).passed


class TestGenerateQcReport:
    """Tests for the HTML QC report."""

    def test_passed_report(self, tmp_path, good_citations):
        path = tmp_path / "qc.html"
        generate_qc_report(summarize_citations(good_citations), good_citations, str(path))

        html = path.read_text(encoding='utf-8')
        assert 'PASSED' in html
        assert 'CDCl<sub>3</sub>' in html
        assert '<sup>1</sup>' in html
        assert 'class="warning"' in html

    def test_failed_report(self, tmp_path, bad_citations):
        path = tmp_path / "qc.html"
        generate_qc_report(
            summarize_citations(bad_citations), bad_citations, str(path),
            processing_log=['Mode: strict'],
        )

        html = path.read_text(encoding='utf-8')
        assert 'FAILED' in html
        assert 'DecimalPrecisionError' in html
        assert '<li>Mode: strict</li>' in html

    def test_empty_report(self, tmp_path):
        path = tmp_path / "qc.html"
        generate_qc_report(summarize_citations([]), [], str(path))
        assert 'No errors' in path.read_text(encoding='utf-8')
