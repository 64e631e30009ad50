"""Tests for grammar module."""

import pytest

from chemcite.grammar import (
    LENIENT,
    STRICT,
    find_h1_records,
    find_weight,
    find_yield,
    grammar_for,
    match_h1_metadata,
    match_hrms_line,
    split_lines,
    split_peak_tokens,
)

H1_LINE = (
    'Compound 3a: 1H NMR (400 MHz, Chloroform-d) δ 7.26 (d, J = 8.0 Hz, 2H), '
    '7.10 – 6.68 (m, 1H), 4.46 (s, 3H).'
)
HRMS_LINE = 'HRMS (ESI) m/z: [M + H]+ Calcd for C10H13N2O 177.1022; Found 177.1025.'


class TestSplitting:
    """Tests for line and peak-list splitting."""

    def test_split_lines_any_break(self):
        assert split_lines('a\r\nb\rc\nd') == ['a', 'b', 'c', 'd']

    def test_peak_tokens_keep_inner_commas(self):
        tokens = split_peak_tokens('7.26 (dd, J = 8.0, 2.0 Hz, 1H), 7.10 – 6.68 (m, 1H); 4.46 (s, 3H)')
        assert tokens == [
            '7.26 (dd, J = 8.0, 2.0 Hz, 1H)',
            '7.10 – 6.68 (m, 1H)',
            '4.46 (s, 3H)',
        ]

    def test_dash_is_not_a_separator(self):
        assert split_peak_tokens('7.10 - 6.68 (m, 2H)') == ['7.10 - 6.68 (m, 2H)']

    def test_empty_tokens_dropped(self):
        assert split_peak_tokens('4.46 (s, 3H), ') == ['4.46 (s, 3H)']


class TestH1Records:
    """Tests for locating 1H NMR records."""

    def test_record_and_tail(self):
        records = find_h1_records(H1_LINE)
        assert len(records) == 1
        record = records[0]
        assert record.record.startswith('1H NMR (400 MHz')
        assert record.record.endswith('4.46 (s, 3H)')
        assert record.tail == '.'
        assert record.source == record.record + '.'

    def test_record_to_end_of_line(self):
        records = find_h1_records('1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H)')
        assert records[0].tail == ''
        assert records[0].record == '1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H)'

    def test_two_records_in_one_line(self):
        line = '1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H); 1H NMR (500 MHz, DMSO-d6) δ 2.10 (s, 3H).'
        records = find_h1_records(line)
        assert [r.tail for r in records] == [';', '.']

    def test_semicolon_between_peaks(self):
        """Test that a ';' followed by another shift does not end the record."""
        records = find_h1_records('1H NMR (400 MHz, CDCl3) δ 7.26 (s, 1H); 7.20 (s, 1H).')
        assert len(records) == 1
        assert records[0].record.endswith('7.20 (s, 1H)')
        assert records[0].tail == '.'

    def test_semicolon_before_next_spectrum(self):
        records = find_h1_records('1H NMR (400 MHz, CDCl3) δ 7.26 (s, 1H); 13C NMR (101 MHz, CDCl3) δ 128.0.')
        assert records[0].record.endswith('7.26 (s, 1H)')
        assert records[0].tail == ';'

    def test_no_record(self):
        assert find_h1_records('13C NMR (101 MHz, CDCl3) δ 128.0.') == []

    def test_metadata(self):
        match = match_h1_metadata(find_h1_records(H1_LINE)[0].record, STRICT)
        assert match.frequency == '400'
        assert match.solvent == 'Chloroform-d'
        assert match.peaks.startswith('7.26 (d')

    def test_strict_rejects_missing_space(self):
        record = '1H NMR (400MHz, CDCl3) δ 4.46 (s, 3H)'
        assert match_h1_metadata(record, STRICT) is None
        assert match_h1_metadata(record, LENIENT).frequency == '400'

    def test_lenient_accepts_fullwidth_comma(self):
        match = match_h1_metadata('1H NMR(400 MHz，CDCl3)δ 4.46 (s, 3H)', LENIENT)
        assert match.solvent == 'CDCl3'


class TestPeakPatterns:
    """Tests for the peak grammars."""

    def test_with_j_groups(self):
        m = STRICT.peak_with_j.match('7.26 (dd, J = 8.0, 2.0 Hz, 1H)')
        assert m.group('shift') == '7.26'
        assert m.group('multiplicity') == 'dd'
        assert (m.group('j1'), m.group('j2'), m.group('j3')) == ('8.0', '2.0', None)
        assert m.group('count') == '1'

    def test_without_j_range(self):
        m = STRICT.peak_without_j.match('7.10 – 6.68 (m, 1H)')
        assert m.group('first') == '7.10'
        assert m.group('separator') == ' – '
        assert m.group('second') == '6.68'

    def test_two_word_multiplicity(self):
        m = STRICT.peak_without_j.match('8.10 (br s, 1H)')
        assert m.group('multiplicity') == 'br s'

    def test_lenient_whitespace(self):
        assert STRICT.peak_with_j.match('7.26(d,J=8.0Hz,2H)') is None
        assert LENIENT.peak_with_j.match('7.26(d,J=8.0Hz,2H)') is not None


class TestHrms:
    """Tests for HRMS clause matching."""

    def test_groups(self):
        m = match_hrms_line(HRMS_LINE, STRICT)
        assert m.source == 'ESI'
        assert m.sign == ' + '
        assert m.ion == 'H'
        assert m.formula == 'C10H13N2O'
        assert m.exact == '177.1022'
        assert m.found == '177.1025'
        assert m.clause == HRMS_LINE[:-1]

    def test_bare_molecular_ion(self):
        m = match_hrms_line('HRMS (EI) m/z: [M]+ Calcd for C6H6 78.0470; Found 78.0468', STRICT)
        assert m.ion == ''
        assert m.sign == ''

    def test_found_after_prefix(self):
        m = match_hrms_line('white solid; ' + HRMS_LINE, STRICT)
        assert m.clause.startswith('HRMS')

    def test_strict_requires_exact_punctuation(self):
        line = 'HRMS (ESI) m/z: [M+H]+, calcd. for C10H13N2O: 177.1022, found: 177.1025'
        assert match_hrms_line(line, STRICT) is None
        m = match_hrms_line(line, LENIENT)
        assert m.sign == '+'
        assert m.formula == 'C10H13N2O'

    def test_grammar_for(self):
        assert grammar_for(True) is STRICT
        assert grammar_for(False) is LENIENT


class TestFields:
    """Tests for yield and weight fields."""

    @pytest.mark.parametrize('line,gap', [('85% yield', ''), ('85 % yield', ' ')])
    def test_yield(self, line, gap):
        field = find_yield(line)
        assert field.value == '85'
        assert field.gap == gap

    def test_weight(self):
        field = find_weight('45.2mg, 85%')
        assert field.text == '45.2mg'
        assert field.gap == ''

    def test_weight_needs_unit_boundary(self):
        assert find_weight('12 mgx') is None
