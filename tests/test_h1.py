"""Tests for 1H NMR record pipeline."""

import pytest

from chemcite.annotation import Classification, Err, Ok, Segment, Style, plain_text
from chemcite.h1 import SpectrumMetadata, format_h1, parse_metadata, render_metadata
from chemcite.messages import Language
from chemcite.options import ParseOptions

RECORD = (
    '1H NMR (400 MHz, Chloroform-d) δ 7.26 (d, J = 8.0 Hz, 2H), '
    '7.10 – 6.68 (m, 1H), 4.46 (s, 3H).'
)


@pytest.fixture
def strict():
    return ParseOptions()


@pytest.fixture
def lenient():
    return ParseOptions(strict=False)


class TestMetadata:
    """Tests for frequency and solvent parsing."""

    def test_parse(self, strict):
        result = parse_metadata('1H NMR (400 MHz, DMSO-d6) δ 2.50 (s, 3H)', strict)
        assert isinstance(result, Ok)
        assert result.value == SpectrumMetadata(frequency=400.0, solvent='dmso')

    def test_unknown_solvent(self, strict):
        result = parse_metadata('1H NMR (400 MHz, CDCl4) δ 2.50 (s, 3H)', strict)
        assert isinstance(result, Err)
        assert result.annotation.kind == 'DataError'
        assert result.annotation.message.startswith('Frequency/solvent not valid')

    def test_zero_frequency(self, strict):
        result = parse_metadata('1H NMR (0 MHz, CDCl3) δ 2.50 (s, 3H)', strict)
        assert isinstance(result, Err)
        assert result.annotation.kind == 'DataError'

    def test_unparseable(self, strict):
        result = parse_metadata('1H NMR 400 MHz CDCl3 2.50 (s, 3H)', strict)
        assert isinstance(result, Err)
        assert result.annotation.kind == 'FormatError'
        assert result.annotation.message.startswith('Data not valid')

    def test_render(self):
        segments = render_metadata(SpectrumMetadata(frequency=400.0, solvent='cdcl3'))
        assert segments[0] == Segment('1', Style.SUPERSCRIPT)
        assert Segment('3', Style.SUBSCRIPT) in segments
        assert plain_text(segments) == '1H NMR (400 MHz, CDCl3) δ '


class TestFormatH1:
    """Tests for formatting whole records."""

    def test_clean_record(self, strict):
        citations = format_h1(RECORD, strict)
        assert len(citations) == 1
        c = citations[0]
        assert c.kind == 'h1'
        assert c.source == RECORD
        assert c.plain == (
            '1H NMR (400 MHz, CDCl3) δ 7.26 (d, J = 8.0 Hz, 2H), '
            '7.10–6.68 (m, 1H), 4.46 (s, 3H).'
        )
        assert c.annotations == ()
        assert c.is_citation_ready

    def test_source_is_substring_of_line(self, strict):
        line = 'Yellow oil. ' + RECORD + ' 13C NMR follows.'
        c = format_h1(line, strict)[0]
        assert c.source == RECORD
        assert c.source in line

    def test_rounded_j_is_warning(self, strict):
        c = format_h1('1H NMR (400 MHz, CDCl3) δ 7.26 (d, J = 7.5 Hz, 2H).', strict)[0]
        assert c.plain == '1H NMR (400 MHz, CDCl3) δ 7.26 (d, J = 7.6 Hz, 2H).'
        assert c.classification is Classification.WARNING
        assert c.is_citation_ready
        assert c.annotations[0].message == 'Original data: J = 7.5 Hz'

    def test_bad_peak_keeps_original_token(self, strict):
        c = format_h1('1H NMR (400 MHz, CDCl3) δ 7.26 d 1H, 4.46 (s, 3H).', strict)[0]
        assert c.plain == '1H NMR (400 MHz, CDCl3) δ 7.26 d 1H, 4.46 (s, 3H).'
        assert [a.kind for a in c.annotations] == ['FormatError']
        assert not c.is_citation_ready

    def test_bad_metadata_flags_whole_record(self, strict):
        source = '1H NMR (400 MHz, CDCl4) δ 4.46 (s, 3H).'
        c = format_h1(source, strict)[0]
        assert c.plain == source
        assert c.annotated[0].annotation is not None
        assert c.annotated[0].text == source[:-1]
        assert c.classification is Classification.DANGER

    def test_strict_and_lenient(self, strict, lenient):
        source = '1H NMR (400MHz, CDCl3) δ 4.46 (s, 3H).'
        assert not format_h1(source, strict)[0].is_citation_ready
        c = format_h1(source, lenient)[0]
        assert c.plain == '1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H).'

    def test_one_citation_per_record(self, strict):
        text = '1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H).\nno data\n1H NMR (500 MHz, CD3OD) δ 3.31 (s, 3H).'
        citations = format_h1(text, strict)
        assert [c.line for c in citations] == [0, 2]
        assert citations[1].plain == '1H NMR (500 MHz, CD3OD) δ 3.31 (s, 3H).'

    def test_semicolon_separated_peaks(self, strict):
        """Test that every peak of a ';'-separated list reaches the citation."""
        c = format_h1('1H NMR (400 MHz, CDCl3) δ 7.26 (s, 1H); 7.20 (s, 1H).', strict)[0]
        assert c.source == '1H NMR (400 MHz, CDCl3) δ 7.26 (s, 1H); 7.20 (s, 1H).'
        assert c.plain == '1H NMR (400 MHz, CDCl3) δ 7.26 (s, 1H), 7.20 (s, 1H).'
        assert c.is_citation_ready

    def test_negative_shift(self, strict):
        c = format_h1('1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H), -0.05 (s, 9H).', strict)[0]
        assert c.plain == '1H NMR (400 MHz, CDCl3) δ 4.46 (s, 3H), -0.05 (s, 9H).'
        assert c.annotations == ()

    def test_every_peak_message_kept(self, strict):
        c = format_h1('1H NMR (400 MHz, CDCl3) δ 7.26 (m, J = 8.0 Hz, 1H).', strict)[0]
        assert [a.message for a in c.annotations] == [
            'Multiplet peaks should be reported in interval',
            'Do not report coupling constants in multiplet peaks',
        ]
        assert [a.target for a in c.annotations] == ['7.26', '8.0']

    def test_chinese(self):
        c = format_h1('1H NMR (400 MHz, CDCl4) δ 4.46 (s, 3H).', ParseOptions(language=Language.CHINESE))[0]
        assert c.annotations[0].message == '频率或溶剂信息有误！请直接从MestReNova中粘贴'

    def test_no_records(self, strict):
        assert format_h1('HRMS (ESI) only', strict) == []
