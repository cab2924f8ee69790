"""
Tests for the bowtie output parser and the report modes.
"""

import pytest
from pacseq.reanno.parser import parse_line, parse_mismatch_desc, \
    format_hit, format_hits, BowtieReport
from pacseq.reanno.report import ReportMode, Minimal, Full, FullExceptFor
from conftest import bowtie_line


Q = 'GGTGGTTCAGTGGTAGAATT'


# ============================================================================
# Tests: parse_line
# ============================================================================

class TestParseLine:
    """Tests for single line of bowtie output."""

    def test_perfect(self):
        hit = parse_line(bowtie_line(Q, 'tRNA1', 5), 'trna', 0)
        assert hit.query == Q
        assert hit.ref_name == 'trna'
        assert hit.ref_id == 'tRNA1'
        assert hit.mismatches == 0
        assert hit.start == 6
        assert hit.strand == '+'

    def test_mismatch_desc(self):
        """The exact number of mismatches, from the descriptors."""
        line = bowtie_line(Q, 'tRNA1', 5, '-', '3:A>G,10:C>T')
        hit = parse_line(line, 'trna', 2)
        assert hit.mismatches == 2
        assert hit.strand == '-'

    def test_lower_level(self):
        """bowtie -v 2 also reports perfect hits."""
        hit = parse_line(bowtie_line(Q, 'tRNA1', 5), 'trna', 2)
        assert hit.mismatches == 0

    def test_short_line(self):
        """Optional columns missing, use the job level."""
        line = '\t'.join([Q, '+', 'tRNA1 some description', '0'])
        hit = parse_line(line, 'trna', 1)
        assert hit.mismatches == 1
        assert hit.ref_id == 'tRNA1'
        assert hit.start == 1

    def test_short_line_desc(self):
        """Descriptors in the last column of a short line."""
        line = '\t'.join([Q, '+', 'tRNA1', '0', Q, '3:A>G'])
        assert parse_line(line, 'trna', 2).mismatches == 1

    @pytest.mark.parametrize('line', [
        'only\ttwo',
        '\t'.join([Q, '*', 'tRNA1', '0']),
        '\t'.join([Q, '+', 'tRNA1', 'x']),
        '\t'.join([Q, '+', 'tRNA1', '-3']),
        bowtie_line(Q, 'tRNA1', 0, '+', 'bad'),
        bowtie_line(Q, 'tRNA1', 0, '+', '1:A>G,2:A>G'),
        '\t'.join([Q, '+', 'tRNA1', '0', Q, 'bad:desc']),
        '\t'.join([Q, '+', 'tRNA1', '0', '3:A>G,x:y']),
    ])
    def test_malformed(self, line):
        assert parse_line(line, 'trna', 1) is None

    def test_mismatch_desc_count(self):
        assert parse_mismatch_desc('') == 0
        assert parse_mismatch_desc('3:A>G') == 1
        assert parse_mismatch_desc('3:A>G,10:C>T') == 2
        assert parse_mismatch_desc('3-A-G') is None


# ============================================================================
# Tests: descriptors
# ============================================================================

class TestFormat:
    """Tests for hit descriptors."""

    def test_format_hit(self):
        hit = parse_line(bowtie_line(Q, 'tRNA1', 5, '-'), 'trna', 0)
        assert format_hit(hit) == 'tRNA1;start=6;-'

    def test_format_hits(self):
        hits = [parse_line(bowtie_line(Q, r, i), 'trna', 1)
            for r, i in [('tRNA1', 0), ('tRNA2', 9)]]
        assert format_hits(hits, 'full') == \
            'tRNA1;start=1;+|tRNA2;start=10;+'
        assert format_hits(hits, 'minimum') == 'mis0'
        assert format_hits([], 'full') is None


# ============================================================================
# Tests: BowtieReport
# ============================================================================

class TestBowtieReport:
    """Tests for reading one output file."""

    def test_read(self, tmp_path):
        f = tmp_path / 'mis1.txt'
        f.write_text('\n'.join([
            bowtie_line(Q, 'tRNA1', 5),
            'malformed line',
            '',
            bowtie_line(Q, 'tRNA2', 0, '+', '4:C>A'),
        ]) + '\n')
        res = BowtieReport(str(f), 'trna', 1).read()
        assert len(res.hits) == 2
        assert res.n_lines == 3
        assert res.n_skipped == 1
        assert len(res.warnings) == 1
        assert 'malformed' in res.warnings[0]
        assert [h.mismatches for h in res.hits] == [0, 1]

    def test_empty(self, tmp_path):
        f = tmp_path / 'mis0.txt'
        f.write_text('')
        res = BowtieReport(str(f), 'trna', 0).read()
        assert res.hits == []
        assert res.warnings == []

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            BowtieReport(str(tmp_path / 'mis0.txt'), 'trna', 0).read()


# ============================================================================
# Tests: ReportMode
# ============================================================================

class TestReportMode:
    """Tests for minimum/full/reduce."""

    def test_minimum(self):
        mode = ReportMode.from_args('minimum', reduce=['genome'])
        assert isinstance(mode, Minimal)
        assert mode.mode_for('trna') == 'minimum'

    def test_full(self):
        mode = ReportMode.from_args('full')
        assert isinstance(mode, Full)
        assert mode.is_full('genome')

    def test_reduce(self):
        mode = ReportMode.from_args('full', reduce='genome')
        assert isinstance(mode, FullExceptFor)
        assert mode.mode_for('genome') == 'minimum'
        assert mode.mode_for('trna') == 'full'

    def test_invalid(self):
        with pytest.raises(ValueError):
            ReportMode.from_args('all')
