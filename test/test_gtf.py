"""
Tests for PacGtf: annotate the genome coordinates by gtf.
"""

import pytest
import pandas as pd
from pacseq.errors import ChromosomeMismatchWarning
from pacseq.reanno.reanno import MakeReanno
from pacseq.gtf.gtf import PacGtf, read_gtf, parse_attributes, \
    parse_coords, suggest_names
from conftest import make_pac, bowtie_line, write_reports


SEQS = [
    'AAAACCCCGGGGTTTTAAAA',
    'CCCCGGGGTTTTAAAACCCC',
    'GGGGTTTTAAAACCCCGGGG',
    'TTTTAAAACCCCGGGGTTTT',
]


def gtf_frame(seqid=None):
    rows = [
        ('chr1', 90, 130, '+', 'G1', 'protein_coding'),
        ('chr1', 110, 200, '-', 'G2', 'lncRNA'),
        ('chr1', 990, 1010, '-', 'G3', 'miRNA'),
        ('chr2', 4000, 6000, '+', 'G4', 'protein_coding'),
    ]
    df = pd.DataFrame(rows, columns=['seqid', 'start', 'end', 'strand',
        'gene_name', 'gene_type'])
    if seqid is not None:
        df['seqid'] = seqid
    return df


@pytest.fixture
def pac():
    return make_pac(SEQS)


@pytest.fixture
def reanno(pac, tmp_path):
    """
    seq0: chr1:100-119 +, mis0
    seq1: chr1:1000-1019 -, mis1
    seq2: chr1:100-119 +, chr2:5000-5019 +, mis0
    seq3: no hit
    """
    reports = {'genome': {
        0: [bowtie_line(SEQS[0], 'chr1', 99),
            bowtie_line(SEQS[2], 'chr1', 99),
            bowtie_line(SEQS[2], 'chr2', 4999)],
        1: [bowtie_line(SEQS[1], 'chr1', 999, '-', '5:A>C')],
    }}
    outdir = write_reports(str(tmp_path / 'reanno'), reports)
    return MakeReanno(outdir=outdir, pac=pac, report='full',
        max_hits='all').run()


def pac_gtf(pac, reanno, **kwargs):
    args = {
        'genome': 'genome',
        'mismatches': 1,
        'gtf': {'gencode': gtf_frame()},
        'targets': {'gencode': ['gene_name', 'gene_type']},
    }
    args.update(kwargs)
    return PacGtf(pac=pac, reanno=reanno, **args)


# ============================================================================
# Tests: read gtf
# ============================================================================

class TestReadGtf:
    """Tests for the gtf/gff files."""

    def test_gtf(self, tmp_path):
        f = tmp_path / 'a.gtf'
        f.write_text('\n'.join([
            '#!genome-build GRCh38',
            '\t'.join(['chr1', 'HAVANA', 'gene', '90', '130', '.', '+', '.',
                'gene_id "ENSG01"; gene_name "G1"; gene_type "protein_coding";']),
            '\t'.join(['chr2', 'HAVANA', 'gene', '4000', '6000', '.', '+', '.',
                'gene_id "ENSG02"; gene_name "G4";']),
        ]) + '\n')
        df = read_gtf(str(f))
        assert df.shape[0] == 2
        assert df['gene_name'].tolist() == ['G1', 'G4']
        assert df['start'].tolist() == [90, 4000]
        assert pd.isna(df.loc[1, 'gene_type'])
        assert 'attributes' not in df.columns

    def test_gff3(self):
        d = parse_attributes('ID=gene1;Name=G1;biotype=miRNA')
        assert d == {'ID': 'gene1', 'Name': 'G1', 'biotype': 'miRNA'}

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_gtf(str(tmp_path / 'missing.gtf'))

    def test_parse_coords(self):
        assert parse_coords('chr1;start=100;+|chr2;start=5;-', 'A') == [
            ('chr1', 100, '+'), ('chr2', 5, '-')]
        with pytest.raises(ValueError):
            parse_coords('chr1:100', 'A')

    def test_suggest_names(self):
        d = suggest_names(['1', '2'], ['chr1', 'chr2', 'chrX'])
        assert d == {'1': 'chr1', '2': 'chr2'}


# ============================================================================
# Tests: simplify
# ============================================================================

class TestSimplify:
    """Tests for the sequence x target table."""

    def test_columns(self, pac, reanno):
        df = pac_gtf(pac, reanno).run()
        assert df.columns.tolist() == ['genome_mis', 'gencode_gene_name',
            'gencode_gene_type']
        assert df.index.tolist() == SEQS

    def test_values(self, pac, reanno):
        df = pac_gtf(pac, reanno).run()
        assert df.loc[SEQS[0]].tolist() == ['mis0', 'G1|G2',
            'lncRNA|protein_coding']
        assert df.loc[SEQS[1]].tolist() == ['mis1', 'G3', 'miRNA']
        assert df.loc[SEQS[2]].tolist() == ['mis0', 'G1|G2|G4',
            'lncRNA|protein_coding']
        assert df.loc[SEQS[3], 'genome_mis'] == 'no hit'
        assert pd.isna(df.loc[SEQS[3], 'gencode_gene_name'])

    def test_stranded(self, pac, reanno):
        df = pac_gtf(pac, reanno, stranded=True).run()
        assert df.loc[SEQS[0], 'gencode_gene_name'] == 'G1'
        assert df.loc[SEQS[1], 'gencode_gene_name'] == 'G3'

    def test_mismatches(self, pac, reanno):
        """seq1 not found at mis0"""
        df = pac_gtf(pac, reanno, mismatches=0).run()
        assert df.loc[SEQS[1], 'genome_mis'] == 'no hit'

    def test_pac_anno(self, pac, reanno):
        """Coordinates from the PAC Anno columns"""
        pac.add_anno(reanno.overview)
        df = pac_gtf(pac, None).run()
        assert df.loc[SEQS[0], 'gencode_gene_name'] == 'G1|G2'
        assert df.loc[SEQS[1], 'genome_mis'] == 'mis1'

    def test_gtf_file(self, pac, reanno, tmp_path):
        f = tmp_path / 'b.gff3'
        f.write_text('\t'.join(['chr1', '.', 'gene', '1', '150', '.', '+',
            '.', 'ID=g9;Name=G9']) + '\n')
        df = pac_gtf(pac, reanno, gtf={'mygff': str(f)},
            targets={'mygff': 'Name'}).run()
        assert df.columns.tolist() == ['genome_mis', 'mygff_Name']
        assert df.loc[SEQS[0], 'mygff_Name'] == 'G9'
        assert pd.isna(df.loc[SEQS[1], 'mygff_Name'])


# ============================================================================
# Tests: return types
# ============================================================================

class TestReturnType:

    def test_full(self, pac, reanno):
        res = pac_gtf(pac, reanno, return_type='full').run()
        df = res[SEQS[2] + '_mis0']
        assert df.columns.tolist() == ['seqid', 'start', 'end', 'strand',
            'gencode_gene_name', 'gencode_gene_type']
        assert df['end'].tolist() == [119, 5019]
        assert df['gencode_gene_name'].tolist() == ['G1|G2', 'G4']
        assert res[SEQS[3] + '_no hit'].shape[0] == 0

    def test_all(self, pac, reanno):
        res = pac_gtf(pac, reanno, return_type='all').run()
        assert set(res.keys()) == {'simplify', 'full'}

    def test_merge(self, pac, reanno):
        out = pac_gtf(pac, reanno, return_type='merge').run()
        assert out is pac
        assert pac.anno.loc[SEQS[1], 'gencode_gene_name'] == 'G3'
        pac.check()

    def test_bad_return_type(self, pac, reanno):
        with pytest.raises(ValueError):
            pac_gtf(pac, reanno, return_type='table')


# ============================================================================
# Tests: errors
# ============================================================================

class TestErrors:
    """Tests for the chromosome names, truncated or minimum reanno."""

    def test_no_overlap(self, pac, reanno):
        with pytest.raises(ValueError) as e:
            pac_gtf(pac, reanno, gtf={'ensembl': gtf_frame('1')}).run()
        assert 'chr1->1' in str(e.value)

    def test_low_overlap(self, pac, tmp_path):
        lines = [bowtie_line(SEQS[0], 'chr{}'.format(i), 99)
            for i in range(1, 22)]
        outdir = write_reports(str(tmp_path / 'r'), {'genome': {0: lines}})
        reanno = MakeReanno(outdir=outdir, pac=pac, report='full',
            max_hits='all').run()
        with pytest.warns(ChromosomeMismatchWarning):
            df = pac_gtf(pac, reanno, mismatches=0,
                gtf={'g': gtf_frame()[:1]}, targets={'g': 'gene_name'}).run()
        assert df.loc[SEQS[0], 'g_gene_name'] == 'G1'

    def test_truncated(self, pac):
        pac.add_anno(pd.DataFrame({'mis0_genome': ['Warning>3', 'no hit',
            'no hit', 'no hit']}, index=SEQS))
        with pytest.raises(ValueError) as e:
            pac_gtf(pac, None, mismatches=0).run()
        assert 'Warning>' in str(e.value)

    def test_minimum_report(self, pac, tmp_path):
        outdir = write_reports(str(tmp_path / 'r'), {'genome': {0: [
            bowtie_line(SEQS[0], 'chr1', 99)]}})
        reanno = MakeReanno(outdir=outdir, pac=pac).run()
        with pytest.raises(ValueError):
            pac_gtf(pac, reanno, mismatches=0).run()

    def test_genome_missing(self, pac, reanno):
        with pytest.raises(ValueError):
            pac_gtf(pac, reanno, genome='hg38').run()

    def test_target_missing(self, pac, reanno):
        with pytest.raises(ValueError):
            pac_gtf(pac, reanno, targets={'gencode': ['transcript_id']})

    def test_bad_gtf(self, pac, reanno):
        for gtf in [{}, [], None]:
            with pytest.raises(ValueError) as e:
                pac_gtf(pac, reanno, gtf=gtf)
            assert '{name: path}' in str(e.value)
