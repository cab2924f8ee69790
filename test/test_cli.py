"""
Tests for the command line: pacseq reanno|mapper|gtf
"""

import os
import argparse
import pytest
import pandas as pd
from pacseq.pacseq import Pacseq, parse_args
from pacseq.pac.pac import PAC
from pacseq.utils.argsParser import parse_pairs, parse_hierarchy, \
    add_reanno_args
from pacseq.utils.utils import Config
from pacseq.utils.seq import write_fasta
from conftest import FakeAligner, TRNA1, make_pac


REQUIRED = ['pac', 'outdir', 'ref_paths', 'hierarchy']


@pytest.fixture
def fake_bowtie(monkeypatch):
    monkeypatch.setattr('pacseq.pacseq.Bowtie', lambda **kwargs: FakeAligner())


# ============================================================================
# Tests: arguments
# ============================================================================

class TestArgs:
    """Tests for name=value pairs and --config."""

    def test_parse_pairs(self):
        d = parse_pairs(['trna=ref/tRNA.fa', 'genome = ref/a=b.fa'])
        assert list(d.items()) == [('trna', 'ref/tRNA.fa'),
            ('genome', 'ref/a=b.fa')]
        assert parse_pairs(None) == {}
        with pytest.raises(argparse.ArgumentTypeError):
            parse_pairs(['trna'])

    def test_parse_hierarchy(self):
        d = parse_hierarchy(['tRNA=trna', 'miRNA=miRNA,MIR'])
        assert list(d.items()) == [('tRNA', ['trna']),
            ('miRNA', ['miRNA', 'MIR'])]
        assert parse_hierarchy({'a': 'x'}) == {'a': ['x']}

    def test_config(self, tmp_path):
        f = str(tmp_path / 'reanno.toml')
        Config().dump({
            'pac': 'pac', 'outdir': 'reanno', 'mismatches': 2,
            'ref_paths': {'trna': 'tRNA.fa', 'genome': 'hg38.fa'},
            'hierarchy': {'tRNA': ['trna']},
            'unknown_arg': 1,
        }, f)
        args = parse_args(add_reanno_args(), ['--config', f, '-m', '1'],
            REQUIRED)
        assert args['mismatches'] == 1
        assert args['pac'] == 'pac'
        assert list(parse_pairs(args['ref_paths'])) == ['trna', 'genome']
        assert parse_hierarchy(args['hierarchy']) == {'tRNA': ['trna']}
        assert 'config' not in args
        assert 'unknown_arg' not in args

    def test_config_help_key(self, tmp_path):
        """Only the argument names are taken from the config."""
        f = str(tmp_path / 'reanno.toml')
        Config().dump({'pac': 'pac', 'help': 1, 'threads': 2}, f)
        args = parse_args(add_reanno_args(), ['--config', f, '-o', 'out',
            '-r', 'trna=tRNA.fa', '-s', 'tRNA=trna'], REQUIRED)
        assert 'help' not in args
        assert args['threads'] == 2
        assert args['outdir'] == 'out'

    def test_required(self):
        with pytest.raises(SystemExit):
            parse_args(add_reanno_args(), ['-i', 'pac'], REQUIRED)

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            Pacseq(['align'])


# ============================================================================
# Tests: sub-commands
# ============================================================================

class TestCommands:
    """Run the sub-commands, with the fake aligner."""

    def test_reanno(self, tmp_path, fake_bowtie, pac_trna, trna_sub, trna_fa):
        pac_dir = pac_trna.save(str(tmp_path / 'pac'))
        outdir = str(tmp_path / 'reanno')
        Pacseq(['reanno', '-i', pac_dir, '-o', outdir, '-r', 'trna=' + trna_fa,
            '-s', 'tRNA=tRNA', '-m', '1', '--report', 'full',
            '--merge-overview'])
        for f in ['trna/mis0.txt', 'summary/overview.csv', 'pac/anno.csv']:
            assert os.path.exists(os.path.join(outdir, f))
        pac = PAC.load(os.path.join(outdir, 'pac'))
        assert pac.anno.loc[trna_sub, 'Biotypes_mis0'] == 'tRNA'
        assert pac.anno.loc[trna_sub, 'mis0_trna'] == 'tRNA1;start=6;+'
        assert pac.anno.loc[pac.sequences[1], 'Biotypes_mis1'] == 'tRNA'

    def test_mapper(self, tmp_path, fake_bowtie, pac_trna, trna_sub, trna_fa):
        pac_dir = pac_trna.save(str(tmp_path / 'pac'))
        outdir = str(tmp_path / 'mapper')
        Pacseq(['mapper', '-i', pac_dir, '-r', trna_fa, '-o', outdir,
            '--report-string'])
        df = pd.read_csv(os.path.join(outdir, 'tRNA1.csv'), index_col=0)
        assert df.index.tolist() == [trna_sub]
        assert df.loc[trna_sub, 'Align_start'] == 6
        assert df.loc[trna_sub, 'Align_string'] == '-' * 5 + trna_sub + \
            '-' * 5
        assert os.path.exists(os.path.join(outdir, 'mapper.toml'))

    def test_gtf(self, tmp_path):
        seqs = ['AAAACCCCGGGGTTTTAAAA', 'CCCCGGGGTTTTAAAACCCC']
        pac = make_pac(seqs)
        pac.add_anno(pd.DataFrame({'mis0_genome': ['chr1;start=100;+',
            'no hit']}, index=seqs))
        pac_dir = pac.save(str(tmp_path / 'pac'))
        gtf = tmp_path / 'a.gtf'
        gtf.write_text('\t'.join(['chr1', '.', 'gene', '90', '130', '.', '+',
            '.', 'gene_id "G1"; gene_name "G1";']) + '\n')
        out = str(tmp_path / 'gtf' / 'simplify.csv')
        Pacseq(['gtf', '-i', pac_dir, '-g', 'gencode=' + str(gtf),
            '-t', 'gencode=gene_name', '-m', '0', '-o', out])
        df = pd.read_csv(out, index_col=0)
        assert df.loc[seqs[0], 'gencode_gene_name'] == 'G1'
        assert df.loc[seqs[1], 'genome_mis'] == 'no hit'
