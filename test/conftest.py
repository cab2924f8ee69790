"""
Pytest configuration and fixtures for pacseq tests.
"""

import os
import collections
import pytest
import pandas as pd
from pacseq.errors import IndexBuildError, JobError
from pacseq.pac.pac import PAC
from pacseq.utils.seq import read_fasta, write_fasta, revcomp


# ============================================================================
# Sequences
# ============================================================================

# 30 nt, tRNA-Gly like
TRNA1 = 'GCATTGGTGGTTCAGTGGTAGAATTCTCGC'

# not found in TRNA1, with <= 3 mismatches
OTHER_SEQS = [
    'ACACACACACACACACACAC',
    'CCCCCAAAAACCCCCAAAAA',
    'TTTTTGGGGGTTTTTGGGGG',
    'AGAGAGAGAGAGAGAGAGAG',
]


def mutate(seq, pos, base=None):
    """Substitute one base"""
    if base is None:
        base = 'A' if seq[pos] != 'A' else 'C'
    return seq[:pos] + base + seq[pos + 1:]


def bowtie_line(query, ref_id, offset, strand='+', desc=''):
    """One line of bowtie output, 0-based offset"""
    return '\t'.join([query, strand, ref_id, str(offset), query,
        'I' * len(query), '0', desc])


def write_reports(outdir, reports, ref_order=None):
    """Write bowtie output, in the layout of MapReanno
    reports : {ref_name: {k: [lines]}}
    """
    for ref, levels in reports.items():
        ref_dir = os.path.join(outdir, ref)
        os.makedirs(ref_dir, exist_ok=True)
        for k, lines in levels.items():
            with open(os.path.join(ref_dir, 'mis{}.txt'.format(k)), 'wt') as w:
                for line in lines:
                    w.write(line + '\n')
    if ref_order is not None:
        with open(os.path.join(outdir, 'config.toml'), 'wt') as w:
            w.write('[ref_paths]\n')
            for ref in ref_order:
                w.write('{} = "{}"\n'.format(ref, ref + '.fa'))
    return outdir


def make_pac(seqs, samples=('s1', 's2')):
    counts = pd.DataFrame({s: [10 * (i + 1) for i in range(len(seqs))]
        for s in samples}, index=list(seqs))
    return PAC.from_counts(counts)


# ============================================================================
# Fake aligner
# ============================================================================

class FakeAligner(object):
    """Report all hits with <= k mismatches, both strands, in python
    N in reference matches any base.
    The output follows the bowtie default format.
    """
    def __init__(self, fail_build=None, fail_align=None):
        self.fail_build = set(fail_build or [])
        self.fail_align = set(fail_align or [])
        self.calls = []


    def is_index(self, index):
        return isinstance(index, str) and os.path.exists(index + '.fake.fa')


    def search_index(self, fasta):
        prefix = os.path.splitext(fasta)[0]
        return prefix if self.is_index(prefix) else None


    def build_index(self, fasta, prefix, log_file=None, ref_name=None):
        if ref_name in self.fail_build:
            raise IndexBuildError(ref_name, 'fake build failure')
        write_fasta(read_fasta(fasta), prefix + '.fake.fa')
        return prefix


    def align(self, index, query, mismatches, out_file, threads=1,
        log_file=None, ref_name=None):
        self.calls.append((ref_name, mismatches, threads))
        if (ref_name, mismatches) in self.fail_align:
            raise JobError(ref_name, mismatches, 'fake align failure',
                hard=True)
        refs = read_fasta(index + '.fake.fa')
        lines = []
        for qname, q in read_fasta(query).items():
            for rid, r in refs.items():
                for strand, s in [('+', q), ('-', revcomp(q))]:
                    for i in range(len(r) - len(s) + 1):
                        mm = [(j, r[i + j], s[j]) for j in range(len(s))
                            if r[i + j] != 'N' and r[i + j] != s[j]]
                        if len(mm) > mismatches:
                            continue
                        desc = ','.join(['{}:{}>{}'.format(*m) for m in mm])
                        lines.append(bowtie_line(qname, rid, i, strand, desc))
        with open(out_file, 'wt') as w:
            for line in lines:
                w.write(line + '\n')
        if log_file:
            with open(log_file, 'wt') as w:
                w.write('Reported {} alignments\n'.format(len(lines)))
        return {'alignments': len(lines)}


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def aligner():
    return FakeAligner()


@pytest.fixture
def trna_sub():
    """20 nt substring of TRNA1, at 6-25"""
    return TRNA1[5:25]


@pytest.fixture
def pac_trna(trna_sub):
    """One sequence from TRNA1, one with 1 mismatch, others no hits"""
    seqs = [trna_sub, mutate(trna_sub, 10)] + OTHER_SEQS[:3]
    return make_pac(seqs)


@pytest.fixture
def trna_fa(tmp_path):
    fa = str(tmp_path / 'ref' / 'tRNA.fa')
    write_fasta(collections.OrderedDict([('tRNA1', TRNA1)]), fa)
    return fa
