#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
Map the PAC sequences to a small reference, eg: tRNA, rRNA precursors

Return the alignments for each reference entry:

{ref_id: {
    'Ref_seq': 'NNNACGT...NNN',
    'Alignments': DataFrame(index=sequence,
        Mismatch, Strand, Align_start, Align_end, Align_width, Align_string)
    },
 ...}

Entries without hits have a single row: no_hits

Example:
>>> m = PacMapper(pac=pac, ref='ref/tRNA.fa', N_up='NNN', N_down='NNN',
        mismatches=0, multi='remove', report_string=True)
>>> res = m.run()
>>> res['tRNA-Gly-GCC']['Alignments']
"""

import warnings
import tempfile
import collections
import pandas as pd
from pacseq.pac.pac import PAC
from pacseq.aligner.bowtie import Bowtie
from pacseq.reanno.map_reanno import MapReanno, ReferenceSet
from pacseq.reanno.reanno import MakeReanno
from pacseq.utils.utils import log, update_obj
from pacseq.utils.file import check_file, file_abspath, remove_path
from pacseq.utils.seq import read_fasta, revcomp, is_dna


MAX_STRING_LENGTH = 500
ALIGN_COLUMNS = ['Mismatch', 'Strand', 'Align_start', 'Align_end',
    'Align_width']


def init_padding(x):
    """N_up, N_down
    int : number of N
    str : the sequence
    """
    if x is None:
        out = ''
    elif isinstance(x, int):
        out = 'N' * x
    elif isinstance(x, str):
        out = x.upper()
    else:
        raise ValueError('padding, expect int or str, got {}'.format(x))
    if out and not is_dna(out):
        raise ValueError('padding, expect ACGTN, got {}'.format(x))
    return out


def no_hits_frame(report_string=False):
    cols = ALIGN_COLUMNS + (['Align_string'] if report_string else [])
    return pd.DataFrame({c: ['no_hits'] for c in cols}, index=['no_hits'])


class PacMapper(object):
    """Map sequences to the reference, by bowtie

    Parameters
    ----------
    pac : PAC
        The PAC object

    ref : str, dict or list
        Path to the fasta file, {ref_id: sequence}, or [sequence, ...]

    mismatches : int
        The max mismatches

    multi : str
        remove, remove the sequences mapped >1 to the same reference entry
        keep, keep all the hits, named: seq.1, seq.2, ...

    N_up, N_down : int or str
        Add the sequences to both ends of the reference, eg: NNN

    report_string : bool
        Add the alignment string, eg: ---ACGT------, for reference < 500 nt

    outdir : str
        The directory for the alignment, default: a temp directory

    keep_temp : bool
        Keep the alignment files

    override : bool
        Clear the outdir, if not empty
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'pac': None,
            'ref': None,
            'mismatches': 0,
            'multi': 'remove',
            'threads': 1,
            'N_up': '',
            'N_down': '',
            'report_string': False,
            'outdir': None,
            'keep_temp': False,
            'override': False,
            'aligner': None,
        }
        self = update_obj(self, args_init, force=False)
        if not isinstance(self.pac, PAC):
            raise ValueError('pac, expect PAC, got {}'.format(
                type(self.pac).__name__))
        if self.multi not in ['remove', 'keep']:
            raise ValueError('multi, expect remove|keep, got {}'.format(
                self.multi))
        if self.aligner is None:
            self.aligner = Bowtie()
        self.N_up = init_padding(self.N_up)
        self.N_down = init_padding(self.N_down)
        self.warnings = []
        self.init_ref()


    def init_ref(self):
        """Read the reference, add padding"""
        fasta = None
        if isinstance(self.ref, dict):
            seqs = collections.OrderedDict([(str(k), str(v).upper())
                for k, v in self.ref.items()])
        elif isinstance(self.ref, (list, tuple)):
            seqs = collections.OrderedDict([('ref{}'.format(i + 1), v.upper())
                for i, v in enumerate(self.ref)])
        elif isinstance(self.ref, str) and check_file(self.ref):
            fasta = file_abspath(self.ref)
            seqs = read_fasta(fasta)
        elif isinstance(self.ref, str) and is_dna(self.ref):
            seqs = collections.OrderedDict([('ref1', self.ref.upper())])
        else:
            raise ValueError('unrecognizable reference: {}'.format(self.ref))
        if len(seqs) == 0:
            raise ValueError('reference is empty: {}'.format(self.ref))
        self.ref_seqs = collections.OrderedDict([(k, self.N_up + v + self.N_down)
            for k, v in seqs.items()])
        # use the index next to fasta, if no padding
        index = None
        if fasta is not None and not (self.N_up or self.N_down):
            index = self.aligner.search_index(fasta)
        if index is None:
            log.info('no bowtie index, will build the index for the reference')
            self.ref_set = ReferenceSet('reference', sequences=self.ref_seqs)
        else:
            log.info('bowtie index found: {}'.format(index))
            self.ref_set = ReferenceSet('reference', fasta=fasta, index=index)


    def warn(self, msg):
        log.warning(msg)
        warnings.warn(msg)
        self.warnings.append(msg)


    def align(self):
        """Run MapReanno, MakeReanno, with the single reference"""
        is_tmp = self.outdir is None
        outdir = tempfile.mkdtemp(prefix='pacseq_mapper_') if is_tmp \
            else self.outdir
        try:
            MapReanno(pac=self.pac, ref_paths={'reference': self.ref_set},
                outdir=outdir, mismatches=self.mismatches, threads=self.threads,
                keep_temp=self.keep_temp, override=self.override,
                aligner=self.aligner).run()
            reanno = MakeReanno(outdir=outdir, pac=self.pac,
                mismatches=self.mismatches, report='full',
                max_hits='all').run()
        finally:
            if is_tmp and not self.keep_temp:
                remove_path(outdir)
        self.warnings.extend(reanno.warnings)
        return reanno.hits


    def to_frame(self, ref_id, df):
        """Hits of one reference entry, to the Alignments table"""
        df = df.sort_values(['start', 'strand', 'mismatches', 'query'],
            kind='mergesort')
        n = df['query'].value_counts()
        multi = n[n > 1].index.tolist()
        names = df['query'].tolist()
        if multi:
            if self.multi == 'remove':
                self.warn('{} sequence(s) mapped >1 to the same reference '
                    '"{}", removed since multi="remove": {}'.format(
                    len(multi), ref_id, ', '.join(multi)))
                df = df[~df['query'].isin(multi)]
                names = df['query'].tolist()
            else:
                self.warn('{} sequence(s) mapped >1 to the same reference '
                    '"{}", kept since multi="keep": {}'.format(
                    len(multi), ref_id, ', '.join(multi)))
                counter = collections.Counter()
                names = []
                for q in df['query']:
                    if q in multi:
                        counter[q] += 1
                        q = '{}.{}'.format(q, counter[q])
                    names.append(q)
        if df.shape[0] == 0:
            return no_hits_frame()
        width = df['query'].str.len()
        return pd.DataFrame({
            'Mismatch': df['mismatches'].astype(int).values,
            'Strand': df['strand'].values,
            'Align_start': df['start'].astype(int).values,
            'Align_end': (df['start'] + width - 1).astype(int).values,
            'Align_width': width.astype(int).values,
        }, index=pd.Index(names, name='seq'))


    def align_string(self, ref_seq, df):
        """---ACGT---, reverse complement for - strand"""
        n_ref = len(ref_seq)
        out = []
        for name, row in df.iterrows():
            seq = name
            if row['Strand'] == '-':
                seq = revcomp(seq)
            s = '-' * (row['Align_start'] - 1) + seq
            out.append(s + '-' * max(0, n_ref - len(s)))
        return out


    def add_string(self, res):
        if self.multi == 'keep':
            self.warn('report_string=True is not compatible with multi="keep", '
                'alignment string will not be returned')
            return res
        n_max = max([len(v['Ref_seq']) for v in res.values()])
        if n_max > MAX_STRING_LENGTH:
            self.warn('report_string=True only for reference < {} nt, got {} '
                'nt, alignment string will not be returned'.format(
                MAX_STRING_LENGTH, n_max))
            return res
        for v in res.values():
            df = v['Alignments']
            if df.index.tolist() == ['no_hits']:
                v['Alignments'] = no_hits_frame(report_string=True)
            else:
                df = df.copy()
                df['Align_string'] = self.align_string(v['Ref_seq'], df)
                v['Alignments'] = df
        return res


    def run(self):
        hits = self.align()
        res = collections.OrderedDict()
        for ref_id, ref_seq in self.ref_seqs.items():
            df = hits[hits['ref_id'] == ref_id]
            if df.shape[0] == 0:
                aln = no_hits_frame()
            else:
                aln = self.to_frame(ref_id, df)
            res[ref_id] = {'Ref_seq': ref_seq, 'Alignments': aln}
        unknown = set(hits['ref_id']) - set(self.ref_seqs)
        if unknown:
            self.warn('hits on unknown reference entries, skipped: {}'.format(
                ', '.join(sorted(unknown))))
        if self.report_string:
            res = self.add_string(res)
        n_hit = sum([v['Alignments'].index.tolist() != ['no_hits']
            for v in res.values()])
        log.info('PacMapper: {} of {} reference entries with hits'.format(
            n_hit, len(res)))
        self.result = res
        return res
