#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
Annotate the genome alignments by GTF files

The coordinates of each sequence are from the genome reference of reanno
(report='full', max_hits='all'), at the lowest mismatch level; or from
the PAC Anno columns: mis0_genome, mis1_genome, ...

For each gtf, the target columns (eg: gene_name, gene_type) of the features
overlapping the alignments are collected, unique, sorted and joined by '|'.

return_type:
  simplify : DataFrame, sequence x {gtf}_{target}
  full     : {seq_mis0: DataFrame(seqid, start, end, strand, targets)}
  all      : {'simplify': ..., 'full': ...}
  merge    : add the simplify table to PAC Anno, return PAC

Example:
>>> PacGtf(pac=pac, reanno=reanno, genome='genome', mismatches=3,
        gtf={'gencode': 'hg38.gtf'}, targets={'gencode': ['gene_name']},
        return_type='simplify').run()
"""

import re
import warnings
import collections
import numpy as np
import pandas as pd
from Levenshtein import distance
from pacseq.errors import ChromosomeMismatchWarning
from pacseq.pac.pac import PAC
from pacseq.reanno.reanno import Reanno
from pacseq.utils.utils import log, update_obj
from pacseq.utils.file import check_file


GTF_COLUMNS = ['seqid', 'source', 'type', 'start', 'end', 'score', 'strand',
    'phase', 'attributes']


def parse_attributes(x):
    """GTF: gene_id "A"; gene_name "B";
    GFF3: ID=A;Name=B
    """
    out = collections.OrderedDict()
    if not isinstance(x, str):
        return out
    for item in x.strip().split(';'):
        item = item.strip()
        if not item:
            continue
        m = re.match(r'^(\S+?)(?:\s+|=)"?(.*?)"?$', item)
        if m and m.group(1) not in out:
            out[m.group(1)] = m.group(2)
    return out


def read_gtf(x):
    """Read GTF/GFF file, expand the attributes to columns"""
    if not check_file(x, check_empty=True):
        raise FileNotFoundError('gtf file not exists, or empty: {}'.format(x))
    df = pd.read_csv(x, sep='\t', comment='#', header=None, names=GTF_COLUMNS,
        dtype={'seqid': str}, quoting=3)
    attr = pd.DataFrame([parse_attributes(i) for i in df['attributes']],
        index=df.index)
    attr = attr[[c for c in attr.columns if c not in GTF_COLUMNS]]
    return pd.concat([df.drop(columns='attributes'), attr], axis=1)


def parse_coords(x, seq):
    """ref_id;start=N;strand|... to list of (seqid, start, strand)"""
    out = []
    for hit in x.split('|'):
        m = re.match(r'^(.+);start=(\d+);([+-])$', hit)
        if m is None:
            raise ValueError('not valid coordinate for sequence {}: {}'.format(
                seq, hit))
        out.append((m.group(1), int(m.group(2)), m.group(3)))
    return out


def suggest_names(query, subject, n=3):
    """The closest names in subject, by Levenshtein distance"""
    out = collections.OrderedDict()
    subject = list(subject)
    for q in list(query)[:n]:
        if subject:
            out[q] = min(subject, key=lambda s: distance(q, s))
    return out


class PacGtf(object):
    """Annotate the genome coordinates by gtf

    Parameters
    ----------
    pac : PAC
        The PAC object

    reanno : Reanno
        The reanno, with the genome reference in full mode

    genome : str
        The name of the genome reference, in reanno or PAC Anno columns

    gtf : str or dict
        {name: path or DataFrame}

    targets : list or dict
        {name: [columns]}, the columns in gtf to report

    mismatches : int
        The max mismatch level used

    stranded : bool
        Only the features on the same strand

    return_type : str
        simplify, full, all, merge
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'pac': None,
            'reanno': None,
            'genome': 'genome',
            'gtf': None,
            'targets': None,
            'mismatches': 3,
            'stranded': False,
            'return_type': 'simplify',
        }
        self = update_obj(self, args_init, force=False)
        if not isinstance(self.pac, PAC):
            raise ValueError('pac, expect PAC, got {}'.format(
                type(self.pac).__name__))
        if self.return_type not in ['simplify', 'full', 'all', 'merge']:
            raise ValueError('return_type, expect simplify|full|all|merge, ' +
                'got {}'.format(self.return_type))
        self.init_gtf()


    def init_gtf(self):
        gtf = self.gtf
        if isinstance(gtf, (str, pd.DataFrame)):
            gtf = {'1': gtf}
        if not isinstance(gtf, dict) or len(gtf) == 0:
            raise ValueError('gtf, expect dict {{name: path}}, got: {}'.format(
                self.gtf))
        targets = self.targets
        if targets is None or isinstance(targets, (list, tuple, str)):
            targets = {k: targets for k in gtf}
        self.gtf_dfs = collections.OrderedDict()
        self.target_cols = collections.OrderedDict()
        for name, x in gtf.items():
            df = x.copy() if isinstance(x, pd.DataFrame) else read_gtf(x)
            trg = targets.get(name) or []
            if isinstance(trg, str):
                trg = [trg]
            missing = [c for c in ['seqid', 'start', 'end', 'strand']
                if c not in df.columns]
            if missing:
                raise ValueError('gtf "{}", essential columns missing: {}'.format(
                    name, ', '.join(missing)))
            missing = [c for c in trg if c not in df.columns]
            if missing:
                raise ValueError('gtf "{}", target columns missing: {}'.format(
                    name, ', '.join(missing)))
            df['seqid'] = df['seqid'].astype(str)
            self.gtf_dfs[name] = df
            self.target_cols[name] = list(trg)


    def coord_cells(self):
        """The genome hits, for each level: {k: Series}"""
        out = collections.OrderedDict()
        seqs = self.pac.sequences
        for k in range(self.mismatches + 1):
            col = 'mis{}_{}'.format(k, self.genome)
            if isinstance(self.reanno, Reanno):
                if (k, self.genome) not in self.reanno.full:
                    raise ValueError('genome reference not found in reanno: ' +
                        col)
                s = self.reanno.full[(k, self.genome)]['ref_hits']
            elif col in self.pac.anno.columns:
                s = self.pac.anno[col].replace('no hit', np.nan)
            else:
                raise ValueError('genome column not found in PAC Anno: ' + col)
            s = s.reindex(seqs)
            bad = s.astype(str).str.contains(r'Warning>\d', regex=True)
            if bad.any():
                raise ValueError('genome coordinates truncated (Warning>), ' +
                    'rerun MakeReanno with max_hits="all": {}, {}'.format(
                    col, ', '.join(s.index[bad].tolist()[:3])))
            out[k] = s
        return out


    def coordinates(self):
        """Coordinates at the lowest mismatch level
        return {seq: (mis, DataFrame(seqid, start, end, strand))}
        """
        cells = self.coord_cells()
        out = collections.OrderedDict()
        for seq in self.pac.sequences:
            mis = 'no hit'
            df = pd.DataFrame(columns=['seqid', 'start', 'end', 'strand'])
            for k, s in cells.items():
                x = s[seq]
                if isinstance(x, str) and x:
                    if re.match(r'^mis\d+$', x):
                        raise ValueError('genome coordinates not found, ' +
                            'use report="full" for {}: {}'.format(
                            self.genome, seq))
                    hits = parse_coords(x, seq)
                    df = pd.DataFrame(hits, columns=['seqid', 'start', 'strand'])
                    df['end'] = df['start'] + len(seq) - 1
                    df = df[['seqid', 'start', 'end', 'strand']]
                    mis = 'mis{}'.format(k)
                    break
            out[seq] = (mis, df)
        return out


    def check_chrom(self, coords):
        """The chromosome names in gtf and genome alignments"""
        chrom = set()
        for _, df in coords.values():
            chrom.update(df['seqid'].tolist())
        if len(chrom) == 0:
            return
        for name, gtf in self.gtf_dfs.items():
            gtf_chrom = set(gtf['seqid'])
            n = len(chrom & gtf_chrom)
            ratio = n / len(chrom)
            hint = suggest_names(sorted(chrom - gtf_chrom), sorted(gtf_chrom))
            hint = ', '.join(['{}->{}'.format(a, b) for a, b in hint.items()])
            if n == 0:
                raise ValueError('chromosome names in gtf "{}" did not match '
                    'the genome alignments, eg: {}'.format(name, hint))
            if ratio < 0.05:
                msg = 'low overlap of chromosome names between gtf "{}" and ' \
                    'genome alignments: {:.2%}, eg: {}'.format(name, ratio, hint)
                log.warning(msg)
                warnings.warn(msg, ChromosomeMismatchWarning)
            elif ratio < 1:
                log.info('not all chromosome names found in gtf "{}": ' \
                    '{:.2%}'.format(name, ratio))


    def overlap(self, coord, gtf, trg_cols):
        """Target values of the features, overlapped with each coordinate"""
        rows = []
        for hit in coord.itertuples(index=False):
            sub = gtf.get((hit.seqid, hit.strand) if self.stranded else hit.seqid)
            vals = collections.OrderedDict([(c, None) for c in trg_cols])
            if sub is not None:
                hit_df = sub[(sub['start'].values <= hit.end) &
                    (sub['end'].values >= hit.start)]
                for c in trg_cols:
                    v = sorted(set(hit_df[c].dropna().astype(str)))
                    vals[c] = '|'.join(v) if v else None
            rows.append(vals)
        return pd.DataFrame(rows, columns=trg_cols, index=coord.index)


    def run(self):
        coords = self.coordinates()
        self.check_chrom(coords)
        # group the gtf by chromosome (strand)
        gtf_groups = collections.OrderedDict()
        for name, df in self.gtf_dfs.items():
            keys = ['seqid', 'strand'] if self.stranded else 'seqid'
            gtf_groups[name] = {k: v for k, v in df.groupby(keys)}
        full = collections.OrderedDict()
        simple = []
        for seq, (mis, coord) in coords.items():
            tab = [coord.reset_index(drop=True)]
            row = collections.OrderedDict([('{}_mis'.format(self.genome), mis)])
            for name, groups in gtf_groups.items():
                trg = self.target_cols[name]
                df = self.overlap(coord.reset_index(drop=True), groups, trg)
                df.columns = ['{}_{}'.format(name, c) for c in trg]
                tab.append(df)
                for c in df.columns:
                    v = sorted(set([j for i in df[c].dropna()
                        for j in i.split('|')]))
                    row[c] = '|'.join(v) if v else None
            full['{}_{}'.format(seq, mis)] = pd.concat(tab, axis=1)
            simple.append(row)
        simple = pd.DataFrame(simple, index=pd.Index(self.pac.sequences,
            name='seq'))
        log.info('PacGtf: {} of {} sequences with genome hits'.format(
            (simple.iloc[:, 0] != 'no hit').sum(), simple.shape[0]))
        if self.return_type == 'simplify':
            out = simple
        elif self.return_type == 'full':
            out = full
        elif self.return_type == 'all':
            out = {'simplify': simple, 'full': full}
        else:
            self.pac.add_anno(simple)
            out = self.pac
        return out
