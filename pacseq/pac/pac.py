#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
The PAC object, Pheno/Anno/Counts tables

Pheno  : sample_id x attributes
Anno   : sequence x attributes
Counts : sequence x sample_id

Rows of Anno and Counts, are the unique sequences, in the same order;
Columns of Counts, are the rows of Pheno, in the same order.

norm/summary: derived tables, sequence (or a subset) x any columns
each one is saved with the provenance: method, type, grouping

Example:
>>> pac = PAC.from_counts(counts)
>>> pac.check()
>>> pac.add_anno(df)
>>> pac.save('results/pac')
>>> pac = PAC.load('results/pac')
"""

import os
import collections
import pandas as pd
from pacseq.errors import FormatError
from pacseq.utils.utils import log, Config
from pacseq.utils.file import check_path, check_file, list_file, file_prefix
from pacseq.utils.seq import write_fasta


DerivedTable = collections.namedtuple('DerivedTable', ['table', 'provenance'])


def diff_keys(a, b):
    """Keys in a or b, but not both; keep the order of a, then b"""
    sa, sb = set(a), set(b)
    return [i for i in a if i not in sb] + [i for i in b if i not in sa]


def first_diff(a, b):
    """The first position, a[i] != b[i]"""
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    return min(len(a), len(b))


def duplicated_keys(x):
    return pd.Index(x)[pd.Index(x).duplicated()].unique().tolist()


class PAC(object):
    """The PAC object, Pheno/Anno/Counts

    Parameters
    ----------
    pheno : pd.DataFrame
        index: sample_id

    anno : pd.DataFrame
        index: sequence

    counts : pd.DataFrame
        index: sequence, columns: sample_id

    norm : dict
        {name: DerivedTable}

    summary : dict
        {name: DerivedTable}
    """
    def __init__(self, pheno, anno, counts, norm=None, summary=None):
        if not all([isinstance(i, pd.DataFrame) for i in [pheno, anno, counts]]):
            raise FormatError('pheno, anno, counts expect pd.DataFrame, got: ' +
                ', '.join([type(i).__name__ for i in [pheno, anno, counts]]))
        self.counts = counts.copy()
        self.counts.index = self.counts.index.astype(str)
        self.counts.columns = self.counts.columns.astype(str)
        self.pheno = pheno.copy()
        self.pheno.index = self.pheno.index.astype(str)
        self.anno = self.normalize_rows(anno.copy(), 'Anno')
        self.pheno = self.normalize_samples(self.pheno)
        self.norm = collections.OrderedDict()
        self.summary = collections.OrderedDict()
        self.check()
        for name, d in (norm or {}).items():
            self.add_norm(name, d.table, **d.provenance)
        for name, d in (summary or {}).items():
            self.add_summary(name, d.table, **d.provenance)


    @classmethod
    def from_counts(cls, counts, pheno=None, anno=None):
        """Create PAC from the counts table
        pheno: sample_id
        anno: Length
        """
        counts = counts.copy()
        counts.index = counts.index.astype(str)
        counts.columns = counts.columns.astype(str)
        if pheno is None:
            pheno = pd.DataFrame({'sample_id': counts.columns},
                index=counts.columns)
        if anno is None:
            anno = pd.DataFrame({'Length': [len(i) for i in counts.index]},
                index=counts.index)
        return cls(pheno, anno, counts)


    @property
    def sequences(self):
        return self.counts.index.tolist()


    @property
    def samples(self):
        return self.counts.columns.tolist()


    def __len__(self):
        return self.counts.shape[0]


    def __repr__(self):
        return 'PAC: {} sequences x {} samples, anno: {} columns'.format(
            self.counts.shape[0], self.counts.shape[1], self.anno.shape[1])


    def normalize_rows(self, df, name='Anno'):
        """Reorder the rows of df, following the Counts
        the same set of sequences required
        """
        df.index = df.index.astype(str)
        seqs = self.counts.index
        dup = duplicated_keys(df.index)
        if dup:
            raise FormatError('duplicate sequences in {}'.format(name), dup)
        diff = diff_keys(df.index.tolist(), seqs.tolist())
        if diff:
            raise FormatError(
                'sequences in {} and Counts are not identical'.format(name),
                diff)
        if not df.index.equals(seqs):
            log.info('reorder the rows of {}, following Counts'.format(name))
            df = df.reindex(seqs)
        return df


    def normalize_samples(self, df):
        """Reorder the rows of Pheno, following the columns of Counts"""
        smps = self.counts.columns
        dup = duplicated_keys(df.index)
        if dup:
            raise FormatError('duplicate sample_id in Pheno', dup)
        diff = diff_keys(df.index.tolist(), smps.tolist())
        if diff:
            raise FormatError(
                'sample_id in Pheno and columns of Counts are not identical',
                diff)
        if not df.index.equals(smps):
            log.info('reorder the rows of Pheno, following Counts')
            df = df.reindex(smps)
        return df


    def check(self):
        """Check the identity of rows/columns
        1. Anno rows == Counts rows (the same order)
        2. Pheno rows == Counts columns (the same order)
        3. Counts, non-negative numbers
        """
        seqs = self.counts.index.tolist()
        dup = duplicated_keys(seqs)
        if dup:
            raise FormatError('duplicate sequences in Counts', dup)
        anno_seqs = self.anno.index.tolist()
        if not anno_seqs == seqs:
            diff = diff_keys(anno_seqs, seqs)
            if not diff:
                i = first_diff(anno_seqs, seqs)
                diff = [anno_seqs[i], seqs[i]]
                raise FormatError(
                    'rows of Anno and Counts are not in the same order, ' +
                    'at row {}'.format(i + 1), diff)
            raise FormatError('rows of Anno and Counts are not identical', diff)
        smps = self.counts.columns.tolist()
        dup = duplicated_keys(smps)
        if dup:
            raise FormatError('duplicate samples in Counts', dup)
        pheno_smps = self.pheno.index.tolist()
        if not pheno_smps == smps:
            diff = diff_keys(pheno_smps, smps) or pheno_smps
            raise FormatError(
                'rows of Pheno and columns of Counts are not identical', diff)
        bad = [c for c in smps
            if not pd.api.types.is_numeric_dtype(self.counts[c])]
        if bad:
            raise FormatError('Counts, numeric columns expected', bad)
        neg = self.counts.columns[(self.counts < 0).any(axis=0)].tolist()
        if neg:
            raise FormatError('Counts, negative values found in samples', neg)
        for name, d in list(self.norm.items()) + list(self.summary.items()):
            extra = [i for i in d.table.index if i not in self.anno.index]
            if extra:
                raise FormatError(
                    'rows of derived table "{}" not in Counts'.format(name),
                    extra)
        return True


    def add_anno(self, df, overwrite=True):
        """Add columns to Anno, all-or-nothing
        rows of df: the same set of sequences as Counts
        """
        if isinstance(df, pd.Series):
            df = df.to_frame()
        if not isinstance(df, pd.DataFrame):
            raise FormatError('add_anno() expect pd.DataFrame, got {}'.format(
                type(df).__name__))
        df = self.normalize_rows(df.copy(), 'new annotation')
        exists = [c for c in df.columns if c in self.anno.columns]
        if exists and not overwrite:
            raise FormatError('columns exists in Anno', exists)
        anno = self.anno.copy()
        for c in df.columns:
            new = df[c]
            if c in anno.columns and anno[c].equals(new):
                continue # unchanged
            anno[c] = new
        if not anno.index.equals(self.counts.index):
            raise FormatError('rows of Anno changed after merge',
                diff_keys(anno.index.tolist(), self.sequences))
        self.anno = anno
        return self


    def _check_derived(self, name, table):
        if not isinstance(table, pd.DataFrame):
            raise FormatError('derived table "{}", expect pd.DataFrame'.format(
                name))
        table = table.copy()
        table.index = table.index.astype(str)
        extra = [i for i in table.index if i not in self.anno.index]
        if extra:
            raise FormatError(
                'rows of derived table "{}" not in Counts'.format(name), extra)
        # keep the order of Counts
        seqs = [i for i in self.sequences if i in set(table.index)]
        return table.reindex(seqs)


    def add_norm(self, name, table, method=None, **kwargs):
        """Add normalized table, eg: cpm, rpm, ..."""
        table = self._check_derived(name, table)
        prov = {'method': method or name}
        prov.update(kwargs)
        self.norm[name] = DerivedTable(table, prov)
        return self


    def add_summary(self, name, table, type=None, grouping=None, **kwargs):
        """Add summary table, eg: means, log2FC, ..."""
        table = self._check_derived(name, table)
        prov = {'type': type or name}
        if grouping is not None:
            prov['grouping'] = grouping
        prov.update(kwargs)
        self.summary[name] = DerivedTable(table, prov)
        return self


    def write_fasta(self, x):
        """Save sequences to fasta
        name: the sequence
        """
        return write_fasta(collections.OrderedDict(
            [(s, s) for s in self.sequences]), x)


    def save(self, outdir):
        """Save PAC to directory
        pheno.csv, anno.csv, counts.csv, norm/*.csv, summary/*.csv, pac.toml
        """
        check_path(outdir)
        self.check()
        self.pheno.to_csv(os.path.join(outdir, 'pheno.csv'))
        self.anno.to_csv(os.path.join(outdir, 'anno.csv'), index_label='seq')
        self.counts.to_csv(os.path.join(outdir, 'counts.csv'), index_label='seq')
        manifest = {
            'n_seqs': len(self),
            'n_samples': len(self.samples),
            'norm': {},
            'summary': {},
        }
        for group, tables in [('norm', self.norm), ('summary', self.summary)]:
            if len(tables) == 0:
                continue
            group_dir = os.path.join(outdir, group)
            check_path(group_dir)
            for name, d in tables.items():
                d.table.to_csv(os.path.join(group_dir, name + '.csv'),
                    index_label='seq')
                manifest[group][name] = d.provenance
        Config().dump(manifest, os.path.join(outdir, 'pac.toml'))
        log.info('PAC saved to: {}'.format(outdir))
        return outdir


    @classmethod
    def load(cls, indir):
        """Load PAC from directory, see save()"""
        files = [os.path.join(indir, i + '.csv') for i in
            ['pheno', 'anno', 'counts']]
        if not check_file(files):
            raise FileNotFoundError('PAC files missing: {}'.format(
                ', '.join([f for f in files if not check_file(f)])))
        pheno = pd.read_csv(files[0], index_col=0)
        anno = pd.read_csv(files[1], index_col=0, keep_default_na=False,
            na_values=[''])
        counts = pd.read_csv(files[2], index_col=0)
        pac = cls(pheno, anno, counts)
        manifest = Config().load(os.path.join(indir, 'pac.toml')) or {}
        for group, fn in [('norm', pac.add_norm), ('summary', pac.add_summary)]:
            prov_all = manifest.get(group, {})
            for f in list_file(os.path.join(indir, group), '*.csv'):
                name = file_prefix(f)
                table = pd.read_csv(f, index_col=0)
                fn(name, table, **prov_all.get(name, {}))
        return pac
