#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
Simplify the reanno object, to biotypes, and add to the PAC Anno

For each mismatch level k, each sequence is labelled by the hierarchy:

hierarchy = {
    'rRNA': ['rRNA', 'rrna'],
    'miRNA': ['miRNA', 'MIR'],
    'tRNA': ['trna'],
}

The hits at level k, in format: {ref_name}:{ref_hits}, are searched by the
regex patterns, the first group (in order) matched is the label; the hits
not matched by any pattern are labelled as: other.

Labels at level k inherit the labels at level k-1 (Biotypes_mis0 ->
Biotypes_mis1 -> ...), only a group listed earlier could replace it.

Example:
>>> SimplifyReanno(reanno=reanno, hierarchy=hierarchy, mismatches=2,
        bio_name='Biotypes', pac=pac, merge_pac=True).run()
>>> pac.anno[['Biotypes_mis0', 'Biotypes_mis1', 'Biotypes_mis2']]
"""

import re
import collections
import numpy as np
import pandas as pd
from pacseq.pac.pac import PAC
from pacseq.reanno.reanno import Reanno
from pacseq.utils.utils import log, update_obj


OTHER = 'other'


def init_hierarchy(x):
    """Check the hierarchy
    {name: [regex, ...]}, keep the order
    """
    if not isinstance(x, dict) or len(x) == 0:
        raise ValueError('hierarchy, expect dict {name: [regex]}, got: ' +
            '{}'.format(x))
    out = collections.OrderedDict()
    for name, patterns in x.items():
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, (list, tuple)) or len(patterns) == 0:
            raise ValueError('hierarchy "{}", expect list of regex'.format(name))
        for p in patterns:
            try:
                re.compile(p)
            except re.error as e:
                raise ValueError('hierarchy "{}", bad regex: {}, {}'.format(
                    name, p, e))
        out[name] = list(patterns)
    return out


class SimplifyReanno(object):
    """Make biotype columns from reanno

    Parameters
    ----------
    reanno : Reanno
        The output of MakeReanno().run()

    hierarchy : dict
        {name: [regex, ...]}, ordered, the first matched name wins

    mismatches : int
        The max mismatch level, one column for each level: 0..mismatches
        default: all levels in reanno

    bio_name : str
        The prefix of the columns, {bio_name}_mis{k}

    perfect : bool
        Only use the perfect hits (mis0)

    pac : PAC
        Add the columns to pac.anno

    merge_pac : bool
        Add the columns to pac.anno, if pac given
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'reanno': None,
            'hierarchy': None,
            'mismatches': None,
            'bio_name': 'Biotypes',
            'perfect': False,
            'pac': None,
            'merge_pac': True,
        }
        self = update_obj(self, args_init, force=False)
        if not isinstance(self.reanno, Reanno):
            raise ValueError('reanno, expect Reanno, got {}'.format(
                type(self.reanno).__name__))
        if self.pac is not None and not isinstance(self.pac, PAC):
            raise ValueError('pac, expect PAC, got {}'.format(
                type(self.pac).__name__))
        self.hierarchy = init_hierarchy(self.hierarchy)
        if self.mismatches is None:
            self.mismatches = self.reanno.mismatches
        if self.mismatches > self.reanno.mismatches:
            raise ValueError('mismatches={}, reanno only has levels 0-{}'.format(
                self.mismatches, self.reanno.mismatches))
        if self.perfect:
            self.mismatches = 0
        # rank of the labels, lower is better
        self.rank = {name: i for i, name in enumerate(self.hierarchy)}
        self.rank[OTHER] = len(self.hierarchy)
        self.names = list(self.hierarchy) + [OTHER]


    def candidates(self, k):
        """The hits at level k: {ref_name}:{ref_hits}"""
        out = collections.OrderedDict()
        for ref in self.reanno.references:
            df = self.reanno.full[(k, ref)]
            out[ref] = df['ref_hits'].map(lambda x: '{}:{}'.format(ref, x),
                na_action='ignore')
        return out


    def search(self, k):
        """Rank of the label at level k, NaN for no hits"""
        cand = self.candidates(k)
        idx = self.reanno.overview.index
        rank = pd.Series(np.nan, index=idx)
        for name, patterns in self.hierarchy.items():
            for p in patterns:
                hit = pd.Series(False, index=idx)
                for s in cand.values():
                    hit |= s.str.contains(p, regex=True, na=False)
                rank[hit & rank.isna()] = self.rank[name]
        has_hit = pd.Series(False, index=idx)
        for s in cand.values():
            has_hit |= s.notna()
        rank[has_hit & rank.isna()] = self.rank[OTHER]
        return rank


    def run(self):
        cols = collections.OrderedDict()
        prev = None
        for k in range(self.mismatches + 1):
            rank = self.search(k)
            if prev is not None:
                rank = pd.concat([prev, rank], axis=1).min(axis=1)
            cols['{}_mis{}'.format(self.bio_name, k)] = [
                None if np.isnan(i) else self.names[int(i)] for i in rank]
            prev = rank
        df = pd.DataFrame(cols, index=self.reanno.overview.index)
        for c in df.columns:
            n = df[c].value_counts().to_dict()
            log.info('{}: {}'.format(c, ', '.join(['{}={}'.format(a, b)
                for a, b in n.items()])))
        self.table = df
        if self.pac is not None and self.merge_pac:
            self.pac.add_anno(df)
            log.info('add columns to PAC Anno: {}'.format(
                ', '.join(df.columns)))
        return df
