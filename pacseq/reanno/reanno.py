#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
Make the reanno object, from the output of MapReanno()

Import all the bowtie output: outdir/{ref_name}/mis{k}.txt
and summarize the hits for each sequence in PAC

overview: sequence x mis{k}_{ref_name}
  minimum : mis0, mis1, ..., no hit
  full    : ref_id;start=N;strand|ref_id;start=N;strand, or no hit
            Warning>N, if more than max_hits hits

full: {(k, ref_name): DataFrame(n_hits, ref_hits)}, untruncated

Example:
>>> reanno = MakeReanno(outdir='reanno', pac=pac, report='full',
        reduce='genome').run()
>>> reanno.overview.head()
"""

import os
import re
import collections
import pandas as pd
from pacseq.errors import StructuralError
from pacseq.pac.pac import PAC, diff_keys, first_diff
from pacseq.reanno.parser import BowtieReport, format_hit, hits_to_frame
from pacseq.reanno.report import ReportMode
from pacseq.utils.utils import log, update_obj, Config
from pacseq.utils.file import check_file, check_path, list_dir, list_file


HIT_KEY = ['ref_name', 'query', 'ref_id', 'start', 'strand']


def dedup_hits(df):
    """Assign each hit to the lowest mismatch level
    bowtie -v k, also report the hits with < k mismatches
    """
    if df.shape[0] == 0:
        return df
    df = df.sort_values(['mismatches'] + HIT_KEY, kind='mergesort')
    df = df.drop_duplicates(subset=HIT_KEY, keep='first')
    return df.reset_index(drop=True)


def check_levels(df):
    """Each hit should be labelled at one mismatch level only"""
    dup = df.duplicated(subset=HIT_KEY, keep=False)
    if dup.any():
        raise StructuralError('hits labelled at more than one mismatch level',
            df.loc[dup, 'query'].unique().tolist())


class Reanno(object):
    """The reanno object

    overview : pd.DataFrame
        sequence x mis{k}_{ref_name}

    full : dict
        {(k, ref_name): DataFrame(index=sequence, n_hits, ref_hits)}

    hits : pd.DataFrame
        all hits, after de-duplication, see AlignmentHit

    warnings : list
        the soft errors of the jobs
    """
    def __init__(self, overview, full, hits, warnings=None, mismatches=0,
        references=None, report=None):
        self.overview = overview
        self.full = full
        self.hits = hits
        self.warnings = warnings or []
        self.mismatches = mismatches
        self.references = references or []
        self.report = report


    def __repr__(self):
        return 'Reanno: {} sequences, references: {}, mismatches: 0-{}'.format(
            self.overview.shape[0], ', '.join(self.references),
            self.mismatches)


    def column(self, k, ref_name):
        return 'mis{}_{}'.format(k, ref_name)


    def check(self, sequences):
        """The rows of overview and full tables, follow the sequences"""
        seqs = list(sequences)
        tables = [('overview', self.overview)] + [
            ('full: mis{}_{}'.format(k, r), df) for (k, r), df in self.full.items()]
        for name, df in tables:
            rows = df.index.tolist()
            if rows == seqs:
                continue
            diff = diff_keys(rows, seqs)
            if not diff:
                i = first_diff(rows, seqs)
                diff = [rows[i], seqs[i]] if i < len(seqs) else rows[i:]
            raise StructuralError(
                'rows of reanno table "{}" do not follow PAC'.format(name), diff)
        return True


    def save(self, outdir):
        """Save overview, full tables
        outdir/overview.csv
        outdir/full/mis{k}_{ref_name}.csv
        outdir/reanno.toml
        """
        full_dir = os.path.join(outdir, 'full')
        check_path(full_dir)
        self.overview.to_csv(os.path.join(outdir, 'overview.csv'),
            index_label='seq')
        for (k, ref), df in self.full.items():
            df.to_csv(os.path.join(full_dir, self.column(k, ref) + '.csv'),
                index_label='seq')
        Config().dump({
            'mismatches': self.mismatches,
            'references': self.references,
            'report': repr(self.report),
            'warnings': self.warnings,
        }, os.path.join(outdir, 'reanno.toml'))
        return outdir


class MakeReanno(object):
    """Import the bowtie output, make the reanno object

    Parameters
    ----------
    outdir : str
        The outdir of MapReanno()

    pac : PAC
        The PAC object, used in MapReanno()

    mismatches : int
        The max mismatches, default: all the levels found in outdir

    report : str
        minimum, full

    reduce : str or list
        The references, in minimum mode, for report='full'

    max_hits : int or 'all'
        Truncate the full report, Warning>N, if more hits than max_hits
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'outdir': None,
            'pac': None,
            'mismatches': None,
            'report': 'minimum',
            'reduce': None,
            'max_hits': 10,
        }
        self = update_obj(self, args_init, force=False)
        if not isinstance(self.pac, PAC):
            raise ValueError('pac, expect PAC, got {}'.format(
                type(self.pac).__name__))
        if not check_path(self.outdir, create_dir=False):
            raise FileNotFoundError('outdir not exists: {}'.format(self.outdir))
        if not (self.max_hits == 'all' or (isinstance(self.max_hits, int)
            and self.max_hits >= 0)):
            raise ValueError('max_hits, expect int >= 0 or "all", got {}'.format(
                self.max_hits))
        self.report_mode = ReportMode.from_args(self.report, self.reduce)
        self.refs = self.init_refs()
        if self.mismatches is None:
            self.mismatches = self.max_level()
        self.init_files()


    def init_refs(self):
        """The references, in the order of MapReanno()
        subdirs, containing mis*.txt
        """
        ref_dirs = [os.path.basename(i) for i in list_dir(self.outdir,
            include_dir=True) if os.path.isdir(i)]
        ref_dirs = [i for i in ref_dirs if len(list_file(
            os.path.join(self.outdir, i), 'mis*.txt')) > 0]
        config_toml = os.path.join(self.outdir, 'config.toml')
        order = []
        if check_file(config_toml):
            args = Config().load(config_toml) or {}
            order = list(args.get('ref_paths', {}))
        refs = [i for i in order if i in ref_dirs] + \
            [i for i in ref_dirs if i not in order]
        if len(refs) == 0:
            raise FileNotFoundError(
                'no bowtie output found in: {}/*/mis*.txt'.format(self.outdir))
        return refs


    def max_level(self):
        levels = []
        for ref in self.refs:
            for f in list_file(os.path.join(self.outdir, ref), 'mis*.txt'):
                m = re.match(r'^mis(\d+)\.txt$', os.path.basename(f))
                if m:
                    levels.append(int(m.group(1)))
        return max(levels)


    def init_files(self):
        self.files = collections.OrderedDict()
        missing = []
        for ref in self.refs:
            for k in range(self.mismatches + 1):
                f = os.path.join(self.outdir, ref, 'mis{}.txt'.format(k))
                if not check_file(f):
                    missing.append(f)
                self.files[(ref, k)] = f
        if missing:
            raise FileNotFoundError('bowtie output missing: {}'.format(
                ', '.join(missing)))


    def read_reports(self):
        """Read all files, return (hits, warnings)"""
        hits = []
        warnings = []
        for (ref, k), f in self.files.items():
            res = BowtieReport(f, ref, k).read()
            hits.extend(res.hits)
            warnings.extend(res.warnings)
            # soft errors of MapReanno()
            job_toml = os.path.splitext(f)[0] + '.toml'
            if check_file(job_toml):
                job = Config().load(job_toml) or {}
                if job.get('error'):
                    warnings.append(job['error'])
            log.info('[{}, mis{}] {} hits'.format(ref, k, len(res.hits)))
        df = hits_to_frame(hits)
        # hits of unknown sequences
        unknown = ~df['query'].isin(set(self.pac.sequences))
        if unknown.any():
            msg = '{} hits from sequences not in PAC, skipped: {}'.format(
                unknown.sum(), ', '.join(
                    df.loc[unknown, 'query'].unique().tolist()[:3]))
            log.warning(msg)
            warnings.append(msg)
            df = df.loc[~unknown]
        return (df, warnings)


    def format_cell(self, descs, k, mode):
        if len(descs) == 0:
            return 'no hit'
        if mode == 'minimum':
            return 'mis{}'.format(k)
        if self.max_hits != 'all' and len(descs) > self.max_hits:
            return 'Warning>{}'.format(len(descs))
        return '|'.join(descs)


    def run(self):
        seqs = self.pac.sequences
        df, warnings = self.read_reports()
        df = dedup_hits(df)
        check_levels(df)
        # hits, grouped by (k, ref), query
        df = df.sort_values(['mismatches'] + HIT_KEY, kind='mergesort')
        cells = collections.defaultdict(lambda: collections.defaultdict(list))
        for h in df.itertuples(index=False):
            cells[(h.mismatches, h.ref_name)][h.query].append(format_hit(h))
        # tables
        idx = pd.Index(seqs, name='seq')
        overview = collections.OrderedDict()
        full = collections.OrderedDict()
        for ref in self.refs:
            mode = self.report_mode.mode_for(ref)
            for k in range(self.mismatches + 1):
                d = cells.get((k, ref), {})
                descs = [d.get(s, []) for s in seqs]
                if mode == 'full':
                    ref_hits = ['|'.join(i) if i else None for i in descs]
                else:
                    ref_hits = ['mis{}'.format(k) if i else None for i in descs]
                full[(k, ref)] = pd.DataFrame({
                    'n_hits': [len(i) for i in descs],
                    'ref_hits': ref_hits}, index=idx)
                overview['mis{}_{}'.format(k, ref)] = [
                    self.format_cell(i, k, mode) for i in descs]
        overview = pd.DataFrame(overview, index=idx)
        reanno = Reanno(overview, full, df, warnings, self.mismatches,
            self.refs, self.report_mode)
        reanno.check(seqs)
        n_hit = (overview != 'no hit').any(axis=1).sum()
        log.info('reanno: {} of {} sequences with hits'.format(n_hit, len(seqs)))
        return reanno
