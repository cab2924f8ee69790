#!/usr/bin/env python3
# -*- coding:utf-8 -*-

"""
Map the PAC sequences to the references, by bowtie

For each reference, for each mismatch level (0..mismatches), run one job:

outdir/
  |- config.toml
  |- map_reanno.toml
  |- query/query.fa
  |- {ref_name}/
       |- index/{ref_name}.*.ebwt   (if built)
       |- mis0.txt, mis0.log, mis0.toml
       |- mis1.txt, mis1.log, mis1.toml
       |- ...

The mis{k}.txt files are imported by MakeReanno(), keep them in place.

Example:
>>> MapReanno(pac=pac, ref_paths={'trna': 'ref/tRNA.fa'}, outdir='reanno',
        mismatches=3, threads=4).run()
"""

import os
import pathlib
import collections
from multiprocessing.pool import ThreadPool
from pacseq.errors import IndexBuildError, JobError, AlignmentError
from pacseq.pac.pac import PAC
from pacseq.aligner.bowtie import Bowtie
from pacseq.utils.utils import log, update_obj, Config, get_date
from pacseq.utils.file import check_file, check_path, file_abspath, \
    list_dir, list_file, remove_file, remove_path
from pacseq.utils.seq import read_fasta, write_fasta


JobResult = collections.namedtuple('JobResult',
    ['ref_name', 'mismatches', 'out_file', 'ok', 'error', 'stat'])


class ReferenceSet(object):
    """The reference for alignment

    Parameters
    ----------
    name : str
        Name of the reference, used in the column names: mis0_{name}

    fasta : str
        Path to the fasta file

    sequences : dict
        {ref_id: sequence}, in memory reference

    index : str
        Path to the bowtie index (prefix), build index if None
    """
    def __init__(self, name, fasta=None, sequences=None, index=None):
        if not isinstance(name, str) or len(name) == 0 or os.sep in name \
            or name in ['query', 'summary', 'pac']:
            raise ValueError('illegal reference name: {}'.format(name))
        self.name = name
        self.fasta = file_abspath(fasta) if isinstance(fasta, str) else None
        self.sequences = sequences
        self.index = index


    def __repr__(self):
        return 'ReferenceSet(name={}, fasta={}, index={})'.format(
            self.name, self.fasta, self.index)


    def get_sequences(self):
        if self.sequences is None:
            self.sequences = read_fasta(self.fasta)
        return self.sequences


def init_references(ref_paths, aligner):
    """Convert ref_paths to list of ReferenceSet
    ref_paths : dict
        {name: fasta|index|dict|ReferenceSet}
    """
    if not isinstance(ref_paths, dict) or len(ref_paths) == 0:
        raise ValueError('ref_paths, expect dict {{name: fasta}}, got: {}'.format(
            ref_paths))
    out = []
    for name, x in ref_paths.items():
        if isinstance(x, ReferenceSet):
            rs = x
        elif isinstance(x, dict):
            rs = ReferenceSet(name, sequences=x)
        elif isinstance(x, str):
            if aligner.is_index(x):
                rs = ReferenceSet(name, index=x)
            else:
                rs = ReferenceSet(name, fasta=x, index=aligner.search_index(x))
        else:
            raise ValueError('unknown reference for {}: {}'.format(name, x))
        out.append(rs)
    return out


class MapReanno(object):
    """Map sequences to multiple references, with mismatches 0..n

    Parameters
    ----------
    pac : PAC
        The PAC object

    ref_paths : dict
        {name: fasta}, see init_references()

    outdir : str
        The directory saving the bowtie output, should be empty

    mismatches : int
        The max number of mismatches, run jobs for 0..mismatches

    threads : int
        Number of jobs run in parallel

    keep_temp : bool
        Keep the query fasta, logs, index, ...

    override : bool
        Clear the outdir, if not empty

    aligner : object
        with methods: is_index(), search_index(), build_index(), align(),
        default: Bowtie()
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'pac': None,
            'ref_paths': None,
            'outdir': None,
            'mismatches': 3,
            'threads': 1,
            'keep_temp': False,
            'override': False,
            'aligner': None,
        }
        self = update_obj(self, args_init, force=False)
        if not isinstance(self.pac, PAC):
            raise ValueError('pac, expect PAC, got {}'.format(
                type(self.pac).__name__))
        if not isinstance(self.mismatches, int) or self.mismatches < 0:
            raise ValueError('mismatches, expect int >= 0, got {}'.format(
                self.mismatches))
        self.threads = max(1, int(self.threads))
        if self.aligner is None:
            self.aligner = Bowtie()
        if not isinstance(self.outdir, str) or not self.outdir:
            raise ValueError('outdir required, expect str, got {}'.format(
                self.outdir))
        self.outdir = file_abspath(self.outdir)
        self.refs = init_references(self.ref_paths, self.aligner)


    def init_outdir(self):
        """The outdir should be empty, to avoid mixing old and new files"""
        f_list = list_dir(self.outdir, include_dir=True)
        if len(f_list) > 0:
            if self.override:
                log.warning('override=True, remove files in: {}'.format(
                    self.outdir))
                remove_path(self.outdir)
            else:
                raise FileExistsError(
                    'outdir not empty, set override=True or choose another '
                    'directory: {}, found: {}'.format(self.outdir,
                    ', '.join([os.path.basename(i) for i in f_list[:5]])))
        check_path(self.outdir)


    def init_files(self):
        self.query_dir = os.path.join(self.outdir, 'query')
        self.query_fa = os.path.join(self.query_dir, 'query.fa')
        self.config_toml = os.path.join(self.outdir, 'config.toml')
        self.stat_toml = os.path.join(self.outdir, 'map_reanno.toml')
        check_path(self.query_dir)
        for rs in self.refs:
            check_path(self.ref_dir(rs.name))


    def ref_dir(self, ref_name):
        return os.path.join(self.outdir, ref_name)


    def job_file(self, ref_name, mismatches, ext='.txt'):
        return os.path.join(self.ref_dir(ref_name),
            'mis{}{}'.format(mismatches, ext))


    def prepare_index(self, rs):
        """Use the exists index, or build index for the reference
        return (rs, error)
        """
        if isinstance(rs.index, str) and self.aligner.is_index(rs.index):
            log.info('[{}] use index: {}'.format(rs.name, rs.index))
            return (rs, None)
        index_dir = os.path.join(self.ref_dir(rs.name), 'index')
        check_path(index_dir)
        try:
            if rs.fasta is not None and rs.sequences is None:
                if not check_file(rs.fasta, check_empty=True):
                    raise IndexBuildError(rs.name,
                        'fasta not exists, or empty: {}'.format(rs.fasta))
                fasta = rs.fasta
            else:
                fasta = os.path.join(index_dir, rs.name + '.fa')
                write_fasta(rs.get_sequences(), fasta)
            log.info('[{}] no index found, build index ...'.format(rs.name))
            rs.index = self.aligner.build_index(fasta,
                os.path.join(index_dir, rs.name),
                log_file=os.path.join(index_dir, 'build.log'),
                ref_name=rs.name)
            rs.index_built = True
        except IndexBuildError as e:
            log.error(str(e))
            return (rs, e)
        except OSError as e:
            err = IndexBuildError(rs.name, str(e))
            log.error(str(err))
            return (rs, err)
        return (rs, None)


    def run_job(self, job):
        """Run single job: (ReferenceSet, mismatches, threads)"""
        rs, mm, job_threads = job
        out_file = self.job_file(rs.name, mm)
        log_file = self.job_file(rs.name, mm, '.log')
        stat = {}
        error = None
        try:
            stat = self.aligner.align(rs.index, self.query_fa, mm, out_file,
                threads=job_threads, log_file=log_file, ref_name=rs.name) or {}
        except JobError as e:
            error = e
        except OSError as e:
            error = JobError(rs.name, mm, str(e), hard=True)
        if error is None and not check_file(out_file):
            # no hits, make sure the file exists
            pathlib.Path(out_file).touch()
            error = JobError(rs.name, mm, 'no output found, {}'.format(
                out_file), hard=False)
        ok = error is None or not error.hard
        if error is not None:
            if error.hard:
                log.error(str(error))
            else:
                log.warning(str(error))
        Config().dump({
            'ref_name': rs.name,
            'index': rs.index,
            'mismatches': mm,
            'out_file': out_file,
            'ok': ok,
            'error': str(error) if error else '',
            'stat': stat,
            'date': get_date(),
        }, self.job_file(rs.name, mm, '.toml'))
        return JobResult(rs.name, mm, out_file, ok, error, stat)


    def clean_temp(self):
        """Remove the temp files, keep mis*.txt, mis*.toml"""
        remove_path(self.query_dir)
        for rs in self.refs:
            if getattr(rs, 'index_built', False):
                remove_path(os.path.join(self.ref_dir(rs.name), 'index'))
            for ext in ['*.log', '*.cmd.sh']:
                remove_file(list_file(self.ref_dir(rs.name), ext))


    def run(self):
        self.init_outdir()
        self.init_files()
        Config().dump({
            'outdir': self.outdir,
            'mismatches': self.mismatches,
            'threads': self.threads,
            'keep_temp': self.keep_temp,
            'n_seqs': len(self.pac),
            'ref_paths': {rs.name: rs.fasta or rs.index or 'in-memory'
                for rs in self.refs},
        }, self.config_toml)
        self.pac.write_fasta(self.query_fa)
        log.info('MapReanno: {} sequences, {} references, mismatches 0-{}'.format(
            len(self.pac), len(self.refs), self.mismatches))
        # indexes
        n_pool = min(self.threads, len(self.refs))
        with ThreadPool(processes=n_pool) as pool:
            index_res = pool.map(self.prepare_index, self.refs)
        errors = [e for _, e in index_res if e is not None]
        refs_ok = [rs for rs, e in index_res if e is None]
        # jobs
        jobs = [(rs, mm) for rs in refs_ok for mm in range(self.mismatches + 1)]
        results = []
        if len(jobs) > 0:
            n_pool = min(self.threads, len(jobs))
            job_threads = max(1, self.threads // len(jobs))
            with ThreadPool(processes=n_pool) as pool:
                results = pool.map(self.run_job,
                    [(rs, mm, job_threads) for rs, mm in jobs])
        errors += [r.error for r in results if not r.ok]
        self.results = sorted(results, key=lambda r: (r.ref_name, r.mismatches))
        self.warnings = [str(r.error) for r in self.results
            if r.ok and r.error is not None]
        Config().dump({
            'jobs': {'{}_mis{}'.format(r.ref_name, r.mismatches):
                {'ok': r.ok, 'error': str(r.error) if r.error else ''}
                for r in self.results},
            'errors': [str(e) for e in errors],
        }, self.stat_toml)
        if not self.keep_temp:
            self.clean_temp()
        if len(errors) > 0:
            raise AlignmentError(errors)
        log.info('MapReanno finished: {}'.format(self.outdir))
        return self.results
