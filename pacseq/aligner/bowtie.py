#!/usr/bin/env python3

"""
Align reads to index, using bowtie

Basic usage:

1. build index
bowtie-build ref.fa ref > ref.log 2>&1

2. align, report all hits, with exactly k mismatches (-v k)
bowtie -f -a -v k -p 1 -x ref query.fa out.txt 2> out.log

The output (default format), tab-separated:
query-id, strand, ref-id, offset (0-based), sequence, qualities,
other-hits, mismatch-descriptors
"""

import os
import shutil
from pacseq.errors import IndexBuildError, JobError
from pacseq.utils.utils import log, update_obj, run_shell_cmd
from pacseq.utils.file import check_file, check_path
from pacseq.aligner.aligner_index import AlignIndex


def parse_bowtie(x):
    """Wrapper bowtie log
    Bowtie:
    # reads processed: 10000
    # reads with at least one alignment: 3332 (33.32%)
    # reads that failed to align: 457 (4.57%)
    Reported 3332 alignments

    total map unmap
    """
    total = 0
    mapped = 0
    unmapped = 0
    out = 0
    if check_file(x, check_empty=True):
        with open(x) as r:
            for line in r:
                if line.startswith('Reported'):
                    out = int(line.split()[1])
                    continue
                if not line.startswith('#') or ':' not in line:
                    continue
                num = line.strip().split(':')[1]
                value = int(num.strip().split(' ')[0])
                if 'reads processed' in line:
                    total = value
                elif 'reads with at least one' in line:
                    mapped = value
                elif 'reads that failed to' in line:
                    unmapped = value
    return {
        'total': total,
        'map': mapped,
        'unmap': unmapped,
        'alignments': out,
        }


class Bowtie(object):
    """Alignment, using Bowtie
    The aligner port for MapReanno(), PacMapper()

    build_index() : bowtie-build
    align() : bowtie, all hits, -v mismatches

    Any object with the same methods could be used instead, eg:
    a fake aligner for testing.
    """
    def __init__(self, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.init_args()


    def init_args(self):
        args_init = {
            'bowtie': 'bowtie',
            'bowtie_build': 'bowtie-build',
            'extra_para': None,
        }
        self = update_obj(self, args_init, force=False)


    def which(self, x):
        return shutil.which(x)


    def is_available(self):
        return self.which(self.bowtie) is not None and \
            self.which(self.bowtie_build) is not None


    def is_index(self, index):
        return AlignIndex(index).is_valid()


    def search_index(self, fasta):
        """The index next to the fasta file, or None"""
        return AlignIndex().search(fasta)


    def build_index(self, fasta, prefix, log_file=None, ref_name=None):
        """Build index for fasta
        return the prefix
        """
        ref_name = ref_name or os.path.basename(prefix)
        exe = self.which(self.bowtie_build)
        if exe is None:
            raise IndexBuildError(ref_name,
                'command not found: {}'.format(self.bowtie_build))
        if not check_file(fasta, check_empty=True):
            raise IndexBuildError(ref_name,
                'fasta not exists, or empty: {}'.format(fasta))
        check_path(os.path.dirname(prefix))
        if log_file is None:
            log_file = prefix + '.build.log'
        cmd = ' '.join([
            exe,
            fasta,
            prefix,
            '> {} 2>&1'.format(log_file),
        ])
        with open(prefix + '.cmd.sh', 'wt') as w:
            w.write(cmd + '\n')
        rc, _, _ = run_shell_cmd(cmd)
        if rc != 0:
            raise IndexBuildError(ref_name,
                'bowtie-build exit {}, check {}'.format(rc, log_file))
        if not self.is_index(prefix):
            raise IndexBuildError(ref_name,
                'index files missing: {}'.format(prefix))
        log.info('index built: {}'.format(prefix))
        return prefix


    def align(self, index, query, mismatches, out_file, threads=1,
        log_file=None, ref_name=None):
        """Align query (fasta) to index, report all hits
        -a : all hits
        -v : mismatches
        both strands
        """
        ref_name = ref_name or os.path.basename(index)
        exe = self.which(self.bowtie)
        if exe is None:
            raise JobError(ref_name, mismatches,
                'command not found: {}'.format(self.bowtie), hard=True)
        if not self.is_index(index):
            raise JobError(ref_name, mismatches,
                'index not valid: {}'.format(index), hard=True)
        if log_file is None:
            log_file = os.path.splitext(out_file)[0] + '.log'
        args_extra = self.extra_para if self.extra_para else ''
        cmd = ' '.join([
            exe,
            '-f -a',
            '-v {}'.format(mismatches),
            '-p {}'.format(threads),
            args_extra,
            '-x {}'.format(index),
            query,
            out_file,
            '2> {}'.format(log_file),
        ])
        with open(os.path.splitext(out_file)[0] + '.cmd.sh', 'wt') as w:
            w.write(cmd + '\n')
        rc, _, _ = run_shell_cmd(cmd)
        if rc != 0:
            raise JobError(ref_name, mismatches,
                'bowtie exit {}, check {}'.format(rc, log_file), hard=True)
        return parse_bowtie(log_file)
