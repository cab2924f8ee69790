# -*- coding: utf-8 -*-

"""
Parse the bowtie output (default format)

tab-separated fields:
1. query-id
2. strand, +/-
3. reference-id (the first word of the fasta header)
4. offset, 0-based
5. matched sequence (reverse-complemented for -)
6. qualities
7. number of other hits
8. mismatch descriptors, eg: 3:A>G,10:C>T (empty for perfect hits)

Columns 5-8 are optional, for the variants of output (eg: --suppress).
If the mismatch descriptors are missing, the mismatch level of the job is used.

>>> r = BowtieReport('reanno/trna/mis1.txt', ref_name='trna', mismatches=1)
>>> res = r.read()
>>> res.hits[0]
AlignmentHit(query='ACGT...', ref_name='trna', ref_id='tRNA-Gly', mismatches=1,
    start=12, strand='+')
"""

import re
import collections
import pandas as pd
from xopen import xopen
from pacseq.utils.utils import log
from pacseq.utils.file import check_file


AlignmentHit = collections.namedtuple('AlignmentHit',
    ['query', 'ref_name', 'ref_id', 'mismatches', 'start', 'strand'])


ParseResult = collections.namedtuple('ParseResult',
    ['ref_name', 'mismatches', 'hits', 'n_lines', 'n_skipped', 'warnings'])


MISMATCH_DESC = re.compile(r'^\d+:[A-Za-z.]>[A-Za-z.]$')


def parse_mismatch_desc(x):
    """Number of mismatches in descriptors
    '' : 0
    '3:A>G,10:C>T' : 2
    return None, if not valid
    """
    x = x.strip()
    if x == '':
        return 0
    items = x.split(',')
    if all([MISMATCH_DESC.match(i.strip()) for i in items]):
        return len(items)
    return None


def parse_line(line, ref_name, mismatches):
    """Parse one line of bowtie output
    return AlignmentHit, or None for malformed line
    """
    fields = line.rstrip('\r\n').split('\t')
    if len(fields) < 4:
        return None
    query, strand, ref_id, offset = [i.strip() for i in fields[:4]]
    if len(query) == 0 or len(ref_id) == 0 or strand not in ['+', '-']:
        return None
    try:
        offset = int(offset)
    except ValueError:
        return None
    if offset < 0:
        return None
    # mismatch descriptors
    mm = None
    if len(fields) >= 8:
        mm = parse_mismatch_desc(fields[7])
        if mm is None:
            return None
    elif len(fields) > 4 and ':' in fields[-1]:
        mm = parse_mismatch_desc(fields[-1])
        if mm is None:
            return None
    if mm is None:
        mm = mismatches
    elif mm > mismatches:
        return None # not possible for -v mismatches
    return AlignmentHit(
        query=query.split()[0],
        ref_name=ref_name,
        ref_id=ref_id.split()[0],
        mismatches=mm,
        start=offset + 1, # 1-based
        strand=strand)


def format_hit(hit):
    """The full descriptor of the hit
    ref_id;start=N;strand
    """
    return '{};start={};{}'.format(hit.ref_id, hit.start, hit.strand)


def format_hits(hits, mode='full'):
    """Descriptor for the hits of one sequence
    minimum : mis{k}
    full : joined by '|'
    """
    if len(hits) == 0:
        return None
    if mode == 'minimum':
        return 'mis{}'.format(min([h.mismatches for h in hits]))
    return '|'.join([format_hit(h) for h in hits])


def hits_to_frame(hits):
    return pd.DataFrame(list(hits), columns=AlignmentHit._fields)


class BowtieReport(object):
    """Read the bowtie output of one job, (reference, mismatches)

    Parameters
    ----------
    x : str
        Path to the output file

    ref_name : str
        Name of the reference

    mismatches : int
        The mismatch level of the job
    """
    def __init__(self, x, ref_name, mismatches):
        self.x = x
        self.ref_name = ref_name
        self.mismatches = mismatches


    def read(self):
        """Parse all lines, skip malformed lines"""
        if not check_file(self.x):
            raise FileNotFoundError('bowtie output not exists: {}'.format(
                self.x))
        hits = []
        n_lines = 0
        n_skipped = 0
        bad = []
        with xopen(self.x, 'rt') as r:
            for line in r:
                if not line.strip():
                    continue
                n_lines += 1
                hit = parse_line(line, self.ref_name, self.mismatches)
                if hit is None:
                    n_skipped += 1
                    if len(bad) < 3:
                        bad.append(line.strip()[:80])
                    continue
                hits.append(hit)
        warnings = []
        if n_skipped > 0:
            msg = '[{}, mis{}] {} malformed line(s) skipped in {}, eg: {}'.format(
                self.ref_name, self.mismatches, n_skipped, self.x,
                ' ; '.join(bad))
            log.warning(msg)
            warnings.append(msg)
        return ParseResult(self.ref_name, self.mismatches, hits, n_lines,
            n_skipped, warnings)
