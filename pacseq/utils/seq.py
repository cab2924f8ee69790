# -*- coding: utf-8 -*-

"""
Functions for sequence, fasta

read_fasta : fasta file to dict
write_fasta : dict to fasta file
revcomp : reverse complement
"""

import os
import re
import collections
import pyfastx
from xopen import xopen
from pacseq.utils.utils import log
from pacseq.utils.file import check_file, check_path


def revcomp(s):
    """Reverse complement of DNA sequence
    N, and IUPAC codes are kept
    """
    base_from = 'ACGTNacgtnRYKMrykm'
    base_to = 'TGCANtgcanYRMKyrmk'
    tab = str.maketrans(base_from, base_to)
    return s.translate(tab)[::-1]


def is_dna(s, wildcard=True):
    """Check the sequence only contains ACGT(N)"""
    p = '^[ACGTN]+$' if wildcard else '^[ACGT]+$'
    return isinstance(s, str) and re.match(p, s, re.IGNORECASE) is not None


def read_fasta(x):
    """Read fasta file, by pyfastx
    return OrderedDict: {name: seq}

    name: the first word of the header
    """
    if not check_file(x, check_empty=True):
        raise FileNotFoundError('fasta file not exists, or empty: {}'.format(x))
    out = collections.OrderedDict()
    for name, seq in pyfastx.Fastx(x):
        name = name.split()[0]
        if name in out:
            log.warning('duplicate fasta name, keep the first one: {}'.format(
                name))
            continue
        out[name] = seq.upper()
    return out


def write_fasta(d, x, width=0):
    """Write dict to fasta file
    d : dict, {name: seq}
    width : int, 0 for single line
    """
    check_path(os.path.dirname(os.path.abspath(x)))
    with xopen(x, 'wt') as w:
        for name, seq in d.items():
            if width > 0:
                seq = '\n'.join([seq[i:i+width] for i in range(0, len(seq), width)])
            w.write('>{}\n{}\n'.format(name, seq))
    return x
