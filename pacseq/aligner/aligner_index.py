#!/usr/bin/env python3

"""For aligner index
1. search/fetch index
2. validate index
"""

import os
from pacseq.utils.file import check_file, file_prefix


class AlignIndex(object):
    """Validate the index for bowtie

    functions:
    1. is_valid()
    2. search()

    Parameters
    ----------
    index : str
        Path to the index (prefix) for bowtie

    >>> AlignIndex(x).is_valid()
    >>> AlignIndex().search('ref/tRNA.fa')
    """
    def __init__(self, index=None):
        self.index = index


    def is_bowtie_index(self, index=None):
        """The index is for bowtie
        check the files
        .[1234].ebwt, .rev.[12].ebwt
        or large index: .ebwtl
        """
        if index is None:
            index = self.index
        out = False
        if isinstance(index, str):
            for ext in ['.ebwt', '.ebwtl']:
                f_list = [index + '.' + i + ext for i in [
                    '1', '2', '3', '4', 'rev.1', 'rev.2']]
                if check_file(f_list, check_empty=True):
                    out = True
                    break
        return out


    def is_valid(self, index=None):
        """The input index is valid"""
        return self.is_bowtie_index(index)


    def search(self, fa):
        """Search the index, next to the fasta file
        ref/tRNA.fa -> ref/tRNA.*.ebwt, ref/tRNA.fa.*.ebwt
        """
        if not isinstance(fa, str):
            return None
        fa_dir = os.path.dirname(os.path.abspath(fa))
        candidates = [
            os.path.join(fa_dir, file_prefix(fa)),
            os.path.abspath(fa),
            os.path.join(fa_dir, os.path.basename(fa).split('.')[0]),
        ]
        out = None
        for i in candidates:
            if self.is_valid(i):
                out = i
                break
        return out
