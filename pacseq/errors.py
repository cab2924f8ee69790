# -*- coding: utf-8 -*-

"""
Errors and warnings

FormatError : PAC tables do not share the same rows/columns
IndexBuildError : bowtie-build failed
JobError : a single alignment job failed (soft or hard)
StructuralError : the reanno tables do not follow the PAC rows
AlignmentError : one or more alignment jobs failed hard
ChromosomeMismatchWarning : chromosome names differ between genome and gtf
"""


def _show_keys(keys, n=5):
    keys = [str(i) for i in keys]
    out = ', '.join(keys[:n])
    if len(keys) > n:
        out += ', ... ({} in total)'.format(len(keys))
    return out


class FormatError(ValueError):
    """Rows/columns of the PAC tables are not identical

    keys : the mismatched row/column names
    """
    def __init__(self, msg, keys=None):
        self.keys = list(keys) if keys is not None else []
        if self.keys:
            msg = '{}: {}'.format(msg, _show_keys(self.keys))
        super().__init__(msg)


class IndexBuildError(RuntimeError):
    """Failed to build the bowtie index"""
    def __init__(self, ref_name, msg=''):
        self.ref_name = ref_name
        super().__init__('failed to build index for reference: {}{}'.format(
            ref_name, ', ' + msg if msg else ''))


class JobError(RuntimeError):
    """A single alignment job failed

    hard : bool
        True, if the job could not run (missing aligner, bad reference, ...)
        False, if the job run, but the output was empty or malformed
    """
    def __init__(self, ref_name, mismatches, msg, hard=False):
        self.ref_name = ref_name
        self.mismatches = mismatches
        self.hard = hard
        super().__init__('[{}, mis{}] {}'.format(ref_name, mismatches, msg))


class StructuralError(RuntimeError):
    """The reanno tables are not in the same order as the PAC rows"""
    def __init__(self, msg, keys=None):
        self.keys = list(keys) if keys is not None else []
        if self.keys:
            msg = '{}: {}'.format(msg, _show_keys(self.keys))
        super().__init__(msg)


class AlignmentError(RuntimeError):
    """One or more alignment jobs failed

    errors : list of IndexBuildError, JobError
    """
    def __init__(self, errors):
        self.errors = list(errors)
        msg = '\n'.join(['{} alignment job(s) failed:'.format(
            len(self.errors))] + ['  ' + str(e) for e in self.errors])
        super().__init__(msg)


class ChromosomeMismatchWarning(UserWarning):
    """Chromosome names in genome alignments and gtf are different"""
    pass
