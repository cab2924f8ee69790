# -*- coding: utf-8 -*-

"""
Report mode, for the hits in reanno tables

minimum : mismatch level only, eg: mis0
full : ref_id;start=N;strand, multiple hits joined by '|'

Some references, eg: genome, repeats, could report too many hits per sequence,
use `reduce` to force them in minimum mode.

>>> mode = ReportMode.from_args('full', reduce=['genome'])
>>> mode.mode_for('genome')
'minimum'
>>> mode.mode_for('trna')
'full'
"""


class ReportMode(object):
    """The report mode, for each reference"""
    name = None

    def mode_for(self, ref_name):
        raise NotImplementedError


    def is_full(self, ref_name):
        return self.mode_for(ref_name) == 'full'


    def __repr__(self):
        return '{}()'.format(self.__class__.__name__)


    @staticmethod
    def from_args(report='minimum', reduce=None):
        """
        report : str
            minimum, full

        reduce : None, str or list
            reference names, forced in minimum mode
        """
        if isinstance(report, ReportMode):
            return report
        if report not in ['minimum', 'full']:
            raise ValueError('report, expect minimum|full, got {}'.format(
                report))
        if isinstance(reduce, str):
            reduce = [reduce]
        if report == 'minimum':
            out = Minimal()
        elif reduce:
            out = FullExceptFor(reduce)
        else:
            out = Full()
        return out


class Minimal(ReportMode):
    name = 'minimum'

    def mode_for(self, ref_name):
        return 'minimum'


class Full(ReportMode):
    name = 'full'

    def mode_for(self, ref_name):
        return 'full'


class FullExceptFor(ReportMode):
    """Full mode, except for the references in `names`"""
    name = 'full'

    def __init__(self, names):
        self.names = set(names)


    def mode_for(self, ref_name):
        return 'minimum' if ref_name in self.names else 'full'


    def __repr__(self):
        return 'FullExceptFor({})'.format(sorted(self.names))
