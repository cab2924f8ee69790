#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""This is the main script for regular usage,
call sub-commands

pacseq reanno : map sequences to references, add biotypes to PAC
pacseq mapper : map sequences to a small reference
pacseq gtf    : annotate the genome coordinates by gtf
"""

import os
import sys
import argparse
from pacseq.utils.argsParser import add_reanno_args, add_mapper_args, \
    add_gtf_args, parse_pairs, parse_hierarchy
from pacseq.utils.utils import log, Config, init_cpu
from pacseq.utils.file import check_path
from pacseq.aligner.bowtie import Bowtie
from pacseq.pac.pac import PAC
from pacseq.reanno.map_reanno import MapReanno
from pacseq.reanno.reanno import MakeReanno
from pacseq.reanno.anno import SimplifyReanno
from pacseq.mapper.mapper import PacMapper
from pacseq.gtf.gtf import PacGtf


def parse_args(parser, argv, required=None):
    """Parse the arguments, with defaults from --config
    required : list, the arguments required (after --config)
    """
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument('--config', default=None)
    known, _ = pre.parse_known_args(argv)
    if known.config:
        cfg = Config().load(known.config) or {}
        dests = list(vars(parser.parse_args([])))
        unknown = [k for k in cfg if k not in dests]
        if unknown:
            log.warning('unknown arguments in config, ignored: {}'.format(
                ', '.join(unknown)))
        parser.set_defaults(**{k: v for k, v in cfg.items() if k in dests})
    args = vars(parser.parse_args(argv))
    missing = [k for k in required or [] if args.get(k) is None]
    if missing:
        parser.error('the following arguments are required: {}'.format(
            ', '.join(missing)))
    args.pop('config', None)
    return args


class Pacseq(object):
    """The 1st-level of command, choose which sub-command to use
    reanno, mapper, gtf
    """
    def __init__(self, argv=None):
        self.argv = sys.argv[1:] if argv is None else argv
        parser = argparse.ArgumentParser(
            prog = 'pacseq',
            description = 'Reannotation of small RNA sequences in PAC',
            epilog = '',
            usage = """ pacseq <command> [<args>]

    The sub-commands are:

        reanno       Map sequences to references, add biotypes to PAC
        mapper       Map sequences to a small reference, eg: tRNA
        gtf          Annotate genome coordinates by gtf
    """
        )
        parser.add_argument('command', help='Subcommand to run')
        args = parser.parse_args(self.argv[:1])
        if not hasattr(self, args.command) or args.command.startswith('_'):
            print('Unrecognized command')
            parser.print_help()
            sys.exit(1)
        # use dispatch pattern to invoke method with same name
        getattr(self, args.command)()


    def reanno(self):
        """
        Reannotation, map_reanno + make_reanno + simplify_reanno
        """
        parser = add_reanno_args()
        args = parse_args(parser, self.argv[1:],
            ['pac', 'outdir', 'ref_paths', 'hierarchy'])
        threads, _ = init_cpu(args['threads'])
        max_hits = args['max_hits']
        if str(max_hits) != 'all':
            max_hits = int(max_hits)
        pac = PAC.load(args['pac'])
        outdir = args['outdir']
        MapReanno(pac=pac, ref_paths=parse_pairs(args['ref_paths']),
            outdir=outdir, mismatches=args['mismatches'], threads=threads,
            keep_temp=args['keep_temp'], override=args['override'],
            aligner=Bowtie(bowtie=args['bowtie'],
                bowtie_build=args['bowtie'] + '-build')).run()
        reanno = MakeReanno(outdir=outdir, pac=pac,
            mismatches=args['mismatches'], report=args['report'],
            reduce=args['reduce'], max_hits=max_hits).run()
        reanno.save(os.path.join(outdir, 'summary'))
        SimplifyReanno(reanno=reanno,
            hierarchy=parse_hierarchy(args['hierarchy']),
            mismatches=args['mismatches'], bio_name=args['bio_name'],
            perfect=args['perfect'], pac=pac, merge_pac=True).run()
        if args['merge_overview']:
            pac.add_anno(reanno.overview)
        pac.save(os.path.join(outdir, 'pac'))
        for w in reanno.warnings:
            log.warning(w)


    def mapper(self):
        """
        Map sequences to a small reference
        """
        parser = add_mapper_args()
        args = parse_args(parser, self.argv[1:], ['pac', 'ref', 'outdir'])
        threads, _ = init_cpu(args['threads'])
        pac = PAC.load(args['pac'])
        m = PacMapper(pac=pac, ref=args['ref'], mismatches=args['mismatches'],
            multi=args['multi'], threads=threads, N_up=args['N_up'],
            N_down=args['N_down'], report_string=args['report_string'],
            aligner=Bowtie(bowtie=args['bowtie'],
                bowtie_build=args['bowtie'] + '-build'))
        res = m.run()
        outdir = args['outdir']
        check_path(outdir)
        for ref_id, v in res.items():
            v['Alignments'].to_csv(os.path.join(outdir,
                ref_id.replace(os.sep, '_') + '.csv'), index_label='seq')
        args['warnings'] = m.warnings
        Config().dump(args, os.path.join(outdir, 'mapper.toml'))
        log.info('mapper saved to: {}'.format(outdir))


    def gtf(self):
        """
        Annotate genome coordinates by gtf
        """
        parser = add_gtf_args()
        args = parse_args(parser, self.argv[1:], ['pac', 'gtf', 'out'])
        pac = PAC.load(args['pac'])
        targets = parse_hierarchy(args['targets'] or {})
        out = PacGtf(pac=pac, genome=args['genome'],
            gtf=parse_pairs(args['gtf']), targets=targets,
            mismatches=args['mismatches'], stranded=args['stranded'],
            return_type=args['return_type']).run()
        if args['return_type'] == 'merge':
            out.save(args['out'])
        else:
            check_path(os.path.dirname(os.path.abspath(args['out'])))
            out.to_csv(args['out'], index_label='seq')
            log.info('saved to: {}'.format(args['out']))


def main():
    Pacseq()


if __name__ == '__main__':
    main()
