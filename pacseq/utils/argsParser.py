# -*- coding: utf-8 -*-


"""
Parse arguments from command line

- reanno
- mapper
- gtf

"""

import argparse
import collections


def parse_pairs(x, sep='='):
    """name=value, to OrderedDict
    ['trna=ref/tRNA.fa', 'rrna=ref/rRNA.fa']
    """
    out = collections.OrderedDict()
    if isinstance(x, dict):
        return x
    for i in x or []:
        if sep not in i:
            raise argparse.ArgumentTypeError(
                'expect name{}value, got: {}'.format(sep, i))
        k, v = i.split(sep, 1)
        out[k.strip()] = v.strip()
    return out


def parse_hierarchy(x):
    """label=regex1,regex2, to OrderedDict
    ['tRNA=trna', 'miRNA=miRNA,MIR']
    """
    if isinstance(x, dict):
        return collections.OrderedDict([(k, v if isinstance(v, list) else [v])
            for k, v in x.items()])
    return collections.OrderedDict([(k, [i for i in v.split(',') if i])
        for k, v in parse_pairs(x).items()])


def add_config_arg(parser):
    parser.add_argument('--config', dest='config', default=None,
        help='config file (toml, yaml, json), values used as the defaults, \
        overridden by the command line')
    return parser


def add_reanno_args():
    """
    Reannotation: map sequences to references, summarize the hits,
    and add the biotypes to PAC
    """
    parser = argparse.ArgumentParser(
        prog='pacseq reanno',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='pacseq reanno',
        epilog='''Description:
Map the PAC sequences to references by bowtie, 0..mismatches, and add the
biotypes to PAC Anno, by the regex hierarchy.

Output:
outdir/{ref}/mis{k}.txt  : bowtie output
outdir/summary/          : reanno tables
outdir/pac/              : PAC with the new annotation

Example:
pacseq reanno -i pac -o reanno -r trna=ref/tRNA.fa rrna=ref/rRNA.fa \\
  -s tRNA=trna rRNA=rrna -m 3 -p 4'''
    )
    parser.add_argument('-i', '--pac', dest='pac', default=None,
        help='directory of the saved PAC')
    parser.add_argument('-o', '--outdir', dest='outdir', default=None,
        help='directory to save the results, should be empty')
    parser.add_argument('-r', '--ref', dest='ref_paths', nargs='+',
        default=None, help='references, name=fasta, eg: trna=ref/tRNA.fa')
    parser.add_argument('-s', '--hierarchy', dest='hierarchy', nargs='+',
        default=None,
        help='biotype search groups, label=regex1,regex2, eg: miRNA=miRNA,MIR')
    parser.add_argument('-m', '--mismatches', dest='mismatches', type=int,
        default=3, help='max number of mismatches, default: [3]')
    parser.add_argument('-p', '--threads', dest='threads', type=int,
        default=1, help='number of threads, default: [1]')
    parser.add_argument('--report', choices=['minimum', 'full'],
        default='minimum', help='report mode, default: [minimum]')
    parser.add_argument('--reduce', nargs='+', default=None,
        help='references reported in minimum mode, for --report full')
    parser.add_argument('--max-hits', dest='max_hits', default='10',
        help='max hits per sequence in full mode, or "all", default: [10]')
    parser.add_argument('--bio-name', dest='bio_name', default='Biotypes',
        help='prefix of the biotype columns, default: [Biotypes]')
    parser.add_argument('--perfect', action='store_true',
        help='only the perfect hits used for biotypes')
    parser.add_argument('--merge-overview', dest='merge_overview',
        action='store_true',
        help='add the overview columns (mis0_{ref}, ...) to PAC Anno')
    parser.add_argument('--bowtie', default='bowtie',
        help='the bowtie command, default: [bowtie]')
    parser.add_argument('--keep-temp', dest='keep_temp', action='store_true',
        help='keep the temp files: query fasta, index, logs')
    parser.add_argument('--override', action='store_true',
        help='clear the outdir, if not empty')
    add_config_arg(parser)
    return parser


def add_mapper_args():
    """
    Map sequences to a small reference
    """
    parser = argparse.ArgumentParser(
        prog='pacseq mapper',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='pacseq mapper',
        epilog='''Output:
outdir/{ref_id}.csv : alignments for each reference entry
outdir/mapper.toml  : arguments and warnings

Example:
pacseq mapper -i pac -r ref/tRNA.fa -o mapper --N-up NNN --N-down NNN'''
    )
    parser.add_argument('-i', '--pac', dest='pac', default=None,
        help='directory of the saved PAC')
    parser.add_argument('-r', '--ref', dest='ref', default=None,
        help='reference in fasta format')
    parser.add_argument('-o', '--outdir', dest='outdir', default=None,
        help='directory to save the results')
    parser.add_argument('-m', '--mismatches', dest='mismatches', type=int,
        default=0, help='max number of mismatches, default: [0]')
    parser.add_argument('-p', '--threads', dest='threads', type=int,
        default=1, help='number of threads, default: [1]')
    parser.add_argument('--multi', choices=['remove', 'keep'],
        default='remove',
        help='sequences mapped >1 to the same reference, default: [remove]')
    parser.add_argument('--N-up', dest='N_up', default='',
        help='sequence added to the 5 prime end of the reference, eg: NNN')
    parser.add_argument('--N-down', dest='N_down', default='',
        help='sequence added to the 3 prime end of the reference, eg: NNN')
    parser.add_argument('--report-string', dest='report_string',
        action='store_true', help='add the alignment string')
    parser.add_argument('--bowtie', default='bowtie',
        help='the bowtie command, default: [bowtie]')
    add_config_arg(parser)
    return parser


def add_gtf_args():
    """
    Annotate genome coordinates by gtf
    """
    parser = argparse.ArgumentParser(
        prog='pacseq gtf',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='pacseq gtf',
        epilog='''Description:
PAC Anno should contain the genome coordinates, in columns: mis0_genome,
mis1_genome, ..., see: pacseq reanno --report full --max-hits all
--merge-overview

Example:
pacseq gtf -i pac -g gencode=hg38.gtf -t gencode=gene_name,gene_type \\
  -o pac_gtf --return-type merge'''
    )
    parser.add_argument('-i', '--pac', dest='pac', default=None,
        help='directory of the saved PAC')
    parser.add_argument('-o', '--out', dest='out', default=None,
        help='csv file for simplify, or directory for merge (PAC)')
    parser.add_argument('--genome', default='genome',
        help='name of the genome reference, default: [genome]')
    parser.add_argument('-g', '--gtf', dest='gtf', nargs='+', default=None,
        help='gtf files, name=path')
    parser.add_argument('-t', '--targets', dest='targets', nargs='+',
        default=None, help='columns in gtf, name=col1,col2')
    parser.add_argument('-m', '--mismatches', dest='mismatches', type=int,
        default=3, help='max number of mismatches, default: [3]')
    parser.add_argument('--stranded', action='store_true',
        help='only the features on the same strand')
    parser.add_argument('--return-type', dest='return_type',
        choices=['simplify', 'merge'], default='simplify',
        help='output type, default: [simplify]')
    add_config_arg(parser)
    return parser
