#!/usr/bin/env python3

"""
General functions for file manipulation

check_file : file exists, check_empty
remove_file : str
file_abspath : str
file_prefix : str
check_path : str
remove_path : str
list_dir : str
list_file : str
"""

import os
from shutil import rmtree
from fnmatch import fnmatch
from pacseq.utils.utils import log


# file: only for single file, str
def check_file(x, **kwargs):
    """Check if x is file and exists
    Parameters
    ----------
    x : str or list
        Path to a file

    check_empty : bool
        Return True only if the file is not empty

    show_error : bool
        Show the error messages
    """
    args = {
        'show_error': False,
        'check_empty': False,
    }
    args.update(kwargs)
    if isinstance(x, str):
        if os.path.isfile(x):
            x_size = os.stat(x).st_size
            # empty gzipped file, size=20
            q_size = 20 if x.endswith('.gz') else 0
            out = x_size > q_size if args['check_empty'] else True
        else:
            if args['show_error']:
                log.error('file not exists: {}'.format(x))
            out = False
    elif isinstance(x, list):
        out = len(x) > 0 and all([check_file(i, **kwargs) for i in x])
    else:
        if args['show_error']:
            log.error('x expect str or list, got {}'.format(type(x).__name__))
        out = False
    return out


def remove_file(x, **kwargs):
    """Remove files
    Parameters
    ----------
    x : str or list
        The file(s) to be removed

    show_log : bool
        Display the removed files
    """
    args = {
        'show_log': False
    }
    args.update(kwargs)
    if isinstance(x, list):
        for i in x:
            remove_file(i, **kwargs)
    elif check_file(x):
        os.remove(x)
        if args['show_log']:
            log.info('{:<8s}: {}'.format('removed', x))


def file_abspath(x):
    """Expand the absolute path of file
    Parameters
    ----------
    x : str,list
        Path to a file
    """
    if isinstance(x, str):
        out = os.path.abspath(os.path.expanduser(os.path.expandvars(x)))
    elif isinstance(x, list):
        out = [file_abspath(i) for i in x]
    else:
        out = x
    return out


def file_prefix(x, with_path=False):
    """Extract the prefix of file, compatiabe for None

    remove extensions
    .gz, .fa.gz, ...
    """
    if isinstance(x, str):
        if x.endswith('.gz') or x.endswith('.bz2'):
            x = os.path.splitext(x)[0]
        out = os.path.splitext(x)[0]
        if not with_path:
            out = os.path.basename(out)
    else:
        out = None
    return out


# path: only for single path, str
def check_path(x, **kwargs):
    """Check if x is path
    Parameters
    ----------
    x : str or list
        Path to a path

    show_error : bool
        Show the error messages

    show_log : bool
        Show the log messages

    create_dir : bool
        Create the dirs
    """
    args = {
        'show_error': False,
        'show_log': False,
        'create_dir': True
    }
    args.update(kwargs)
    out = False
    if isinstance(x, str):
        if os.path.isdir(x):
            out = True
        elif os.path.isfile(x):
            if args['show_error']:
                log.error('not a directory: {}'.format(x))
        elif args['create_dir']:
            os.makedirs(x, exist_ok=True)
            out = True
        # show log
        flag = 'ok' if out else 'failed'
        if args['show_log'] is True:
            log.info('{:<6s} : {}'.format(flag, x))
    elif isinstance(x, list):
        out = all([check_path(i, **kwargs) for i in x])
    else:
        if args['show_error']:
            log.error('x expect str, got {}'.format(type(x).__name__))
    return out


def remove_path(x, **kwargs):
    """Remove directory

    Parameters
    ----------
    x : str
        The directory to be removed

    show_log : bool
        Display the status of the files
    """
    args = {
        'show_log': False,
    }
    args.update(kwargs)
    if check_path(x, create_dir=False):
        rmtree(x)
        if args['show_log']:
            log.info('{:<8s}: {}'.format('removed', x))


# search files
def list_dir(x, full_name=True, recursive=False, include_dir=False):
    """List all the files in path
    see: list.dir() in R

    Parameters
    ----------
    x : str
        List files (dirs) in x

    full_name : bool
        Return the fullname of the files/dirs

    recursive : bool
        List files/dirs recursively

    include_dir : bool
        Return the dirs
    """
    out = []
    if check_path(x, create_dir=False):
        for (root, d, f) in os.walk(x):
            dirs = [os.path.join(root, i) for i in d] if full_name else d
            files = [os.path.join(root, i) for i in f] if full_name else f
            out += files
            if include_dir:
                out += dirs
            if not recursive:
                break # first level
    return sorted(out)


def list_file(x='.', pattern='*', full_name=True, recursive=False,
    include_dir=False):
    """Search files by the pattern, within directory
    fnmatch()

    example:
    list_file('./', '*.txt')
    """
    file_list = list_dir(x, full_name, recursive, include_dir)
    file_list = [f for f in file_list if fnmatch(os.path.basename(f), pattern)]
    return sorted(file_list)
