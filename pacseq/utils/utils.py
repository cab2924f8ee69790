#!/usr/bin/env python3

"""Functions for string, list, dict, ...
config files, shell commands, cpu
"""

import os
import sys
import json
import yaml
import toml
import pickle
import signal
import logging
import numbers
import subprocess
from datetime import datetime
from dateutil import tz


logging.basicConfig(
    format='[%(asctime)s %(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    stream=sys.stdout)
log = logging.getLogger(__name__)
log.setLevel('INFO')


def init_cpu(threads=1, parallel_jobs=1):
    """
    The number of threads, parallel_jobs
    """
    n_cpu = os.cpu_count() or 1
    max_jobs = max(1, int(n_cpu / 4.0))
    ## check parallel_jobs (max: 1/4 of n_cpus)
    if parallel_jobs > max_jobs:
        log.warning('Too large, change parallel_jobs from {} to {}'.format(
            parallel_jobs, max_jobs))
        parallel_jobs = max_jobs
    ## check threads
    max_threads = max(1, int(0.8 * n_cpu / parallel_jobs))
    if threads * parallel_jobs > 0.8 * n_cpu and threads > max_threads:
        log.warning('Too large, change threads from {} to {}'.format(
            threads, max_threads))
        threads = max_threads
    return (threads, parallel_jobs)


def get_date(timestamp=False):
    """
    Return the current date in UTC.timestamp or local-formated-string

    >>> get_date()
    '2021-05-18 17:08:53'

    >>> get_date(True)
    1621328957.280303
    """
    now = datetime.now(tz.tzlocal())
    if isinstance(timestamp, bool) and timestamp:
        out = now.timestamp()
    else:
        out = now.strftime('%Y-%m-%d %H:%M:%S')
    return out


def run_shell_cmd(cmd):
    """This command is from 'ENCODE-DCC/atac-seq-pipeline'
    https://github.com/ENCODE-DCC/atac-seq-pipeline/blob/master/src/encode_common.py

    return: (returncode, stdout, stderr)
    """
    p = subprocess.Popen(['/bin/bash','-o','pipefail'], # to catch error in pipe
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        universal_newlines=True,
        start_new_session=True) # to make a new process with a new PGID
    pid = p.pid
    pgid = os.getpgid(pid)
    log.info('run_shell_cmd: PID={}, PGID={}, CMD={}'.format(pid, pgid, cmd))
    stdout, stderr = p.communicate(cmd)
    rc = p.returncode
    if rc:
        log.error('PID={}, PGID={}, RC={}\nSTDERR={}\nSTDOUT={}'.format(
            pid, pgid, rc, stderr.strip(), stdout.strip()))
        # kill all child processes
        try:
            os.killpg(pgid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    return (rc, stdout.strip('\n'), stderr.strip('\n'))


def update_obj(obj, d, force=True, remove=False):
    """Update the object, by dict
    d: dict
    force: bool, update exists attributes
    remove: bool, remove exists attributes
    """
    if remove is True:
        for k in list(obj.__dict__):
            delattr(obj, k)
    # add attributes
    if isinstance(d, dict):
        for k, v in d.items():
            if not hasattr(obj, k) or force:
                setattr(obj, k, v)
    return obj


def dict_to_plain(d):
    """Keep the values that can be saved in toml/yaml
    str, number, bool, list of them, dict (nested)
    """
    out = {}
    for k, v in d.items():
        if v is None:
            continue
        if isinstance(v, (str, bool, numbers.Number)):
            out[k] = v
        elif isinstance(v, (list, tuple)):
            if all(isinstance(i, (str, bool, numbers.Number)) for i in v):
                out[k] = list(v)
        elif isinstance(v, dict):
            out[k] = dict_to_plain(v)
    return out


class Config(object):
    """Working with config, in dict/yaml/toml/json/pickle formats
    load/dump

    Example:
    1. write to file
    >>> Config().dump(d, 'out.json')
    >>> Config().dump(d, 'out.toml')
    >>> Config().dump(d, 'out.pickle')

    2. load from file
    >>> d = Config().load('in.yaml')
    """
    def __init__(self, x=None, **kwargs):
        self = update_obj(self, kwargs, force=True)
        self.x = x


    def load(self, x=None):
        """Read data from x, auto-recognize the file-type
        yaml
        toml
        json
        pickle
        """
        if x is None:
            x = self.x # dict or str
        if x is None:
            x_dict = None
        elif isinstance(x, dict):
            x_dict = dict(sorted(x.items(), key=lambda i:i[0]))
        elif isinstance(x, str):
            reader = self.get_reader(x)
            if reader is None:
                x_dict = None
                log.error('unknown x, {}'.format(x))
            else:
                x_dict = reader(x)
        else:
            x_dict = None
            log.warning('load(x=) dict,str expect, got {}'.format(
                type(x).__name__))
        return x_dict


    def dump(self, d=None, x=None):
        """Write data to file x, auto-recognize the file-type
        d str or dict, data
        x str file to save data(dict)
        """
        if d is None:
            d = self.load(self.x)
        if isinstance(x, str):
            writer = self.get_writer(x)
            if writer is None:
                log.error('unknown x, {}'.format(x))
            else:
                writer(d, x)
        else:
            log.warning('dump(x=) expect str, got {}'.format(
                type(x).__name__))


    def guess_format(self, x):
        """Guess the file format, by file extension
        - yaml
        - toml
        - json
        - pickle
        """
        formats = {
            'json': 'json',
            'yaml': 'yaml',
            'yml': "yaml",
            'toml': 'toml',
            'pickle': 'pickle'
        }
        if isinstance(x, str):
            x_ext = os.path.splitext(x)[1]
            x_ext = x_ext.lstrip('.').lower()
            x_format = formats.get(x_ext, None)
        elif isinstance(x, dict):
            x_format = 'dict'
        else:
            x_format = None
        return x_format


    def get_reader(self, x):
        x_format = self.guess_format(x)
        readers = {
            'json': self.from_json,
            'yaml': self.from_yaml,
            'toml': self.from_toml,
            'pickle': self.from_pickle
        }
        return readers.get(x_format, None)


    def get_writer(self, x):
        x_format = self.guess_format(x)
        writers = {
            'json': self.to_json,
            'yaml': self.to_yaml,
            'toml': self.to_toml,
            'pickle': self.to_pickle
        }
        return writers.get(x_format, None)


    def from_json(self, x):
        """Loding data from JSON file"""
        d = None
        if os.path.exists(x):
            if os.path.getsize(x) > 0:
                with open(x, 'r') as r:
                    d = json.load(r)
                    d = dict(sorted(d.items(), key=lambda x:x[0]))
        else:
            log.error('from_json() failed, file not exists: {}'.format(x))
        return d


    def from_yaml(self, x):
        """Loding data from YAML file"""
        d = None
        if os.path.exists(x):
            if os.path.getsize(x) > 0:
                with open(x, 'r') as r:
                    d = yaml.load(r, Loader=yaml.FullLoader)
                    d = dict(sorted(d.items(), key=lambda x:x[0]))
        else:
            log.error('from_yaml() failed, file not exists: {}'.format(x))
        return d


    def from_toml(self, x):
        """Loding data from TOML file"""
        d = None
        if os.path.exists(x):
            if os.path.getsize(x) > 0:
                d = toml.load(x)
                d = dict(sorted(d.items(), key=lambda x:x[0]))
        else:
            log.error('from_toml() failed, file not exists: {}'.format(x))
        return d


    def from_pickle(self, x):
        """Loding data from pickle file"""
        d = None
        if os.path.exists(x):
            if os.path.getsize(x) > 0:
                with open(x, 'rb') as r:
                    d = pickle.load(r)
        else:
            log.error('from_pickle() failed, file not exists: {}'.format(x))
        return d


    def check_dest(self, d, x):
        x = os.path.abspath(x)
        if not isinstance(d, dict):
            log.error('dump(d=) failed, dict expect, got {}'.format(
                type(d).__name__))
            out = False
        elif not os.path.exists(os.path.dirname(x)):
            log.error('dump(x=) failed, dir not exists: {}'.format(
                os.path.dirname(x)))
            out = False
        else:
            out = True
        return out


    def to_json(self, d, x):
        """Writing data to JSON file"""
        if self.check_dest(d, x):
            with open(x, 'wt') as w:
                json.dump(dict_to_plain(d), w, indent=4, sort_keys=True)


    def to_yaml(self, d, x):
        """Writing data to YAML file"""
        if self.check_dest(d, x):
            with open(x, 'wt') as w:
                yaml.dump(dict_to_plain(d), w)


    def to_toml(self, d, x):
        """Writing data to TOML file"""
        if self.check_dest(d, x):
            with open(x, 'wt') as w:
                toml.dump(dict_to_plain(d), w)


    def to_pickle(self, d, x):
        """Writing data to pickle file"""
        if self.check_dest(d, x):
            with open(x, 'wb') as w:
                pickle.dump(d, w, protocol=pickle.HIGHEST_PROTOCOL)

