# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Configuration files in MRtrix format

A configuration file holds one ``Key: value`` entry per line; anything after
a ``#`` is a comment.  The system file is read first, then the user file, so
that user entries take precedence.
"""

import os

from .environment import get_system_config_file, get_user_config_file
from .errors import ConfigError
from .trackglobals import logger

#: default size in bytes of the write-back buffer of scalar writers
DEFAULT_BUFFER_SIZE = 16777216

BUFFER_SIZE_KEY = 'TrackWriterBufferSize'


def parse_config(lines):
    """Return dict of entries from iterable of configuration `lines`

    >>> parse_config(['# buffers', 'TrackWriterBufferSize: 1024  # 1kB'])
    {'TrackWriterBufferSize': '1024'}
    """
    entries = {}
    for lineno, line in enumerate(lines, 1):
        line = line.split('#', 1)[0].strip()
        if not line:
            continue
        key, sep, value = line.partition(':')
        if not sep or not key.strip():
            raise ConfigError(f'Malformed configuration entry on line {lineno}: {line!r}')
        entries[key.strip()] = value.strip()
    return entries


class Config:
    """Key / value settings read from configuration files

    Parameters
    ----------
    filenames : None or sequence of str, optional
        Files to read, in order of increasing precedence.  Files that do not
        exist are skipped.  If None, read the system file, then the user
        file.
    """

    def __init__(self, filenames=None):
        if filenames is None:
            filenames = (get_system_config_file(), get_user_config_file())
        self.filenames = []
        self._entries = {}
        for fname in filenames:
            if not os.path.isfile(fname):
                continue
            with open(fname, encoding='utf-8') as fobj:
                try:
                    self._entries.update(parse_config(fobj))
                except ConfigError as err:
                    raise ConfigError(f'{fname}: {err}') from err
            logger.debug('Read configuration file %s', fname)
            self.filenames.append(fname)

    def __contains__(self, key):
        return key in self._entries

    def get(self, key, default=None):
        return self._entries.get(key, default)

    def get_int(self, key, default):
        """Integer value of `key`, or `default` if `key` is not set"""
        value = self._entries.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Malformed integer entry in configuration: '{key}: {value}'") from None


def writer_buffer_size(config=None):
    """Size in bytes of the write-back buffer for scalar writers

    Parameters
    ----------
    config : None or :class:`Config`, optional
        Configuration to query.  If None, read the default configuration
        files.

    Returns
    -------
    buffer_size : int
        Value of ``TrackWriterBufferSize``, defaulting to 16MB.
    """
    if config is None:
        config = Config()
    return config.get_int(BUFFER_SIZE_KEY, DEFAULT_BUFFER_SIZE)
