# emacs: -*- mode: python; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""
Settings from the system environment relevant to track file configuration
"""

import os
from os.path import join as pjoin

#: environment variable naming an alternative user configuration file
CONFIG_FILE_KEY = 'TRACKSCALARS_CONFIG'


def get_home_dir():
    """Return the closest possible equivalent to a 'home' directory.

    The path may not exist; code using this routine should not
    expect the directory to exist.

    Returns
    -------
    home_dir : string
       best guess at location of home directory
    """
    return os.path.expanduser('~')


def get_user_config_file():
    """Get the user configuration file

    We check first in environment variable ``TRACKSCALARS_CONFIG``, otherwise
    returning the default of ``<homedir>/.mrtrix.conf``.

    The file may well not exist; code using this routine should not
    expect the file to exist.

    Returns
    -------
    config_file : string
       path to user's configuration file

    Examples
    --------
    >>> pth = get_user_config_file()
    """
    try:
        return os.path.abspath(os.environ[CONFIG_FILE_KEY])
    except KeyError:
        pass
    return pjoin(get_home_dir(), '.mrtrix.conf')


def get_system_config_file():
    r"""Get systemwide configuration file

    On posix systems this will be ``/etc/mrtrix.conf``.
    On Windows, the file is less useful, but by default it will be
    ``C:\etc\mrtrix.conf``

    Returns
    -------
    config_file : string
       path to systemwide configuration file
    """
    if os.name == 'nt':
        return r'C:\etc\mrtrix.conf'
    return '/etc/mrtrix.conf'
