# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Metadata attached to streamline and track scalar files"""

import time


class Field:
    """Header fields with a meaning shared by track and track scalar files.

    In IPython, use `trackscalars.properties.Field??` to list them.
    """

    TIMESTAMP = 'timestamp'
    COUNT = 'count'
    TOTAL_COUNT = 'total_count'
    DATATYPE = 'datatype'
    FILE = 'file'
    COMMENT = 'comment'


class Properties(dict):
    """Ordered key / value metadata of a track or track scalar file

    Values are kept as the strings found in (or destined for) the file
    header.  Free-text comments are stored apart from the keys, in
    ``comments``, since a header may hold any number of them.

    Two files are paired when they share the same ``timestamp``: the
    streamline file generates it, and any file of scalars computed from
    those streamlines copies it.

    Examples
    --------
    >>> props = Properties(step_size='0.5')
    >>> props.comments.append('from a test')
    >>> props.timestamp is None
    True
    >>> props.set_timestamp()
    >>> scalar_props = props.copy()
    >>> scalar_props.timestamp == props.timestamp
    True
    >>> scalar_props.comments
    ['from a test']
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.comments = []

    @property
    def timestamp(self):
        return self.get(Field.TIMESTAMP)

    def set_timestamp(self):
        """Stamp properties with the current time

        Only producers of streamlines should call this; scalar files must
        inherit the timestamp of their streamlines.
        """
        self[Field.TIMESTAMP] = f'{time.time():.20g}'

    @property
    def count(self):
        return int(self.get(Field.COUNT, 0))

    @property
    def total_count(self):
        return int(self.get(Field.TOTAL_COUNT, 0))

    def copy(self):
        new = self.__class__(self)
        new.comments = list(self.comments)
        return new

    def __repr__(self):
        return f'{self.__class__.__name__}({dict.__repr__(self)})'
