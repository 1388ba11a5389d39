# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Check that track scalar files match their streamlines

A track scalar file can only be interpreted together with the streamline
file it was computed from.  The pairing is recorded by the ``timestamp``
field: the streamline file generates it, the scalar file copies it.  Two
scalar files may also be processed together, provided both were computed
from the same streamline file.

Some operations further need both files to hold the same number of
streamlines, which is checked from the ``count`` field.
"""

import warnings

from .errors import CountMismatchError, CountWarning, ProvenanceMismatchError


def check_timestamps(props_a, props_b, kind):
    """Raise if `props_a` and `props_b` do not share a timestamp

    Parameters
    ----------
    props_a, props_b : :class:`Properties`
        Properties of the two files.
    kind : str
        Kind of files compared, e.g. ``'track scalars'``, used in messages.

    Raises
    ------
    ProvenanceMismatchError
        If either timestamp is missing or the timestamps differ.
    """
    if props_a.timestamp is None or props_b.timestamp is None:
        raise ProvenanceMismatchError(f'Unable to verify {kind}: missing timestamp in header')
    if props_a.timestamp != props_b.timestamp:
        raise ProvenanceMismatchError(
            f'Invalid {kind}: timestamps do not match '
            f'({props_a.timestamp} != {props_b.timestamp})'
        )


def check_counts(props_a, props_b, kind, abort_on_fail=True):
    """Check `props_a` and `props_b` declare the same streamline count

    Parameters
    ----------
    props_a, props_b : :class:`Properties`
        Properties of the two files.
    kind : str
        Kind of files compared, used in messages.
    abort_on_fail : {True, False}, optional
        If True, raise on mismatch, otherwise only warn.

    Raises
    ------
    CountMismatchError
        If counts differ and `abort_on_fail` is True.
    """
    if props_a.count == props_b.count:
        return
    msg = f'Streamline counts of {kind} do not match ({props_a.count} != {props_b.count})'
    if abort_on_fail:
        raise CountMismatchError(msg)
    warnings.warn(msg, CountWarning)


def check_properties_match(props_a, props_b, kind, abort_on_count_mismatch=True):
    """Check two files can be processed together

    In order to be interpreted correctly, track scalar files must match the
    streamline file they were computed from; two track scalar files must both
    match the same streamline file, even if that file is never read.

    Parameters
    ----------
    props_a, props_b : :class:`Properties`
        Properties of the two files.
    kind : str
        Kind of files compared, e.g. ``'track scalars'`` or ``'paired scalar
        files'``, used in messages.
    abort_on_count_mismatch : {True, False}, optional
        If True, a mismatch of the ``count`` field raises
        :class:`CountMismatchError`; otherwise only a :class:`CountWarning`
        is issued and processing is free to continue.  Timestamp mismatches
        always raise.

    Raises
    ------
    ProvenanceMismatchError
        If timestamps are missing or differ.
    CountMismatchError
        If counts differ and `abort_on_count_mismatch` is True.
    """
    check_timestamps(props_a, props_b, kind)
    check_counts(props_a, props_b, kind, abort_on_count_mismatch)
