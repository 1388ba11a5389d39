#!python
# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""
Print out information about track scalar files.
"""

import argparse
import logging

import numpy as np

from ..consistency import check_properties_match
from ..errors import FormatMismatchError, HeaderError
from ..header import load_properties
from ..properties import Field
from ..scalar_file import ScalarReader
from ..trackglobals import logger


def parse_args(args=None):
    DESCRIPTION = 'Print out information about track scalar files (.tsf).'
    parser = argparse.ArgumentParser(description=DESCRIPTION)
    parser.add_argument('tsfs', metavar='tsf', nargs='+', help='track scalar files (.tsf).')
    parser.add_argument(
        '-t', '--tracks', metavar='TCK',
        help='track file (.tck) the scalars were computed from; check they match.',
    )
    parser.add_argument(
        '--strict', action='store_true',
        help='fail, rather than warn, when streamline counts do not match.',
    )
    parser.add_argument(
        '-c', '--count', action='store_true',
        help='count number of streamlines in file explicitly, ignoring the header.',
    )
    parser.add_argument(
        '-a', '--ascii', metavar='PREFIX',
        help='save values of each streamline to PREFIX-NNNNNN.txt.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='print debugging messages.')

    opts = parser.parse_args(args)
    if opts.ascii and len(opts.tsfs) > 1:
        parser.error('--ascii can only be used with a single track scalar file.')
    return opts, parser


def format_properties(fname, properties, datatype):
    lines = [fname, f'    {Field.DATATYPE + ":":<14}{datatype}']
    lines.extend(f'    {key + ":":<14}{value}' for key, value in properties.items())
    lines.extend(f'    {Field.COMMENT + ":":<14}{comment}' for comment in properties.comments)
    return '\n'.join(lines)


def main(args=None):
    opts, parser = parse_args(args)
    if opts.verbose:
        logger.setLevel(logging.DEBUG)

    try:
        track_props = load_properties(opts.tracks, 'tracks') if opts.tracks else None
    except (OSError, HeaderError) as err:
        parser.error(f'Cannot read track file {opts.tracks}: {err}')

    first_props = None
    for fname in opts.tsfs:
        try:
            reader = ScalarReader(fname)
        except (OSError, HeaderError) as err:
            parser.error(f'Cannot read track scalar file {fname}: {err}')

        with reader:
            print(format_properties(fname, reader.properties, reader.datatype))
            try:
                if track_props is not None:
                    check_properties_match(track_props, reader.properties,
                                           'track scalars', opts.strict)
                if first_props is None:
                    first_props = reader.properties
                else:
                    check_properties_match(first_props, reader.properties,
                                           'paired scalar files', opts.strict)
            except FormatMismatchError as err:
                parser.error(f'{fname}: {err}')

            if opts.count or opts.ascii:
                n_streamlines = 0
                for scalars in reader:
                    if opts.ascii:
                        np.savetxt(f'{opts.ascii}-{n_streamlines:06d}.txt', scalars)
                    n_streamlines += 1
                if opts.count:
                    print(f'    {"actual count:":<14}{n_streamlines}')
