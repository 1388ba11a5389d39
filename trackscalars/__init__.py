# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""
Read and write per-point scalars of streamlines
===============================================

Track scalar files (``.tsf``) attach one value to each point of each
streamline of a track file (``.tck``).  The two files are paired through the
``timestamp`` header field.

.. autosummary::
   :toctree: reference

   config
   consistency
   header
   properties
   scalar_file
"""

__version__ = '0.1.0'

from . import config, consistency, header
from .config import Config, writer_buffer_size
from .consistency import check_counts, check_properties_match, check_timestamps
from .errors import (
    CountMismatchError,
    CountWarning,
    DataError,
    FormatMismatchError,
    HeaderError,
    HeaderWarning,
    ProvenanceMismatchError,
    StreamWriteError,
)
from .header import load_properties, read_header, write_header
from .properties import Field, Properties
from .scalar_file import ScalarReader, ScalarWriter, load_scalars, save_scalars
