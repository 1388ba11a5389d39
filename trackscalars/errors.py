# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Exceptions and warnings raised when reading / writing track files"""


class HeaderWarning(Warning):
    """Base class for warnings about track file header."""


class CountWarning(Warning):
    """Declared streamline counts of paired files differ."""


class HeaderError(Exception):
    """Raised when a track file header contains invalid information."""


class DataError(Exception):
    """Raised when data is missing or inconsistent in a track file."""


class FormatMismatchError(Exception):
    """Raised when two track files cannot be interpreted together."""


class ProvenanceMismatchError(FormatMismatchError):
    """Timestamps of paired files differ, or are missing."""


class CountMismatchError(FormatMismatchError):
    """Declared streamline counts of paired files differ."""


class StreamWriteError(OSError):
    """A commit left the output file in an unknown state."""


class ConfigError(ValueError):
    """Malformed entry in a configuration file."""
