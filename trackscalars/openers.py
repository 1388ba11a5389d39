# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Open track files for reading

Track and track scalar files are written uncompressed, but may have been
compressed since.  Filenames ending in ``.gz`` or ``.bz2`` are decompressed
on the fly while reading.
"""

from __future__ import annotations

import bz2
import gzip
import io
import os
import typing as ty
from os.path import splitext

if ty.TYPE_CHECKING:
    from types import TracebackType

#: opening functions by lower case filename extension
READ_OPENERS: dict[str, ty.Callable[..., ty.BinaryIO]] = {
    '.gz': gzip.open,
    '.bz2': bz2.open,
}


@ty.runtime_checkable
class Readable(ty.Protocol):
    def read(self, size: int = -1, /) -> bytes: ...


class Opener:
    """Read from a filename or an already open binary file object

    As a context manager, closes the file on exit only if it was opened here.

    Parameters
    ----------
    fileish : str, path-like or file-like
        If a file-like object, read from it as is, starting from its current
        position.  Otherwise a filename, opened in ``rb`` mode and
        decompressed according to its extension (case ignored).

    Attributes
    ----------
    fobj : file-like
        Binary file object read from.
    name : str or None
        Filename, or the ``name`` of the file object if it has one.
    me_opened : bool
        True if the file was opened by this object.
    """

    def __init__(self, fileish: str | os.PathLike | io.IOBase):
        if isinstance(fileish, (io.IOBase, Readable)):
            self.fobj = fileish
            self.name = getattr(fileish, 'name', None)
            self.me_opened = False
            return
        self.name = os.fspath(fileish)
        _, ext = splitext(self.name)
        opener = READ_OPENERS.get(ext.lower(), open)
        self.fobj = opener(self.name, 'rb')
        self.me_opened = True

    @property
    def closed(self) -> bool:
        return self.fobj.closed

    def read(self, size: int = -1, /) -> bytes:
        return self.fobj.read(size)

    def readline(self, size: int = -1, /) -> bytes:
        return self.fobj.readline(size)

    def seek(self, pos: int, whence: int = os.SEEK_SET, /) -> int:
        return self.fobj.seek(pos, whence)

    def tell(self, /) -> int:
        return self.fobj.tell()

    def close_if_mine(self) -> None:
        """Close ``self.fobj`` iff we opened it in the constructor"""
        if self.me_opened:
            self.fobj.close()

    def __enter__(self) -> Opener:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close_if_mine()
