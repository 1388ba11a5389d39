# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Read / write track scalar files (TSF)

A track scalar file stores one value per point of each streamline of a
separate track file.  The body is a flat sequence of floats: the values of
a streamline are followed by a NaN delimiter, and an infinite value ends the
body.  Streamlines without any value take no space at all, so only the
``total_count`` field tells how many streamlines were processed.

Examples
--------
>>> from trackscalars.properties import Properties
>>> from trackscalars.tmpdirs import InTemporaryDirectory
>>> props = Properties(timestamp='1378897410.5419230461')
>>> with InTemporaryDirectory():
...     with ScalarWriter('fa.tsf', props) as writer:
...         for scalars in ([1.0, 2.5], [], [3.0]):
...             _ = writer.append(scalars)
...     with ScalarReader('fa.tsf') as reader:
...         print([s.tolist() for s in reader], reader.properties.count)
[[1.0, 2.5], [3.0]] 2
"""

import os
import warnings

import numpy as np

from .config import DEFAULT_BUFFER_SIZE
from .datatypes import datatype_codes, get_datatype
from .errors import DataError, HeaderWarning, StreamWriteError
from .header import read_header, update_counts, write_header
from .openers import Opener
from .properties import Field
from .trackglobals import logger

MEGABYTE = 1024 * 1024

#: ends the values of one streamline
DELIMITER = np.nan
#: ends the body of the file
END_OF_STREAM = np.inf


class ScalarReader:
    """Iterate over the scalars of each streamline in a track scalar file

    Each iteration returns the values of the next streamline as a 1D array,
    which is empty for a streamline stored without values.  Iteration stops
    at the end-of-stream marker, or at the end of the file if the marker is
    missing.  In both cases the file is closed and the reader cannot be
    restarted.

    Parameters
    ----------
    fileobj : string or file-like object
        If string, a filename; otherwise an open file-like object in binary
        mode pointing to the beginning of the header.
    buffer_size : float, optional
        Size (in Mb) of the chunks read from file.
    dtype : None or numpy dtype specifier, optional
        dtype of returned arrays.  If None, floats of the width stored in
        file, in native byte order.

    Attributes
    ----------
    properties : :class:`Properties`
        Header information.
    datatype : str
        Datatype tag of the file body.
    """

    def __init__(self, fileobj, buffer_size=4, dtype=None):
        self._opener = Opener(fileobj)
        try:
            self.properties, self.datatype = read_header(self._opener.fobj, 'track scalars')
        except Exception:
            self._opener.close_if_mine()
            raise
        self.file_dtype = datatype_codes.dtype[self.datatype]
        if dtype is None:
            dtype = self.file_dtype.newbyteorder('=')
        self.dtype = np.dtype(dtype)
        itemsize = self.file_dtype.itemsize
        # Make chunk size a non-zero multiple of the value size.
        self._chunk_size = max(int(buffer_size * MEGABYTE) // itemsize, 1) * itemsize
        self._leftover = b''
        self._values = np.empty(0, dtype=self.dtype)
        self._stops = np.empty(0, dtype=np.intp)
        self._next_stop = 0
        self._pos = 0
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        while not self.closed:
            if self._next_stop < len(self._stops):
                stop = self._stops[self._next_stop]
                self._next_stop += 1
                if np.isinf(self._values[stop]):
                    logger.debug('End-of-stream marker found in %s', self._opener.name)
                    self.close()
                    break
                scalars = self._values[self._pos : stop].copy()
                self._pos = stop + 1
                return scalars
            if not self._read_chunk():
                # A truncated file ends like a terminated one.
                logger.debug('End of file reached without end-of-stream marker in %s',
                             self._opener.name)
                self.close()
        raise StopIteration

    def _read_chunk(self):
        buff = self._opener.read(self._chunk_size)
        if not buff:
            return False
        buff = self._leftover + buff
        n_complete = len(buff) - len(buff) % self.file_dtype.itemsize
        self._leftover = buff[n_complete:]
        raw_values = np.frombuffer(buff[:n_complete], dtype=self.file_dtype)
        # Values after the last stop carry over into the new chunk
        self._values = np.concatenate(
            (self._values[self._pos :], raw_values.astype(self.dtype))
        )
        self._pos = 0
        self._stops = np.flatnonzero(~np.isfinite(self._values))
        self._next_stop = 0
        return True

    def close(self):
        """Close file if opened by reader; stop further iteration"""
        if not self.closed:
            self._opener.close_if_mine()
            self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ScalarBuffer:
    """Fixed-capacity store for encoded values waiting to be written

    Parameters
    ----------
    capacity : int
        Maximum number of values held.
    dtype : numpy dtype specifier
        dtype (including byte order) values are encoded to.
    """

    def __init__(self, capacity, dtype):
        self._data = np.empty(capacity, dtype=dtype)
        self.fill = 0

    @property
    def capacity(self):
        return self._data.size

    @property
    def data(self):
        """Encoded values held, as a view"""
        return self._data[: self.fill]

    def __len__(self):
        return self.fill

    def extend(self, values):
        values = np.asarray(values).ravel()
        n_values = values.size
        if self.fill + n_values > self.capacity:
            raise ValueError(
                f'Cannot add {n_values} values to buffer holding '
                f'{self.fill} of {self.capacity} values'
            )
        self._data[self.fill : self.fill + n_values] = values
        self.fill += n_values

    def clear(self):
        self.fill = 0


class ScalarWriter:
    """Write the scalars of each streamline to a track scalar file

    Values are gathered in a large write-back RAM buffer, and only committed
    to file when the buffer is full, or when the writer is closed.  This
    minimises the number of write calls, which can otherwise become a
    bottleneck on distributed or network filesystems.  It also helps reduce
    file fragmentation when multiple processes write to file concurrently.

    The file is reopened for each commit, and the ``count`` field of the
    header is updated once the data is on file.  Use the writer as a context
    manager (or call :meth:`close`) so that the last buffered values are
    committed.

    Parameters
    ----------
    filename : str
        Output filename.  Existing files are overwritten.
    properties : :class:`Properties`
        Header information.  Its ``timestamp`` must be the one of the track
        file the scalars were computed from; it is not set here.
    datatype : str, optional
        Datatype tag of the file body, one of ``Float32LE``, ``Float32BE``,
        ``Float64LE`` or ``Float64BE``.
    buffer_size : int, optional
        Size in bytes of the write-back buffer.  Default is 16MB; see
        :func:`trackscalars.config.writer_buffer_size` to read it from the
        configuration files.

    Attributes
    ----------
    count : int
        Number of streamlines with at least one value.
    total_count : int
        Number of calls to :meth:`append`, including empty streamlines.
    """

    def __init__(self, filename, properties, datatype='Float32LE',
                 buffer_size=DEFAULT_BUFFER_SIZE):
        self.filename = os.fspath(filename)
        self.datatype, self.dtype = get_datatype(datatype)
        capacity = int(buffer_size) // self.dtype.itemsize
        if capacity < 2:
            raise ValueError(
                f'Buffer of {buffer_size} bytes cannot hold a {self.datatype} value '
                'and its delimiter'
            )
        if properties.timestamp is None:
            msg = ('Properties have no timestamp; the scalar file cannot be '
                   'matched with its streamlines.')
            warnings.warn(msg, HeaderWarning)
        self.properties = properties.copy()
        self.properties[Field.COUNT] = self.properties[Field.TOTAL_COUNT] = '0'
        self.count = 0
        self.total_count = 0
        self._buffer = ScalarBuffer(capacity, self.dtype)
        self._end_of_stream = np.array([END_OF_STREAM], dtype=self.dtype).tobytes()
        self._counts_on_file = (0, 0)

        with open(self.filename, 'wb') as f:
            # Do not set the timestamp here: it must match the track file.
            self.count_offset, self._offset = write_header(
                f, self.properties, 'track scalars', self.datatype, count=0, total_count=0
            )
            f.write(self._end_of_stream)
        self.closed = False

    @property
    def buffer_capacity(self):
        return self._buffer.capacity

    def append(self, scalars):
        """Add the scalars of the next streamline

        Parameters
        ----------
        scalars : array-like
            Values along the streamline.  May be empty, in which case nothing
            is stored but ``total_count`` is still incremented.

        Returns
        -------
        True
        """
        if self.closed:
            raise ValueError(f'Scalar writer for {self.filename} is closed')
        scalars = np.asarray(scalars, dtype=np.float64).ravel()
        if scalars.size:
            if not np.all(np.isfinite(scalars)):
                raise DataError('Track scalars cannot contain NaN or infinite values')
            n_values = scalars.size + 1  # with delimiter
            if self._buffer.fill + n_values > self._buffer.capacity:
                self.commit()
            self.count += 1
            self.total_count += 1
            if n_values > self._buffer.capacity:
                # Too large for the buffer; goes straight to file.
                self._write(np.append(scalars, DELIMITER).astype(self.dtype))
            else:
                self._buffer.extend(scalars)
                self._buffer.extend(DELIMITER)
        else:
            self.total_count += 1
        return True

    def commit(self):
        """Write buffered values to file and update counts in header"""
        if self._buffer.fill == 0:
            return
        self._write(self._buffer.data)
        self._buffer.clear()

    def _write(self, values):
        data = values.tobytes()
        # The end-of-stream marker follows the data, and is overwritten by
        # the next commit.
        try:
            with open(self.filename, 'r+b') as f:
                f.seek(self._offset, os.SEEK_SET)
                n_written = f.write(data + self._end_of_stream)
                f.flush()
                self._verify(n_written == len(data) + len(self._end_of_stream))
                self._offset += len(data)
                update_counts(f, self.count_offset, self.count, self.total_count)
                f.flush()
        except OSError as err:
            # File contents are unknown from here; never commit again, not
            # even from close().
            self.closed = True
            if isinstance(err, StreamWriteError):
                raise
            raise StreamWriteError(
                f'Error writing track scalars to {self.filename}: {err}'
            ) from err
        self._counts_on_file = (self.count, self.total_count)
        self.properties[Field.COUNT] = str(self.count)
        self.properties[Field.TOTAL_COUNT] = str(self.total_count)
        logger.debug('Committed %d values to %s (count: %d, total_count: %d)',
                     values.size, self.filename, self.count, self.total_count)

    def _verify(self, ok):
        if not ok:
            raise StreamWriteError(
                f'Incomplete write of track scalars to {self.filename}; '
                'file may be corrupted'
            )

    def close(self):
        """Commit remaining values; the writer accepts no more scalars

        A writer whose commit failed is already closed, and its buffered
        values are dropped.
        """
        if self.closed:
            return
        try:
            self.commit()
            if self._counts_on_file != (self.count, self.total_count):
                # Only empty streamlines since last commit
                try:
                    with open(self.filename, 'r+b') as f:
                        update_counts(f, self.count_offset, self.count, self.total_count)
                except OSError as err:
                    raise StreamWriteError(
                        f'Error updating counts of {self.filename}: {err}'
                    ) from err
                self._counts_on_file = (self.count, self.total_count)
                self.properties[Field.TOTAL_COUNT] = str(self.total_count)
        finally:
            self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def load_scalars(fileobj):
    """Load all track scalars from a filename or file-like object

    Returns
    -------
    properties : :class:`Properties`
        Header information.
    scalars : list of ndarray
        Values of each stored streamline, in file order.
    """
    with ScalarReader(fileobj) as reader:
        return reader.properties, list(reader)


def save_scalars(filename, scalars, properties, datatype='Float32LE',
                 buffer_size=DEFAULT_BUFFER_SIZE):
    """Save track scalars to `filename`

    Parameters
    ----------
    filename : str
        Output filename.
    scalars : iterable of array-like
        Values of each streamline, in the order of the track file.
    properties : :class:`Properties`
        Header information, with the timestamp of the track file.
    datatype : str, optional
        Datatype tag of the file body.
    buffer_size : int, optional
        Size in bytes of the write-back buffer.

    Returns
    -------
    total_count : int
        Number of streamlines processed.
    """
    with ScalarWriter(filename, properties, datatype, buffer_size) as writer:
        for values in scalars:
            writer.append(values)
    return writer.total_count
