# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the trackscalars package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Read / write the text header shared by track and track scalar files

Both file kinds start with the same header: a magic line naming the kind of
file, then ``key: value`` lines, then ``END``. The binary body starts at the
offset given by the ``file`` field.  For example::

    mrtrix track scalars
    timestamp: 1378897410.5419230461
    datatype: Float32LE
    count: 0000000002
    total_count: 0000000003
    file: . 121
    END

``count`` and ``total_count`` have a fixed width, so that a writer can
rewrite them in place while the body grows.
"""

import os
import warnings

from .datatypes import get_datatype
from .errors import HeaderError, HeaderWarning
from .openers import Opener
from .properties import Field, Properties

MAGIC_NUMBERS = {
    'tracks': 'mrtrix tracks',
    'track scalars': 'mrtrix track scalars',
}

#: number of digits of the in-place count fields
COUNT_WIDTH = 10

# Fields written from the file layout, never copied from Properties
_LAYOUT_KEYS = (Field.COUNT, Field.TOTAL_COUNT, Field.DATATYPE, Field.FILE, Field.COMMENT)


def _magic_number(file_type):
    try:
        return MAGIC_NUMBERS[file_type]
    except KeyError:
        raise ValueError(
            f"Unknown file type '{file_type}'; expecting one of {', '.join(MAGIC_NUMBERS)}"
        ) from None


def format_counts(count, total_count):
    """Text of the count fields, starting just after ``count: ``

    Raises
    ------
    HeaderError
        If either count does not fit in the fixed-width field.
    """
    for value in (count, total_count):
        if not 0 <= value < 10**COUNT_WIDTH:
            raise HeaderError(f'Count {value} cannot be stored in a {COUNT_WIDTH} digit field')
    return f'{count:0{COUNT_WIDTH}d}\n{Field.TOTAL_COUNT}: {total_count:0{COUNT_WIDTH}d}'


def _check_entry(key, value):
    if not isinstance(key, str) or not key:
        raise HeaderError(f'Header keys must be non-empty strings, got {key!r}')
    if ':' in key or '\n' in key:
        raise HeaderError(f"Header keys cannot contain ':' or '\\n': {key!r}")
    if '\n' in value:
        raise HeaderError(f"Key-value pairs cannot contain '\\n':\n{key}: {value}")


def write_header(fileobj, properties, file_type='track scalars', datatype='Float32LE',
                 count=None, total_count=None):
    """Write track file header to file-like object

    Parameters
    ----------
    fileobj : file-like object
        An open file-like object in binary mode, positioned where the header
        should start (normally the beginning of the file).
    properties : :class:`Properties`
        Metadata to store.  Layout fields (``count``, ``datatype``...) in
        `properties` are ignored.
    file_type : {'track scalars', 'tracks'}, optional
        Kind of file, which picks the magic line.
    datatype : str, optional
        Datatype tag of the body.
    count, total_count : None or int, optional
        Initial values of the count fields.  If None, use the counts declared
        in `properties`.

    Returns
    -------
    count_offset : int
        Byte offset of the fixed-width count field.
    data_offset : int
        Byte offset of the first body byte.
    """
    magic_number = _magic_number(file_type)
    label, _ = get_datatype(datatype)
    count = properties.count if count is None else count
    total_count = properties.total_count if total_count is None else total_count

    lines = [magic_number]
    for key, value in properties.items():
        if key in _LAYOUT_KEYS or key.startswith('_'):
            continue
        value = str(value)
        _check_entry(key, value)
        lines.append(f'{key}: {value}')
    for comment in properties.comments:
        _check_entry(Field.COMMENT, str(comment))
        lines.append(f'{Field.COMMENT}: {comment}')
    lines.append(f'{Field.DATATYPE}: {label}')
    lines.append(f'{Field.COUNT}: ')
    head = '\n'.join(lines).encode()
    counts = format_counts(count, total_count).encode()
    tail = f'\n{Field.FILE}: . '.encode()

    start = fileobj.tell()
    hdr_len_no_offset = start + len(head) + len(counts) + len(tail) + len(b'\nEND\n')
    # The offset is written as a decimal string, so its own length counts
    # towards the offset.  Iterate until the length stops changing.
    data_offset = hdr_len_no_offset
    while hdr_len_no_offset + len(str(data_offset)) != data_offset:
        data_offset = hdr_len_no_offset + len(str(data_offset))

    fileobj.write(head)
    fileobj.write(counts)
    fileobj.write(tail)
    fileobj.write(f'{data_offset}\nEND\n'.encode())
    return start + len(head), data_offset


def update_counts(fileobj, count_offset, count, total_count):
    """Rewrite count fields in place

    Parameters
    ----------
    fileobj : file-like object
        File open for writing in binary mode.  The file position is left just
        after the count fields.
    count_offset : int
        Offset returned by :func:`write_header`.
    count : int
        Number of complete streamlines in the body.
    total_count : int
        Number of streamlines processed, including those without data.
    """
    counts = format_counts(count, total_count).encode()
    fileobj.seek(count_offset, os.SEEK_SET)
    fileobj.write(counts)


def read_header(fileobj, file_type=None):
    """Read a track file header

    Parameters
    ----------
    fileobj : string or file-like object
        If string, a filename; otherwise an open file-like object in binary
        mode pointing to the beginning of the header.  An open file is left
        positioned at the first byte of the body.
    file_type : None or {'track scalars', 'tracks'}, optional
        If not None, the kind of file expected.

    Returns
    -------
    properties : :class:`Properties`
        Metadata of the file, including the declared counts.
    datatype : str
        Canonical datatype tag of the body.
    """
    with Opener(fileobj) as f:
        first_line = f.readline()
        magic_number = first_line.decode('utf-8', errors='replace').strip()
        if not magic_number.startswith('mrtrix '):
            raise HeaderError(f'Not a track file; first line is {magic_number[:40]!r}')
        if file_type is not None and magic_number != _magic_number(file_type):
            raise HeaderError(f"Expecting a {file_type} file, but found '{magic_number}'")

        properties = Properties()
        datatype = None
        file_field = None
        while True:
            line = f.readline()
            if not line:
                raise HeaderError("Unexpected end of file while reading header (missing 'END')")
            line = line.decode('utf-8', errors='replace').strip()
            if line == 'END':
                break
            key, sep, value = line.partition(':')
            if not sep:
                raise HeaderError(f'Malformed header line: {line!r}')
            key, value = key.strip(), value.strip()
            if key == Field.COMMENT:
                properties.comments.append(value)
            elif key == Field.DATATYPE:
                datatype = value
            elif key == Field.FILE:
                file_field = value
            else:
                properties[key] = value
        end_of_header = f.tell()

        for key in (Field.COUNT, Field.TOTAL_COUNT):
            if key in properties and not properties[key].isdecimal():
                raise HeaderError(f"Invalid '{key}' field in header: '{properties[key]}'")

        if datatype is None:
            msg = "Missing 'datatype' attribute in header. Assuming it is Float32LE."
            warnings.warn(msg, HeaderWarning)
            datatype = 'Float32LE'
        label, _ = get_datatype(datatype)

        if file_field is None:
            msg = "Missing 'file' attribute in header. Assuming data follows 'END'."
            warnings.warn(msg, HeaderWarning)
            data_offset = end_of_header
        else:
            parts = file_field.split()
            if parts[:1] != ['.']:
                raise HeaderError(
                    'Only single-file data is supported - the filename part must be '
                    f"'.' but '{file_field}' was specified."
                )
            try:
                data_offset = int(parts[1]) if len(parts) > 1 else end_of_header
            except ValueError:
                raise HeaderError(f"Invalid data offset in 'file: {file_field}'") from None
            if data_offset < end_of_header:
                raise HeaderError(f'Data offset {data_offset} lies inside the header')

        f.seek(data_offset, os.SEEK_SET)

    return properties, label


def load_properties(fileobj, file_type=None):
    """Return :class:`Properties` of a track file, leaving file position as is

    Parameters
    ----------
    fileobj : string or file-like object
        If string, a filename; otherwise an open file-like object in binary
        mode pointing to the beginning of the header.
    file_type : None or {'track scalars', 'tracks'}, optional
        If not None, the kind of file expected.
    """
    # Record start position if this is a file-like object
    start_position = fileobj.tell() if hasattr(fileobj, 'tell') else None
    properties, _ = read_header(fileobj, file_type)
    if start_position is not None:
        fileobj.seek(start_position, os.SEEK_SET)
    return properties
