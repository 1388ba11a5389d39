"""Tests for track scalar file reading / writing"""

import gzip
import os
import shutil
import unittest
from io import BytesIO
from unittest import mock

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from ..errors import DataError, HeaderError, HeaderWarning, StreamWriteError
from ..header import load_properties, read_header, write_header
from ..properties import Properties
from ..scalar_file import (
    ScalarBuffer,
    ScalarReader,
    ScalarWriter,
    load_scalars,
    save_scalars,
)
from ..tmpdirs import InTemporaryDirectory

TIMESTAMP = '1378897410.5419230461'

DATA = {}


def setup_module():
    DATA['scalars'] = [
        np.arange(3, dtype='f4'),
        np.array([0.5, -1.25], dtype='f4'),
        np.array([], dtype='f4'),
        np.linspace(0, 1, 11).astype('f4'),
        np.array([42], dtype='f4'),
        np.array([], dtype='f4'),
    ]
    DATA['nonempty_scalars'] = [s for s in DATA['scalars'] if s.size]


def make_props(**kwargs):
    return Properties(timestamp=TIMESTAMP, **kwargs)


def assert_scalars_equal(actual, expected):
    actual = list(actual)
    assert len(actual) == len(expected)
    for a, e in zip(actual, expected):
        assert_array_equal(a, e)


def count_writes():
    """Patch ``ScalarWriter._write`` to count calls, keeping its behavior"""
    return mock.patch.object(
        ScalarWriter, '_write', autospec=True, side_effect=ScalarWriter._write
    )


def make_body(values, dtype='<f4'):
    bio = BytesIO()
    write_header(bio, make_props(), datatype=dtype)
    bio.write(np.array(values, dtype=dtype).tobytes())
    bio.seek(0)
    return bio


class TestScalarWriter(unittest.TestCase):
    def test_scenario(self):
        with InTemporaryDirectory():
            with ScalarWriter('scalars.tsf', make_props(), 'Float32LE') as writer:
                for scalars in ([1.0, 2.5], [], [3.0]):
                    assert writer.append(scalars) is True
            assert writer.count == 2
            assert writer.total_count == 3

            props = load_properties('scalars.tsf')
            assert props.count == 2
            assert props.total_count == 3
            assert props.timestamp == TIMESTAMP

            reader = ScalarReader('scalars.tsf')
            assert reader.datatype == 'Float32LE'
            assert_array_equal(next(reader), [1.0, 2.5])
            assert_array_equal(next(reader), [3.0])
            with pytest.raises(StopIteration):
                next(reader)
            assert reader.closed

    def test_empty_file(self):
        with InTemporaryDirectory():
            ScalarWriter('empty.tsf', make_props()).close()
            props, scalars = load_scalars('empty.tsf')
            assert scalars == []
            assert props.count == 0
            assert props.total_count == 0
            # Header then end-of-stream marker
            _, data_offset = write_header(BytesIO(), make_props())
            with open('empty.tsf', 'rb') as fobj:
                content = fobj.read()
            assert len(content) == data_offset + 4
            assert content[data_offset:] == np.array([np.inf], '<f4').tobytes()

    def test_round_trip_datatypes(self):
        for datatype in ('Float32LE', 'Float32BE', 'Float64LE', 'Float64BE'):
            with InTemporaryDirectory():
                total = save_scalars('data.tsf', DATA['scalars'], make_props(), datatype)
                assert total == len(DATA['scalars'])
                with ScalarReader('data.tsf') as reader:
                    assert reader.datatype == datatype
                    assert reader.dtype.itemsize == (4 if '32' in datatype else 8)
                    assert reader.dtype.isnative
                    assert_scalars_equal(reader, DATA['nonempty_scalars'])
                    assert reader.properties.count == len(DATA['nonempty_scalars'])
                    assert reader.properties.total_count == len(DATA['scalars'])

    def test_body_encoding(self):
        with InTemporaryDirectory():
            with ScalarWriter('be.tsf', make_props(), 'Float32BE') as writer:
                writer.append([1, 2.5])
                data_offset = writer._offset
            with open('be.tsf', 'rb') as fobj:
                fobj.seek(data_offset)
                body = fobj.read()
            expected = np.array([1, 2.5, np.nan, np.inf], dtype='>f4').tobytes()
            assert body == expected

    def test_properties_kept(self):
        props = make_props(method='iFOD2', step_size='0.5')
        props.comments.append('sampled FA')
        with InTemporaryDirectory():
            save_scalars('fa.tsf', [[1.0]], props)
            new_props = load_properties('fa.tsf', 'track scalars')
        assert new_props.timestamp == TIMESTAMP
        assert new_props['method'] == 'iFOD2'
        assert new_props['step_size'] == '0.5'
        assert new_props.comments == ['sampled FA']
        # Input properties are not modified
        assert 'count' not in props

    def test_timestamp_copied_not_generated(self):
        track_props = Properties()
        track_props.set_timestamp()
        track_props['count'] = '2'
        with InTemporaryDirectory():
            save_scalars('s.tsf', [[1], [2]], track_props)
            assert load_properties('s.tsf').timestamp == track_props.timestamp

    def test_missing_timestamp(self):
        with InTemporaryDirectory():
            with pytest.warns(HeaderWarning, match='timestamp'):
                ScalarWriter('s.tsf', Properties()).close()

    def test_commit_threshold(self):
        # Room for 10 float32 values
        with InTemporaryDirectory(), count_writes() as write:
            writer = ScalarWriter('s.tsf', make_props(), buffer_size=40)
            assert writer.buffer_capacity == 10
            writer.append([1, 2, 3, 4])
            writer.append([5, 6, 7, 8])
            # Buffer exactly full; nothing written yet
            assert write.call_count == 0
            assert load_properties('s.tsf').count == 0
            writer.append([9])
            assert write.call_count == 1
            props = load_properties('s.tsf')
            assert props.count == 2
            assert props.total_count == 2
            writer.close()
            assert write.call_count == 2
            assert load_properties('s.tsf').count == 3
            _, scalars = load_scalars('s.tsf')
            assert_scalars_equal(scalars, [[1, 2, 3, 4], [5, 6, 7, 8], [9]])

    def test_writes_independent_of_appends(self):
        with InTemporaryDirectory(), count_writes() as write:
            with ScalarWriter('s.tsf', make_props()) as writer:
                for i in range(500):
                    writer.append([i, i + 0.5])
                    writer.append([])
                assert write.call_count == 0
            assert write.call_count == 1
            props, scalars = load_scalars('s.tsf')
            assert len(scalars) == 500
            assert props.count == 500
            assert props.total_count == 1000

    def test_commit_count(self):
        # Room for 16 float64 values: 3 streamlines of 4 values per commit
        with InTemporaryDirectory(), count_writes() as write:
            with ScalarWriter('s.tsf', make_props(), 'Float64LE', buffer_size=128) as writer:
                for i in range(10):
                    writer.append(np.arange(4) + i)
                    props = load_properties('s.tsf')
                    # Count on file only covers committed streamlines
                    assert props.count <= writer.count
                    assert props.count % 3 == 0
            assert write.call_count == 4
            props, scalars = load_scalars('s.tsf')
            assert props.count == 10
            assert_scalars_equal(scalars, [np.arange(4) + i for i in range(10)])

    def test_count_excludes_empty(self):
        with InTemporaryDirectory():
            with ScalarWriter('s.tsf', make_props()) as writer:
                writer.append([1])
                writer.append([])
                writer.append([2, 3])
                writer.commit()
                # Only empty streamlines after last commit
                writer.append([])
                writer.append(np.array([]))
            props = load_properties('s.tsf')
            assert props.count == 2
            assert props.total_count == 5
            assert writer.properties.count == 2
            assert writer.properties.total_count == 5

    def test_sequence_larger_than_buffer(self):
        with InTemporaryDirectory(), count_writes() as write:
            with ScalarWriter('s.tsf', make_props(), buffer_size=16) as writer:
                writer.append([1])
                writer.append(np.arange(10))
                # Pending values flushed, then large streamline written
                assert write.call_count == 2
                writer.append([2])
            _, scalars = load_scalars('s.tsf')
            assert_scalars_equal(scalars, [[1], np.arange(10), [2]])

    def test_close_on_error(self):
        with InTemporaryDirectory():
            with pytest.raises(RuntimeError):
                with ScalarWriter('s.tsf', make_props()) as writer:
                    writer.append([1, 2])
                    raise RuntimeError('computation failed')
            assert writer.closed
            _, scalars = load_scalars('s.tsf')
            assert_scalars_equal(scalars, [[1, 2]])

    def test_append_errors(self):
        with InTemporaryDirectory():
            writer = ScalarWriter('s.tsf', make_props())
            with pytest.raises(DataError):
                writer.append([1, np.nan])
            with pytest.raises(DataError):
                writer.append([np.inf])
            assert writer.total_count == 0
            writer.close()
            writer.close()  # Closing twice is fine
            with pytest.raises(ValueError):
                writer.append([1])

    def test_invalid_parameters(self):
        with InTemporaryDirectory():
            with pytest.raises(ValueError):
                ScalarWriter('s.tsf', make_props(), buffer_size=4)
            with pytest.raises(HeaderError):
                ScalarWriter('s.tsf', make_props(), datatype='Int16LE')
            with pytest.raises(HeaderError):
                ScalarWriter('s.tsf', make_props(bad='two\nlines'))

    def test_write_failure(self):
        with InTemporaryDirectory():
            writer = ScalarWriter('s.tsf', make_props())
            writer.append([1, 2])
            with mock.patch(
                'trackscalars.scalar_file.update_counts', side_effect=OSError('disk full')
            ):
                with pytest.raises(StreamWriteError, match='disk full'):
                    writer.commit()
            # The writer gives up after a failed commit
            assert writer.closed
            with pytest.raises(ValueError):
                writer.append([3])
            writer.close()

    def test_write_failure_on_close(self):
        with InTemporaryDirectory():
            writer = ScalarWriter('s.tsf', make_props())
            writer.append([3])
            os.remove('s.tsf')
            with pytest.raises(StreamWriteError):
                writer.close()
            assert writer.closed

    def test_failed_commit_not_repeated(self):
        with InTemporaryDirectory():
            with ScalarWriter('s.tsf', make_props()) as writer:
                writer.append([1, 2])
                with mock.patch(
                    'trackscalars.scalar_file.update_counts', side_effect=OSError('disk full')
                ), pytest.raises(StreamWriteError):
                    writer.commit()
                with open('s.tsf', 'rb') as fobj:
                    contents = fobj.read()
            # Leaving the block must not write the buffered values again
            with open('s.tsf', 'rb') as fobj:
                assert fobj.read() == contents
            props, scalars = load_scalars('s.tsf')
            assert_scalars_equal(scalars, [[1, 2]])
            assert props.count == 0

    def test_failed_commit_in_append(self):
        # Buffer of 4 values; the second append needs a commit
        with InTemporaryDirectory(), count_writes() as write:
            with pytest.raises(StreamWriteError):
                with ScalarWriter('s.tsf', make_props(), buffer_size=16) as writer:
                    writer.append([1, 2])
                    with mock.patch(
                        'trackscalars.scalar_file.update_counts',
                        side_effect=OSError('disk full'),
                    ):
                        writer.append([3])
            assert writer.closed
            assert write.call_count == 1
            _, scalars = load_scalars('s.tsf')
            assert_scalars_equal(scalars, [[1, 2]])


class TestScalarReader(unittest.TestCase):
    def test_read_stream(self):
        reader = ScalarReader(make_body([1, 2, np.nan, 3, np.nan, np.inf]))
        assert reader.properties.timestamp == TIMESTAMP
        assert_scalars_equal(reader, [[1, 2], [3]])

    def test_empty_sequence(self):
        # A lone delimiter is an empty streamline
        bio = make_body([1, np.nan, np.nan, 2, np.nan, np.inf])
        assert_scalars_equal(ScalarReader(bio), [[1], [], [2]])

    def test_truncated(self):
        terminated = list(ScalarReader(make_body([1, 2, np.nan, 3, np.nan, np.inf])))
        truncated = list(ScalarReader(make_body([1, 2, np.nan, 3, np.nan])))
        assert_scalars_equal(truncated, terminated)
        # Partial streamline and partial value are ignored
        bio = make_body([1, 2, np.nan, 3, 4])
        bio = BytesIO(bio.getvalue() + b'\x00\x00')
        assert_scalars_equal(ScalarReader(bio), [[1, 2]])

    def test_end_marker_before_eof(self):
        bio = make_body([1, np.nan, np.inf, 5, np.nan])
        assert_scalars_equal(ScalarReader(bio), [[1]])
        # Negative infinity also ends the stream
        bio = make_body([1, np.nan, -np.inf, 5, np.nan])
        assert_scalars_equal(ScalarReader(bio), [[1]])

    def test_not_restartable(self):
        with InTemporaryDirectory():
            save_scalars('s.tsf', [[1], [2]], make_props())
            reader = ScalarReader('s.tsf')
            assert_scalars_equal(reader, [[1], [2]])
            assert reader.closed
            assert reader._opener.closed
            assert list(reader) == []
            with pytest.raises(StopIteration):
                next(reader)

    def test_fileobj_not_closed(self):
        bio = make_body([1, np.nan, np.inf])
        with ScalarReader(bio) as reader:
            assert_scalars_equal(reader, [[1]])
        assert not bio.closed

    def test_small_buffer(self):
        values = [1, 2, np.nan, 3, np.nan, 4, 5, 6, np.nan, np.inf]
        for dtype in ('<f4', '>f8'):
            bio = make_body(values, dtype)
            # Chunks of a single value
            reader = ScalarReader(bio, buffer_size=1.0 / 1024**2)
            assert_scalars_equal(reader, [[1, 2], [3], [4, 5, 6]])

    def test_output_dtype(self):
        bio = make_body([1, 2, np.nan, np.inf], '>f4')
        reader = ScalarReader(bio, dtype=np.float64)
        scalars = next(reader)
        assert scalars.dtype == np.float64
        # Returned arrays are writeable copies
        scalars[0] = 99
        assert scalars.flags.writeable

    def test_wrong_file(self):
        bio = BytesIO()
        write_header(bio, make_props(), 'tracks')
        bio.seek(0)
        with pytest.raises(HeaderError):
            ScalarReader(bio)
        with InTemporaryDirectory():
            with open('not_tsf.txt', 'wb') as fobj:
                fobj.write(b'some text\n')
            with pytest.raises(HeaderError):
                ScalarReader('not_tsf.txt')

    def test_gzipped(self):
        with InTemporaryDirectory():
            save_scalars('s.tsf', DATA['scalars'], make_props(), 'Float64BE')
            with open('s.tsf', 'rb') as f_in, gzip.open('s.tsf.gz', 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
            props, scalars = load_scalars('s.tsf.gz')
            assert props.total_count == len(DATA['scalars'])
            assert_scalars_equal(scalars, DATA['nonempty_scalars'])


def test_read_header_of_written_file():
    with InTemporaryDirectory():
        save_scalars('s.tsf', [[1.5]], make_props(), 'Float64LE')
        with open('s.tsf', 'rb') as fobj:
            props, datatype = read_header(fobj, 'track scalars')
            assert datatype == 'Float64LE'
            assert np.frombuffer(fobj.read(), '<f8').tolist()[:1] == [1.5]


def test_scalar_buffer():
    buff = ScalarBuffer(4, '>f4')
    assert buff.capacity == 4
    assert len(buff) == 0
    buff.extend([1, 2])
    buff.extend(np.nan)
    assert buff.fill == 3
    assert buff.data.dtype == np.dtype('>f4')
    assert buff.data.tobytes() == np.array([1, 2, np.nan], '>f4').tobytes()
    with pytest.raises(ValueError):
        buff.extend([3, 4])
    buff.extend([3])
    assert buff.fill == buff.capacity
    buff.clear()
    assert len(buff) == 0
    assert buff.capacity == 4
