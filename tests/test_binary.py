'''Test endian-aware header reading.'''

import io
import gzip
import struct

import pytest
from pytest import approx

from volconvert.binary import BinaryReader, resolve_byte_order, \
        read_exactly, read_header_bytes
from volconvert.errors import ShortRead, FormatError


def test_scalar_reads():
    '''Check each scalar width is decoded in the reader's byte order.'''

    data = struct.pack('>BHhIifd', 7, 513, -2, 70000, -70000, 1.5, 2.25)
    reader = BinaryReader(data, '>')
    assert reader.read_u8() == 7
    assert reader.read_u16() == 513
    assert reader.read_i16() == -2
    assert reader.read_u32() == 70000
    assert reader.read_i32() == -70000
    assert reader.read_f32() == approx(1.5)
    assert reader.read_f64() == approx(2.25)
    assert reader.remaining() == 0


def test_short_read_leaves_position():
    '''Check reading past the end raises ShortRead with details, without
    moving the cursor.'''

    reader = BinaryReader(b'\x01\x02\x03', '<')
    reader.read_u8()
    with pytest.raises(ShortRead) as e:
        reader.read_u32('sizeof_hdr')
    assert e.value.requested == 4
    assert e.value.available == 2
    assert e.value.offset == 1
    assert e.value.field == 'sizeof_hdr'
    assert 'offset=1' in str(e.value)
    assert reader.tell() == 1


def test_mark_and_reset():
    '''Check a marked position can be returned to under another byte
    order.'''

    data = struct.pack('<I', 348)
    reader = BinaryReader(data, '<')
    reader.mark()
    assert reader.read_u32() == 348
    big = reader.with_byte_order('>')
    big.reset()
    assert big.read_u32() == struct.unpack('>I', data)[0]


def test_resolve_byte_order():
    '''Check the header length is found under either byte order.'''

    assert resolve_byte_order(struct.pack('<I', 348) + bytes(344), 348) \
        == '<'
    assert resolve_byte_order(struct.pack('>I', 348) + bytes(344), 348) \
        == '>'


def test_resolve_byte_order_fails():
    '''Check a length that matches neither byte order is a FormatError.'''

    with pytest.raises(FormatError) as e:
        resolve_byte_order(struct.pack('<I', 349), 348)
    assert e.value.field == 'sizeof_hdr'
    assert e.value.offset == 0
    assert 'indeterminate byte order' in str(e.value)
    with pytest.raises(ShortRead):
        resolve_byte_order(b'\x5c\x01', 348)


def test_read_exactly():
    '''Check exact reads from a file object.'''

    f = io.BytesIO(b'abcdef')
    assert read_exactly(f, 4) == b'abcd'
    with pytest.raises(ShortRead) as e:
        read_exactly(f, 4)
    assert e.value.available == 2
    assert e.value.offset == 4


def test_read_header_bytes(tmp_path):
    '''Check headers can come from bytes or (gzipped) files.'''

    data = bytes(range(200)) * 2
    assert read_header_bytes(data, 348) == data[:348]
    path = tmp_path / 'header.hdr.gz'
    with gzip.open(path, 'wb') as f:
        f.write(data)
    assert read_header_bytes(str(path), 348) == data[:348]
    with pytest.raises(ShortRead):
        read_header_bytes(data[:100], 348)
