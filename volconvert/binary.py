"""Endian-aware reading of fixed binary headers."""

import logging
import numpy as np

from volconvert.core import open_file
from volconvert.errors import ShortRead, FormatError


logger = logging.getLogger(__name__)

LITTLE = '<'
BIG = '>'

_byte_order_names = {LITTLE: 'little', BIG: 'big'}


class BinaryReader:
    '''Cursor over a bytes buffer, decoding scalars in a fixed byte order.

    All reads advance the cursor. A read that would run past the end of the
    buffer raises ShortRead and leaves the cursor where it was.
    '''

    def __init__(self, data, byte_order=LITTLE):
        if byte_order not in _byte_order_names:
            raise ValueError(f'Unknown byte order {byte_order!r}')
        self.data = bytes(data)
        self.byte_order = byte_order
        self.pos = 0
        self.marked = 0

    def __len__(self):
        return len(self.data)

    def tell(self):
        return self.pos

    def remaining(self):
        return len(self.data) - self.pos

    def mark(self):
        '''Remember the current position for a later reset().'''
        self.marked = self.pos

    def reset(self):
        '''Return to the last marked position.'''
        self.pos = self.marked

    def with_byte_order(self, byte_order):
        '''Return a new reader over the same bytes, at the same position,
        using <byte_order>.'''

        reader = BinaryReader(self.data, byte_order)
        reader.pos = self.pos
        reader.marked = self.marked
        return reader

    def _check(self, n, field=None):
        if n < 0:
            raise ValueError(f'Cannot read a negative number of bytes ({n})')
        if self.remaining() < n:
            raise ShortRead(n, self.remaining(), offset=self.pos, field=field)

    def read_bytes(self, n, field=None):
        '''Read exactly <n> bytes.'''

        self._check(n, field)
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def skip(self, n):
        '''Skip <n> bytes.'''

        self._check(n)
        self.pos += n

    def _read(self, code, field=None):
        dtype = np.dtype(self.byte_order + code)
        self._check(dtype.itemsize, field)
        value = np.frombuffer(self.data, dtype=dtype, count=1,
                              offset=self.pos)[0]
        self.pos += dtype.itemsize
        return value.item()

    def read_u8(self, field=None):
        return self._read('u1', field)

    def read_u16(self, field=None):
        return self._read('u2', field)

    def read_i16(self, field=None):
        return self._read('i2', field)

    def read_u32(self, field=None):
        return self._read('u4', field)

    def read_i32(self, field=None):
        return self._read('i4', field)

    def read_f32(self, field=None):
        return self._read('f4', field)

    def read_f64(self, field=None):
        return self._read('f8', field)

    def read_array(self, code, count, field=None):
        '''Read <count> scalars of numpy type <code> as a list.'''

        dtype = np.dtype(self.byte_order + code)
        self._check(dtype.itemsize * count, field)
        values = np.frombuffer(self.data, dtype=dtype, count=count,
                               offset=self.pos)
        self.pos += dtype.itemsize * count
        return values.tolist()


def resolve_byte_order(data, expected_length):
    '''Work out the byte order of a fixed-length binary header from its
    leading 4-byte length field.

    The field is read as little endian first; if it does not equal
    <expected_length> it is reinterpreted as big endian.

    Parameters
    ----------
    data : bytes
        Header bytes, at least the first 4 of which are used.

    expected_length : int
        Value the leading unsigned 32-bit field must hold.

    Returns
    -------
    str
        '<' for little endian or '>' for big endian.
    '''

    reader = BinaryReader(data, LITTLE)
    reader.mark()
    little = reader.read_u32('sizeof_hdr')
    if little == expected_length:
        logger.info('Header is little endian')
        return LITTLE
    reader = reader.with_byte_order(BIG)
    reader.reset()
    big = reader.read_u32('sizeof_hdr')
    if big == expected_length:
        logger.info('Header is big endian')
        return BIG
    raise FormatError(
        f'indeterminate byte order: sizeof_hdr is {little} read little '
        f'endian and {big} read big endian, expected {expected_length}',
        field='sizeof_hdr', value=(little, big), offset=0)


def read_exactly(fileobj, n, field=None):
    '''Read exactly <n> bytes from an open binary file object.'''

    offset = fileobj.tell() if fileobj.seekable() else None
    data = fileobj.read(n)
    if len(data) != n:
        raise ShortRead(n, len(data), offset=offset, field=field)
    return data


def read_header_bytes(source, length):
    '''Get the first <length> bytes of a header, from either a bytes-like
    object or a path to a (possibly gzipped) file.'''

    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        if len(data) < length:
            raise ShortRead(length, len(data), offset=0)
        return data[:length]
    with open_file(source) as f:
        return read_exactly(f, length)


def byte_order_name(byte_order):
    return _byte_order_names[byte_order]
