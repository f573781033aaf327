"""Reader for NRRD headers (.nrrd with inline data, or detached .nhdr)."""

import os
import re
import logging

from volconvert.codes import get_sample_type
from volconvert.errors import FormatError


logger = logging.getLogger(__name__)

_chunk_size = 4096
_token = re.compile(r'\([^)]*\)|[^\s()]+')
_encodings = {
    'raw': 'raw',
    'gzip': 'gzip',
    'gz': 'gzip',
}


class NrrdHeader:
    '''Fields and key/value pairs of an NRRD header.

    Parameters
    ----------
    source : str/bytes
        Path to a .nrrd or .nhdr file, or the file's bytes.

    Attributes
    ----------
    fields : dict
        Values of "field: value" lines.

    keys : dict
        Values of "key:=value" lines.

    byte_offset_of_binary : int
        Offset in the source at which inline voxel data begins, or 0 if the
        header names a separate data file.
    '''

    def __init__(self, source):

        self.path = None
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
            end = find_binary_offset(data)
        else:
            self.path = str(source)
            with open(self.path, 'rb') as f:
                data, end = read_until_blank_line(f)

        text = data[:end if end is not None else len(data)]
        lines = text.decode('utf-8', errors='replace').splitlines()
        if not lines or not lines[0].startswith('NRRD'):
            raise FormatError('Not an NRRD magic number', field='magic',
                              value=lines[0] if lines else '', offset=0)
        self.magic = lines[0]
        self.fields = {}
        self.keys = {}
        self.comments = []
        for number, line in enumerate(lines[1:], 2):
            if not line:
                break
            if line.startswith('#'):
                self.comments.append(line[1:].strip())
                continue
            if ': ' in line:
                field, value = line.split(': ', 1)
                self.fields[field.strip()] = value.strip()
                logger.debug(f'Field: "{field}" Description: "{value}"')
            elif ':=' in line:
                key, value = line.split(':=', 1)
                self.keys[key] = value
                logger.debug(f'Key: "{key}" Value: "{value}"')
            else:
                logger.info('Unrecognised pattern of NRRD header line '
                            f'{number}: "{line}"')

        # Only look for inline data when there is no separate data file
        self.byte_offset_of_binary = 0
        if not self.data_file:
            self.byte_offset_of_binary = end if end is not None else len(data)
            logger.info(f'byte_offset_of_binary = {self.byte_offset_of_binary}')

    def _get_int(self, field):
        value = self.fields.get(field)
        if value is None:
            raise FormatError(f'Missing value of {field}', field=field)
        try:
            return int(value)
        except ValueError:
            raise FormatError(f'Value of {field} is not an integer',
                              field=field, value=value)

    @property
    def dimension(self):
        return self._get_int('dimension')

    @property
    def sizes(self):
        value = self.fields.get('sizes')
        if not value:
            raise FormatError('Missing value of sizes', field='sizes')
        try:
            return [int(v) for v in value.split()]
        except ValueError:
            raise FormatError('Value of sizes is not a list of integers',
                              field='sizes', value=value)

    @property
    def type(self):
        return get_sample_type(self.fields.get('type'))

    @property
    def space(self):
        return self.fields.get('space')

    @property
    def space_directions(self):
        '''List with one (x, y, z) tuple per axis, or None for axes marked
        "none"; None if the field is absent.'''

        value = self.fields.get('space directions')
        if value is None:
            return None
        directions = []
        for i, token in enumerate(_token.findall(value)):
            if token == 'none':
                directions.append(None)
            else:
                directions.append(parse_vector(token,
                                               f'space directions[{i}]'))
        return directions

    @property
    def space_origin(self):
        value = self.fields.get('space origin')
        if value is None:
            return None
        return parse_vector(value, 'space origin')

    @property
    def is_big_endian(self):
        # Optional for single byte data, so anything but "big" means little
        return self.fields.get('endian') == 'big'

    @property
    def encoding(self):
        value = self.fields.get('encoding', 'raw')
        encoding = _encodings.get(value)
        if encoding is None:
            raise FormatError('Unsupported NRRD data encoding',
                              field='encoding', value=value)
        return encoding

    @property
    def is_gzip(self):
        return self.encoding == 'gzip'

    @property
    def byte_skip(self):
        if 'byte skip' not in self.fields:
            return 0
        skip = self._get_int('byte skip')
        if skip < 0:
            raise FormatError('Negative byte skip is not supported',
                              field='byte skip', value=skip)
        return skip

    @property
    def data_file(self):
        value = self.fields.get('data file', self.fields.get('datafile'))
        if value is None or not value.strip():
            return None
        return value.strip()

    def data_file_path(self, header_path=None):
        '''Path of the file holding the voxels.

        A "data file" field is resolved relative to the header's directory;
        otherwise the voxels follow the header in the same file.
        '''

        if header_path is None:
            header_path = self.path
        if self.data_file is None:
            return header_path
        if self.data_file.startswith('LIST') or '%' in self.data_file:
            raise FormatError('Multiple NRRD data files are not supported',
                              field='data file', value=self.data_file)
        if header_path is None or os.path.isabs(self.data_file):
            return self.data_file
        return os.path.join(os.path.dirname(str(header_path)),
                            self.data_file)

    def __repr__(self):
        return f'NrrdHeader({self.magic!r}, fields={self.fields})'


def read_nrrd_header(source):
    '''Parse an NRRD header from a path or bytes.'''

    return NrrdHeader(source)


def parse_vector(token, field):
    '''Parse a "(a,b,c)" vector into a tuple of three floats.'''

    token = token.strip()
    if not (token.startswith('(') and token.endswith(')')):
        raise FormatError(f'vector value of {field} not enclosed in "(" '
                          'and ")"', field=field, value=token)
    parts = token[1:-1].split(',')
    if len(parts) != 3:
        raise FormatError(f'vector value of {field} does not contain three '
                          'values', field=field, value=token)
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise FormatError(f'vector value of {field} is not numeric',
                          field=field, value=token)


def _scan(chunk, last_was_newline):
    '''Scan bytes for two newlines separated by nothing but carriage
    returns. Returns (index just past the second newline or None, state).'''

    for i, c in enumerate(chunk):
        if c == 0x0A:
            if last_was_newline:
                return i + 1, True
            last_was_newline = True
        elif c != 0x0D:
            last_was_newline = False
    return None, last_was_newline


def find_binary_offset(data):
    '''Byte offset just past the blank line ending an NRRD header, or None
    if the data holds no blank line.'''

    return _scan(data, True)[0]


def read_until_blank_line(f):
    '''Read a file in chunks until the header's blank line is found.

    Returns the bytes read and the offset of the first byte after the
    blank line (None if end of file was reached first). Bytes after the
    blank line are not interpreted.
    '''

    data = b''
    last_was_newline = True
    while True:
        chunk = f.read(_chunk_size)
        if not chunk:
            return data, None
        found, last_was_newline = _scan(chunk, last_was_newline)
        if found is not None:
            return data + chunk[:found], len(data) + found
        data += chunk
