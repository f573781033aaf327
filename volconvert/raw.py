"""Description of headerless voxel files, supplied as a small JSON object."""

import json
import logging

from volconvert.codes import get_sample_type
from volconvert.errors import FormatError


logger = logging.getLogger(__name__)


class RawImageDescription:
    '''Type, extent and byte order of a raw voxel file.

    Parameters
    ----------
    source : str/dict
        Path to a JSON file, or an already loaded mapping, with keys
        "type", "rows", "columns", "frames" (default 1) and "endian"
        ("big" or "little", default little). Numbers may be given as
        strings or as JSON numbers.
    '''

    def __init__(self, source):

        if isinstance(source, dict):
            description = source
        else:
            with open(source, 'r') as f:
                try:
                    description = json.load(f)
                except json.JSONDecodeError as e:
                    raise FormatError(f'Invalid raw description: {e.msg}',
                                      offset=e.pos)
        if not isinstance(description, dict):
            raise FormatError('Raw description must be a JSON object',
                              value=type(description).__name__)

        for key in description:
            if key not in ('type', 'rows', 'columns', 'frames', 'endian'):
                logger.info(f'Ignoring unrecognised raw description key '
                            f'"{key}"')

        if 'type' not in description:
            raise FormatError('Missing value of type', field='type')
        self.type = get_sample_type(str(description['type']))
        self.rows = self._get_int(description, 'rows')
        self.columns = self._get_int(description, 'columns')
        self.frames = self._get_int(description, 'frames', 1)
        endian = str(description.get('endian', 'little')).lower()
        if endian not in ('big', 'little'):
            raise FormatError('endian must be "big" or "little"',
                              field='endian', value=endian)
        self.is_big_endian = endian == 'big'
        logger.debug(repr(self))

    @staticmethod
    def _get_int(description, key, default=None):
        if key not in description:
            if default is None:
                raise FormatError(f'Missing value of {key}', field=key)
            return default
        value = description[key]
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise FormatError(f'Value of {key} is not an integer', field=key,
                              value=value)
        if number < 1:
            raise FormatError(f'Value of {key} must be positive', field=key,
                              value=value)
        return number

    @property
    def byte_order(self):
        return '>' if self.is_big_endian else '<'

    def __repr__(self):
        endian = 'big' if self.is_big_endian else 'little'
        return (f'RawImageDescription(type={self.type.name}, '
                f'rows={self.rows}, columns={self.columns}, '
                f'frames={self.frames}, endian={endian})')


def read_raw_description(source):
    '''Load a raw image description from a JSON file path or a mapping.'''

    return RawImageDescription(source)
