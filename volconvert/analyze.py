"""Reader for Analyze 7.5 headers (.hdr, with voxel data in a .img file)."""

import logging

from volconvert.binary import BinaryReader, read_header_bytes, \
        resolve_byte_order, byte_order_name
from volconvert.codes import AnalyzeDataType, AnalyzeOrientation, lookup
from volconvert.core import companion_path, decode_text


logger = logging.getLogger(__name__)

HEADER_LENGTH = 348


class AnalyzeHeader:
    '''Fields of an Analyze 7.5 header, named as in the Mayo Clinic format.

    Parameters
    ----------
    source : str/bytes
        Path to a .hdr file, or the header bytes themselves (at least 348).
    '''

    def __init__(self, source):

        self.bytes = read_header_bytes(source, HEADER_LENGTH)
        self.byte_order = resolve_byte_order(self.bytes, HEADER_LENGTH)
        logger.info(f'Analyze header is {byte_order_name(self.byte_order)} '
                    'endian')
        hin = BinaryReader(self.bytes, self.byte_order)

        # header_key
        self.sizeof_hdr = hin.read_u32('sizeof_hdr')
        self.data_type = decode_text(hin.read_bytes(10))
        self.db_name = decode_text(hin.read_bytes(18))
        self.extents = hin.read_i32('extents')
        self.session_error = hin.read_i16('session_error')
        self.regular = hin.read_bytes(1)
        hin.skip(1)

        # image_dimension
        self.dim = tuple(hin.read_array('i2', 8, 'dim'))
        hin.skip(14)
        self.datatype_code = hin.read_i16('datatype')
        self.datatype = lookup(AnalyzeDataType, self.datatype_code)
        self.bitpix = hin.read_i16('bitpix')
        self.dim_un0 = hin.read_i16('dim_un0')
        self.pixdim = tuple(hin.read_array('f4', 8, 'pixdim'))
        self.vox_offset = hin.read_f32('vox_offset')
        hin.skip(12)
        self.cal_max = hin.read_f32('cal_max')
        self.cal_min = hin.read_f32('cal_min')
        self.compressed = hin.read_f32('compressed')
        self.verified = hin.read_f32('verified')
        self.glmax = hin.read_i32('glmax')
        self.glmin = hin.read_i32('glmin')

        # data_history
        self.descrip = decode_text(hin.read_bytes(80, 'descrip'))
        self.aux_file = decode_text(hin.read_bytes(24, 'aux_file'))
        self.orient_code = hin.read_u8('orient')
        self.orient = lookup(AnalyzeOrientation, self.orient_code)
        self.originator = hin.read_bytes(10, 'originator')
        self.generated = decode_text(hin.read_bytes(10, 'generated'))
        self.scannum = decode_text(hin.read_bytes(10, 'scannum'))
        self.patient_id = decode_text(hin.read_bytes(10, 'patient_id'))
        self.exp_date = decode_text(hin.read_bytes(10, 'exp_date'))
        self.exp_time = decode_text(hin.read_bytes(10, 'exp_time'))
        hin.skip(3)
        self.views = hin.read_i32('views')
        self.vols_added = hin.read_i32('vols_added')
        self.start_field = hin.read_i32('start_field')
        self.field_skip = hin.read_i32('field_skip')
        self.omax = hin.read_i32('omax')
        self.omin = hin.read_i32('omin')
        self.smax = hin.read_i32('smax')
        self.smin = hin.read_i32('smin')

        logger.debug(f'dim = {self.dim}')
        logger.debug(f'pixdim = {self.pixdim}')
        logger.debug(f'datatype = {self.datatype_code} {self.datatype.name}')
        logger.debug(f'orient = {self.orient_code} {self.orient.name}')

    @property
    def is_big_endian(self):
        return self.byte_order == '>'

    @property
    def number_of_dimensions(self):
        return self.dim[0]

    def __repr__(self):
        return (f'AnalyzeHeader(dim={self.dim}, pixdim={self.pixdim}, '
                f'datatype={self.datatype.name}, orient={self.orient.name})')


def read_analyze_header(source):
    '''Parse an Analyze 7.5 header from a path or bytes.'''

    return AnalyzeHeader(source)


def get_image_data_path(header_path):
    '''Analyze voxels are stored in a .img file next to the .hdr file.'''

    return companion_path(header_path, '.img')
