"""Reader for NIfTI-1 headers (.nii, .nii.gz, or .hdr/.img pairs)."""

import logging

from volconvert.binary import BinaryReader, read_header_bytes, \
        resolve_byte_order, byte_order_name
from volconvert.codes import NiftiDataType, Intent, SliceOrder, Units, \
        CoordinateTransform, lookup
from volconvert.core import companion_path, decode_text
from volconvert.errors import FormatError


logger = logging.getLogger(__name__)

HEADER_LENGTH = 348
MAGIC_OFFSET = HEADER_LENGTH - 4
SINGLE_FILE_MAGIC = b'n+1\x00'
DUAL_FILE_MAGIC = b'ni1\x00'


class Nifti1Header:
    '''Fields of a NIfTI-1 header, named as in nifti1.h.

    Parameters
    ----------
    source : str/bytes
        Path to a .nii, .nii.gz or .hdr file, or the header bytes themselves
        (at least 348).
    '''

    def __init__(self, source):

        self.bytes = read_header_bytes(source, HEADER_LENGTH)
        self.magic = self.bytes[MAGIC_OFFSET:HEADER_LENGTH]
        if self.magic not in (SINGLE_FILE_MAGIC, DUAL_FILE_MAGIC):
            raise FormatError('Not a NIfTI-1 magic number', field='magic',
                              value=self.magic, offset=MAGIC_OFFSET)
        self.byte_order = resolve_byte_order(self.bytes, HEADER_LENGTH)
        logger.info(f'NIfTI-1 header is {byte_order_name(self.byte_order)} '
                    'endian')
        hin = BinaryReader(self.bytes, self.byte_order)

        self.sizeof_hdr = hin.read_u32('sizeof_hdr')
        hin.skip(35)
        self.dim_info = hin.read_u8('dim_info')
        self.dim = tuple(hin.read_array('i2', 8, 'dim'))
        self.intent_p1 = hin.read_f32('intent_p1')
        self.intent_p2 = hin.read_f32('intent_p2')
        self.intent_p3 = hin.read_f32('intent_p3')
        self.intent_code = hin.read_i16('intent_code')
        self.intent = lookup(Intent, self.intent_code)
        self.datatype_code = hin.read_i16('datatype')
        self.datatype = lookup(NiftiDataType, self.datatype_code)
        self.bitpix = hin.read_i16('bitpix')
        self.slice_start = hin.read_i16('slice_start')
        self.pixdim = tuple(hin.read_array('f4', 8, 'pixdim'))
        self.vox_offset = hin.read_f32('vox_offset')
        self.scl_slope = hin.read_f32('scl_slope')
        self.scl_inter = hin.read_f32('scl_inter')
        self.slice_end = hin.read_i16('slice_end')
        self.slice_code = hin.read_u8('slice_code')
        self.slice_order = lookup(SliceOrder, self.slice_code)

        # Bits 0-2 hold the spatial units, bits 3-5 the temporal units
        self.xyzt_units = hin.read_u8('xyzt_units')
        self.spatial_units = lookup(Units, self.xyzt_units & 0x07)
        self.temporal_units = lookup(Units, self.xyzt_units & 0x38)

        self.cal_max = hin.read_f32('cal_max')
        self.cal_min = hin.read_f32('cal_min')
        self.slice_duration = hin.read_f32('slice_duration')
        self.toffset = hin.read_f32('toffset')
        hin.skip(8)
        self.descrip = decode_text(hin.read_bytes(80, 'descrip'))
        self.aux_file = decode_text(hin.read_bytes(24, 'aux_file'))
        self.qform_code = hin.read_i16('qform_code')
        self.qform = lookup(CoordinateTransform, self.qform_code)
        self.sform_code = hin.read_i16('sform_code')
        self.sform = lookup(CoordinateTransform, self.sform_code)
        self.quatern_b = hin.read_f32('quatern_b')
        self.quatern_c = hin.read_f32('quatern_c')
        self.quatern_d = hin.read_f32('quatern_d')
        self.qoffset_x = hin.read_f32('qoffset_x')
        self.qoffset_y = hin.read_f32('qoffset_y')
        self.qoffset_z = hin.read_f32('qoffset_z')
        self.srow_x = tuple(hin.read_array('f4', 4, 'srow_x'))
        self.srow_y = tuple(hin.read_array('f4', 4, 'srow_y'))
        self.srow_z = tuple(hin.read_array('f4', 4, 'srow_z'))
        self.intent_name = decode_text(hin.read_bytes(16, 'intent_name'))

        logger.debug(f'dim = {self.dim}')
        logger.debug(f'pixdim = {self.pixdim}')
        logger.debug(f'datatype = {self.datatype_code} {self.datatype.name}')
        logger.debug(f'qform_code = {self.qform_code}, '
                     f'sform_code = {self.sform_code}')
        logger.debug(f'quatern = ({self.quatern_b}, {self.quatern_c}, '
                     f'{self.quatern_d}), qoffset = ({self.qoffset_x}, '
                     f'{self.qoffset_y}, {self.qoffset_z})')
        logger.debug(f'srow_x = {self.srow_x}, srow_y = {self.srow_y}, '
                     f'srow_z = {self.srow_z}')

    @property
    def is_single_file(self):
        return self.magic == SINGLE_FILE_MAGIC

    @property
    def is_big_endian(self):
        return self.byte_order == '>'

    @property
    def number_of_dimensions(self):
        return self.dim[0]

    def image_data_path(self, header_path):
        '''Path of the file holding the voxels: the header file itself for
        single-file NIfTI, otherwise the matching .img file.'''

        if self.is_single_file:
            return str(header_path)
        return companion_path(header_path, '.img')

    def __repr__(self):
        return (f'Nifti1Header(dim={self.dim}, pixdim={self.pixdim}, '
                f'datatype={self.datatype.name}, '
                f'qform_code={self.qform_code}, '
                f'sform_code={self.sform_code})')


def read_nifti1_header(source):
    '''Parse a NIfTI-1 header from a path or bytes.'''

    return Nifti1Header(source)


def is_nifti1(source):
    '''Check whether a header carries a NIfTI-1 magic number.'''

    data = read_header_bytes(source, HEADER_LENGTH)
    return data[MAGIC_OFFSET:HEADER_LENGTH] in (SINGLE_FILE_MAGIC,
                                                DUAL_FILE_MAGIC)
