"""Reading typed voxel samples and putting them in destination frame order."""

import logging
from collections import namedtuple

import numpy as np

from volconvert.binary import read_exactly
from volconvert.codes import AnalyzeDataType, NiftiDataType, SampleType
from volconvert.errors import UnsupportedDataTypeError, ShortRead
from volconvert.layout import FrameOrder


logger = logging.getLogger(__name__)


class PixelEncoding(namedtuple('PixelEncoding', [
        'bits_allocated', 'signed', 'samples_per_pixel',
        'photometric_interpretation', 'is_float', 'dtype'])):
    '''How each sample of a VoxelBuffer is stored. <dtype> is a numpy type
    code without byte order, e.g. "i2".'''

    __slots__ = ()

    @property
    def itemsize(self):
        return self.bits_allocated // 8

    def get_dtype(self, byte_order='='):
        return np.dtype(byte_order + self.dtype)


UINT8 = PixelEncoding(8, False, 1, 'MONOCHROME2', False, 'u1')
INT8 = PixelEncoding(8, True, 1, 'MONOCHROME2', False, 'i1')
UINT16 = PixelEncoding(16, False, 1, 'MONOCHROME2', False, 'u2')
INT16 = PixelEncoding(16, True, 1, 'MONOCHROME2', False, 'i2')
FLOAT32 = PixelEncoding(32, True, 1, 'MONOCHROME2', True, 'f4')
FLOAT64 = PixelEncoding(64, True, 1, 'MONOCHROME2', True, 'f8')
RGB24 = PixelEncoding(8, False, 3, 'RGB', False, 'u1')

# Each source enumeration is looked up separately, since IntEnum members
# with equal values compare equal across enumerations.
_encodings = {
    AnalyzeDataType: {
        AnalyzeDataType.UNSIGNED_CHAR: UINT8,
        AnalyzeDataType.SIGNED_SHORT: INT16,
        AnalyzeDataType.FLOAT: FLOAT32,
        AnalyzeDataType.DOUBLE: FLOAT64,
        AnalyzeDataType.RGB: RGB24,
    },
    NiftiDataType: {
        NiftiDataType.UINT8: UINT8,
        NiftiDataType.INT8: INT8,
        NiftiDataType.UINT16: UINT16,
        NiftiDataType.INT16: INT16,
        NiftiDataType.FLOAT32: FLOAT32,
        NiftiDataType.FLOAT64: FLOAT64,
        NiftiDataType.RGB24: RGB24,
    },
    SampleType: {
        SampleType.UINT8: UINT8,
        SampleType.INT8: INT8,
        SampleType.UINT16: UINT16,
        SampleType.INT16: INT16,
        SampleType.FLOAT32: FLOAT32,
        SampleType.FLOAT64: FLOAT64,
    },
}


def encoding_for(kind):
    '''Get PixelEncoding for an Analyze, NIfTI-1 or NRRD/raw data type.

    Raises UnsupportedDataTypeError for types that cannot be stored as
    8/16-bit integers, 32/64-bit floats or 24-bit RGB.
    '''

    encoding = _encodings.get(type(kind), {}).get(kind)
    if encoding is None:
        name = getattr(kind, 'name', kind)
        raise UnsupportedDataTypeError(f'Conversion of {name} not supported',
                                       field='datatype',
                                       value=getattr(kind, 'value', kind))
    return encoding


def read_voxels(stream, count, encoding, byte_order='<'):
    '''Read exactly <count> pixels from a binary stream.

    Parameters
    ----------
    stream : file
        Open binary file, positioned at the first voxel.

    count : int
        Number of pixels (rows x columns x frames); each pixel holds
        encoding.samples_per_pixel samples.

    encoding : PixelEncoding
        Sample type.

    byte_order : str, default='<'
        '<' or '>' for little or big endian source data.

    Returns
    -------
    numpy.ndarray
        1D array of count * samples_per_pixel samples in native byte order.
    '''

    n_samples = count * encoding.samples_per_pixel
    n_bytes = n_samples * encoding.itemsize
    data = read_exactly(stream, n_bytes, field='pixel data')
    values = np.frombuffer(data, dtype=encoding.get_dtype(byte_order))
    return values.astype(encoding.get_dtype('='))


def to_frames(values, frames, rows, columns, samples_per_pixel=1):
    '''Shape a flat, frame-major buffer as (frames, rows, columns[,
    samples]).'''

    expected = frames * rows * columns * samples_per_pixel
    if values.size != expected:
        raise ShortRead(expected, values.size, field='pixel data')
    if samples_per_pixel > 1:
        return values.reshape(frames, rows, columns, samples_per_pixel)
    return values.reshape(frames, rows, columns)


def reorganize(values, layout, order=FrameOrder.SLICE_MAJOR):
    '''Permute source samples into destination frames.

    The source varies fastest over scalars, then columns, rows, slices and
    volumes. The destination holds one frame per (volume, slice, scalar),
    numbered as layout.frame_index() does for <order>.

    Parameters
    ----------
    values : numpy.ndarray
        Flat array of layout.number_of_elements samples, of any dtype.

    layout : DimensionLayout
        Axis roles of the source.

    order : FrameOrder, default=FrameOrder.SLICE_MAJOR
        Destination frame order.

    Returns
    -------
    numpy.ndarray
        Array of shape (frames, rows, columns).
    '''

    shape = (layout.volumes, layout.slices, layout.rows, layout.columns,
             layout.scalars)
    if values.size != layout.number_of_elements:
        raise ShortRead(layout.number_of_elements, values.size,
                        field='pixel data')
    frames = (layout.number_of_frames, layout.rows, layout.columns)
    if not layout.needs_reorganizing:
        return values.reshape(frames)

    source = values.reshape(shape)
    if order is FrameOrder.SCALAR_MAJOR:
        # (volume, scalar, slice, row, column)
        permuted = source.transpose(0, 4, 1, 2, 3)
    else:
        # (volume, slice, scalar, row, column)
        permuted = source.transpose(0, 1, 4, 2, 3)
    logger.debug(f'Reorganized {values.size} samples from {shape} '
                 f'to {order.value} frames')
    return np.ascontiguousarray(permuted).reshape(frames)


Window = namedtuple('Window', ['center', 'width'])


def min_max(values):
    '''Get (minimum, maximum) of the finite values in an array, or None if
    there are none.'''

    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return None
    return float(finite.min()), float(finite.max())


def window_for(values, encoding):
    '''Window spanning the full range of floating-point data; None for
    integer data.'''

    if not encoding.is_float:
        return None
    extent = min_max(values)
    if extent is None:
        return None
    low, high = extent
    return Window((high + low) / 2, high - low)
