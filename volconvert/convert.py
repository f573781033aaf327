"""Conversion of Analyze 7.5, NIfTI-1, NRRD and raw voxel files to a single
ConversionResult."""

import os
import gzip
import logging
from collections import namedtuple

import numpy as np

from volconvert.analyze import read_analyze_header, get_image_data_path
from volconvert.binary import read_exactly
from volconvert.core import open_file
from volconvert.errors import FormatError
from volconvert.geometry import derive_analyze_geometry, \
        derive_nifti_geometry, derive_nrrd_geometry, warn_degraded
from volconvert.layout import DimensionLayout, get_frame_order, \
        parse_frame_order
from volconvert.nifti import read_nifti1_header, is_nifti1
from volconvert.nrrd import read_nrrd_header
from volconvert.pixels import encoding_for, read_voxels, reorganize, \
        to_frames, window_for
from volconvert.raw import RawImageDescription, read_raw_description


logger = logging.getLogger(__name__)

Rescale = namedtuple('Rescale', ['slope', 'intercept', 'type'])
identity_rescale = Rescale(1.0, 0.0, 'US')


class ConversionResult:
    '''Geometry, voxels and encoding of one converted image.

    Attributes
    ----------
    geometry : VoxelGeometry
        Spacing, orientation and frame positions in LPS+, or None when the
        source carries no geometry (raw files, NRRD without space
        directions).

    pixels : numpy.ndarray
        Voxels with shape (frames, rows, columns) or (frames, rows,
        columns, samples), in destination frame order.

    encoding : PixelEncoding
        Sample type of <pixels>.

    rescale : Rescale
        Slope, intercept and type mapping stored to real-world values.

    window : Window
        Window spanning the data range of floating-point voxels, else None.

    warnings : list
        GeometryDegraded (or other) warnings issued during conversion.

    source : str
        Source format: "analyze", "nifti", "nrrd" or "raw".
    '''

    def __init__(self, geometry, pixels, encoding, rescale=identity_rescale,
                 window=None, warnings=None, source=None):
        self.geometry = geometry
        self.pixels = pixels
        self.encoding = encoding
        self.rescale = rescale
        self.window = window
        self.warnings = list(warnings) if warnings else []
        self.source = source

    @property
    def number_of_frames(self):
        return self.pixels.shape[0]

    @property
    def rows(self):
        return self.pixels.shape[1]

    @property
    def columns(self):
        return self.pixels.shape[2]

    @property
    def samples_per_pixel(self):
        return self.encoding.samples_per_pixel

    def __repr__(self):
        return (f'ConversionResult(source={self.source}, '
                f'frames={self.number_of_frames}, rows={self.rows}, '
                f'columns={self.columns}, encoding={self.encoding}, '
                f'warnings={len(self.warnings)})')


def get_image_size(dim):
    '''Get (columns, rows, frames) from an Analyze/NIfTI dim array, where
    frames is the product of dim[3] to dim[dim[0]].'''

    n_dims = dim[0]
    if n_dims < 2 or n_dims > 7:
        raise FormatError(f'Cannot convert with {n_dims} dimensions',
                          field='dim[0]', value=n_dims, offset=40)
    for i in range(1, n_dims + 1):
        if dim[i] < 1:
            raise FormatError(f'dim[{i}] must be positive',
                              field=f'dim[{i}]', value=dim[i],
                              offset=40 + 2 * i)
    frames = int(np.prod(dim[3:n_dims + 1], dtype=np.int64))
    return dim[1], dim[2], frames


def find_data_file(path):
    '''Use a gzipped copy of a data file if the plain one is missing.'''

    if not os.path.exists(path) and os.path.exists(path + '.gz'):
        return path + '.gz'
    return path


def _read_pixels(path, offset, count, encoding, byte_order):
    with open_file(path) as f:
        if offset > 0:
            read_exactly(f, offset, field='vox_offset')
        return read_voxels(f, count, encoding, byte_order)


def convert_analyze(path):
    '''Convert an Analyze 7.5 .hdr/.img pair.'''

    header = read_analyze_header(path)
    columns, rows, frames = get_image_size(header.dim)
    encoding = encoding_for(header.datatype)
    data_path = find_data_file(get_image_data_path(path))
    logger.info(f'Reading {columns} x {rows} x {frames} '
                f'{header.datatype.name} voxels from {data_path}')

    values = _read_pixels(data_path, int(header.vox_offset),
                          columns * rows * frames, encoding,
                          header.byte_order)
    geometry = derive_analyze_geometry(header, frames)
    return ConversionResult(
        geometry,
        to_frames(values, frames, rows, columns, encoding.samples_per_pixel),
        encoding, identity_rescale, window_for(values, encoding),
        source='analyze')


def get_nifti_rescale(header):
    '''Rescale from scl_slope and scl_inter; a slope of 0 means no
    scaling.'''

    rescale_type = header.intent_name or 'US'
    slope = header.scl_slope
    if slope == 0 or not np.isfinite(slope):
        return Rescale(1.0, 0.0, rescale_type)
    intercept = header.scl_inter if np.isfinite(header.scl_inter) else 0.0
    return Rescale(float(slope), float(intercept), rescale_type)


def convert_nifti(path):
    '''Convert a NIfTI-1 file (.nii, .nii.gz or .hdr/.img pair).'''

    header = read_nifti1_header(path)
    columns, rows, frames = get_image_size(header.dim)
    encoding = encoding_for(header.datatype)
    data_path = header.image_data_path(path)
    if not header.is_single_file:
        data_path = find_data_file(data_path)
    logger.info(f'Reading {columns} x {rows} x {frames} '
                f'{header.datatype.name} voxels from {data_path}')

    values = _read_pixels(data_path, int(header.vox_offset),
                          columns * rows * frames, encoding,
                          header.byte_order)
    collected = []
    geometry = derive_nifti_geometry(header, frames, collected)
    return ConversionResult(
        geometry,
        to_frames(values, frames, rows, columns, encoding.samples_per_pixel),
        encoding, get_nifti_rescale(header), window_for(values, encoding),
        collected, source='nifti')


def convert_nrrd(path, frame_order=None):
    '''Convert an NRRD file (.nrrd, or .nhdr with a separate data file).

    Parameters
    ----------
    path : str
        Path to the header.

    frame_order : FrameOrder/str, default=None
        Order of destination frames when voxels hold several scalars. If
        None, the [nrrd] frame_order setting is used.
    '''

    header = read_nrrd_header(path)
    layout = DimensionLayout.from_nrrd(header)
    order = (get_frame_order() if frame_order is None
             else parse_frame_order(frame_order))
    if header.type is None:
        raise FormatError('Missing value of type', field='type')
    encoding = encoding_for(header.type)

    data_path = header.data_file_path(path)
    byte_order = '>' if header.is_big_endian else '<'
    logger.info(f'Reading {layout} of {header.type.name} from {data_path} '
                f'({header.encoding}, offset {header.byte_offset_of_binary})')
    with open(data_path, 'rb') as f:
        f.seek(header.byte_offset_of_binary)
        stream = gzip.GzipFile(fileobj=f, mode='rb') if header.is_gzip else f
        if header.byte_skip:
            read_exactly(stream, header.byte_skip, field='byte skip')
        values = read_voxels(stream, layout.number_of_elements, encoding,
                             byte_order)

    collected = []
    if header.space_directions is None:
        geometry = None
        warn_degraded('No space directions in NRRD header; no geometry',
                      collected)
    else:
        geometry = derive_nrrd_geometry(header, layout, order, collected)
    return ConversionResult(
        geometry, reorganize(values, layout, order), encoding,
        identity_rescale, window_for(values, encoding), collected,
        source='nrrd')


def convert_raw(description, data_path):
    '''Convert a headerless voxel file.

    Parameters
    ----------
    description : RawImageDescription/str/dict
        Description of the voxels, or a JSON file path or mapping to read
        one from.

    data_path : str
        Path to the voxels (gzipped if the name ends in .gz).
    '''

    if not isinstance(description, RawImageDescription):
        description = read_raw_description(description)
    encoding = encoding_for(description.type)
    rows, columns, frames = (description.rows, description.columns,
                             description.frames)
    values = _read_pixels(data_path, 0, rows * columns * frames, encoding,
                          description.byte_order)
    return ConversionResult(
        None, to_frames(values, frames, rows, columns), encoding,
        identity_rescale, window_for(values, encoding), source='raw')


def get_format(path):
    '''Guess the format of a file from its name (and, for .hdr files, the
    NIfTI-1 magic number).'''

    name = str(path).lower()
    if name.endswith('.gz'):
        name = name[:-3]
    ext = os.path.splitext(name)[1]
    if ext == '.hdr':
        return 'nifti' if is_nifti1(path) else 'analyze'
    if ext == '.nii':
        return 'nifti'
    if ext in ('.nrrd', '.nhdr'):
        return 'nrrd'
    if ext == '.raw':
        return 'raw'
    raise FormatError(f'Unrecognised file type for {path}', field='path',
                      value=ext)


def convert(path, description=None, frame_order=None):
    '''Convert a file of any supported format.

    Parameters
    ----------
    path : str
        Path to a .hdr, .nii, .nii.gz, .nrrd, .nhdr or .raw file. A .img
        file is converted via its .hdr.

    description : str/dict, default=None
        Raw image description; required for raw files, and selects raw
        conversion whatever the file name.

    frame_order : FrameOrder/str, default=None
        Destination frame order for NRRD files.
    '''

    path = str(path)
    if description is not None:
        return convert_raw(description, path)
    stem = path[:-3] if path.lower().endswith('.gz') else path
    if stem.lower().endswith('.img'):
        path = os.path.splitext(stem)[0] + '.hdr'

    kind = get_format(path)
    logger.info(f'Converting {path} as {kind}')
    if kind == 'analyze':
        return convert_analyze(path)
    if kind == 'nifti':
        return convert_nifti(path)
    if kind == 'nrrd':
        return convert_nrrd(path, frame_order)
    raise FormatError(f'A raw image description is needed for {path}',
                      field='description')
