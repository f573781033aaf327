"""Voxel geometry in DICOM patient coordinates (LPS+), derived from each
source format's own orientation convention.

+X is patient left, +Y posterior and +Z superior. NIfTI (RAS+) and the
RAS-family NRRD spaces have their first two axes negated on the way in.
"""

import math
import logging
import warnings
from collections import namedtuple

import numpy as np
import nibabel

from volconvert.codes import AnalyzeOrientation, Units
from volconvert.errors import UnsupportedGeometryError, GeometryDegraded
from volconvert.layout import FrameOrder, ROW, COLUMN, SLICE


logger = logging.getLogger(__name__)

unit_tolerance = 1e-6

# LPS axis codes for nibabel.aff2axcodes: (negative end, positive end)
lps_labels = (('R', 'L'), ('A', 'P'), ('I', 'S'))


class VoxelGeometry:
    '''Spacing, orientation and per-frame position of a stack of frames.

    Parameters
    ----------
    column_spacing : float
        Distance between the centres of neighbouring columns (mm).

    row_spacing : float
        Distance between the centres of neighbouring rows (mm).

    slice_spacing : float
        Distance between neighbouring slices (mm).

    row_direction : tuple
        Direction of increasing column index within a row.

    column_direction : tuple
        Direction of increasing row index within a column.

    frame_positions : list
        Position of the centre of the first voxel of each frame.

    slice_thickness : float, default=None
        Nominal slice thickness; if None, slice_spacing is used.

    dimension_indices : list, default=None
        Per-frame (stack, position in stack) numbers, counting from 1.

    check_directions : bool, default=True
        If True, raise UnsupportedGeometryError unless row_direction and
        column_direction have unit length.
    '''

    def __init__(self, column_spacing, row_spacing, slice_spacing,
                 row_direction, column_direction, frame_positions,
                 slice_thickness=None, dimension_indices=None,
                 check_directions=True):

        for name, spacing in [('column_spacing', column_spacing),
                              ('row_spacing', row_spacing),
                              ('slice_spacing', slice_spacing)]:
            if not spacing > 0:
                raise UnsupportedGeometryError(
                    f'{name} must be strictly positive', field=name,
                    value=spacing)
        self.column_spacing = float(column_spacing)
        self.row_spacing = float(row_spacing)
        self.slice_spacing = float(slice_spacing)
        self.slice_thickness = float(slice_thickness
                                     if slice_thickness is not None
                                     else slice_spacing)

        self.row_direction = tuple(float(x) for x in row_direction)
        self.column_direction = tuple(float(x) for x in column_direction)
        if check_directions:
            for name, v in [('row_direction', self.row_direction),
                            ('column_direction', self.column_direction)]:
                if abs(np.linalg.norm(v) - 1) > unit_tolerance:
                    raise UnsupportedGeometryError(
                        f'{name} is not a unit vector', field=name, value=v)

        self.frame_positions = [tuple(float(x) for x in p)
                                for p in frame_positions]
        if not self.frame_positions:
            raise UnsupportedGeometryError('At least one frame is needed',
                                           field='frame_positions', value=0)
        self.dimension_indices = dimension_indices

    @property
    def number_of_frames(self):
        return len(self.frame_positions)

    @property
    def slice_normal(self):
        return tuple(np.cross(self.row_direction, self.column_direction)
                     .tolist())

    def frame_origin(self, frame_index):
        '''Position of the first voxel of frame <frame_index>.'''

        if not 0 <= frame_index < self.number_of_frames:
            raise IndexError(f'Frame {frame_index} out of range for '
                             f'{self.number_of_frames} frames')
        return self.frame_positions[frame_index]

    def get_affine(self):
        '''Get 4x4 matrix mapping (column, row, frame) indices of the first
        stack to LPS coordinates.'''

        affine = np.identity(4)
        affine[:3, 0] = np.array(self.row_direction) * self.column_spacing
        affine[:3, 1] = np.array(self.column_direction) * self.row_spacing
        if self.number_of_frames > 1:
            step = (np.array(self.frame_positions[1])
                    - np.array(self.frame_positions[0]))
        else:
            step = np.zeros(3)
        if not np.any(step):
            step = np.array(self.slice_normal) * self.slice_spacing
        affine[:3, 2] = step
        affine[:3, 3] = self.frame_positions[0]
        return affine

    def get_orientation_codes(self):
        '''Get patient-axis codes (e.g. ('L', 'P', 'S')) for the column, row
        and frame axes.'''

        return nibabel.aff2axcodes(self.get_affine(), labels=lps_labels)

    def __repr__(self):
        return (f'VoxelGeometry(spacing=({self.column_spacing}, '
                f'{self.row_spacing}, {self.slice_spacing}), '
                f'row_direction={self.row_direction}, '
                f'column_direction={self.column_direction}, '
                f'frames={self.number_of_frames})')


def warn_degraded(message, collected=None):
    '''Log a GeometryDegraded warning, issue it via warnings.warn, and add
    it to <collected> if given.'''

    warning = GeometryDegraded(message)
    logger.warning(message)
    warnings.warn(warning, stacklevel=3)
    if collected is not None:
        collected.append(warning)
    return warning


def frames_in_stack(dim):
    '''Number of slices in one volume of an Analyze/NIfTI array.'''

    if dim[0] >= 3 and dim[3] > 0:
        return dim[3]
    return 1


def _slice_spacing(value, number_of_frames, field):
    # Single frames (2D images) often carry no meaningful slice spacing
    if value <= 0 and number_of_frames <= 1:
        logger.info(f'Using slice spacing 1 for single frame ({field} = '
                    f'{value})')
        return 1.0
    return value


# Analyze orientation: (row direction, column direction, stepping axis)
analyze_orientations = {
    AnalyzeOrientation.TRANSVERSE_UNFLIPPED: ((1, 0, 0), (0, -1, 0), 2),
    AnalyzeOrientation.TRANSVERSE_FLIPPED: ((1, 0, 0), (0, 1, 0), 2),
    AnalyzeOrientation.CORONAL_UNFLIPPED: ((1, 0, 0), (0, 0, 1), 1),
    AnalyzeOrientation.CORONAL_FLIPPED: ((1, 0, 0), (0, 0, -1), 1),
    AnalyzeOrientation.SAGITTAL_UNFLIPPED: ((0, -1, 0), (0, 0, 1), 0),
    AnalyzeOrientation.SAGITTAL_FLIPPED: ((0, 1, 0), (0, 0, -1), 0),
}


def derive_analyze_geometry(header, number_of_frames):
    '''Get geometry of an Analyze 7.5 image from its orient code.

    Frames step along the x, y or z axis, depending on orientation, by
    pixdim[1], pixdim[2] or pixdim[3] respectively.
    '''

    orientation = analyze_orientations.get(header.orient)
    if orientation is None:
        raise UnsupportedGeometryError(
            f'Unsupported orientation {header.orient.name}', field='orient',
            value=header.orient_code, offset=252)
    row_direction, column_direction, axis = orientation
    logger.info(f'Orientation {header.orient.name}: row {row_direction}, '
                f'column {column_direction}, stepping along axis {axis}')

    n_stack = frames_in_stack(header.dim)
    step = header.pixdim[axis + 1]
    positions = []
    for f in range(number_of_frames):
        position = [0.0, 0.0, 0.0]
        position[axis] = step * (f % n_stack)
        positions.append(position)

    return VoxelGeometry(
        header.pixdim[1], header.pixdim[2],
        _slice_spacing(header.pixdim[3], number_of_frames, 'pixdim[3]'),
        row_direction, column_direction, positions)


def quaternion_to_rotation(b, c, d):
    '''Get 3x3 rotation matrix from the (b, c, d) components of a unit
    quaternion, with a = sqrt(1 - b^2 - c^2 - d^2).'''

    a = math.sqrt(max(0.0, 1.0 - b * b - c * c - d * d))
    return np.array([
        [a * a + b * b - c * c - d * d, 2 * b * c - 2 * a * d,
         2 * b * d + 2 * a * c],
        [2 * b * c + 2 * a * d, a * a + c * c - b * b - d * d,
         2 * c * d - 2 * a * b],
        [2 * b * d - 2 * a * c, 2 * c * d + 2 * a * b,
         a * a + d * d - c * c - b * b],
    ])


AffineTransform = namedtuple('AffineTransform',
                             ['code', 'srow_x', 'srow_y', 'srow_z'])
QuaternionTransform = namedtuple('QuaternionTransform',
                                 ['code', 'rotation', 'qfac', 'offset'])
TranslationOnly = namedtuple('TranslationOnly', ['offset'])


def select_nifti_transform(header):
    '''Choose how to place a NIfTI-1 image in space: sform if set, else
    qform if set, else the qoffset translation alone.'''

    offset = (header.qoffset_x, header.qoffset_y, header.qoffset_z)
    if header.sform_code != 0:
        logger.info(f'Using sform ({header.sform.name})')
        return AffineTransform(header.sform, header.srow_x, header.srow_y,
                               header.srow_z)
    if header.qform_code != 0:
        qfac = header.pixdim[0] if header.pixdim[0] != 0 else 1
        logger.info(f'Using qform ({header.qform.name}), qfac {qfac}')
        return QuaternionTransform(
            header.qform,
            quaternion_to_rotation(header.quatern_b, header.quatern_c,
                                   header.quatern_d),
            qfac, offset)
    logger.info('Neither sform nor qform set; using qoffset only')
    return TranslationOnly(offset)


_units_multipliers = {
    Units.METER: 1000.0,
    Units.MICRON: 0.001,
}


def units_multiplier(header):
    return _units_multipliers.get(header.spatial_units, 1.0)


def derive_nifti_geometry(header, number_of_frames, collected=None):
    '''Get geometry of a NIfTI-1 image.

    Parameters
    ----------
    header : Nifti1Header
        Parsed header.

    number_of_frames : int
        Total frames in the image; frames beyond the first volume repeat its
        slice positions.

    collected : list, default=None
        If given, GeometryDegraded warnings are appended to it.
    '''

    multiplier = units_multiplier(header)
    for i in (1, 2):
        if not header.pixdim[i] > 0:
            raise UnsupportedGeometryError(
                f'pixdim[{i}] must be strictly positive',
                field=f'pixdim[{i}]', value=header.pixdim[i],
                offset=76 + 4 * i)
    p = list(header.pixdim)
    p[3] = _slice_spacing(p[3], number_of_frames, 'pixdim[3]')
    if not p[3] > 0:
        raise UnsupportedGeometryError(
            'pixdim[3] must be strictly positive for more than one frame',
            field='pixdim[3]', value=header.pixdim[3], offset=88)
    spacings = (p[1] * multiplier, p[2] * multiplier, p[3] * multiplier)
    n_stack = frames_in_stack(header.dim)
    transform = select_nifti_transform(header)

    check_directions = True
    if isinstance(transform, AffineTransform):
        sx, sy, sz = transform.srow_x, transform.srow_y, transform.srow_z
        row_direction = (-sx[0] / p[1], -sx[1] / p[2], sx[2] / p[3])
        column_direction = (-sy[0] / p[1], -sy[1] / p[2], sy[2] / p[3])
        # Scaled and sheared affines do not give unit vectors
        check_directions = False
        for name, v in [('row', row_direction),
                        ('column', column_direction)]:
            if abs(np.linalg.norm(v) - 1) > unit_tolerance:
                warn_degraded(f'sform {name} direction {v} is not a unit '
                              'vector; using it as given', collected)

        def position(k):
            return (-(sx[2] * k + sx[3]), -(sy[2] * k + sy[3]),
                    sz[2] * k + sz[3])

    elif isinstance(transform, QuaternionTransform):
        r = transform.rotation
        row_direction = (-r[0, 0], -r[1, 0], r[2, 0])
        column_direction = (-r[0, 1], -r[1, 1], r[2, 1])
        nx, ny, nz = -r[0, 2], -r[1, 2], r[2, 2]
        qx, qy, qz = transform.offset
        qfac = transform.qfac

        def position(k):
            return (nx * p[1] * k - qx, ny * p[2] * k - qy,
                    nz * qfac * p[3] * k + qz)

    else:
        warn_degraded('No sform or qform in NIfTI-1 header; using axial '
                      'orientation and qoffset translation only', collected)
        row_direction = (1.0, 0.0, 0.0)
        column_direction = (0.0, 1.0, 0.0)
        qx, qy, qz = transform.offset

        def position(k):
            return (-qx, -qy, qz + p[3] * k)

    positions = [position(f % n_stack) for f in range(number_of_frames)]
    logger.debug(f'row_direction = {row_direction}, column_direction = '
                 f'{column_direction}, first position = {positions[0]}')
    return VoxelGeometry(*spacings, row_direction, column_direction,
                         positions, check_directions=check_directions)


# Sign of each LPS axis relative to the declared NRRD space
_ras = (-1, -1, 1)
_las = (1, -1, 1)
_lps = (1, 1, 1)
space_corrections = {
    'right-anterior-superior': _ras,
    'ras': _ras,
    'right-anterior-superior-time': _ras,
    'rast': _ras,
    'left-anterior-superior': _las,
    'las': _las,
    'left-anterior-superior-time': _las,
    'last': _las,
    'left-posterior-superior': _lps,
    'lps': _lps,
    'left-posterior-superior-time': _lps,
    'lpst': _lps,
}


def get_space_correction(space, collected=None):
    '''Sign correction from an NRRD space to LPS+. Unknown or absent spaces
    are taken as LPS, with a GeometryDegraded warning.'''

    correction = space_corrections.get((space or '').strip().lower())
    if correction is None:
        warn_degraded(f'Unrecognised NRRD space {space!r}; assuming '
                      'left-posterior-superior', collected)
        return _lps
    return correction


def _unit(vector, field):
    magnitude = float(np.linalg.norm(vector))
    if magnitude == 0:
        raise UnsupportedGeometryError('Zero length space direction',
                                       field=field, value=tuple(vector))
    return magnitude, np.asarray(vector, dtype=float) / magnitude


def derive_nrrd_geometry(header, layout, order=FrameOrder.SLICE_MAJOR,
                         collected=None):
    '''Get geometry of an NRRD image.

    Parameters
    ----------
    header : NrrdHeader
        Parsed header, which must have space directions.

    layout : DimensionLayout
        Axis roles, as from DimensionLayout.from_nrrd(header).

    order : FrameOrder, default=FrameOrder.SLICE_MAJOR
        Destination frame order; must match that used for the pixels.

    collected : list, default=None
        If given, GeometryDegraded warnings are appended to it.
    '''

    if header.space_directions is None:
        raise UnsupportedGeometryError('No space directions in NRRD header',
                                       field='space directions')
    correction = np.array(get_space_correction(header.space, collected),
                          dtype=float)

    origin = header.space_origin
    if origin is None:
        warn_degraded('No space origin in NRRD header; using (0, 0, 0)',
                      collected)
        origin = (0.0, 0.0, 0.0)
    origin = np.array(origin, dtype=float)

    column_spacing, row_unit = _unit(layout.direction(COLUMN),
                                     'space directions (column)')
    row_spacing, column_unit = _unit(layout.direction(ROW),
                                     'space directions (row)')
    slice_vector = layout.direction(SLICE)
    if slice_vector is None:
        slice_vector = np.zeros(3)
        slice_spacing = 1.0
    else:
        slice_vector = np.array(slice_vector, dtype=float)
        slice_spacing, _ = _unit(slice_vector, 'space directions (slice)')

    positions = [None] * layout.number_of_frames
    indices = [None] * layout.number_of_frames
    for frame, volume, slice_, scalar in layout.iter_frames(order):
        positions[frame] = correction * (slice_vector * slice_ + origin)
        indices[frame] = (volume + 1, slice_ + 1)

    return VoxelGeometry(column_spacing, row_spacing, slice_spacing,
                         correction * row_unit, correction * column_unit,
                         positions, dimension_indices=indices)
