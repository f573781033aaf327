"""Roles of the axes of a multi-dimensional voxel array, and the order in
which its frames are laid out after conversion."""

import enum
import logging
from collections import namedtuple

import numpy as np

from volconvert.core import get_config
from volconvert.errors import FormatError, UnsupportedGeometryError


logger = logging.getLogger(__name__)

COLUMN = 'column'
ROW = 'row'
SLICE = 'slice'
SCALAR = 'scalar'
VOLUME = 'volume'

_spatial_roles = (COLUMN, ROW, SLICE)


class FrameOrder(enum.Enum):
    '''Order of destination frames when a volume holds several scalars per
    voxel.

    SLICE_MAJOR keeps the scalars of one slice next to each other;
    SCALAR_MAJOR keeps all slices of one scalar together.
    '''

    SLICE_MAJOR = 'slice-major'
    SCALAR_MAJOR = 'scalar-major'


def parse_frame_order(value):
    '''Convert a FrameOrder, or its name or value, to a FrameOrder.'''

    if isinstance(value, FrameOrder):
        return value
    text = str(value).strip().lower().replace('_', '-')
    for order in FrameOrder:
        if text in (order.value, order.name.lower().replace('_', '-')):
            return order
    choices = ', '.join(order.value for order in FrameOrder)
    raise ValueError(f'Unrecognised frame order {value!r}; '
                     f'choose from: {choices}')


def get_frame_order(config=None):
    '''Frame order from the [nrrd] section of the settings.'''

    if config is None:
        config = get_config()
    return parse_frame_order(config.get('nrrd', 'frame_order',
                                        fallback=FrameOrder.SLICE_MAJOR.value))


class Axis(namedtuple('Axis', ['role', 'size', 'direction'])):
    '''One axis of a voxel array: its role, its extent and, for spatial
    axes, the step between neighbouring voxels in source coordinates.'''

    __slots__ = ()

    def __new__(cls, role, size, direction=None):
        return super().__new__(cls, role, size, direction)

    @property
    def is_spatial(self):
        return self.role in _spatial_roles


class DimensionLayout:
    '''Ordered axes of a voxel array, fastest varying first.

    Non-spatial axes before the spatial ones hold scalars per voxel; those
    after them repeat whole volumes. Each spatial role appears at most
    once.
    '''

    def __init__(self, axes):

        self.axes = list(axes)
        for role in _spatial_roles:
            if sum(axis.role == role for axis in self.axes) > 1:
                raise FormatError(f'More than one {role} axis',
                                  field='axes', value=role)
        for role in (COLUMN, ROW):
            if not any(axis.role == role for axis in self.axes):
                raise FormatError(f'No {role} axis', field='axes')
        for axis in self.axes:
            if axis.size < 1:
                raise FormatError('Axis sizes must be positive',
                                  field='sizes', value=axis.size)

    def _get(self, role):
        for axis in self.axes:
            if axis.role == role:
                return axis
        return None

    def _product(self, role):
        return int(np.prod([axis.size for axis in self.axes
                            if axis.role == role], dtype=np.int64))

    @property
    def columns(self):
        return self._get(COLUMN).size

    @property
    def rows(self):
        return self._get(ROW).size

    @property
    def slices(self):
        axis = self._get(SLICE)
        return 1 if axis is None else axis.size

    @property
    def scalars(self):
        return self._product(SCALAR)

    @property
    def volumes(self):
        return self._product(VOLUME)

    @property
    def number_of_frames(self):
        return self.scalars * self.slices * self.volumes

    @property
    def number_of_elements(self):
        return self.rows * self.columns * self.number_of_frames

    @property
    def needs_reorganizing(self):
        return self.scalars > 1 or self.volumes > 1

    def direction(self, role):
        '''Source-space step vector of a spatial axis, or None.'''

        axis = self._get(role)
        return None if axis is None else axis.direction

    def frame_index(self, volume, slice_, scalar, order=FrameOrder.SLICE_MAJOR):
        '''Destination frame number of one slice of one scalar of one
        volume.'''

        if order is FrameOrder.SCALAR_MAJOR:
            return ((volume * self.scalars + scalar) * self.slices
                    + slice_)
        return (volume * self.slices + slice_) * self.scalars + scalar

    def iter_frames(self, order=FrameOrder.SLICE_MAJOR):
        '''Yield (frame, volume, slice, scalar) for every destination frame,
        in source order.'''

        for volume in range(self.volumes):
            for slice_ in range(self.slices):
                for scalar in range(self.scalars):
                    frame = self.frame_index(volume, slice_, scalar, order)
                    yield frame, volume, slice_, scalar

    @classmethod
    def from_nrrd(cls, header):
        '''Work out axis roles from the sizes and space directions of an
        NRRD header.'''

        dimension = header.dimension
        sizes = header.sizes
        if dimension < 2:
            raise FormatError('Cannot convert if less than two dimensions',
                              field='dimension', value=dimension)
        if len(sizes) != dimension:
            raise FormatError(f'Inconsistent number of dimensions = '
                              f'{dimension} and length of size array = '
                              f'{len(sizes)}', field='sizes', value=sizes)

        directions = header.space_directions
        if directions is None:
            if dimension > 3:
                raise UnsupportedGeometryError(
                    f'Number of dimensions is greater than 3 ({dimension}) '
                    'and no information about which dimensions are space',
                    field='dimension', value=dimension)
            axes = [Axis(role, size)
                    for role, size in zip(_spatial_roles, sizes)]
            return cls(axes)

        if len(directions) != dimension:
            raise FormatError(f'Inconsistent number of dimensions = '
                              f'{dimension} and length of space directions '
                              f'array = {len(directions)}',
                              field='space directions',
                              value=len(directions))

        axes = []
        spatial = 0
        for d, (size, direction) in enumerate(zip(sizes, directions)):
            if direction is None:
                if spatial == 0:
                    axes.append(Axis(SCALAR, size))
                elif spatial < 2:
                    raise UnsupportedGeometryError(
                        'Non-spatial axis between column and row axes',
                        field=f'space directions[{d}]', value='none')
                else:
                    axes.append(Axis(VOLUME, size))
            else:
                if spatial >= len(_spatial_roles):
                    raise UnsupportedGeometryError(
                        'More than three spatial dimensions in space '
                        'directions', field=f'space directions[{d}]',
                        value=direction)
                if axes and axes[-1].role == VOLUME:
                    raise UnsupportedGeometryError(
                        'Spatial axes separated by a non-spatial axis',
                        field=f'space directions[{d}]', value=direction)
                axes.append(Axis(_spatial_roles[spatial], size, direction))
                spatial += 1

        if spatial < 2:
            raise UnsupportedGeometryError(
                f'Only {spatial} spatial dimension(s) in space directions',
                field='space directions', value=spatial)

        layout = cls(axes)
        logger.info(f'scalars = {layout.scalars}, columns = {layout.columns}'
                    f', rows = {layout.rows}, slices = {layout.slices}, '
                    f'volumes = {layout.volumes}')
        return layout

    @classmethod
    def single_volume(cls, columns, rows, frames=1):
        '''Layout of an array with no scalar or volume axes.'''

        return cls([Axis(COLUMN, columns), Axis(ROW, rows),
                    Axis(SLICE, frames)])

    def __repr__(self):
        axes = ', '.join(f'{axis.role}={axis.size}' for axis in self.axes)
        return f'DimensionLayout({axes})'
