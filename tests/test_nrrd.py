'''Test NRRD header parsing and conversion.'''

import gzip
import warnings

import nrrd
import numpy as np
import pytest
from pytest import approx

from volconvert.codes import SampleType, Unrecognized
from volconvert.convert import convert, convert_nrrd
from volconvert.errors import FormatError, GeometryDegraded, \
        UnsupportedDataTypeError
from volconvert.layout import FrameOrder
from volconvert.nrrd import read_nrrd_header, find_binary_offset


scenario_lines = [
    'type: short',
    'dimension: 4',
    'space: left-posterior-superior',
    'sizes: 2 4 4 5',
    'space directions: none (1,0,0) (0,1,0) (0,0,3)',
    'space origin: (10,20,30)',
    'endian: little',
    'encoding: raw',
]

# Two scalars per voxel, scalars varying fastest
scenario_data = np.arange(2 * 4 * 4 * 5, dtype=np.int16)


def test_fields_and_keys(nrrd_bytes):
    '''Check fields, key/value pairs and comments are separated.'''

    data = nrrd_bytes(['# a comment', 'type: uchar', 'dimension: 2',
                       'sizes: 3 2', 'modality:=MR', 'odd line'],
                      bytes(range(6)))
    header = read_nrrd_header(data)
    assert header.magic == 'NRRD0004'
    assert header.fields['type'] == 'uchar'
    assert header.type is SampleType.UINT8
    assert header.keys == {'modality': 'MR'}
    assert header.comments == ['a comment']
    assert header.dimension == 2
    assert header.sizes == [3, 2]
    assert not header.is_big_endian
    assert not header.is_gzip
    assert data[header.byte_offset_of_binary:] == bytes(range(6))


def test_binary_offset_with_carriage_returns():
    '''Check the scan treats carriage returns as part of a line ending.'''

    data = b'NRRD0004\r\ntype: uchar\r\n\r\n\x0a\x0d\x01'
    assert find_binary_offset(data) == 25
    header = read_nrrd_header(data)
    assert header.byte_offset_of_binary == 25
    assert header.fields['type'] == 'uchar'


def test_whitespace_line_is_not_blank():
    '''Check a line holding only spaces does not end the header, so fields
    after it are kept and agree with the binary offset.'''

    data = (b'NRRD0004\ntype: uchar\n  \ndimension: 2\nsizes: 2 2\n\n'
            + bytes(4))
    header = read_nrrd_header(data)
    assert header.dimension == 2
    assert header.sizes == [2, 2]
    assert header.byte_offset_of_binary == len(data) - 4


def test_binary_data_looking_like_text(nrrd_bytes):
    '''Check binary data after the blank line is not read as header.'''

    data = nrrd_bytes(['type: uchar', 'dimension: 2', 'sizes: 2 2'],
                      b'a: b\n\n')
    header = read_nrrd_header(data)
    assert 'a' not in header.fields
    assert header.byte_offset_of_binary == len(data) - 6


def test_space_directions(nrrd_bytes):
    '''Check direction vectors, including spaces inside them.'''

    header = read_nrrd_header(nrrd_bytes(
        ['space directions: none (1, 0, 0) (0,-2.5,0) (0,0,1e1)']))
    assert header.space_directions == [None, (1, 0, 0), (0, -2.5, 0),
                                       (0, 0, 10)]
    assert header.space_origin is None


@pytest.mark.parametrize('value', ['(1,0) (0,1,0)', '1,0,0', '(1,a,0)'])
def test_bad_vector(nrrd_bytes, value):
    '''Check malformed vectors are rejected.'''

    header = read_nrrd_header(nrrd_bytes([f'space directions: {value}']))
    with pytest.raises(FormatError):
        header.space_directions


def test_bad_magic():
    '''Check the first line must start with NRRD.'''

    with pytest.raises(FormatError):
        read_nrrd_header(b'NRRX0004\ntype: short\n\n')


def test_missing_fields(nrrd_bytes):
    '''Check missing dimension and sizes are reported.'''

    header = read_nrrd_header(nrrd_bytes(['type: short']))
    with pytest.raises(FormatError):
        header.dimension
    with pytest.raises(FormatError):
        header.sizes
    header = read_nrrd_header(nrrd_bytes(['type: complex']))
    assert header.type == Unrecognized('complex')


def test_data_file(tmp_path, nrrd_bytes):
    '''Check a detached header finds its data file and reads no inline
    data.'''

    nhdr = tmp_path / 'image.nhdr'
    nhdr.write_bytes(nrrd_bytes(['type: short', 'dimension: 2',
                                 'sizes: 2 2', 'endian: big',
                                 'data file: image.raw']))
    (tmp_path / 'image.raw').write_bytes(
        np.array([1, -2, 3, -4], dtype='>i2').tobytes())
    header = read_nrrd_header(str(nhdr))
    assert header.byte_offset_of_binary == 0
    assert header.data_file_path() == str(tmp_path / 'image.raw')
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', GeometryDegraded)
        result = convert(str(nhdr))
    assert result.geometry is None
    assert np.all(result.pixels == [[[1, -2], [3, -4]]])


def test_scenario_slice_major(tmp_path, nrrd_bytes):
    '''Check two scalars per voxel become separate frames, with the scalars
    of each slice kept together.

    The result has 10 frames, not 5: each of the 5 slices is split into its
    2 interleaved scalars, and each scalar becomes its own frame.
    '''

    path = tmp_path / 'image.nrrd'
    path.write_bytes(nrrd_bytes(scenario_lines, scenario_data.tobytes()))
    result = convert_nrrd(str(path))
    assert result.pixels.shape == (10, 4, 4)
    source = scenario_data.reshape(5, 4, 4, 2)
    for s in range(5):
        for k in range(2):
            assert np.all(result.pixels[s * 2 + k] == source[s, :, :, k])

    geometry = result.geometry
    assert geometry.number_of_frames == 10
    assert geometry.row_direction == approx((1, 0, 0))
    assert geometry.column_direction == approx((0, 1, 0))
    assert geometry.slice_spacing == approx(3)
    assert geometry.frame_origin(0) == approx((10, 20, 30))
    assert geometry.frame_origin(1) == approx((10, 20, 30))
    assert geometry.frame_origin(9) == approx((10, 20, 42))
    assert geometry.dimension_indices[9] == (1, 5)
    assert not result.warnings


def test_scenario_scalar_major(tmp_path, nrrd_bytes, settings):
    '''Check the frame order setting keeps each scalar's slices together.'''

    settings.write_text('[nrrd]\nframe_order = scalar-major\n')
    path = tmp_path / 'image.nrrd'
    path.write_bytes(nrrd_bytes(scenario_lines, scenario_data.tobytes()))
    result = convert_nrrd(str(path))
    source = scenario_data.reshape(5, 4, 4, 2)
    for k in range(2):
        for s in range(5):
            assert np.all(result.pixels[k * 5 + s] == source[s, :, :, k])
            assert result.geometry.frame_origin(k * 5 + s) \
                == approx((10, 20, 30 + 3 * s))

    # An explicit order overrides the setting
    result = convert_nrrd(str(path), FrameOrder.SLICE_MAJOR)
    assert np.all(result.pixels[1] == source[0, :, :, 1])


def test_ras_space(tmp_path, nrrd_bytes):
    '''Check RAS directions and origin are flipped to LPS.'''

    lines = ['type: float', 'dimension: 3', 'space: RAS', 'sizes: 2 2 2',
             'space directions: (2,0,0) (0,2,0) (0,0,2)',
             'space origin: (1,2,3)']
    path = tmp_path / 'image.nrrd'
    values = np.linspace(0, 1, 8, dtype=np.float32)
    path.write_bytes(nrrd_bytes(lines, values.tobytes()))
    result = convert_nrrd(str(path))
    assert result.geometry.row_direction == approx((-1, 0, 0))
    assert result.geometry.column_direction == approx((0, -1, 0))
    assert result.geometry.frame_origin(1) == approx((-1, -2, 5))
    assert result.geometry.column_spacing == approx(2)
    assert result.window.center == approx(0.5)
    assert result.window.width == approx(1)


def test_unknown_space_warns(tmp_path, nrrd_bytes):
    '''Check an unrecognised space and missing origin are reported.'''

    lines = ['type: uchar', 'dimension: 2', 'space: scanner-xyz',
             'sizes: 2 2', 'space directions: (1,0,0) (0,1,0)']
    path = tmp_path / 'image.nrrd'
    path.write_bytes(nrrd_bytes(lines, bytes(4)))
    with pytest.warns(GeometryDegraded):
        result = convert_nrrd(str(path))
    assert len(result.warnings) == 2
    assert result.geometry.frame_origin(0) == approx((0, 0, 0))


def test_unsupported_type(tmp_path, nrrd_bytes):
    '''Check 32-bit integer NRRD data is rejected.'''

    lines = ['type: int', 'dimension: 2', 'sizes: 2 2']
    path = tmp_path / 'image.nrrd'
    path.write_bytes(nrrd_bytes(lines, bytes(16)))
    with pytest.raises(UnsupportedDataTypeError):
        convert_nrrd(str(path))


def test_gzip_inline(tmp_path, nrrd_bytes):
    '''Check gzip-encoded inline data is decompressed.'''

    lines = ['type: ushort', 'dimension: 3', 'sizes: 3 2 2',
             'encoding: gzip', 'endian: big', 'space: LPS',
             'space directions: (1,0,0) (0,1,0) (0,0,1)',
             'space origin: (0,0,0)']
    values = np.arange(12, dtype='>u2')
    path = tmp_path / 'image.nrrd'
    path.write_bytes(nrrd_bytes(lines, gzip.compress(values.tobytes())))
    result = convert_nrrd(str(path))
    assert np.all(result.pixels.ravel() == np.arange(12))


def test_pynrrd_file(tmp_path):
    '''Check conversion of a multi-scalar gzipped file written by
    pynrrd.'''

    data = np.random.default_rng(0).random((3, 4, 5, 6)).astype(np.float32)
    header = {
        'space': 'left-posterior-superior',
        'space directions': np.array([[np.nan, np.nan, np.nan],
                                      [0.5, 0, 0],
                                      [0, 0.5, 0],
                                      [0, 0, 2]]),
        'space origin': np.array([-10.0, -20.0, 5.0]),
        'encoding': 'gzip',
    }
    path = str(tmp_path / 'image.nrrd')
    nrrd.write(path, data, header)

    result = convert(path)
    assert result.pixels.shape == (3 * 6, 5, 4)
    for s in range(6):
        for k in range(3):
            assert np.all(result.pixels[s * 3 + k] == data[k, :, :, s].T)
    assert result.geometry.column_spacing == approx(0.5)
    assert result.geometry.frame_origin(5 * 3) == approx((-10, -20, 15))
