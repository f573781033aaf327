'''Builders for Analyze, NIfTI-1 and NRRD test files.'''

import numpy as np
import pytest


def _analyze_dtype(byte_order):
    b = byte_order
    return np.dtype([
        ('sizeof_hdr', b + 'i4'), ('data_type', 'S10'), ('db_name', 'S18'),
        ('extents', b + 'i4'), ('session_error', b + 'i2'),
        ('regular', 'S1'), ('hkey_un0', 'S1'),
        ('dim', b + 'i2', (8,)), ('vox_units', 'S4'), ('cal_units', 'S8'),
        ('unused1', b + 'i2'), ('datatype', b + 'i2'), ('bitpix', b + 'i2'),
        ('dim_un0', b + 'i2'), ('pixdim', b + 'f4', (8,)),
        ('vox_offset', b + 'f4'), ('funused', b + 'f4', (3,)),
        ('cal_max', b + 'f4'), ('cal_min', b + 'f4'),
        ('compressed', b + 'f4'), ('verified', b + 'f4'),
        ('glmax', b + 'i4'), ('glmin', b + 'i4'),
        ('descrip', 'S80'), ('aux_file', 'S24'), ('orient', 'u1'),
        ('originator', 'S10'), ('generated', 'S10'), ('scannum', 'S10'),
        ('patient_id', 'S10'), ('exp_date', 'S10'), ('exp_time', 'S10'),
        ('hist_un0', 'S3'), ('views', b + 'i4'), ('vols_added', b + 'i4'),
        ('start_field', b + 'i4'), ('field_skip', b + 'i4'),
        ('omax', b + 'i4'), ('omin', b + 'i4'), ('smax', b + 'i4'),
        ('smin', b + 'i4'),
    ])


def _nifti_dtype(byte_order):
    b = byte_order
    return np.dtype([
        ('sizeof_hdr', b + 'i4'), ('data_type', 'S10'), ('db_name', 'S18'),
        ('extents', b + 'i4'), ('session_error', b + 'i2'),
        ('regular', 'S1'), ('dim_info', 'u1'),
        ('dim', b + 'i2', (8,)), ('intent_p1', b + 'f4'),
        ('intent_p2', b + 'f4'), ('intent_p3', b + 'f4'),
        ('intent_code', b + 'i2'), ('datatype', b + 'i2'),
        ('bitpix', b + 'i2'), ('slice_start', b + 'i2'),
        ('pixdim', b + 'f4', (8,)), ('vox_offset', b + 'f4'),
        ('scl_slope', b + 'f4'), ('scl_inter', b + 'f4'),
        ('slice_end', b + 'i2'), ('slice_code', 'u1'), ('xyzt_units', 'u1'),
        ('cal_max', b + 'f4'), ('cal_min', b + 'f4'),
        ('slice_duration', b + 'f4'), ('toffset', b + 'f4'),
        ('glmax', b + 'i4'), ('glmin', b + 'i4'),
        ('descrip', 'S80'), ('aux_file', 'S24'),
        ('qform_code', b + 'i2'), ('sform_code', b + 'i2'),
        ('quatern_b', b + 'f4'), ('quatern_c', b + 'f4'),
        ('quatern_d', b + 'f4'), ('qoffset_x', b + 'f4'),
        ('qoffset_y', b + 'f4'), ('qoffset_z', b + 'f4'),
        ('srow_x', b + 'f4', (4,)), ('srow_y', b + 'f4', (4,)),
        ('srow_z', b + 'f4', (4,)), ('intent_name', 'S16'), ('magic', 'S4'),
    ])


def _fill(dtype, fields):
    header = np.zeros(1, dtype=dtype)
    header['sizeof_hdr'] = 348
    for name, value in fields.items():
        header[name] = value
    data = header.tobytes()
    assert len(data) == 348
    return data


def make_analyze_header(byte_order='<', **fields):
    '''Analyze 7.5 header bytes with the given fields set; everything else
    is zero.'''

    return _fill(_analyze_dtype(byte_order), fields)


def make_nifti_header(byte_order='<', magic=b'n+1', **fields):
    '''NIfTI-1 header bytes with the given fields set; everything else is
    zero.'''

    fields['magic'] = magic
    return _fill(_nifti_dtype(byte_order), fields)


def make_analyze_files(directory, data, byte_order='<', **fields):
    '''Write an Analyze .hdr/.img pair holding <data>, an array of shape
    (frames, rows, columns). Returns the .hdr path.'''

    frames, rows, columns = data.shape
    fields.setdefault('dim', [3, columns, rows, frames, 1, 1, 1, 1])
    fields.setdefault('pixdim', [0, 1, 1, 1, 0, 0, 0, 0])
    hdr = directory / 'image.hdr'
    hdr.write_bytes(make_analyze_header(byte_order, **fields))
    img = directory / 'image.img'
    img.write_bytes(data.astype(data.dtype.newbyteorder(byte_order))
                    .tobytes())
    return hdr


def make_nifti_file(directory, data, byte_order='<', **fields):
    '''Write a single-file .nii holding <data>, an array of shape (frames,
    rows, columns). Returns the path.'''

    frames, rows, columns = data.shape
    fields.setdefault('dim', [3, columns, rows, frames, 1, 1, 1, 1])
    fields.setdefault('pixdim', [1, 1, 1, 1, 0, 0, 0, 0])
    fields.setdefault('vox_offset', 352)
    path = directory / 'image.nii'
    voxels = data.astype(data.dtype.newbyteorder(byte_order)).tobytes()
    path.write_bytes(make_nifti_header(byte_order, **fields) + b'\x00' * 4
                     + voxels)
    return path


def make_nrrd_bytes(lines, data=b''):
    '''NRRD file bytes from header lines (after the magic line) and
    data.'''

    text = '\n'.join(['NRRD0004'] + lines) + '\n\n'
    return text.encode('utf-8') + data


@pytest.fixture
def analyze_header():
    return make_analyze_header


@pytest.fixture
def nifti_header():
    return make_nifti_header


@pytest.fixture
def analyze_files():
    return make_analyze_files


@pytest.fixture
def nifti_file():
    return make_nifti_file


@pytest.fixture
def nrrd_bytes():
    return make_nrrd_bytes


@pytest.fixture(autouse=True)
def settings(tmp_path, monkeypatch):
    '''Point VOLCONVERT_SETTINGS at an empty temporary settings file, so
    that user settings never affect tests, and return its path.'''

    path = tmp_path / 'settings.ini'
    path.write_text('')
    monkeypatch.setenv('VOLCONVERT_SETTINGS', str(path))
    return path
