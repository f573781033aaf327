"""Assembly of a multi-frame DICOM dataset from a ConversionResult."""

import datetime
import logging

import numpy as np
from pydicom.dataset import Dataset, FileDataset, FileMetaDataset
from pydicom.sequence import Sequence
from pydicom.tag import Tag
from pydicom.uid import ExplicitVRLittleEndian, generate_uid
from pydicom.valuerep import format_number_as_ds

from volconvert.core import get_config


logger = logging.getLogger(__name__)

# Multi-frame secondary capture and parametric map storage
sop_classes = {
    8: '1.2.840.10008.5.1.4.1.1.7.2',
    16: '1.2.840.10008.5.1.4.1.1.7.3',
    'rgb': '1.2.840.10008.5.1.4.1.1.7.4',
    'float': '1.2.840.10008.5.1.4.1.1.30',
}


def get_new_uid(root=None):
    '''Generate a unique identifier under <root>, or a UUID-derived
    identifier (2.25.*) if no root is given.'''

    if root:
        return generate_uid(prefix=root.rstrip('.') + '.')
    return generate_uid(prefix=None)


def ds_values(values):
    '''Format numbers as DICOM decimal strings (at most 16 characters).'''

    return [format_number_as_ds(float(v)) for v in values]


def get_sop_class(encoding):
    if encoding.is_float:
        return sop_classes['float']
    if encoding.samples_per_pixel > 1:
        return sop_classes['rgb']
    return sop_classes[encoding.bits_allocated]


def create_dataset(result, patient_id=None, modality=None, root_uid=None,
                   config=None):
    '''Create a multi-frame dataset holding the voxels and geometry of a
    conversion result.

    Parameters
    ----------
    result : ConversionResult
        Converted image.

    patient_id : str, default=None
        Patient ID, also used as patient name. A placeholder is used if
        None.

    modality : str, default=None
        Modality; if None, taken from the [dicom] section of the settings.

    root_uid : str, default=None
        Root for new UIDs; if None, taken from the [dicom] section of the
        settings, and if that is empty, 2.25 UUID-derived UIDs are made.

    config : configparser.ConfigParser, default=None
        Settings; loaded with get_config() if None.
    '''

    if config is None:
        config = get_config()
    if modality is None:
        modality = config.get('dicom', 'modality', fallback='OT')
    if root_uid is None:
        root_uid = config.get('dicom', 'root_uid', fallback='')

    encoding = result.encoding
    sop_class = get_sop_class(encoding)
    sop_instance = get_new_uid(root_uid)

    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = sop_class
    file_meta.MediaStorageSOPInstanceUID = sop_instance
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
    ds = FileDataset('', {}, file_meta=file_meta, preamble=b'\x00' * 128)

    ds.SOPClassUID = sop_class
    ds.SOPInstanceUID = sop_instance
    ds.PatientID = patient_id if patient_id is not None else '123456'
    ds.PatientName = ds.PatientID
    ds.Modality = modality
    ds.StudyInstanceUID = get_new_uid(root_uid)
    ds.SeriesInstanceUID = get_new_uid(root_uid)
    ds.FrameOfReferenceUID = get_new_uid(root_uid)
    ds.SeriesNumber = '1'
    ds.InstanceNumber = '1'
    ds.ImageType = ['DERIVED', 'SECONDARY']
    ds.ImageComments = f'Converted from {result.source}'

    dt = datetime.datetime.now()
    ds.ContentDate = dt.strftime('%Y%m%d')
    ds.ContentTime = dt.strftime('%H%M%S.%f')

    add_pixel_data(ds, result)
    if result.geometry is not None:
        add_functional_groups(ds, result.geometry)
        if result.geometry.dimension_indices is not None:
            add_dimensions(ds, root_uid)
    logger.info(f'Created {ds.NumberOfFrames}-frame dataset, SOP class '
                f'{sop_class}')
    return ds


def add_pixel_data(ds, result):
    '''Set the image pixel module and value transformation attributes.'''

    encoding = result.encoding
    pixels = result.pixels
    ds.Rows = result.rows
    ds.Columns = result.columns
    ds.NumberOfFrames = str(result.number_of_frames)
    ds.SamplesPerPixel = encoding.samples_per_pixel
    ds.PhotometricInterpretation = encoding.photometric_interpretation
    ds.BitsAllocated = encoding.bits_allocated
    if encoding.samples_per_pixel > 1:
        ds.PlanarConfiguration = 0

    data = np.ascontiguousarray(pixels,
                                dtype=encoding.get_dtype('<')).tobytes()
    if encoding.is_float:
        if encoding.bits_allocated == 32:
            ds.FloatPixelData = data
        else:
            ds.DoubleFloatPixelData = data
    else:
        ds.BitsStored = encoding.bits_allocated
        ds.HighBit = encoding.bits_allocated - 1
        ds.PixelRepresentation = 1 if encoding.signed else 0
        ds.PixelData = data

    if encoding.samples_per_pixel == 1:
        ds.PresentationLUTShape = 'IDENTITY'
        ds.RescaleSlope = format_number_as_ds(float(result.rescale.slope))
        ds.RescaleIntercept = format_number_as_ds(
            float(result.rescale.intercept))
        ds.RescaleType = result.rescale.type
        ds.VOILUTFunction = 'LINEAR_EXACT' if encoding.is_float else 'LINEAR'
        if result.window is not None and result.window.width > 0:
            ds.WindowCenter = format_number_as_ds(float(result.window.center))
            ds.WindowWidth = format_number_as_ds(float(result.window.width))


def add_functional_groups(ds, geometry):
    '''Set shared pixel measures and plane orientation, and per-frame plane
    position and frame content.'''

    measures = Dataset()
    # Row spacing (between rows) comes first
    measures.PixelSpacing = ds_values([geometry.row_spacing,
                                       geometry.column_spacing])
    measures.SliceThickness = format_number_as_ds(geometry.slice_thickness)
    measures.SpacingBetweenSlices = format_number_as_ds(
        geometry.slice_spacing)
    orientation = Dataset()
    orientation.ImageOrientationPatient = ds_values(
        list(geometry.row_direction) + list(geometry.column_direction))
    shared = Dataset()
    shared.PixelMeasuresSequence = Sequence([measures])
    shared.PlaneOrientationSequence = Sequence([orientation])
    ds.SharedFunctionalGroupsSequence = Sequence([shared])

    per_frame = []
    for i, position in enumerate(geometry.frame_positions):
        plane = Dataset()
        plane.ImagePositionPatient = ds_values(position)
        item = Dataset()
        item.PlanePositionSequence = Sequence([plane])
        if geometry.dimension_indices is not None:
            stack, in_stack = geometry.dimension_indices[i]
            content = Dataset()
            content.StackID = str(stack)
            content.InStackPositionNumber = in_stack
            content.DimensionIndexValues = [stack, in_stack]
            item.FrameContentSequence = Sequence([content])
        per_frame.append(item)
    ds.PerFrameFunctionalGroupsSequence = Sequence(per_frame)


def add_dimensions(ds, root_uid=None):
    '''Set a dimension module indexing frames by stack, then by position
    within the stack.'''

    organization_uid = get_new_uid(root_uid)
    organization = Dataset()
    organization.DimensionOrganizationUID = organization_uid
    ds.DimensionOrganizationSequence = Sequence([organization])

    indices = []
    for keyword in ['StackID', 'InStackPositionNumber']:
        item = Dataset()
        item.DimensionIndexPointer = Tag(keyword)
        item.FunctionalGroupPointer = Tag('FrameContentSequence')
        item.DimensionOrganizationUID = organization_uid
        item.DimensionDescriptionLabel = keyword
        indices.append(item)
    ds.DimensionIndexSequence = Sequence(indices)


def write_dataset(result, outname, **kwargs):
    '''Write a conversion result to a DICOM file. Keyword arguments are
    passed to create_dataset().'''

    ds = create_dataset(result, **kwargs)
    ds.save_as(outname, enforce_file_format=True)
    logger.info(f'Wrote {outname}')
    return ds
