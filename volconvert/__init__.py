"""Conversion of Analyze 7.5, NIfTI-1, NRRD and raw voxel files to
multi-frame images with geometry in DICOM patient coordinates.

1. Header parsers (Analyze, NIfTI-1, NRRD, raw descriptions).

2. Geometry derivation in LPS+.

3. Voxel loading and reordering.

4. Optional assembly of a pydicom dataset.
"""

from volconvert.errors import ConversionError, ShortRead, FormatError, \
        UnsupportedGeometryError, UnsupportedDataTypeError, GeometryDegraded
from volconvert.analyze import AnalyzeHeader, read_analyze_header
from volconvert.nifti import Nifti1Header, read_nifti1_header
from volconvert.nrrd import NrrdHeader, read_nrrd_header
from volconvert.raw import RawImageDescription, read_raw_description
from volconvert.layout import DimensionLayout, FrameOrder
from volconvert.geometry import VoxelGeometry, quaternion_to_rotation
from volconvert.pixels import PixelEncoding
from volconvert.convert import ConversionResult, convert, convert_analyze, \
        convert_nifti, convert_nrrd, convert_raw
