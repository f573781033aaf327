"""Closed code tables used by the Analyze, NIfTI-1, NRRD and raw headers.

Codes that are not in a table are kept as Unrecognized(value) rather than
rejected, so that unusual but harmless files can still be read.
"""

import enum
from collections import namedtuple


class Unrecognized(namedtuple('Unrecognized', ['value'])):
    """Header code that is not a member of the expected table."""

    __slots__ = ()

    @property
    def name(self):
        return f'UNRECOGNIZED({self.value})'


def lookup(table, value):
    """Return the member of enum <table> with <value>, or Unrecognized."""

    try:
        return table(value)
    except ValueError:
        return Unrecognized(value)


class AnalyzeDataType(enum.IntEnum):
    NONE = 0
    BINARY = 1
    UNSIGNED_CHAR = 2
    SIGNED_SHORT = 4
    SIGNED_INT = 8
    FLOAT = 16
    COMPLEX = 32
    DOUBLE = 64
    RGB = 128
    ALL = 255


class AnalyzeOrientation(enum.IntEnum):
    TRANSVERSE_UNFLIPPED = 0
    CORONAL_UNFLIPPED = 1
    SAGITTAL_UNFLIPPED = 2
    TRANSVERSE_FLIPPED = 3
    CORONAL_FLIPPED = 4
    SAGITTAL_FLIPPED = 5


class NiftiDataType(enum.IntEnum):
    NONE = 0
    UINT8 = 2
    INT16 = 4
    INT32 = 8
    FLOAT32 = 16
    COMPLEX64 = 32
    FLOAT64 = 64
    RGB24 = 128
    INT8 = 256
    UINT16 = 512
    UINT32 = 768
    INT64 = 1024
    UINT64 = 1280
    FLOAT128 = 1536
    COMPLEX128 = 1792
    COMPLEX256 = 2048
    RGBA32 = 2304


class Intent(enum.IntEnum):
    NONE = 0
    CORREL = 2
    TTEST = 3
    FTEST = 4
    ZSCORE = 5
    CHISQ = 6
    BETA = 7
    BINOM = 8
    GAMMA = 9
    POISSON = 10
    NORMAL = 11
    FTEST_NONC = 12
    CHISQ_NONC = 13
    LOGISTIC = 14
    LAPLACE = 15
    UNIFORM = 16
    TTEST_NONC = 17
    WEIBULL = 18
    CHI = 19
    INVGAUSS = 20
    EXTVAL = 21
    PVAL = 22
    LOGPVAL = 23
    LOG10PVAL = 24
    ESTIMATE = 1001
    LABEL = 1002
    NEURONAME = 1003
    GENMATRIX = 1004
    SYMMATRIX = 1005
    DISPVECT = 1006
    VECTOR = 1007
    POINTSET = 1008
    TRIANGLE = 1009
    QUATERNION = 1010
    DIMLESS = 1011
    TIME_SERIES = 2001
    NODE_INDEX = 2002
    RGB_VECTOR = 2003
    RGBA_VECTOR = 2004
    SHAPE = 2005

    @property
    def is_statistic(self):
        return Intent.CORREL <= self <= Intent.LOG10PVAL


class SliceOrder(enum.IntEnum):
    UNKNOWN = 0
    SEQ_INC = 1
    SEQ_DEC = 2
    ALT_INC = 3
    ALT_DEC = 4
    ALT_INC2 = 5
    ALT_DEC2 = 6


class Units(enum.IntEnum):
    UNKNOWN = 0
    METER = 1
    MM = 2
    MICRON = 3
    SEC = 8
    MSEC = 16
    USEC = 24
    HZ = 32
    PPM = 40
    RADS = 48


class CoordinateTransform(enum.IntEnum):
    UNKNOWN = 0
    SCANNER_ANAT = 1
    ALIGNED_ANAT = 2
    TALAIRACH = 3
    MNI_152 = 4


class SampleType(enum.Enum):
    """Sample types named in NRRD headers and raw descriptions."""

    INT8 = 'int8'
    UINT8 = 'uint8'
    INT16 = 'int16'
    UINT16 = 'uint16'
    INT32 = 'int32'
    UINT32 = 'uint32'
    INT64 = 'int64'
    UINT64 = 'uint64'
    FLOAT32 = 'float'
    FLOAT64 = 'double'
    BLOCK = 'block'


_sample_type_names = {
    SampleType.INT8: ['signed char', 'int8', 'int8_t'],
    SampleType.UINT8: ['uchar', 'unsigned char', 'uint8', 'uint8_t'],
    SampleType.INT16: ['short', 'short int', 'signed short',
                       'signed short int', 'int16', 'int16_t'],
    SampleType.UINT16: ['ushort', 'unsigned short', 'unsigned short int',
                        'uint16', 'uint16_t'],
    SampleType.INT32: ['int', 'signed int', 'int32', 'int32_t'],
    SampleType.UINT32: ['uint', 'unsigned int', 'uint32', 'uint32_t'],
    SampleType.INT64: ['longlong', 'long long', 'long long int',
                       'signed long long', 'signed long long int', 'int64',
                       'int64_t'],
    SampleType.UINT64: ['ulonglong', 'unsigned long long',
                        'unsigned long long int', 'uint64', 'uint64_t'],
    SampleType.FLOAT32: ['float'],
    SampleType.FLOAT64: ['double'],
    SampleType.BLOCK: ['block'],
}
sample_types = {
    name: kind for kind, names in _sample_type_names.items()
    for name in names
}


def get_sample_type(name):
    """Map an NRRD-style type name to a SampleType, or Unrecognized."""

    if name is None:
        return None
    kind = sample_types.get(' '.join(name.lower().split()))
    if kind is None:
        return Unrecognized(name)
    return kind
