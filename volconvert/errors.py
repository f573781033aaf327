"""Exceptions and warnings raised while converting volume files."""


class ConversionError(RuntimeError):
    """Base class for fatal conversion errors.

    Parameters
    ----------
    message : str
        Description of the problem.

    field : str, default=None
        Name of the header field at fault, if known.

    value : object, default=None
        Offending value, if known.

    offset : int, default=None
        Byte offset at which the problem was found, if applicable.
    """

    def __init__(self, message, field=None, value=None, offset=None):
        RuntimeError.__init__(self, message)
        self.message = message
        self.field = field
        self.value = value
        self.offset = offset

    def __str__(self):
        details = []
        if self.field is not None:
            details.append(f'field={self.field}')
        if self.value is not None:
            details.append(f'value={self.value!r}')
        if self.offset is not None:
            details.append(f'offset={self.offset}')
        if details:
            return f'{self.message} ({", ".join(details)})'
        return self.message


class ShortRead(ConversionError):
    """Fewer bytes were available than a read required."""

    def __init__(self, requested, available, offset=None, field=None):
        ConversionError.__init__(
            self,
            f'Needed {requested} bytes but only {available} available',
            field=field, offset=offset)
        self.requested = requested
        self.available = available


class FormatError(ConversionError):
    """Magic number or structural violation in a header."""


class UnsupportedGeometryError(ConversionError):
    """Orientation or transform that is recognised but cannot be converted."""


class UnsupportedDataTypeError(ConversionError):
    """Voxel data type that cannot be encoded in the destination."""


class GeometryDegraded(UserWarning):
    """Geometry was derived from an intentional best-effort fallback."""
