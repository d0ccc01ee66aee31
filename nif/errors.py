"""Exceptions raised while reading and writing NIF files."""


class NifError(Exception):
    """Base class for all NIF codec errors."""


class InvalidMagicError(NifError, ValueError):
    """The file does not start with the NIF magic number."""


class UnsupportedVersionError(NifError, ValueError):
    """The file was written by a newer version of the format."""


class UnsupportedPixelFormatError(NifError, ValueError):
    """A pixel format code is not one of the known formats."""


class TruncatedDataError(NifError, ValueError):
    """The file ends before all the data described by its header."""


class SizeMismatchError(NifError, ValueError):
    """Supplied bytes do not match the size the layout requires."""


class OutOfRangeError(NifError, IndexError):
    """A pixel coordinate lies outside the frame."""
