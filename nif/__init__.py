"""Read and write NIF files.

A NIF file holds a sequence of equally sized raster frames, all encoded in one
of four pixel formats (RGBA8888, RGB888, RGBA4444 or RGB444). The file starts
with a magic number, format version and feature flags, followed by a 20 byte
header giving the frame size, pixel format, frame count and frame rate. The
frames follow back to back, either raw or compressed together as a single
gzip stream.

Every frame is held in memory; files are read and written as a whole.
"""

__version__ = "0.1.0"

from nif.compression import FEATURE_COMPRESSED
from nif.errors import NifError, InvalidMagicError, UnsupportedVersionError, \
    UnsupportedPixelFormatError, TruncatedDataError, SizeMismatchError, \
    OutOfRangeError
from nif.file import NifFile, MAGIC_NUMBER, CURRENT_VERSION
from nif.frame import Frame
from nif.header import Header, HEADER_SIZE
from nif.pixel import Pixel, PixelFormat, bytes_per_pixel, decode_pixel, \
    encode_pixel

__all__ = [
    "NifFile", "Header", "Frame", "Pixel", "PixelFormat",
    "bytes_per_pixel", "decode_pixel", "encode_pixel",
    "FEATURE_COMPRESSED", "MAGIC_NUMBER", "CURRENT_VERSION", "HEADER_SIZE",
    "NifError", "InvalidMagicError", "UnsupportedVersionError",
    "UnsupportedPixelFormatError", "TruncatedDataError", "SizeMismatchError",
    "OutOfRangeError",
]
