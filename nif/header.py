"""The fixed-size header describing the frames of a NIF file."""

import struct
from collections import namedtuple

from nif.errors import TruncatedDataError
from nif.pixel import PixelFormat

# width, height, pixel format code, frame count, frame rate
_HEADER_STRUCT = struct.Struct(">IIIIf")
HEADER_SIZE = _HEADER_STRUCT.size # 20 bytes

_U32_MAX = 0xFFFFFFFF


class Header(namedtuple("Header", [
    "width", # width, in pixels, of each frame
    "height", # height, in pixels, of each frame
    "pixel_format", # PixelFormat of every frame
    "frame_count", # number of frames in the file
    "frame_rate", # nominal frames per second, stored as a 32 bit float
])):
    __slots__ = ()

    def __new__(cls, width, height, pixel_format=PixelFormat.RGBA8888,
            frame_count=0, frame_rate=0.0):
        width, height, frame_count = int(width), int(height), int(frame_count)
        for name, value in (("width", width), ("height", height),
                ("frame count", frame_count)):
            if not 0 <= value <= _U32_MAX:
                raise ValueError(f"{name} {value} does not fit in 32 bits")
        pixel_format = PixelFormat.from_code(pixel_format)
        # round the rate to what the file can actually hold so a header
        # compares equal to itself after being written and read back. a NaN
        # rate is kept, but never compares equal.
        try:
            frame_rate = struct.unpack(">f", struct.pack(">f", frame_rate))[0]
        except OverflowError:
            raise ValueError(f"frame rate {frame_rate} does not fit in a "
                "32 bit float") from None
        return super().__new__(
            cls, width, height, pixel_format, frame_count, frame_rate)

    @property
    def bytes_per_pixel(self):
        return self.pixel_format.bytes_per_pixel

    @property
    def frame_size(self):
        """Size, in bytes, of the data of one frame."""
        return self.width*self.height*self.pixel_format.bytes_per_pixel

    def encode(self):
        """Return the 20 byte big-endian wire form of the header."""
        return _HEADER_STRUCT.pack(self.width, self.height,
            int(self.pixel_format), self.frame_count, self.frame_rate)

    @classmethod
    def decode(cls, data):
        """Parse a header from its 20 byte wire form.

        Raises UnsupportedPixelFormatError if the pixel format code is not
        known and TruncatedDataError if data is too short.
        """
        if len(data) < HEADER_SIZE:
            raise TruncatedDataError(f"header needs {HEADER_SIZE} bytes, "
                f"got {len(data)}")
        width, height, format_code, frame_count, frame_rate = \
            _HEADER_STRUCT.unpack_from(data)
        return cls(width, height, PixelFormat.from_code(format_code),
            frame_count, frame_rate)
