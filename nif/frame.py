"""A single raster image stored in a NIF file."""

import numpy as np

from nif.errors import OutOfRangeError, SizeMismatchError
from nif.pixel import Pixel, PixelFormat, decode_pixel, encode_pixel


class Frame:
    """One frame of pixel data, held as a flat buffer of encoded pixels.

    Pixel (x, y) occupies the bytes starting at (y*width + x)*bpp. The frame
    does not keep a reference to the header it was created from; it only
    remembers the layout needed to address its pixels.

    Attributes
    ----------
    size : (int, int)
        Tuple of the width and height of the frame in pixels.
    pixel_format : PixelFormat
        The format every pixel in the frame is encoded in.
    bpp : int
        The number of bytes per pixel.
    data : numpy array
        The 1D uint8 array holding the encoded pixels.
    """
    def __init__(self, size, pixel_format, data=None):
        """
        Parameters
        ----------
        size : (int, int)
            Tuple of the width and height of the frame in pixels.
        pixel_format : PixelFormat or int
            Format of the pixels.
        data : bytes-like or numpy array, optional
            The encoded pixel data, which is copied. If None (the default),
            the frame is filled with zeros (black).
        """
        width, height = int(size[0]), int(size[1])
        self.size = (width, height)
        self.pixel_format = PixelFormat.from_code(pixel_format)
        self.bpp = self.pixel_format.bytes_per_pixel
        frame_size = width*height*self.bpp

        if data is None or (frame_size == 0 and len(data) == 0):
            self.data = np.zeros((frame_size,), dtype=np.uint8)
        else:
            data = np.frombuffer(data, dtype=np.uint8)
            if len(data) != frame_size:
                raise SizeMismatchError(f"frame of {width}x{height} "
                    f"{self.pixel_format.name} pixels needs {frame_size} "
                    f"bytes, got {len(data)}")
            self.data = data.copy()

    @classmethod
    def new(cls, header):
        """Create a black frame laid out as described by header."""
        return cls((header.width, header.height), header.pixel_format)

    @classmethod
    def from_bytes(cls, header, data):
        """Create a frame laid out as described by header from encoded data.

        Raises SizeMismatchError if data is not exactly header.frame_size
        bytes long.
        """
        return cls((header.width, header.height), header.pixel_format, data)

    def _pixel_range(self, x, y):
        width, height = self.size
        if not (0 <= x < width and 0 <= y < height):
            raise OutOfRangeError(
                f"pixel ({x}, {y}) is outside the {width}x{height} frame")
        start = (y*width + x)*self.bpp
        return start, start + self.bpp

    def get_pixel(self, x, y):
        """Return the Pixel at column x, row y.

        Raises OutOfRangeError if the coordinates are outside the frame.
        """
        start, end = self._pixel_range(x, y)
        return decode_pixel(self.pixel_format, self.data[start:end].data)

    def set_pixel(self, x, y, pixel):
        """Encode pixel into column x, row y.

        Raises OutOfRangeError if the coordinates are outside the frame (the
        frame is left untouched) and ValueError if the pixel is in another
        format.
        """
        if not isinstance(pixel, Pixel):
            raise TypeError(f"expected a Pixel, got {type(pixel).__name__}")
        if pixel.pixel_format != self.pixel_format:
            raise ValueError(f"cannot store a {pixel.pixel_format.name} "
                f"pixel in a {self.pixel_format.name} frame")
        start, end = self._pixel_range(x, y)
        encode_pixel(pixel, self.data[start:end].data)

    def iter_pixels(self):
        """Yield every Pixel of the frame in row-major order.

        Each call starts a new pass over the frame.
        """
        view = self.data.data
        for start in range(0, len(self.data), self.bpp):
            yield decode_pixel(self.pixel_format, view[start:start+self.bpp])

    @property
    def array(self):
        """A (height, width, bpp) view of the frame data."""
        width, height = self.size
        return self.data.reshape((height, width, self.bpp))

    def tobytes(self):
        return self.data.tobytes()

    def __len__(self):
        return len(self.data)

    def __eq__(self, other):
        if not isinstance(other, Frame):
            return NotImplemented
        return (self.size == other.size
            and self.pixel_format == other.pixel_format
            and np.array_equal(self.data, other.data))

    def __repr__(self):
        return "Frame(size={}x{}, pixel_format={})".format(
            *self.size, self.pixel_format.name)
