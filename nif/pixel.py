"""Pixel formats and the packing of pixel values into their on-disk words.

Every pixel is stored as a single big-endian word. The 8 bit formats use a
32 bit word laid out as 0xRRGGBBAA, the 4 bit formats use a 16 bit word laid
out as 0xRGBA. Formats without an alpha channel keep its bits zero.
"""

import struct
from enum import IntEnum

from nif.errors import SizeMismatchError, UnsupportedPixelFormatError


class PixelFormat(IntEnum):
    """The on-disk pixel encodings. The value is the code stored in the
    file header."""
    RGBA8888 = 0
    RGB888 = 1
    RGBA4444 = 2
    RGB444 = 3

    @classmethod
    def from_code(cls, code):
        """Return the format for a numeric code (or a format).

        Raises UnsupportedPixelFormatError if the code is unknown.
        """
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedPixelFormatError(
                f"unknown pixel format code {code!r}") from None

    @property
    def bytes_per_pixel(self):
        return _LAYOUTS[self][0].size

    @property
    def has_alpha(self):
        return "a" in _LAYOUTS[self][1]


# format -> (word struct, {channel: (shift, mask)})
_LAYOUTS = {
    PixelFormat.RGBA8888: (struct.Struct(">I"),
        {"r": (24, 0xFF), "g": (16, 0xFF), "b": (8, 0xFF), "a": (0, 0xFF)}),
    PixelFormat.RGB888: (struct.Struct(">I"), # low byte is padding
        {"r": (24, 0xFF), "g": (16, 0xFF), "b": (8, 0xFF)}),
    PixelFormat.RGBA4444: (struct.Struct(">H"),
        {"r": (12, 0xF), "g": (8, 0xF), "b": (4, 0xF), "a": (0, 0xF)}),
    PixelFormat.RGB444: (struct.Struct(">H"), # low nibble is padding
        {"r": (12, 0xF), "g": (8, 0xF), "b": (4, 0xF)}),
}

# the bits of each word that actually carry channel data
_WORD_MASKS = {
    fmt: sum(mask << shift for shift, mask in channels.values())
    for fmt, (_, channels) in _LAYOUTS.items()
}


def bytes_per_pixel(pixel_format):
    """Return the number of bytes one pixel of the given format occupies."""
    return PixelFormat.from_code(pixel_format).bytes_per_pixel


def _channel(name):
    def fget(self):
        return self.get(name)
    def fset(self, value):
        self.set(name, value)
    return property(fget, fset, doc=f"The {name} channel value.")


class Pixel:
    """A decoded pixel: a packed channel word tagged with its format.

    Channels are read and written individually by masking them out of and
    into the packed word, so setting one channel never disturbs the others.

    Attributes
    ----------
    pixel_format : PixelFormat
        The format the word is laid out in.
    word : int
        The packed channel word, exactly as it is stored on disk.
    """
    __slots__ = ("pixel_format", "word")

    def __init__(self, pixel_format, r=0, g=0, b=0, a=0):
        """
        Parameters
        ----------
        pixel_format : PixelFormat or int
            The format of the pixel.
        r, g, b, a : int, optional
            The channel values, each in the range of the format's channel
            width. a must be 0 for formats without alpha.
        """
        self.pixel_format = PixelFormat.from_code(pixel_format)
        self.word = 0
        self.r, self.g, self.b, self.a = r, g, b, a

    @classmethod
    def from_word(cls, pixel_format, word):
        """Wrap an already packed word. Padding bits are discarded."""
        pixel = cls(pixel_format)
        pixel.word = int(word) & _WORD_MASKS[pixel.pixel_format]
        return pixel

    def get(self, name):
        channel = _LAYOUTS[self.pixel_format][1].get(name)
        if channel is None:
            if name == "a":
                return 0 # no alpha channel, so it's always 0
            raise KeyError(f"unknown channel {name!r}")
        shift, mask = channel
        return (self.word >> shift) & mask

    def set(self, name, value):
        value = int(value)
        channel = _LAYOUTS[self.pixel_format][1].get(name)
        if channel is None:
            if name != "a":
                raise KeyError(f"unknown channel {name!r}")
            if value != 0:
                raise ValueError(
                    f"pixel format {self.pixel_format.name} has no alpha")
            return
        shift, mask = channel
        if not 0 <= value <= mask:
            raise ValueError(f"{name} value {value} does not fit in "
                f"{mask.bit_length()} bits")
        self.word = (self.word & ~(mask << shift)) | (value << shift)

    r = _channel("r")
    g = _channel("g")
    b = _channel("b")
    a = _channel("a")

    def channels(self):
        """Return the channel values the format carries, in RGB(A) order."""
        return tuple(self.get(name) for name in _LAYOUTS[self.pixel_format][1])

    def __eq__(self, other):
        if not isinstance(other, Pixel):
            return NotImplemented
        return (self.pixel_format == other.pixel_format
            and self.channels() == other.channels())

    def __repr__(self):
        fields = ", ".join(f"{name}={self.get(name)}"
            for name in _LAYOUTS[self.pixel_format][1])
        return f"Pixel({self.pixel_format.name}, {fields})"


def decode_pixel(pixel_format, data):
    """Decode one pixel from exactly bytes_per_pixel bytes of data.

    Raises UnsupportedPixelFormatError for an unknown format code and
    SizeMismatchError if data has the wrong length.
    """
    pixel_format = PixelFormat.from_code(pixel_format)
    word_struct = _LAYOUTS[pixel_format][0]
    if len(data) != word_struct.size:
        raise SizeMismatchError(f"{pixel_format.name} pixel needs "
            f"{word_struct.size} bytes, got {len(data)}")
    return Pixel.from_word(pixel_format, word_struct.unpack(data)[0])


def encode_pixel(pixel, out=None):
    """Encode a pixel into its on-disk bytes.

    If out is None (the default), the bytes are returned. Otherwise out must
    be a writable buffer of exactly bytes_per_pixel bytes, which is filled in
    place and returned.
    """
    word_struct = _LAYOUTS[pixel.pixel_format][0]
    if out is None:
        return word_struct.pack(pixel.word)
    if len(out) != word_struct.size:
        raise SizeMismatchError(f"{pixel.pixel_format.name} pixel needs "
            f"{word_struct.size} bytes, got a buffer of {len(out)}")
    word_struct.pack_into(out, 0, pixel.word)
    return out
