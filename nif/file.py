"""Read and write NIF files."""

import gzip
import logging
import os
import struct
import zlib

from nif.compression import KNOWN_FEATURES, body_reader, body_writer, \
    is_compressed
from nif.errors import InvalidMagicError, NifError, TruncatedDataError, \
    UnsupportedVersionError
from nif.frame import Frame
from nif.header import HEADER_SIZE, Header

logger = logging.getLogger(__name__)

MAGIC_NUMBER = 0x4E494600 # b"NIF\0"
CURRENT_VERSION = 0x00010000

# magic number, version, feature flags
_PREAMBLE_STRUCT = struct.Struct(">III")
_U32_MAX = 0xFFFFFFFF


_READ_CHUNK_SIZE = 1 << 20


def _read_exact(stream, size):
    # read up to size bytes, stopping early only at the end of the stream.
    # chunked so a header claiming a huge frame can't make us allocate it
    # before the data actually shows up.
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(min(remaining, _READ_CHUNK_SIZE))
        if not chunk: break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class NifFile:
    """A NIF file held in memory: a header and its frames.

    Frames are added with new_empty_frame or append_frame; the frame count in
    the header always matches the number of frames held. Files are read and
    written whole, and no file is kept open between calls.

    Attributes
    ----------
    version : int
        The format version. New files get CURRENT_VERSION; files read from
        disk keep the version they were written with.
    feature_flags : int
        The feature flags the file was read with, or 0 for new files. Only
        informational; write takes the flags to use explicitly.
    header : Header
        The header describing every frame.
    """
    def __init__(self, header):
        """
        Parameters
        ----------
        header : Header or tuple
            The frame layout and frame rate. Its frame count is ignored as the
            new file starts with no frames.
        """
        self.version = CURRENT_VERSION
        self.feature_flags = 0
        self.header = Header(*header)._replace(frame_count=0)
        self._frames = []

    @property
    def frames(self):
        """A tuple of every frame, in order."""
        return tuple(self._frames)

    def __len__(self):
        return len(self._frames)

    def __iter__(self):
        return iter(self._frames)

    def get_frame(self, index):
        """Return the frame at the given 0-based index.

        Raises IndexError if the frame does not exist.
        """
        index = int(index)
        if not 0 <= index < len(self._frames):
            raise IndexError("frame {} does not exist".format(index))
        return self._frames[index]

    def _add_frame(self, frame):
        if self.header.frame_count == _U32_MAX:
            raise ValueError("file already holds the maximum number of frames")
        header = self.header._replace(frame_count=self.header.frame_count+1)
        # nothing can fail past here, so the count and the list stay in step
        self._frames.append(frame)
        self.header = header
        return frame

    def new_empty_frame(self):
        """Append a new black frame and return it."""
        return self._add_frame(Frame.new(self.header))

    def append_frame(self, data):
        """Append a new frame holding a copy of the given encoded pixel data
        and return it.

        Raises SizeMismatchError if data is not exactly header.frame_size
        bytes long.
        """
        return self._add_frame(Frame.from_bytes(self.header, data))

    def write(self, fname, feature_flags=0):
        """Write the file to disk.

        Parameters
        ----------
        fname : str or pathlib.Path object
            Path to the NIF file on disk. It is created if it does not exist,
            or truncated if it does.
        feature_flags : int, optional
            Feature flags to write the file with. If FEATURE_COMPRESSED is set,
            the frame data is compressed. Defaults to 0 (uncompressed).
        """
        feature_flags = int(feature_flags)
        if not 0 <= feature_flags <= _U32_MAX:
            raise ValueError(
                f"feature flags {feature_flags:#x} do not fit in 32 bits")
        if feature_flags & ~KNOWN_FEATURES:
            logger.warning("writing unknown feature flags %#x",
                feature_flags & ~KNOWN_FEATURES)

        with open(fname, "wb") as f:
            f.write(_PREAMBLE_STRUCT.pack(
                MAGIC_NUMBER, self.version, feature_flags))
            f.write(self.header.encode())
            with body_writer(f, feature_flags) as body:
                for frame in self._frames:
                    body.write(frame.data)

        logger.debug("wrote %s: %d frames of %dx%d %s, flags %#x", fname,
            self.header.frame_count, self.header.width, self.header.height,
            self.header.pixel_format.name, feature_flags)

    @classmethod
    def read(cls, fname):
        """Read a whole file from disk and return it as a new NifFile.

        Raises InvalidMagicError if the file is not a NIF file,
        UnsupportedVersionError if it is from a newer version of the format,
        UnsupportedPixelFormatError if its pixel format is unknown, and
        TruncatedDataError if it ends before all of its frames.
        """
        with open(fname, "rb") as f:
            preamble = f.read(_PREAMBLE_STRUCT.size)
            if len(preamble) < _PREAMBLE_STRUCT.size:
                raise TruncatedDataError("truncated file header")
            magic, version, feature_flags = _PREAMBLE_STRUCT.unpack(preamble)
            if magic != MAGIC_NUMBER:
                raise InvalidMagicError(
                    f"not a NIF file (magic number {magic:#010x})")
            if version > CURRENT_VERSION:
                raise UnsupportedVersionError(
                    f"file version {version:#010x} is newer than the "
                    f"supported version {CURRENT_VERSION:#010x}")
            if feature_flags & ~KNOWN_FEATURES:
                logger.warning("%s has unknown feature flags %#x", fname,
                    feature_flags & ~KNOWN_FEATURES)

            header_data = f.read(HEADER_SIZE)
            if len(header_data) < HEADER_SIZE:
                raise TruncatedDataError("truncated file header")
            header = Header.decode(header_data)

            frame_size = header.frame_size
            body_size = header.frame_count*frame_size
            if not is_compressed(feature_flags):
                available = os.fstat(f.fileno()).st_size - f.tell()
                if available < body_size:
                    raise TruncatedDataError(f"body needs {body_size} bytes, "
                        f"file has {available}")

            frames = []
            try:
                with body_reader(f, feature_flags) as body:
                    for index in range(header.frame_count):
                        data = _read_exact(body, frame_size)
                        if len(data) < frame_size:
                            raise TruncatedDataError(f"frame {index} is "
                                f"truncated: got {len(data)} of {frame_size} "
                                "bytes")
                        frames.append(Frame.from_bytes(header, data))
                    # also makes a compressed body verify its trailer
                    if body.read(1):
                        logger.warning("%s has data past its last frame",
                            fname)
            except EOFError as e:
                raise TruncatedDataError("compressed data is truncated") from e
            except (zlib.error, gzip.BadGzipFile) as e:
                raise NifError("compressed data is corrupt") from e

        nif = cls(header)
        nif.version = version
        nif.feature_flags = feature_flags
        nif.header = header
        nif._frames = frames

        logger.debug("read %s: %d frames of %dx%d %s, flags %#x%s", fname,
            header.frame_count, header.width, header.height,
            header.pixel_format.name, feature_flags,
            " (compressed)" if is_compressed(feature_flags) else "")
        return nif

    def __repr__(self):
        return "NifFile({}x{} {}, {} frames)".format(self.header.width,
            self.header.height, self.header.pixel_format.name,
            self.header.frame_count)
