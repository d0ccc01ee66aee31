import gzip
import logging
import struct

import numpy as np
import pytest

from nif import FEATURE_COMPRESSED, CURRENT_VERSION, MAGIC_NUMBER, Header, \
    NifFile, Pixel, PixelFormat
from nif.errors import InvalidMagicError, NifError, SizeMismatchError, \
    TruncatedDataError, UnsupportedPixelFormatError, UnsupportedVersionError

def _check_same(nif, got):
    assert got.header == nif.header
    assert got.header.width == nif.header.width
    assert got.header.height == nif.header.height
    assert got.header.pixel_format == nif.header.pixel_format
    assert got.header.frame_count == nif.header.frame_count
    assert got.header.frame_rate == nif.header.frame_rate
    assert len(got) == len(nif)
    for frame, got_frame in zip(nif, got):
        assert got_frame.tobytes() == frame.tobytes()

def _small_file(fmt=PixelFormat.RGBA8888, frames=2):
    nif = NifFile(Header(3, 2, fmt, 0, 24.0))
    for index in range(frames):
        nif.append_frame(bytes(
            (index*31 + i) % 256 for i in range(nif.header.frame_size)))
    return nif

def test_new_file_has_no_frames():
    nif = NifFile(Header(4, 4, PixelFormat.RGB888, 5, 30.0))
    assert nif.header.frame_count == 0
    assert len(nif) == 0
    assert nif.frames == ()
    assert nif.version == CURRENT_VERSION
    assert nif.feature_flags == 0
    assert nif.header.frame_rate == 30.0

def test_frame_count_invariant():
    nif = NifFile(Header(5, 3, PixelFormat.RGBA4444))
    for count in range(1, 6):
        frame = nif.new_empty_frame()
        assert nif.header.frame_count == len(nif) == count
        assert nif.get_frame(count-1) is frame
    for frame in nif:
        assert len(frame) == 5*3*2
        assert frame.size == (5, 3)
        assert frame.pixel_format is PixelFormat.RGBA4444

def test_append_frame_wrong_size():
    nif = NifFile(Header(2, 2, PixelFormat.RGB444))
    nif.append_frame(b"\x00"*8)
    with pytest.raises(SizeMismatchError):
        nif.append_frame(b"\x00"*9)
    assert nif.header.frame_count == len(nif) == 1

def test_get_frame_missing():
    nif = NifFile(Header(2, 2))
    nif.new_empty_frame()
    with pytest.raises(IndexError):
        nif.get_frame(1)
    with pytest.raises(IndexError):
        nif.get_frame(-1)

def test_file_layout(tmp_path):
    nif = NifFile(Header(2, 1, PixelFormat.RGB444, 0, 12.5))
    frame = nif.new_empty_frame()
    frame.set_pixel(1, 0, Pixel(PixelFormat.RGB444, 1, 2, 3))
    path = tmp_path / "layout.nif"
    nif.write(path)

    data = path.read_bytes()
    assert data[:4] == b"NIF\x00"
    assert struct.unpack(">III", data[:12]) == (MAGIC_NUMBER, 0x00010000, 0)
    assert data[12:32] == struct.pack(">IIIIf", 2, 1, 3, 1, 12.5)
    assert data[32:] == b"\x00\x00\x12\x30"

def test_serialize(tmp_path):
    nif = NifFile(Header(400, 400, PixelFormat.RGBA8888))
    frame = nif.new_empty_frame()
    for i in range(400):
        for j in range(400):
            frame.set_pixel(i, j, Pixel(PixelFormat.RGBA8888,
                i % 0xFF, j & 0xFF, 0, 0))

    path = tmp_path / "test.nif"
    nif.write(path, 0)
    got = NifFile.read(path)
    _check_same(nif, got)
    assert got.feature_flags == 0
    got_frame = got.get_frame(0)
    assert got_frame == frame
    assert got_frame.get_pixel(399, 398).channels() == (399 % 0xFF, 398 & 0xFF, 0, 0)

    path = tmp_path / "test_comp.nif"
    nif.write(path, FEATURE_COMPRESSED)
    got = NifFile.read(path)
    _check_same(nif, got)
    assert got.feature_flags == FEATURE_COMPRESSED

def test_serialize_random(tmp_path):
    rng = np.random.default_rng(1234)
    nif = NifFile(Header(400, 400, PixelFormat.RGBA8888))
    nif.append_frame(rng.bytes(nif.header.frame_size))

    for flags in (FEATURE_COMPRESSED, 0):
        path = tmp_path / f"random_{flags}.nif"
        nif.write(path, flags)
        _check_same(nif, NifFile.read(path))

@pytest.mark.parametrize("fmt", list(PixelFormat))
@pytest.mark.parametrize("flags", [0, FEATURE_COMPRESSED])
def test_round_trip_formats(tmp_path, fmt, flags):
    nif = _small_file(fmt, frames=3)
    path = tmp_path / "frames.nif"
    nif.write(path, flags)
    got = NifFile.read(path)
    _check_same(nif, got)
    assert got.header.pixel_format is fmt

@pytest.mark.parametrize("flags", [0, FEATURE_COMPRESSED])
def test_empty_file(tmp_path, flags):
    nif = NifFile(Header(16, 16, PixelFormat.RGB888, 0, 60.0))
    path = tmp_path / "empty.nif"
    nif.write(path, flags)
    got = NifFile.read(path)
    _check_same(nif, got)
    assert len(got) == 0
    if not flags:
        assert path.stat().st_size == 32

def test_compressed_body(tmp_path):
    nif = NifFile(Header(64, 64, PixelFormat.RGBA8888))
    nif.new_empty_frame()
    nif.new_empty_frame()
    path = tmp_path / "comp.nif"
    nif.write(path, FEATURE_COMPRESSED)
    data = path.read_bytes()
    assert data[8:12] == b"\x00\x00\x00\x01"
    assert data[32:34] == b"\x1f\x8b" # gzip stream
    assert len(data) < 32 + 2*nif.header.frame_size

def test_write_uses_given_flags(tmp_path):
    nif = _small_file()
    nif.feature_flags = FEATURE_COMPRESSED
    path = tmp_path / "raw.nif"
    nif.write(path, 0)
    assert path.stat().st_size == 32 + 2*nif.header.frame_size
    assert NifFile.read(path).feature_flags == 0

@pytest.mark.parametrize("flags", [0, FEATURE_COMPRESSED])
def test_truncated_body(tmp_path, flags):
    path = tmp_path / "trunc.nif"
    _small_file().write(path, flags)
    data = path.read_bytes()
    path.write_bytes(data[:-1])
    with pytest.raises(TruncatedDataError):
        NifFile.read(path)

@pytest.mark.parametrize("size", [(0xFFFFFFFF, 0xFFFFFFFF), (100000, 100000)])
@pytest.mark.parametrize("flags", [0, FEATURE_COMPRESSED])
def test_huge_frames_without_body(tmp_path, size, flags):
    path = tmp_path / "huge.nif"
    path.write_bytes(struct.pack(">III", MAGIC_NUMBER, CURRENT_VERSION, flags)
        + Header(size[0], size[1], PixelFormat.RGBA8888, 1).encode())
    with pytest.raises(TruncatedDataError):
        NifFile.read(path)

def test_huge_frames_short_compressed_body(tmp_path):
    path = tmp_path / "huge.nif"
    with open(path, "wb") as f:
        f.write(struct.pack(">III",
            MAGIC_NUMBER, CURRENT_VERSION, FEATURE_COMPRESSED))
        f.write(Header(100000, 100000, PixelFormat.RGBA8888, 1).encode())
        f.write(gzip.compress(b"\x00"*1000))
    with pytest.raises(TruncatedDataError):
        NifFile.read(path)

def _random_compressed(path):
    rng = np.random.default_rng(99)
    nif = NifFile(Header(50, 50, PixelFormat.RGBA8888))
    nif.append_frame(rng.bytes(nif.header.frame_size))
    nif.append_frame(rng.bytes(nif.header.frame_size))
    nif.write(path, FEATURE_COMPRESSED)
    return path.read_bytes()

@pytest.mark.parametrize("cut", [
    lambda data: 32 + 20, # inside the first frame's deflate data
    lambda data: len(data)//2,
    lambda data: len(data) - 20, # inside the last frame
])
def test_truncated_compressed_frames(tmp_path, cut):
    path = tmp_path / "trunc.nif"
    data = _random_compressed(path)
    path.write_bytes(data[:cut(data)])
    with pytest.raises(TruncatedDataError):
        NifFile.read(path)

def test_compressed_junk_after_body(tmp_path):
    path = tmp_path / "junk.nif"
    data = _random_compressed(path)
    path.write_bytes(data + b"junk")
    with pytest.raises(NifError):
        NifFile.read(path)

def test_compressed_bad_checksum(tmp_path):
    path = tmp_path / "crc.nif"
    data = bytearray(_random_compressed(path))
    data[-8] ^= 0xFF # first byte of the gzip CRC32
    path.write_bytes(bytes(data))
    with pytest.raises(NifError):
        NifFile.read(path)

def test_truncated_header(tmp_path):
    path = tmp_path / "trunc.nif"
    _small_file().write(path)
    data = path.read_bytes()
    for length in (0, 8, 31):
        path.write_bytes(data[:length])
        with pytest.raises(TruncatedDataError):
            NifFile.read(path)

def _patch(path, offset, value):
    data = bytearray(path.read_bytes())
    struct.pack_into(">I", data, offset, value)
    path.write_bytes(bytes(data))

def test_invalid_magic(tmp_path):
    path = tmp_path / "magic.nif"
    _small_file().write(path)
    _patch(path, 0, 0x4E494601)
    with pytest.raises(InvalidMagicError):
        NifFile.read(path)

def test_newer_version(tmp_path):
    path = tmp_path / "version.nif"
    _small_file().write(path)
    _patch(path, 4, CURRENT_VERSION + 1)
    with pytest.raises(UnsupportedVersionError):
        NifFile.read(path)

def test_older_version(tmp_path):
    path = tmp_path / "version.nif"
    nif = _small_file()
    nif.write(path)
    _patch(path, 4, 0x00000100)
    got = NifFile.read(path)
    assert got.version == 0x00000100
    _check_same(nif, got)

def test_unknown_pixel_format(tmp_path):
    path = tmp_path / "format.nif"
    _small_file().write(path)
    _patch(path, 20, 4)
    with pytest.raises(UnsupportedPixelFormatError):
        NifFile.read(path)

def test_errors_are_value_errors(tmp_path):
    path = tmp_path / "magic.nif"
    path.write_bytes(b"GIF89a" + b"\x00"*40)
    with pytest.raises(ValueError):
        NifFile.read(path)

def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        NifFile.read(tmp_path / "missing.nif")

def test_trailing_data_warns(tmp_path, caplog):
    path = tmp_path / "trailing.nif"
    nif = _small_file()
    nif.write(path)
    with open(path, "ab") as f:
        f.write(b"\x00")
    with caplog.at_level(logging.WARNING, logger="nif.file"):
        got = NifFile.read(path)
    _check_same(nif, got)
    assert "past its last frame" in caplog.text

def test_unknown_flags_warn(tmp_path, caplog):
    path = tmp_path / "flags.nif"
    nif = _small_file()
    with caplog.at_level(logging.WARNING, logger="nif.file"):
        nif.write(path, 0x4)
        got = NifFile.read(path)
    assert got.feature_flags == 0x4
    _check_same(nif, got)
    assert "unknown feature flags 0x4" in caplog.text

def test_bad_flags():
    with pytest.raises(ValueError):
        _small_file().write("unused.nif", 1 << 32)

@pytest.mark.parametrize("flags", [0, FEATURE_COMPRESSED])
def test_zero_width_frames(tmp_path, flags):
    nif = NifFile(Header(0, 4, PixelFormat.RGB444))
    nif.new_empty_frame()
    nif.new_empty_frame()
    path = tmp_path / "zero.nif"
    nif.write(path, flags)
    got = NifFile.read(path)
    _check_same(nif, got)
    assert len(got.get_frame(1)) == 0
