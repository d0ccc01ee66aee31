import os
import sys
import time
import logging
import argparse

from nif import FEATURE_COMPRESSED, Header, NifFile, PixelFormat
from nif.errors import NifError

logger = logging.getLogger(__name__)

def _setup_logging(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s")

def _parse_size(text):
    size = tuple(int(d) for d in text.split("x"))
    if len(size) != 2:
        raise ValueError(f"size {size} must be exactly 2 dimensions")
    return size

def main_pack():
    parser = argparse.ArgumentParser(
        description="Pack raw frame data into a NIF file.")
    parser.add_argument('input', type=str,
        help="Path to raw input file (or - to read from stdin).")
    parser.add_argument('output', type=str,
        help="Path to NIF output file.")
    parser.add_argument('-s', '--size', type=str, required=True,
        help="Width and height (as in WxH) of each frame.")
    parser.add_argument('-p', '--pixel-format', type=str, default="RGBA8888",
        choices=[f.name for f in PixelFormat],
        help="Pixel format the raw data is already encoded in.")
    parser.add_argument('-n', '--num-frames', type=int,
        help="Only pack the first n frames.")
    parser.add_argument('-f', '--framerate', type=float, default=30,
        help="Nominal framerate stored in the header.")
    parser.add_argument('-c', '--compress', action="store_true",
        help="Compress the frame data.")
    parser.add_argument('--verify', action="store_true",
        help="Read the file back and verify it matches the original.")
    parser.add_argument('-v', '--verbose', action="store_true",
        help="Log what the codec is doing.")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    size = _parse_size(args.size)
    if args.framerate <= 0:
        raise ValueError(f"framerate {args.framerate} must be positive")
    if args.num_frames is not None and args.num_frames <= 0:
        raise ValueError(f"number of frames {args.num_frames} must be positive")

    nif = NifFile(Header(size[0], size[1],
        PixelFormat[args.pixel_format], 0, args.framerate))
    frame_size = nif.header.frame_size

    if args.input == "-":
        fin = sys.stdin.buffer
    else:
        fin = open(args.input, "rb")
    with fin:
        while args.num_frames is None or len(nif) < args.num_frames:
            data = fin.read(frame_size)
            # if we didn't read a complete frame, we're done reading
            if len(data) != frame_size or frame_size == 0: break
            nif.append_frame(data)
            print("  Read {} frames...".format(len(nif)), end="\r")

    feature_flags = FEATURE_COMPRESSED if args.compress else 0
    s = time.perf_counter()
    nif.write(args.output, feature_flags)
    e = time.perf_counter()

    num_frames = len(nif)
    print("Finished packing {} frames".format(num_frames))
    print("Write time: {:.2f}ms".format((e-s)*1000))
    if num_frames > 0:
        file_size = os.path.getsize(args.output)
        print("Compression ratio: {:.2f}%".format(
            file_size/(frame_size*num_frames)*100))

    if args.verify:
        try:
            got = NifFile.read(args.output)
            verify_result = (got.header == nif.header
                and list(got) == list(nif))
        except NifError:
            logger.exception("verify read failed")
            verify_result = False
        print("Verify result:", ("success" if verify_result else "FAILURE"))
        if not verify_result:
            sys.exit(1)

def main_unpack():
    parser = argparse.ArgumentParser(
        description="Unpack raw frame data from a NIF file.")
    parser.add_argument('input', type=str,
        help="Path to NIF input file.")
    parser.add_argument('output', type=str,
        help="Path to raw output file (or - to write to stdout).")
    parser.add_argument('-n', '--num-frames', type=int,
        help="Only unpack the first n frames.")
    parser.add_argument('-v', '--verbose', action="store_true",
        help="Log what the codec is doing.")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.num_frames is not None and args.num_frames <= 0:
        raise ValueError(f"number of frames {args.num_frames} must be positive")

    s = time.perf_counter()
    nif = NifFile.read(args.input)
    e = time.perf_counter()

    if args.output == "-":
        fout = sys.stdout.buffer
    else:
        fout = open(args.output, "wb")

    if fout is not sys.stdout.buffer:
        print("Frame size: {}x{}".format(nif.header.width, nif.header.height))
        print("Pixel format: {}".format(nif.header.pixel_format.name))

    num_frames = 0
    with fout:
        for frame in nif:
            fout.write(frame.data)
            num_frames += 1
            if fout is not sys.stdout.buffer:
                print("  Unpacked {} frames...".format(num_frames), end="\r")
            if args.num_frames is not None and num_frames == args.num_frames:
                break

    if fout is not sys.stdout.buffer:
        print("Finished unpacking {} frames".format(num_frames))
        print("Read time: {:.2f}ms".format((e-s)*1000))

def main_info():
    parser = argparse.ArgumentParser(
        description="Show the header of a NIF file.")
    parser.add_argument('input', type=str,
        help="Path to NIF input file.")
    parser.add_argument('-v', '--verbose', action="store_true",
        help="Log what the codec is doing.")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    nif = NifFile.read(args.input)
    header = nif.header
    print("Version: {:#010x}".format(nif.version))
    print("Feature flags: {:#x}{}".format(nif.feature_flags,
        " (compressed)" if nif.feature_flags & FEATURE_COMPRESSED else ""))
    print("Frame size: {}x{}".format(header.width, header.height))
    print("Pixel format: {} ({} bytes per pixel)".format(
        header.pixel_format.name, header.bytes_per_pixel))
    print("Frame count: {}".format(header.frame_count))
    print("Frame rate: {:g}".format(header.frame_rate))
