"""Optional whole-body compression of NIF files.

When the compression feature flag is set, the concatenated data of every
frame is stored as one gzip stream. The stream carries no frame boundaries;
readers slice it using the frame size derived from the header.
"""

import contextlib
import gzip

FEATURE_COMPRESSED = 0x1 # body is a single gzip stream
KNOWN_FEATURES = FEATURE_COMPRESSED


def is_compressed(feature_flags):
    return bool(feature_flags & FEATURE_COMPRESSED)


@contextlib.contextmanager
def body_writer(f, feature_flags):
    """Yield the stream the body of a file should be written to.

    f is the open output file, positioned just past the header. The yielded
    stream is f itself for a raw body, or a gzip stream wrapping it which is
    finished on exit. f is never closed.
    """
    if not is_compressed(feature_flags):
        yield f
        return
    # mtime is fixed so the same frames always compress to the same bytes
    with gzip.GzipFile(fileobj=f, mode="wb", mtime=0) as gz:
        yield gz


@contextlib.contextmanager
def body_reader(f, feature_flags):
    """Yield the stream the body of a file should be read from.

    f is the open input file, positioned just past the header. The yielded
    stream is f itself for a raw body, or a gzip stream decompressing it.
    f is never closed.
    """
    if not is_compressed(feature_flags):
        yield f
        return
    with gzip.GzipFile(fileobj=f, mode="rb") as gz:
        yield gz
