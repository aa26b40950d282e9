import io
import os

from huffman import BUFFER_SIZE


def _remaining_length(stream):
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        return None
    pos = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(pos)
    return end - pos


def _read_full(stream, size: int) -> bytes: # keeps reading until size bytes or EOF
    parts = []
    while size > 0:
        chunk = stream.read(size)
        if not chunk:
            break
        parts.append(chunk)
        size -= len(chunk)
    return b"".join(parts)


def streams_equal(a, b, chunk_size: int = BUFFER_SIZE) -> bool:
    """
    Byte-for-byte comparison of two byte strings or readable binary streams.

    Streams are compared from their current positions.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    if not hasattr(a, "read") and not hasattr(b, "read"):
        a, b = memoryview(a).cast("B"), memoryview(b).cast("B")
        if len(a) != len(b):
            return False
        for start in range(0, len(a), chunk_size):
            if a[start:start + chunk_size] != b[start:start + chunk_size]:
                return False
        return True

    a = a if hasattr(a, "read") else io.BytesIO(a)
    b = b if hasattr(b, "read") else io.BytesIO(b)

    len_a, len_b = _remaining_length(a), _remaining_length(b)
    if len_a is not None and len_b is not None and len_a != len_b:
        return False

    while True:
        chunk_a = _read_full(a, chunk_size)
        chunk_b = _read_full(b, chunk_size)
        if chunk_a != chunk_b:
            return False
        if not chunk_a:
            return True
