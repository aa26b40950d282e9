"""
Self-describing .huf container.

Layout (big-endian):

    magic      4 bytes   b"HUF1"
    leaf_count 2 bytes   1..256
    tree       pre-order, 0x00 = internal node, 0x01 <symbol> = leaf
    orig_size  8 bytes   original length in bytes
    bit_count  8 bytes   meaningful bits in the payload
    payload    ceil(bit_count / 8) bytes

The tree shape itself is stored, so the decoder never has to repeat the
encoder's tie-breaking between equal weights.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Tuple

from bitstream import BitStreamReader, pack_bits_from_codes, unpack_and_decode
from huffman import (
    ALPHABET_SIZE,
    CorruptStreamError,
    HuffmanNode,
    build_huffman_tree,
    count_frequencies,
    count_tree_nodes,
    generate_huffman_codes,
)

logger = logging.getLogger(__name__)

MAGIC = b"HUF1"
TREE_INTERNAL = 0x00
TREE_LEAF = 0x01

_PREFIX = struct.Struct(">4sH")
_SIZES = struct.Struct(">QQ")


@dataclass
class ContainerHeader:
    tree: HuffmanNode
    leaf_count: int
    original_size: int
    bit_count: int
    payload_offset: int


def serialize_tree(root: HuffmanNode) -> bytes:
    out = bytearray()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            out.append(TREE_LEAF)
            out.append(node.symbol)
        else:
            out.append(TREE_INTERNAL)
            stack.append(node.right)
            stack.append(node.left)
    return bytes(out)


def deserialize_tree(data: bytes, offset: int, leaf_count: int) -> Tuple[HuffmanNode, int]:
    """
    Rebuild a tree written by serialize_tree starting at `offset`.
    Returns (root, offset just past the tree). Weights are not stored and
    come back as 0.
    """
    seen = set()
    internal = [0]
    pos = [offset]

    def _read_byte() -> int:
        if pos[0] >= len(data):
            raise CorruptStreamError("tree section is truncated")
        value = data[pos[0]]
        pos[0] += 1
        return value

    def _des() -> HuffmanNode:
        tag = _read_byte()
        if tag == TREE_LEAF:
            symbol = _read_byte()
            if symbol in seen:
                raise CorruptStreamError(f"symbol {symbol} appears twice in the tree")
            if len(seen) >= leaf_count:
                raise CorruptStreamError("tree holds more leaves than declared")
            seen.add(symbol)
            return HuffmanNode(symbol, 0)
        if tag != TREE_INTERNAL:
            raise CorruptStreamError(f"unknown tree tag 0x{tag:02x}")
        internal[0] += 1
        if internal[0] >= leaf_count: # a full binary tree has leaf_count - 1 internal nodes
            raise CorruptStreamError("tree holds more internal nodes than declared")
        left = _des()
        right = _des()
        return HuffmanNode(None, 0, left, right)

    root = _des()
    if len(seen) != leaf_count:
        raise CorruptStreamError(f"tree declares {leaf_count} leaves but holds {len(seen)}")
    return root, pos[0]


def read_header(blob: bytes) -> ContainerHeader:
    if len(blob) < _PREFIX.size:
        raise CorruptStreamError("container is shorter than its header")
    magic, leaf_count = _PREFIX.unpack_from(blob, 0)
    if magic != MAGIC:
        raise CorruptStreamError(f"bad magic {magic!r}")
    if not 1 <= leaf_count <= ALPHABET_SIZE:
        raise CorruptStreamError(f"leaf count {leaf_count} out of range")

    tree, offset = deserialize_tree(blob, _PREFIX.size, leaf_count)

    if len(blob) < offset + _SIZES.size:
        raise CorruptStreamError("container is missing its size fields")
    original_size, bit_count = _SIZES.unpack_from(blob, offset)
    return ContainerHeader(tree, leaf_count, original_size, bit_count, offset + _SIZES.size)


def compress(data: bytes) -> bytes:
    """Encode `data` into a .huf container. Empty input raises EmptyInputError."""
    frequencies = count_frequencies(data)
    root = build_huffman_tree(frequencies)
    code_map = generate_huffman_codes(root)
    payload, bit_count = pack_bits_from_codes(data, code_map)

    leaf_count, _ = count_tree_nodes(root)
    tree_bytes = serialize_tree(root)
    logger.debug(
        "compressed %d bytes: %d symbols, tree %d bytes, %d bits in %d payload bytes",
        len(data), leaf_count, len(tree_bytes), bit_count, len(payload),
    )
    return b"".join([
        _PREFIX.pack(MAGIC, leaf_count),
        tree_bytes,
        _SIZES.pack(len(data), bit_count),
        payload,
    ])


def decompress(blob: bytes) -> bytes:
    header = read_header(blob)
    payload = blob[header.payload_offset:]

    expected = (header.bit_count + 7) // 8
    if len(payload) < expected:
        raise CorruptStreamError(f"payload truncated: {len(payload)} of {expected} bytes")
    if len(payload) > expected:
        raise CorruptStreamError(f"{len(payload) - expected} unexpected bytes after payload")
    if not BitStreamReader(payload, header.bit_count).padding_is_zero():
        raise CorruptStreamError("padding bits in the last payload byte are not zero")

    decoded = unpack_and_decode(payload, header.bit_count, header.tree)
    if len(decoded) != header.original_size:
        raise CorruptStreamError(
            f"decoded {len(decoded)} bytes, header says {header.original_size}"
        )
    logger.debug("decompressed %d bits into %d bytes", header.bit_count, len(decoded))
    return decoded


def compress_stream(src, dst) -> Tuple[int, int]:
    """Compress everything readable from `src` into `dst`. Returns (bytes in, bytes out)."""
    data = src.read()
    blob = compress(data)
    dst.write(blob)
    return len(data), len(blob)


def decompress_stream(src, dst) -> Tuple[int, int]:
    blob = src.read()
    data = decompress(blob)
    dst.write(data)
    return len(blob), len(data)
