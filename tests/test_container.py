import io
import random
import struct

import pytest

import container
from huffman import CorruptStreamError, EmptyInputError, build_huffman_tree, count_frequencies, generate_huffman_codes


def test_round_trip_text(text_sample):
    assert container.decompress(container.compress(text_sample)) == text_sample


def test_round_trip_random(random_sample):
    assert container.decompress(container.compress(random_sample)) == random_sample


def test_round_trip_all_bytes_once():
    data = bytes(range(256))
    assert container.decompress(container.compress(data)) == data


def test_round_trip_small_inputs():
    rng = random.Random(5)
    for n in (1, 2, 3, 7, 8, 9):
        data = bytes(rng.getrandbits(8) for _ in range(n))
        assert container.decompress(container.compress(data)) == data


def test_single_symbol_repeated():
    data = b"A" * 10 * 1024
    blob = container.compress(data)
    assert len(blob) < len(data)
    assert container.decompress(blob) == data


def test_empty_input_rejected():
    with pytest.raises(EmptyInputError):
        container.compress(b"")


def test_layout_for_aaa():
    blob = container.compress(b"aaa")
    assert blob[:4] == container.MAGIC
    assert struct.unpack(">H", blob[4:6]) == (1,)
    assert blob[6:8] == bytes([container.TREE_LEAF, ord("a")])
    assert struct.unpack(">QQ", blob[8:24]) == (3, 3)
    assert blob[24:] == b"\x00"


def test_read_header(text_sample):
    blob = container.compress(text_sample)
    header = container.read_header(blob)
    assert header.original_size == len(text_sample)
    assert header.leaf_count == sum(1 for f in count_frequencies(text_sample) if f)
    assert len(blob) - header.payload_offset == (header.bit_count + 7) // 8


def test_tree_serialization_preserves_codes(text_sample):
    root = build_huffman_tree(count_frequencies(text_sample))
    data = container.serialize_tree(root)
    leaves = len(generate_huffman_codes(root))
    rebuilt, end = container.deserialize_tree(data, 0, leaves)
    assert end == len(data)
    assert generate_huffman_codes(rebuilt) == generate_huffman_codes(root)


def test_bad_magic():
    blob = bytearray(container.compress(b"Hello World" * 50))
    blob[0] ^= 0xFF
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_truncated_payload():
    blob = container.compress(b"This is a test" * 100)
    with pytest.raises(CorruptStreamError):
        container.decompress(blob[:-3])


def test_truncated_header():
    blob = container.compress(b"This is a test")
    for cut in (0, 3, 5, 10):
        with pytest.raises(CorruptStreamError):
            container.decompress(blob[:cut])


def test_trailing_garbage():
    blob = container.compress(b"This is a test")
    with pytest.raises(CorruptStreamError):
        container.decompress(blob + b"\x00")


def test_nonzero_padding():
    blob = bytearray(container.compress(b"aaa"))
    blob[-1] = 0x01
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_leaf_count_mismatch():
    blob = bytearray(container.compress(b"aaa"))
    blob[4:6] = struct.pack(">H", 3)
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_leaf_count_out_of_range():
    blob = bytearray(container.compress(b"aaa"))
    blob[4:6] = struct.pack(">H", 0)
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_unknown_tree_tag():
    blob = bytearray(container.compress(b"aaa"))
    blob[6] = 0x07
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_duplicate_leaf_symbol():
    # internal, leaf 'a', leaf 'a'
    blob = container.MAGIC + struct.pack(">H", 2) + b"\x00\x01a\x01a" + struct.pack(">QQ", 1, 1) + b"\x00"
    with pytest.raises(CorruptStreamError):
        container.decompress(blob)


def test_original_size_mismatch():
    blob = bytearray(container.compress(b"aaa"))
    blob[8:16] = struct.pack(">Q", 4)
    with pytest.raises(CorruptStreamError):
        container.decompress(bytes(blob))


def test_stream_helpers(text_sample):
    packed = io.BytesIO()
    size_in, size_out = container.compress_stream(io.BytesIO(text_sample), packed)
    assert size_in == len(text_sample)
    assert size_out == len(packed.getvalue())

    restored = io.BytesIO()
    packed.seek(0)
    container.decompress_stream(packed, restored)
    assert restored.getvalue() == text_sample
