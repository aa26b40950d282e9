import io
import random

import pytest

from conftest import fib_frequencies
from huffman import (
    ALPHABET_SIZE,
    BUFFER_SIZE,
    EmptyInputError,
    HuffmanError,
    build_huffman_tree,
    count_frequencies,
    count_tree_nodes,
    generate_huffman_codes,
)


def walk(root):
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if not node.is_leaf:
            stack.extend([node.left, node.right])


# Frequency counting

def test_count_frequencies_bytes(aaabbc):
    ft = count_frequencies(aaabbc)
    assert len(ft) == ALPHABET_SIZE
    assert ft[ord("A")] == 3
    assert ft[ord("B")] == 2
    assert ft[ord("C")] == 1
    assert sum(ft) == len(aaabbc)


def test_count_frequencies_empty():
    assert count_frequencies(b"") == (0,) * ALPHABET_SIZE


def test_count_frequencies_bytearray_and_memoryview():
    data = bytes(range(256)) * 3
    assert count_frequencies(bytearray(data)) == (3,) * 256
    assert count_frequencies(memoryview(data)) == (3,) * 256


def test_count_frequencies_stream_is_idempotent_after_rewind(random_sample):
    stream = io.BytesIO(random_sample)
    first = count_frequencies(stream)
    stream.seek(0)
    second = count_frequencies(stream)
    assert first == second == count_frequencies(random_sample)


def test_count_frequencies_stream_spanning_chunks():
    data = b"xy" * (BUFFER_SIZE + 17)
    ft = count_frequencies(io.BytesIO(data))
    assert ft[ord("x")] == ft[ord("y")] == BUFFER_SIZE + 17


class FailingStream:
    def __init__(self):
        self.calls = 0

    def read(self, n):
        self.calls += 1
        if self.calls > 1:
            raise OSError("disk went away")
        return b"a" * n


def test_count_frequencies_propagates_read_errors():
    with pytest.raises(OSError, match="disk went away"):
        count_frequencies(FailingStream())


# Tree construction

def test_empty_table_raises():
    with pytest.raises(EmptyInputError):
        build_huffman_tree([0] * ALPHABET_SIZE)


def test_empty_input_error_is_a_huffman_error():
    assert issubclass(EmptyInputError, HuffmanError)
    assert issubclass(EmptyInputError, ValueError)


def test_wrong_table_size_raises():
    with pytest.raises(ValueError):
        build_huffman_tree([1, 2, 3])


def test_negative_count_raises():
    table = [0] * ALPHABET_SIZE
    table[5] = -1
    with pytest.raises(ValueError):
        build_huffman_tree(table)


def test_single_symbol_tree_is_one_leaf():
    root = build_huffman_tree(count_frequencies(b"a" * 1000))
    assert root.is_leaf
    assert root.symbol == ord("a")
    assert root.weight == 1000
    assert count_tree_nodes(root) == (1, 0)


def test_symbol_zero_is_a_leaf():
    root = build_huffman_tree(count_frequencies(b"\x00\x00\x01"))
    symbols = {n.symbol for n in walk(root) if n.is_leaf}
    assert symbols == {0, 1}


def test_weight_invariant(text_sample):
    ft = count_frequencies(text_sample)
    root = build_huffman_tree(ft)
    assert root.weight == sum(ft)
    for node in walk(root):
        if not node.is_leaf:
            assert node.weight == node.left.weight + node.right.weight
            assert node.symbol is None


def test_leaf_and_internal_counts(random_sample):
    ft = count_frequencies(random_sample)
    distinct = sum(1 for f in ft if f)
    leaves, internal = count_tree_nodes(build_huffman_tree(ft))
    assert leaves == distinct
    assert internal == distinct - 1


def test_leaves_match_nonzero_symbols(text_sample):
    ft = count_frequencies(text_sample)
    root = build_huffman_tree(ft)
    leaves = [n for n in walk(root) if n.is_leaf]
    assert sorted(n.symbol for n in leaves) == [s for s in range(256) if ft[s]]
    for n in leaves:
        assert n.weight == ft[n.symbol]


# Code generation

def test_single_symbol_gets_one_bit_code():
    root = build_huffman_tree(count_frequencies(b"aaa"))
    assert generate_huffman_codes(root) == {ord("a"): "0"}


def test_aaabbc_code_lengths(aaabbc):
    ft = count_frequencies(aaabbc)
    codes = generate_huffman_codes(build_huffman_tree(ft))
    la, lb, lc = (len(codes[ord(c)]) for c in "ABC")
    assert la <= lb <= lc
    assert (la, lb, lc) == (1, 2, 2)


def test_codes_cover_only_present_symbols(text_sample):
    ft = count_frequencies(text_sample)
    codes = generate_huffman_codes(build_huffman_tree(ft))
    assert set(codes) == {s for s in range(256) if ft[s]}


def test_codes_are_prefix_free():
    rng = random.Random(99)
    for _ in range(25):
        data = bytes(rng.randrange(0, rng.randrange(2, 257)) for _ in range(rng.randrange(2, 600)))
        codes = list(generate_huffman_codes(build_huffman_tree(count_frequencies(data))).values())
        assert all(codes)
        for i, a in enumerate(codes):
            for b in codes[i + 1:]:
                assert not a.startswith(b)
                assert not b.startswith(a)


def test_codes_follow_tree_paths(text_sample):
    root = build_huffman_tree(count_frequencies(text_sample))
    for symbol, code in generate_huffman_codes(root).items():
        node = root
        for bit in code:
            node = node.right if bit == "1" else node.left
        assert node.is_leaf and node.symbol == symbol


def test_fibonacci_weights_reach_depth_n_minus_one():
    n = 40
    codes = generate_huffman_codes(build_huffman_tree(fib_frequencies(n)))
    assert len(codes) == n
    assert max(len(c) for c in codes.values()) == n - 1


def test_kraft_equality_for_full_tree(random_sample):
    codes = generate_huffman_codes(build_huffman_tree(count_frequencies(random_sample)))
    assert sum(2.0 ** -len(c) for c in codes.values()) == pytest.approx(1.0)


def test_count_frequencies_rejects_text_streams():
    with pytest.raises(TypeError):
        count_frequencies(io.StringIO("abc"))
