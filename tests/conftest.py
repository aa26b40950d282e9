import random

import pytest


@pytest.fixture
def aaabbc():
    return b"AAABBC"


@pytest.fixture
def text_sample():
    return b"This is a test string for Huffman compression. " * 100


@pytest.fixture
def random_sample():
    rng = random.Random(1234)
    return bytes(rng.getrandbits(8) for _ in range(10 * 1024))


def fib_frequencies(n):
    fib = [1, 1]
    while len(fib) < n:
        fib.append(fib[-1] + fib[-2])
    table = [0] * 256
    for symbol, count in enumerate(fib[:n]):
        table[symbol] = count
    return table
