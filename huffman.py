from collections import Counter
from typing import Dict, Optional, Sequence, Tuple

from minheap import MinHeap

ALPHABET_SIZE = 256 # closed byte alphabet
BUFFER_SIZE = 4096 # chunk size for stream reads


class HuffmanError(Exception):
    """Base class for codec failures."""


class EmptyInputError(HuffmanError, ValueError):
    """No symbol has a non-zero frequency, so there is nothing to code."""


class CorruptStreamError(HuffmanError, ValueError):
    """Encoded data does not agree with its tree or header."""


class HuffmanNode: # Node for Huffman tree
    __slots__ = ("symbol", "weight", "left", "right")

    def __init__(self, symbol: Optional[int], weight: int, left=None, right=None):
        self.symbol = symbol # byte value for leaves, None for internal nodes
        self.weight = weight
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol!r}, weight={self.weight})"
        return f"HuffmanNode(weight={self.weight})"


def count_frequencies(source) -> Tuple[int, ...]:
    """
    Count byte occurrences in `source` (bytes-like or a readable binary stream).

    Streams are consumed from their current position in BUFFER_SIZE chunks.
    A read error propagates before any table is returned.
    """
    counts = Counter()
    if hasattr(source, "read"):
        while True:
            chunk = source.read(BUFFER_SIZE)
            if not chunk:
                break
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise TypeError(f"expected a binary stream, read {type(chunk).__name__} chunks")
            counts.update(chunk)
    else:
        counts.update(memoryview(source).cast("B"))

    return tuple(counts.get(s, 0) for s in range(ALPHABET_SIZE))


def build_huffman_tree(frequencies: Sequence[int]) -> HuffmanNode:
    """
    Merge the two lightest nodes until one root remains.

    `frequencies` holds one count per byte value. The first node extracted
    becomes the left child of the merge, the second the right child.
    """
    if len(frequencies) != ALPHABET_SIZE:
        raise ValueError(f"frequency table must have {ALPHABET_SIZE} entries, got {len(frequencies)}")

    leaves = []
    for symbol, weight in enumerate(frequencies):
        if weight < 0:
            raise ValueError(f"negative frequency {weight} for symbol {symbol}")
        if weight > 0:
            leaves.append(HuffmanNode(symbol, weight))

    if not leaves:
        raise EmptyInputError("cannot build a Huffman tree from an empty input")
    if len(leaves) == 1:
        return leaves[0] # degenerate tree, no internal nodes

    heap = MinHeap()
    heap.build_from_array(leaves)

    while len(heap) > 1:
        left = heap.extract_min()
        right = heap.extract_min()
        heap.insert(HuffmanNode(None, left.weight + right.weight, left, right))

    return heap.extract_min()


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]:
    """Map each leaf symbol to its root-to-leaf path ('0' = left, '1' = right)."""
    if root.is_leaf:
        return {root.symbol: "0"} # a lone symbol still needs one bit per occurrence

    codes: Dict[int, str] = {}
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = code
            continue
        # right pushed first so the left subtree is visited first
        if node.right is not None:
            stack.append((node.right, code + "1"))
        if node.left is not None:
            stack.append((node.left, code + "0"))

    return codes


def count_tree_nodes(root: HuffmanNode) -> Tuple[int, int]:
    """Return (leaves, internal nodes)."""
    leaves = internal = 0
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            leaves += 1
        else:
            internal += 1
            stack.extend(child for child in (node.left, node.right) if child is not None)
    return leaves, internal
