from typing import Dict, Iterator, Tuple

from huffman import CorruptStreamError, HuffmanNode


class BitStreamWriter:
    """
    Packs bits most-significant-first into bytes.

    `bit_count` is the number of meaningful bits written so far; the last
    byte returned by getvalue() is zero-padded in its low-order bits.
    """

    def __init__(self):
        self._out = bytearray()
        self._acc = 0
        self._acc_bits = 0
        self.bit_count = 0

    def write_bit(self, bit: int) -> None:
        self.write_bits(1 if bit else 0, 1)

    def write_bits(self, value: int, length: int) -> None: # low `length` bits of value, MSB first
        if length <= 0:
            return
        self._acc = (self._acc << length) | (value & ((1 << length) - 1))
        self._acc_bits += length
        self.bit_count += length

        while self._acc_bits >= 8:
            self._acc_bits -= 8
            self._out.append((self._acc >> self._acc_bits) & 0xFF)
        self._acc &= (1 << self._acc_bits) - 1

    def write_code(self, code: str) -> None: # code given as a '0'/'1' string
        if code:
            self.write_bits(int(code, 2), len(code))

    @property
    def pad_bits(self) -> int:
        return (8 - self._acc_bits) % 8

    def getvalue(self) -> bytes:
        if self._acc_bits == 0:
            return bytes(self._out)
        return bytes(self._out) + bytes([(self._acc << (8 - self._acc_bits)) & 0xFF])


class BitStreamReader:
    """Yields exactly `bit_count` bits of `data`, MSB first, ignoring padding."""

    def __init__(self, data: bytes, bit_count: int):
        if bit_count < 0:
            raise CorruptStreamError(f"negative bit count {bit_count}")
        if bit_count > len(data) * 8:
            raise CorruptStreamError(
                f"bit count {bit_count} exceeds payload of {len(data)} bytes"
            )
        self.data = data
        self.bit_count = bit_count

    def __iter__(self) -> Iterator[int]:
        remaining = self.bit_count
        for byte in self.data:
            if remaining <= 0:
                return
            for i in range(7, -1, -1):
                if remaining <= 0:
                    return
                yield (byte >> i) & 1
                remaining -= 1

    def padding_is_zero(self) -> bool:
        used = self.bit_count % 8
        if used == 0 or not self.data:
            return True
        last = self.data[(self.bit_count - 1) // 8]
        return last & ((1 << (8 - used)) - 1) == 0


def pack_bits_from_codes(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Converts Huffman codes into packed bytes
    Returns (packed_bytes, bit_count) where bit_count excludes the zero padding
    """
    table = {symbol: (int(code, 2), len(code)) for symbol, code in code_map.items() if code}
    writer = BitStreamWriter()

    for b in data:
        try:
            value, length = table[b]
        except KeyError:
            raise ValueError(f"symbol {b} has no code in the code table") from None
        writer.write_bits(value, length)

    return writer.getvalue(), writer.bit_count


def unpack_and_decode(packed: bytes, bit_count: int, root: HuffmanNode) -> bytes:
    """
    Decode exactly `bit_count` bits of `packed` by walking the Huffman tree
    """
    decoded = bytearray()
    reader = BitStreamReader(packed, bit_count)

    # Single-leaf tree: every symbol was written as one 0 bit
    if root.is_leaf:
        for bit in reader:
            if bit:
                raise CorruptStreamError("unexpected 1 bit for a single-symbol tree")
            decoded.append(root.symbol)
        return bytes(decoded)

    node = root
    for bit in reader:
        child = node.right if bit else node.left
        if child is None:
            raise CorruptStreamError("bit stream leads to a missing tree branch")
        node = child

        # Leaf
        if node.is_leaf:
            decoded.append(node.symbol)
            node = root

    if node is not root:
        raise CorruptStreamError("bit stream ends inside a code word")

    return bytes(decoded)
