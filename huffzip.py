"""
huffzip: compress and decompress files with static Huffman coding.

How to run:
  python huffzip.py compress notes.txt                # writes notes.txt.huf
  python huffzip.py decompress notes.txt.huf -o copy.txt
  python huffzip.py roundtrip input.txt encoded.huf decoded.txt
  python huffzip.py stats notes.txt --limit 40
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import container
from huffman import (
    ALPHABET_SIZE,
    HuffmanError,
    build_huffman_tree,
    count_frequencies,
    generate_huffman_codes,
)
from verify import streams_equal

logger = logging.getLogger("huffzip")

DEFAULT_INPUT = "input.txt"
DEFAULT_ENCODED = "encoded.huf"
DEFAULT_DECODED = "decoded.txt"
TABLE_LIMIT = 20

EXIT_OK = 0
EXIT_CODEC_ERROR = 1
EXIT_IO_ERROR = 2


# Statistics

def symbol_label(symbol: int) -> str:
    if symbol == ord("\n"):
        return "'\\n'"
    if symbol == ord("\t"):
        return "'\\t'"
    if symbol == ord(" "):
        return "' '"
    if symbol < 32 or symbol > 126:
        return f"0x{symbol:02X}"
    return f"'{chr(symbol)}'"


def average_code_length(frequencies: Sequence[int], codes: Dict[int, str]) -> float:
    total = sum(frequencies)
    if total == 0:
        return 0.0
    weighted = sum(frequencies[s] * len(code) for s, code in codes.items())
    return weighted / total


def format_statistics(
    name: str,
    frequencies: Sequence[int],
    codes: Dict[int, str],
    original_size: int,
    compressed_size: int,
    limit: int = TABLE_LIMIT,
    elapsed: Optional[float] = None,
) -> str:
    lines: List[str] = []
    lines.append("=== COMPRESSION STATISTICS ===")
    lines.append(f"Source: {name}")
    lines.append(f"Original size: {original_size} bytes")
    lines.append(f"Compressed size: {compressed_size} bytes")

    if original_size > 0:
        ratio = compressed_size / original_size * 100
        lines.append(f"Compression ratio: {ratio:.2f}%")
        if compressed_size < original_size:
            lines.append(f"Saved {100 - ratio:.2f}% ({original_size - compressed_size} bytes)")
        elif compressed_size == original_size:
            lines.append("No size change")
        else:
            lines.append(f"Output grew by {ratio - 100:.2f}%")

    lines.append("")
    lines.append("=== SYMBOL TABLE ===")
    lines.append(f"{'Symbol':<10} {'Count':<10} {'Code':<20} Length")
    lines.append("-" * 48)

    present = [s for s in range(ALPHABET_SIZE) if frequencies[s] > 0]
    for symbol in present[:limit]:
        code = codes.get(symbol, "")
        lines.append(f"{symbol_label(symbol):<10} {frequencies[symbol]:<10} {code:<20} {len(code)}")
    if len(present) > limit:
        lines.append(f"... and {len(present) - limit} more symbols")

    lines.append("")
    lines.append(f"Unique symbols: {len(present)}")

    if present:
        top = max(present, key=lambda s: frequencies[s]) # lowest symbol wins ties
        share = frequencies[top] / original_size * 100 if original_size else 0.0
        lines.append(f"Most frequent symbol: {symbol_label(top)} ({frequencies[top]} times, {share:.1f}%)")

        avg = average_code_length(frequencies, codes)
        lines.append(f"Average code length: {avg:.2f} bits")
        lines.append(f"Efficiency vs 8-bit bytes: {(1 - avg / 8) * 100:.1f}%")

    if elapsed is not None:
        lines.append("")
        lines.append(f"Elapsed: {elapsed:.3f} s")

    return "\n".join(lines)


# Commands

def cmd_compress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    dst = Path(args.output) if args.output else src.with_name(src.name + ".huf")

    data = src.read_bytes()
    blob = container.compress(data)
    dst.write_bytes(blob)

    logger.info("%s -> %s (%d -> %d bytes)", src, dst, len(data), len(blob))
    return EXIT_OK


def cmd_decompress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    if args.output:
        dst = Path(args.output)
    elif src.suffix == ".huf":
        dst = src.with_suffix("")
    else:
        dst = src.with_name(src.name + ".out")

    blob = src.read_bytes()
    data = container.decompress(blob)
    dst.write_bytes(data)

    logger.info("%s -> %s (%d -> %d bytes)", src, dst, len(blob), len(data))
    return EXIT_OK


def cmd_roundtrip(args: argparse.Namespace) -> int:
    src, encoded, decoded = Path(args.input), Path(args.encoded), Path(args.decoded)
    start = time.perf_counter()

    logger.info("[1/6] Counting symbol frequencies in %s", src)
    with src.open("rb") as fin:
        frequencies = count_frequencies(fin)
    original_size = sum(frequencies)
    logger.info("    original size: %d bytes", original_size)

    logger.info("[2/6] Building Huffman tree")
    root = build_huffman_tree(frequencies)

    logger.info("[3/6] Generating codes")
    codes = generate_huffman_codes(root)

    logger.info("[4/6] Encoding to %s", encoded)
    blob = container.compress(src.read_bytes())
    encoded.write_bytes(blob)
    bit_count = container.read_header(blob).bit_count
    logger.info("    bits used: %d (%.2f bytes)", bit_count, bit_count / 8)

    logger.info("[5/6] Decoding %s to %s", encoded, decoded)
    decoded.write_bytes(container.decompress(encoded.read_bytes()))

    logger.info("[6/6] Verifying")
    with src.open("rb") as fa, decoded.open("rb") as fb:
        ok = streams_equal(fa, fb)
    if ok:
        logger.info("    files are identical")
    else:
        logger.error("    decoded file differs from %s", src)

    print(format_statistics(
        str(src), frequencies, codes, original_size, len(blob),
        elapsed=time.perf_counter() - start,
    ))
    return EXIT_OK if ok else EXIT_CODEC_ERROR


def cmd_stats(args: argparse.Namespace) -> int:
    src = Path(args.input)
    data = src.read_bytes()
    frequencies = count_frequencies(data)
    root = build_huffman_tree(frequencies)
    codes = generate_huffman_codes(root)
    compressed_size = len(container.compress(data))
    print(format_statistics(str(src), frequencies, codes, len(data), compressed_size, limit=args.limit))
    return EXIT_OK


# Main

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffzip", description="Static Huffman file compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compress", help="Compress a file into a .huf container")
    p.add_argument("input")
    p.add_argument("-o", "--output", default=None, help="Output path (default: INPUT.huf)")
    p.set_defaults(func=cmd_compress)

    p = sub.add_parser("decompress", help="Restore a file from a .huf container")
    p.add_argument("input")
    p.add_argument("-o", "--output", default=None, help="Output path (default: INPUT without .huf)")
    p.set_defaults(func=cmd_decompress)

    p = sub.add_parser("roundtrip", help="Encode, decode and verify, then print statistics")
    p.add_argument("input", nargs="?", default=DEFAULT_INPUT)
    p.add_argument("encoded", nargs="?", default=DEFAULT_ENCODED)
    p.add_argument("decoded", nargs="?", default=DEFAULT_DECODED)
    p.set_defaults(func=cmd_roundtrip)

    p = sub.add_parser("stats", help="Print the frequency and code table for a file")
    p.add_argument("input")
    p.add_argument("--limit", type=int, default=TABLE_LIMIT, help="Rows shown in the symbol table")
    p.set_defaults(func=cmd_stats)

    return ap


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        return args.func(args)
    except HuffmanError as e:
        logger.error("%s", e)
        return EXIT_CODEC_ERROR
    except OSError as e:
        logger.error("%s", e)
        return EXIT_IO_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
