"""
Benchmark: static Huffman coding across synthetic distributions

Outputs (in --outdir):
  - metrics.csv     (raw row per run)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --dist_size_kb 256 --scale_max_mb 4
  python experiments.py --outdir results --dist_generators uniform256,zipf128,fibonacci
"""

from __future__ import annotations

import argparse
import csv
import logging
import math
import random
import statistics
import time
from dataclasses import dataclass, fields
from itertools import groupby
from operator import attrgetter
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import container
from bitstream import pack_bits_from_codes, unpack_and_decode
from huffman import build_huffman_tree, count_frequencies, generate_huffman_codes
from verify import streams_equal

logger = logging.getLogger("experiments")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def shannon_entropy(frequencies: Sequence[int]) -> float:
    total = sum(frequencies)
    if total == 0:
        return 0.0
    h = 0.0
    for f in frequencies:
        if f:
            p = f / total
            h -= p * math.log2(p)
    return h


# Synthetic dataset generators

ENGLISH_WEIGHTS = {" ": 13.0, "\n": 1.5}
ENGLISH_WEIGHTS.update((ch, 6.0) for ch in "etaoinshrdlu")
ENGLISH_WEIGHTS.update((ch, 2.5) for ch in "cmfwgypbvk")
ENGLISH_WEIGHTS.update((ch, 1.2) for ch in "jxqz")
ENGLISH_WEIGHTS.update((ch.upper(), w / 4) for ch, w in list(ENGLISH_WEIGHTS.items()) if ch.isalpha())

def weighted_bytes(size: int, symbols: Sequence[int], weights: Sequence[float], seed: int) -> bytes:
    return bytes(random.Random(seed).choices(symbols, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    return weighted_bytes(size, range(alphabet), [1.0] * alphabet, seed)

def gen_repetitive(size: int, dominant: int = ord('A'), share: float = 0.90, seed: int = 0) -> bytes:
    """`dominant` takes `share` of the mass, the other 255 byte values split the rest."""
    rest = (1.0 - share) / 255
    return weighted_bytes(size, range(256), [share if s == dominant else rest for s in range(256)], seed)

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    return weighted_bytes(size, range(alphabet), [(rank + 1) ** -s for rank in range(alphabet)], seed)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    symbols = [ord(ch) for ch in ENGLISH_WEIGHTS]
    return weighted_bytes(size, symbols, list(ENGLISH_WEIGHTS.values()), seed)

def gen_single_symbol(size: int, symbol: int = ord('a')) -> bytes:
    return bytes([symbol]) * size

def gen_fibonacci(size: int, alphabet: int = 24, seed: int = 0) -> bytes:
    """
    Symbol i appears fib(i) times (scaled down to fit `size`), which makes the
    Huffman tree a chain of depth alphabet - 1. Order is shuffled.
    """
    fib = [1, 1]
    while len(fib) < alphabet:
        fib.append(fib[-1] + fib[-2])
    while alphabet > 2 and sum(fib[:alphabet]) > size:
        alphabet -= 1

    out = bytearray()
    for symbol, count in enumerate(fib[:alphabet]):
        out.extend(bytes([symbol]) * count)
    while len(out) < size:
        out.append(alphabet - 1) # top up with the most frequent symbol
    del out[size:]
    random.Random(seed).shuffle(out)
    return bytes(out)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, share=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, share=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size),
    "fibonacci": lambda size, seed: gen_fibonacci(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r}, choose from {sorted(GENERATOR_REGISTRY)}")
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    payload_bytes: int
    container_bytes: int
    bit_count: int
    compression_ratio: float

    entropy_bits: float
    avg_code_bits: float
    max_code_bits: int
    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    t0 = now_ns()
    ft = count_frequencies(data)
    root = build_huffman_tree(ft)
    code_map = generate_huffman_codes(root)
    t1 = now_ns()

    packed, bit_count = pack_bits_from_codes(data, code_map)
    t2 = now_ns()

    decoded = unpack_and_decode(packed, bit_count, root)
    t3 = now_ns()

    framed = len(container.compress(data))
    total = sum(ft)
    avg_bits = sum(ft[s] * len(c) for s, c in code_map.items()) / total

    build_ms, encode_ms, decode_ms = ns_to_ms(t1 - t0), ns_to_ms(t2 - t1), ns_to_ms(t3 - t2)
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=len(code_map),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        payload_bytes=len(packed),
        container_bytes=framed,
        bit_count=bit_count,
        compression_ratio=framed / max(1, len(data)),
        entropy_bits=shannon_entropy(ft),
        avg_code_bits=avg_bits,
        max_code_bits=max(len(c) for c in code_map.values()),
        correctness_ok=1 if streams_equal(decoded, data) else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = (
    "compression_ratio", "encode_ms", "decode_ms", "build_ms", "total_ms",
    "avg_code_bits", "entropy_bits",
)

def _spread(vals: List[float]) -> Tuple[float, float]:
    return statistics.mean(vals), statistics.stdev(vals) if len(vals) > 1 else 0.0

def summarize(rows: List[MetricRow]) -> List[Dict[str, object]]:
    """One record per (experiment, dataset, size) with mean/stdev of SUMMARY_METRICS."""
    group_key = attrgetter("exp_name", "dataset_name", "file_size_bytes")
    records = []
    for (exp_name, dataset_name, size_b), group in groupby(sorted(rows, key=group_key), key=group_key):
        group = list(group)
        record: Dict[str, object] = {
            "exp_name": exp_name,
            "dataset_name": dataset_name,
            "file_size_bytes": size_b,
            "n_runs": len(group),
        }
        for metric in SUMMARY_METRICS:
            record[f"{metric}_mean"], record[f"{metric}_stdev"] = _spread([getattr(r, metric) for r in group])
        record["correctness_ok_rate"] = sum(r.correctness_ok for r in group) / len(group)
        records.append(record)
    return records

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    records = summarize(rows)
    header = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    header += [f"{m}_{stat}" for m in SUMMARY_METRICS for stat in ("mean", "stdev")]
    header.append("correctness_ok_rate")
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=header)
        w.writeheader()
        w.writerows(records)


# Plotting

def plot_distributions(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.bar(x, [mean_for(d, "compression_ratio") for d in datasets])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Container Bytes / Original Bytes")
    plt.title("Compression Ratio by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "dist_compression_ratio.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "avg_code_bits") for d in datasets], marker="o", label="average code length")
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="x", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Average Code Length vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "dist_code_length.png", dpi=200)
    plt.close()


def plot_size_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size]
            return statistics.mean(vals) if vals else float("nan")

        plt.figure()
        plt.plot(sizes, [mean_size(s, "encode_ms") for s in sizes], marker="o", label="encode")
        plt.plot(sizes, [mean_size(s, "decode_ms") for s in sizes], marker="o", label="decode")
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Encode/Decode Time vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"scale_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compression_ratio") for s in sizes], marker="o")
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Container Bytes / Original Bytes")
        plt.title(f"Compression Ratio vs Size ({dist})")
        plt.tight_layout()
        plt.savefig(outdir / f"scale_compression_ratio_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def doubling_sizes(lo: int, hi: int) -> List[int]:
    return [lo << k for k in range(max(0, (hi // lo).bit_length()))]

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Distributions at a fixed size
    if not args.no_dist:
        fixed_size = max(1, args.dist_size_kb) * 1024
        for gen_name in parse_csv_list(args.dist_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                row = run_one(data)
                row.exp_name = "distribution"
                row.dataset_name = dataset_name
                row.run_id = run_id
                rows.append(row)
            logger.info("distribution %s: %d runs", gen_name, args.runs)

    # Size scaling, powers of 2
    if not args.no_scale:
        min_bytes = max(1, args.scale_min_kb) * 1024
        max_bytes = max(1, args.scale_max_mb) * 1024 * 1024

        for gen_name in parse_csv_list(args.scale_generators):
            for size_b in doubling_sizes(min_bytes, max_bytes):
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    row = run_one(data)
                    row.exp_name = "size_scaling"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)
                logger.info("size scaling %s at %d bytes: %d runs", gen_name, size_b, args.runs)

    return rows

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Skip chart generation")

    ap.add_argument("--no_dist", action="store_true", help="Disable the distribution experiment")
    ap.add_argument("--dist_size_kb", type=int, default=256, help="Distribution experiment file size in KB")
    ap.add_argument("--dist_generators", type=str,
                    default="uniform256,zipf128,repetitive90,english_like,single_symbol,fibonacci",
                    help="Comma-separated dataset generator names for the distribution experiment")

    ap.add_argument("--no_scale", action="store_true", help="Disable the size scaling experiment")
    ap.add_argument("--scale_min_kb", type=int, default=4, help="Scaling min size in KB (power-of-two growth)")
    ap.add_argument("--scale_max_mb", type=int, default=2, help="Scaling max size in MB (power-of-two growth)")
    ap.add_argument("--scale_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for the scaling experiment")
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows = run_experiments(args)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_distributions(rows, outdir)
        plot_size_scaling(rows, outdir)

    logger.info("%d rows in %s, summary in %s", len(rows), metrics_csv, summary_csv)
    for rec in summarize(rows):
        print(f"{rec['exp_name']:<13} {rec['dataset_name']:<14} {rec['file_size_bytes']:>9} B  "
              f"ratio {rec['compression_ratio_mean']:.3f}  "
              f"{rec['avg_code_bits_mean']:.2f} bits/sym (entropy {rec['entropy_bits_mean']:.2f})  "
              f"ok {rec['correctness_ok_rate']:.0%}")
    return 0 if all(r.correctness_ok for r in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
