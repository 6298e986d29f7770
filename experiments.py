"""
Huffman codec experiments

Runs the codec over synthetic datasets, with repeated runs, and compares the
two ways of feeding it:
  in_memory  compress()/decompress() on a bytes buffer
  two_pass   encode_file()/decode_file() reading the input file twice

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_kb 1024
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,english_like
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import tempfile
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

import codec
import huffman as huff

PIPELINES = ("in_memory", "two_pass")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy_bits(frequency_table: Sequence[int]) -> float:
    """Shannon entropy in bits per symbol, the lower bound for the average code length"""
    total = sum(frequency_table)
    return -sum((f / total) * math.log2(f / total) for f in frequency_table if f > 0)

def average_code_bits(frequency_table: Sequence[int]) -> float:
    root = huff.build_huffman_tree(list(frequency_table))
    codes = huff.generate_huffman_codes(root)
    return huff.weighted_path_length(list(frequency_table), codes) / sum(frequency_table)


# Synthetic dataset generators

def _sample(rng: random.Random, symbols: Sequence[int], weights: Sequence[float], size: int) -> bytes:
    return bytes(rng.choices(symbols, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = (1.0 - dom_frac) / 255
    weights = [dom_frac if i == dominant else others for i in range(256)]
    return _sample(rng, range(256), weights, size)

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(rng, range(alphabet), weights, size)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    def weight(ch: str) -> float:
        if ch == ' ':
            return 13.0
        if ch == '\n':
            return 1.5
        if ch.lower() in "etaoinshrdlu":
            return 6.0
        if ch.lower() in "cmfwgypbvk":
            return 2.5
        return 1.2
    return _sample(rng, [ord(ch) for ch in chars], [weight(ch) for ch in chars], size)

def gen_single_symbol(size: int, seed: int = 0) -> bytes:
    return bytes([ord('A')]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r}, choose from {sorted(GENERATOR_REGISTRY)}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "in_memory" or "two_pass"
    unique_symbols: int

    encode_ms: float
    decode_ms: float
    total_ms: float

    header_bytes: int
    body_bytes: int
    compression_ratio: float  # body bytes / original bytes

    entropy_bits: float
    avg_code_bits: float
    correctness_ok: int  # 1 or 0


def _run_in_memory(data: bytes) -> Tuple[int, int, int, bytes]:
    t0 = now_ns()
    blob = codec.compress(data)
    t1 = now_ns()
    decoded = codec.decompress(blob)
    t2 = now_ns()
    return t1 - t0, t2 - t1, len(blob) - codec.HEADER_SIZE, decoded


def _run_two_pass(data: bytes) -> Tuple[int, int, int, bytes]:
    with tempfile.TemporaryDirectory() as tmp:
        src = Path(tmp) / "input.bin"
        packed = Path(tmp) / "input.huf"
        restored = Path(tmp) / "restored.bin"
        src.write_bytes(data)

        t0 = now_ns()
        stats = codec.encode_file(src, packed)
        t1 = now_ns()
        codec.decode_file(packed, restored)
        t2 = now_ns()
        return t1 - t0, t2 - t1, stats.body_bytes, restored.read_bytes()


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline == "in_memory":
        encode_ns, decode_ns, body_bytes, decoded = _run_in_memory(data)
    elif pipeline == "two_pass":
        encode_ns, decode_ns, body_bytes, decoded = _run_two_pass(data)
    else:
        raise ValueError(f"pipeline must be one of {PIPELINES}")

    ft = huff.build_frequency_table([data])
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=sum(1 for f in ft if f > 0),
        encode_ms=ns_to_ms(encode_ns),
        decode_ms=ns_to_ms(decode_ns),
        total_ms=ns_to_ms(encode_ns + decode_ns),
        header_bytes=codec.HEADER_SIZE,
        body_bytes=body_bytes,
        compression_ratio=body_bytes / max(1, len(data)),
        entropy_bits=entropy_bits(ft),
        avg_code_bits=average_code_bits(ft),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("compression_ratio", "encode_ms", "decode_ms", "total_ms", "avg_code_bits")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for metric in SUMMARY_METRICS:
        summary_fields += [f"{metric}_mean", f"{metric}_stdev"]
    summary_fields += ["entropy_bits", "correctness_ok_rate"]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for metric in SUMMARY_METRICS:
                m, s = mean_stdev([getattr(x, metric) for x in items])
                row[f"{metric}_mean"] = m
                row[f"{metric}_stdev"] = s
            w.writerow(row)


# Plotting

def _line_chart(x, series: Dict[str, List[float]], xlabel: str, ylabel: str, title: str, out: Path,
                xticks: Optional[List[str]] = None) -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticks is not None:
        plt.xticks(x, xticks, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str, pipeline: Optional[str] = None) -> float:
        vals = [getattr(r, field) for r in exp_rows
                if r.dataset_name == dataset and (pipeline is None or r.pipeline == pipeline)]
        return statistics.mean(vals) if vals else float("nan")

    _line_chart(x, {p: [mean_for(d, "compression_ratio", p) for d in datasets] for p in PIPELINES},
                "", "Body Bytes / Original Bytes", "Experiment 1: Compression Ratio by Distribution",
                outdir / "exp1_compression_ratio.png", xticks=datasets)

    _line_chart(x, {"huffman": [mean_for(d, "avg_code_bits") for d in datasets],
                    "entropy": [mean_for(d, "entropy_bits") for d in datasets]},
                "", "Bits per Symbol", "Experiment 1: Average Code Length vs Entropy",
                outdir / "exp1_code_length_vs_entropy.png", xticks=datasets)

    _line_chart(x, {p: [mean_for(d, "total_ms", p) for d in datasets] for p in PIPELINES},
                "", "Total Time (ms) (encode + decode)", "Experiment 1: Total Runtime by Distribution",
                outdir / "exp1_total_time.png", xticks=datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        _line_chart(sizes, {p: [mean_size(s, p, "encode_ms") for s in sizes] for p in PIPELINES},
                    "File Size (bytes)", "Encode Time (ms)", f"Experiment 2: Encode Time vs Size ({dist})",
                    outdir / f"exp2_encode_time_{dist}.png")

        _line_chart(sizes, {p: [mean_size(s, p, "decode_ms") for s in sizes] for p in PIPELINES},
                    "File Size (bytes)", "Decode Time (ms)", f"Experiment 2: Decode Time vs Size ({dist})",
                    outdir / f"exp2_decode_time_{dist}.png")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def size_ladder(min_bytes: int, max_bytes: int) -> List[int]: # powers of two growth
    sizes: List[int] = []
    s = min_bytes
    while s <= max_bytes:
        sizes.append(s)
        s *= 2
    return sizes

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str,
                    default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=1, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    def record(exp_name: str, gen_name: str, size_b: int, seed: int, run_id: int) -> None:
        data = generate_dataset(gen_name, size_b, seed)
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = gen_name
            row.run_id = run_id
            rows.append(row)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                record("exp1_distribution", gen_name, fixed_size, args.seed + run_id, run_id)
            print(f"exp1 {gen_name}: done")

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        sizes = size_ladder(max(1, args.exp2_min_kb) * 1024, max(1, args.exp2_max_kb) * 1024)
        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    record("exp2_size_scaling", gen_name, size_b, args.seed + 10_000 + size_b + run_id, run_id)
            print(f"exp2 {gen_name}: done")

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    # Plots
    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
