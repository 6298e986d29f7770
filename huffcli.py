"""
Command line front end for the Huffman codec

How to run:
  python huffcli.py encode notes.txt notes.huf
  python huffcli.py decode notes.huf notes_recovered.txt
  python huffcli.py --quiet encode big.bin big.huf
"""

from __future__ import annotations

import argparse
import time
from typing import List, Optional

import codec
from errors import HuffmanError


def now_ms() -> float:
    return time.perf_counter() * 1000.0


def cmd_encode(args: argparse.Namespace) -> None:
    t0 = now_ms()
    stats = codec.encode_file(args.input, args.output)
    t1 = now_ms()
    if not args.quiet:
        print(f"Encoding {args.input} -> {args.output}")
        print(f"  input bytes:   {stats.original_bytes}")
        print(f"  symbols:       {stats.unique_symbols} (end-of-stream included)")
        print(f"  body bits:     {stats.body_bits}")
        print(f"  output bytes:  {stats.compressed_bytes} (header {stats.header_bytes} + body {stats.body_bytes})")
        print(f"  ratio:         {stats.ratio:.3f}")
        print(f"  took {t1 - t0:.1f} ms")


def cmd_decode(args: argparse.Namespace) -> None:
    t0 = now_ms()
    written = codec.decode_file(args.input, args.output)
    t1 = now_ms()
    if not args.quiet:
        print(f"Decoding {args.input} -> {args.output}")
        print(f"  output bytes:  {written}")
        print(f"  took {t1 - t0:.1f} ms")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman compression of arbitrary files")
    ap.add_argument("--quiet", action="store_true", help="Do not print sizes and timings")
    sub = ap.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Compress INPUT into OUTPUT")
    enc.add_argument("input", help="File to compress")
    enc.add_argument("output", help="Where to write the compressed file")
    enc.set_defaults(func=cmd_encode)

    dec = sub.add_parser("decode", help="Decompress INPUT into OUTPUT")
    dec.add_argument("input", help="File produced by encode")
    dec.add_argument("output", help="Where to write the recovered file")
    dec.set_defaults(func=cmd_decode)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except HuffmanError as exc:
        print(f"error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
