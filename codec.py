"""
Huffman file codec: header + encoded body

Layout of a compressed stream:
  MAGIC (4 bytes) | 257 counts, 8 bytes each, big-endian | bitstream ending with the end-of-stream code

The encoder reads its input twice: once to build the frequency table and once
to write the codes. Decoding only needs the header, the tree is rebuilt from it.
"""

from __future__ import annotations

import errno
import io
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional, Union

from bitstream import BitReader, BitWriter
import huffman as huff
from errors import HeaderCorruptError, SinkWriteError, SourceReadError, TruncatedStreamError

MAGIC = b"HUF1"
COUNT_BYTES = 8 # width of each frequency count in the header
HEADER_SIZE = len(MAGIC) + huff.ALPHABET_SIZE * COUNT_BYTES
CHUNK_SIZE = 64 * 1024 # read size for the input passes

PathLike = Union[str, Path]


@dataclass
class CompressionStats:
    original_bytes: int
    header_bytes: int
    body_bytes: int
    body_bits: int # encoded bits before padding
    unique_symbols: int # leaves of the tree, sentinel included

    @property
    def compressed_bytes(self) -> int:
        return self.header_bytes + self.body_bytes

    @property
    def ratio(self) -> float:
        return self.compressed_bytes / max(1, self.original_bytes)


def iter_chunks(source: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    return iter(lambda: source.read(chunk_size), b"")


# Header

def write_header(sink: BinaryIO, frequency_table: List[int]) -> int:
    if len(frequency_table) != huff.ALPHABET_SIZE:
        raise ValueError(f"frequency table must have {huff.ALPHABET_SIZE} entries")
    out = bytearray(MAGIC)
    for frequency in frequency_table:
        out += frequency.to_bytes(COUNT_BYTES, "big")
    sink.write(bytes(out))
    return len(out)


def read_header(source: BinaryIO) -> List[int]:
    """
    Reads and validates the frequency table header
    Raises HeaderCorruptError before any tree gets built
    """
    magic = source.read(len(MAGIC))
    if magic != MAGIC:
        raise HeaderCorruptError(f"bad magic {magic!r}, not a Huffman stream")

    raw = source.read(huff.ALPHABET_SIZE * COUNT_BYTES)
    if len(raw) != huff.ALPHABET_SIZE * COUNT_BYTES:
        raise HeaderCorruptError(f"frequency table truncated: {len(raw)} of "
                                 f"{huff.ALPHABET_SIZE * COUNT_BYTES} bytes")

    frequency_table = [int.from_bytes(raw[i:i + COUNT_BYTES], "big")
                       for i in range(0, len(raw), COUNT_BYTES)]
    if frequency_table[huff.SENTINEL] < 1:
        raise HeaderCorruptError("end-of-stream symbol missing from frequency table")
    return frequency_table


# Encoder / decoder

def encode_data(chunks: Iterable[bytes], codes: Dict[int, str], writer: BitWriter,
                frequency_table: Optional[List[int]] = None) -> None:
    """
    Writes the code of every input byte followed by the end-of-stream code,
    then closes the writer so the last byte gets padded
    When frequency_table is given, the bytes seen here must match its counts exactly,
    otherwise the body would disagree with the header
    """
    seen = [0] * huff.SENTINEL
    with writer:
        for chunk in chunks:
            for byte in chunk:
                code = codes.get(byte)
                if code is None:
                    raise ValueError(f"no code for byte {byte}, input changed since the frequency pass")
                writer.write_bits(code)
                seen[byte] += 1
        if frequency_table is not None and seen != list(frequency_table[:huff.SENTINEL]):
            raise ValueError(f"input changed since the frequency pass: encoded {sum(seen)} bytes, "
                             f"header counts {sum(frequency_table[:huff.SENTINEL])}")
        writer.write_bits(codes[huff.SENTINEL])


def decode_data(reader: BitReader, root: huff.Node, sink: BinaryIO) -> int:
    """
    Walks the tree bit by bit, writing a byte at every leaf until the end-of-stream leaf
    Returns the number of bytes written
    """
    written = 0
    out = bytearray()
    with reader:
        while True:
            node = root
            if isinstance(node, huff.Leaf):
                # one leaf tree, every symbol is the single bit code
                if reader.read_bit() is None:
                    raise TruncatedStreamError(f"stream ended after {written} bytes, end-of-stream code missing")
            while isinstance(node, huff.Internal):
                bit = reader.read_bit()
                if bit is None:
                    raise TruncatedStreamError(f"stream ended after {written} bytes, end-of-stream code missing")
                node = node.right if bit == 1 else node.left

            if node.symbol == huff.SENTINEL:
                break
            out.append(node.symbol)
            written += 1
            if len(out) >= CHUNK_SIZE:
                sink.write(bytes(out))
                out.clear()
    if out:
        sink.write(bytes(out))
    return written


# In-memory pipeline

def compress(data: bytes) -> bytes:
    frequency_table = huff.build_frequency_table([data])
    root = huff.build_huffman_tree(frequency_table)
    codes = huff.generate_huffman_codes(root)

    out = io.BytesIO()
    write_header(out, frequency_table)
    encode_data([data], codes, BitWriter(out), frequency_table)
    return out.getvalue()


def decompress(blob: bytes) -> bytes:
    source = io.BytesIO(blob)
    frequency_table = read_header(source)
    root = huff.build_huffman_tree(frequency_table)

    out = io.BytesIO()
    decode_data(BitReader(source), root, out)
    return out.getvalue()


# File pipeline

class _FileSource: # read side of a file, OSError -> SourceReadError
    def __init__(self, handle: BinaryIO, path: PathLike):
        self.handle = handle
        self.path = path

    def read(self, n: int = -1) -> bytes:
        try:
            return self.handle.read(n)
        except OSError as exc:
            raise SourceReadError(exc.errno, f"cannot read {self.path}: {exc.strerror}") from exc


class _FileSink: # write side of a file, OSError -> SinkWriteError
    def __init__(self, handle: BinaryIO, path: PathLike):
        self.handle = handle
        self.path = path

    def write(self, data: bytes) -> int:
        try:
            return self.handle.write(data)
        except OSError as exc:
            raise SinkWriteError(exc.errno, f"cannot write {self.path}: {exc.strerror}") from exc


def _open(path: PathLike, mode: str) -> BinaryIO:
    try:
        return open(path, mode)
    except OSError as exc:
        error = SinkWriteError if "w" in mode else SourceReadError
        raise error(exc.errno, f"cannot open {path}: {exc.strerror}") from exc


@contextmanager
def _output_file(path: PathLike) -> Iterator[_FileSink]:
    """Opens path for writing; a failed operation removes the partial output"""
    handle = _open(path, "wb")
    try:
        with handle:
            yield _FileSink(handle, path)
    except BaseException:
        Path(path).unlink(missing_ok=True)
        raise


def _check_distinct(input_path: PathLike, output_path: PathLike) -> None:
    # opening the output truncates it, which must never hit the file still being read
    if Path(input_path).resolve() == Path(output_path).resolve() or (
            Path(input_path).exists() and Path(output_path).exists()
            and os.path.samefile(input_path, output_path)):
        raise SinkWriteError(errno.EINVAL, f"output {output_path} is the input file")


def encode_file(input_path: PathLike, output_path: PathLike) -> CompressionStats:
    """
    Two pass streaming encode: the first handle builds the frequency table,
    a second independent handle feeds the encoder
    """
    with _open(input_path, "rb") as first_pass:
        frequency_table = huff.build_frequency_table(iter_chunks(_FileSource(first_pass, input_path)))
    root = huff.build_huffman_tree(frequency_table)
    codes = huff.generate_huffman_codes(root)

    _check_distinct(input_path, output_path)
    with _open(input_path, "rb") as second_pass, _output_file(output_path) as sink:
        header_bytes = write_header(sink, frequency_table)
        writer = BitWriter(sink)
        encode_data(iter_chunks(_FileSource(second_pass, input_path)), codes, writer, frequency_table)

    return CompressionStats(
        original_bytes=sum(frequency_table[:huff.SENTINEL]),
        header_bytes=header_bytes,
        body_bytes=writer.bytes_written,
        body_bits=huff.weighted_path_length(frequency_table, codes),
        unique_symbols=len(codes),
    )


def decode_file(input_path: PathLike, output_path: PathLike) -> int:
    _check_distinct(input_path, output_path)
    with _open(input_path, "rb") as src:
        source = _FileSource(src, input_path)
        frequency_table = read_header(source) # fail before creating the output
        root = huff.build_huffman_tree(frequency_table)
        with _output_file(output_path) as sink:
            return decode_data(BitReader(source), root, sink)
