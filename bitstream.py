from typing import BinaryIO, Optional


class BitWriter:
    """
    Writes bits one at a time to a binary sink, 8 bits per byte, most significant bit first
    close() flushes a half filled byte by padding it with 0 bits
    """

    def __init__(self, sink: BinaryIO):
        self.sink = sink # anything with .write(bytes)
        self.buffer = 0 # pending bits
        self.buffer_count = 0 # number of pending bits, always < 8
        self.bytes_written = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.closed = True # output is invalid anyway, drop the pending bits
        return False

    def write_bit(self, bit: int) -> None:
        if self.closed:
            raise ValueError("write to closed BitWriter")
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        self.buffer = (self.buffer << 1) | bit
        self.buffer_count += 1
        if self.buffer_count == 8:
            self._flush_byte()

    def write_bits(self, code: str) -> None: # code: string of '0'/'1'
        for ch in code:
            self.write_bit(1 if ch == '1' else 0)

    def _flush_byte(self) -> None:
        self.sink.write(bytes([self.buffer]))
        self.bytes_written += 1
        self.buffer = 0
        self.buffer_count = 0

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.buffer_count > 0:
            # pad the remaining bits with 0's
            self.buffer <<= 8 - self.buffer_count
            self._flush_byte()


class BitReader:
    """
    Reads bits one at a time from a binary source, most significant bit first
    read_bit() returns None once the source is exhausted
    """

    def __init__(self, source: BinaryIO):
        self.source = source # anything with .read(n)
        self.buffer = 0 # byte currently being served
        self.buffer_count = 8 # bits of buffer already served, 8 means a new byte is needed
        self.bits_read = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self) -> None: # drops the partially served byte, the source itself is owned by the caller
        self.closed = True
        self.buffer = 0
        self.buffer_count = 8

    def read_bit(self) -> Optional[int]:
        if self.closed:
            raise ValueError("read from closed BitReader")
        if self.buffer_count == 8:
            byte = self.source.read(1)
            if not byte:
                return None # stream ended
            self.buffer = byte[0]
            self.buffer_count = 0
        bit = (self.buffer >> (7 - self.buffer_count)) & 1
        self.buffer_count += 1
        self.bits_read += 1
        return bit
