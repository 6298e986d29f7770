import io

import pytest

from bitstream import BitReader, BitWriter


def test_full_byte_is_written_msb_first():
    out = io.BytesIO()
    w = BitWriter(out)
    w.write_bits("10000001")
    assert out.getvalue() == b"\x81"
    w.close()
    assert out.getvalue() == b"\x81" # nothing left to pad
    assert w.bytes_written == 1


def test_partial_byte_is_padded_with_zeros_on_close():
    out = io.BytesIO()
    w = BitWriter(out)
    for bit in (1, 0, 1):
        w.write_bit(bit)
    assert out.getvalue() == b""
    w.close()
    assert out.getvalue() == b"\xa0"


def test_close_pads_only_once():
    out = io.BytesIO()
    w = BitWriter(out)
    w.write_bit(1)
    w.close()
    w.close()
    assert out.getvalue() == b"\x80"


def test_write_after_close_raises():
    w = BitWriter(io.BytesIO())
    w.close()
    with pytest.raises(ValueError):
        w.write_bit(0)


def test_rejects_non_bits():
    w = BitWriter(io.BytesIO())
    with pytest.raises(ValueError):
        w.write_bit(2)


def test_context_manager_flushes():
    out = io.BytesIO()
    with BitWriter(out) as w:
        w.write_bits("111111111")
    assert out.getvalue() == b"\xff\x80"
    assert w.closed


def test_context_manager_drops_pending_bits_on_error():
    out = io.BytesIO()
    with pytest.raises(RuntimeError):
        with BitWriter(out) as w:
            w.write_bits("101")
            raise RuntimeError("boom")
    assert out.getvalue() == b""
    assert w.closed


def test_reader_serves_bits_msb_first_then_signals_end():
    r = BitReader(io.BytesIO(b"\xa5\x01"))
    bits = [r.read_bit() for _ in range(16)]
    assert bits == [1, 0, 1, 0, 0, 1, 0, 1, 0, 0, 0, 0, 0, 0, 0, 1]
    assert r.read_bit() is None
    assert r.bits_read == 16


def test_reader_end_is_distinct_from_zero():
    r = BitReader(io.BytesIO(b"\x00"))
    assert [r.read_bit() for _ in range(8)] == [0] * 8
    assert r.read_bit() is None


def test_reader_pulls_one_byte_at_a_time():
    source = io.BytesIO(b"\xff\x00\xff")
    r = BitReader(source)
    r.read_bit()
    assert source.tell() == 1


def test_read_after_close_raises():
    with BitReader(io.BytesIO(b"\xff")) as r:
        assert r.read_bit() == 1
    with pytest.raises(ValueError):
        r.read_bit()


def test_writer_and_reader_agree():
    bits = [1, 1, 0, 1, 0, 0, 0, 1, 1, 0, 1]
    out = io.BytesIO()
    with BitWriter(out) as w:
        for b in bits:
            w.write_bit(b)
    r = BitReader(io.BytesIO(out.getvalue()))
    assert [r.read_bit() for _ in bits] == bits
    # padding up to the byte boundary is zeros
    assert [r.read_bit() for _ in range(5)] == [0] * 5
    assert r.read_bit() is None
