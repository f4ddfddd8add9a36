import io

import pytest

from medjpeg.bitwriter import BitStreamWriter
from medjpeg.jls_types import ApiResult, CharLSError


def _assert_stuffed(data):
    for previous, current in zip(data, data[1:]):
        if previous == 0xFF:
            assert current < 0x80


def test_whole_byte_round_trip():
    writer = BitStreamWriter()
    writer.append(0xAB, 8)
    writer.end_scan()
    assert writer.getvalue() == bytes([0xAB])


def test_zero_bit_inserted_after_ff():
    writer = BitStreamWriter()
    writer.append_ones(8)
    writer.append(1, 1)
    writer.end_scan()
    assert writer.getvalue() == bytes([0xFF, 0x40])


def test_partial_byte_is_zero_padded():
    writer = BitStreamWriter()
    writer.append(0b101, 3)
    writer.end_scan()
    assert writer.getvalue() == bytes([0b10100000])


def test_length_counts_buffered_bits():
    writer = BitStreamWriter()
    writer.append(0x12, 8)
    assert writer.bytes_written == 0
    assert writer.length == 1


def test_long_runs_of_ones_are_stuffed():
    writer = BitStreamWriter()
    for _ in range(10):
        writer.append_ones(20)
    writer.end_scan()
    data = writer.getvalue()
    _assert_stuffed(data)
    assert data[0] == 0xFF
    assert writer.bytes_written == len(data)


def test_mixed_values_keep_invariants():
    writer = BitStreamWriter()
    for value in range(300):
        writer.append(value & 0x3FF, 10)
    writer.end_scan()
    data = writer.getvalue()
    _assert_stuffed(data)
    assert len(data) >= 300 * 10 // 8


def test_small_capacity_raises():
    writer = BitStreamWriter(capacity=2)
    writer.append(0xAB, 8)
    with pytest.raises(CharLSError) as info:
        writer.end_scan()
    assert info.value.result == ApiResult.COMPRESSED_BUFFER_TOO_SMALL


@pytest.mark.parametrize("bits, count", [(4, 2), (0, 32), (-1, 4), (1, -1)])
def test_invalid_fields_rejected(bits, count):
    with pytest.raises(ValueError):
        BitStreamWriter().append(bits, count)