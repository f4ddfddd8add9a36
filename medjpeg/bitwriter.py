"""Bit-level output for JPEG-LS scans, with the marker-detection bit stuffing of T.87, A.1."""

from __future__ import annotations

from typing import BinaryIO, Optional

from medjpeg.jls_types import ApiResult, CharLSError

__all__ = ["BitStreamWriter"]

_WORD_BITS = 32
_WORD_MASK = (1 << _WORD_BITS) - 1
_STREAM_CHUNK = 4000


class BitStreamWriter:
    """Packs bit fields into bytes, inserting a zero bit after every 0xFF.

    Bytes are kept in memory, limited to ``capacity`` when one is given,
    or passed on to ``stream`` in chunks.
    """

    def __init__(self, stream: Optional[BinaryIO] = None, capacity: Optional[int] = None) -> None:
        self._stream = stream
        self._bit_buffer = 0
        self._free_bits = _WORD_BITS
        self._ff_written = False
        self._bytes_written = 0
        self._output = bytearray()
        self._pending = bytearray()
        self._remaining: Optional[int] = _STREAM_CHUNK if stream is not None else capacity

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def length(self) -> int:
        """Bytes written, counting those still held in the bit buffer."""
        return self._bytes_written - int((self._free_bits - _WORD_BITS) / 8)

    def append(self, bits: int, bit_count: int) -> None:
        """Append the low ``bit_count`` bits of ``bits``, most significant first."""
        if not 0 <= bit_count < _WORD_BITS:
            raise ValueError(f"bit count must be in 0..31, not {bit_count}")
        if bits < 0 or bits >> bit_count:
            raise ValueError(f"value {bits} does not fit in {bit_count} bits")
        self._free_bits -= bit_count
        if self._free_bits >= 0:
            self._bit_buffer |= bits << self._free_bits
        else:
            self._bit_buffer |= bits >> -self._free_bits
            self.flush()
            # stuffed bits may leave too little room for the rest
            if self._free_bits < 0:
                self._bit_buffer |= bits >> -self._free_bits
                self.flush()
            self._bit_buffer |= bits << self._free_bits
        self._bit_buffer &= _WORD_MASK

    def append_ones(self, length: int) -> None:
        self.append((1 << length) - 1, length)

    def flush(self) -> None:
        """Move up to four whole bytes out of the bit buffer."""
        if self._remaining is not None and self._remaining < 4:
            self._overflow()
        for _ in range(4):
            if self._free_bits >= _WORD_BITS:
                break
            if self._ff_written:
                value = (self._bit_buffer >> 25) & 0xFF
                self._bit_buffer = (self._bit_buffer << 7) & _WORD_MASK
                self._free_bits += 7
            else:
                value = self._bit_buffer >> 24
                self._bit_buffer = (self._bit_buffer << 8) & _WORD_MASK
                self._free_bits += 8
            self._ff_written = value == 0xFF
            self._emit(value)

    def end_scan(self) -> None:
        """Pad the last byte with zero bits and write out everything."""
        self.flush()
        if self._ff_written:
            self.append(0, (self._free_bits - 1) % 8)
        else:
            self.append(0, self._free_bits % 8)
        self.flush()
        if self._stream is not None:
            self._overflow()

    def getvalue(self) -> bytes:
        """All bytes produced so far."""
        return bytes(self._output)

    def _emit(self, value: int) -> None:
        self._output.append(value)
        if self._stream is not None:
            self._pending.append(value)
        if self._remaining is not None:
            self._remaining -= 1
        self._bytes_written += 1

    def _overflow(self) -> None:
        if self._stream is None:
            raise CharLSError(ApiResult.COMPRESSED_BUFFER_TOO_SMALL)
        written = self._stream.write(bytes(self._pending))
        if written != len(self._pending):
            raise CharLSError(ApiResult.COMPRESSED_BUFFER_TOO_SMALL)
        self._pending.clear()
        self._remaining = _STREAM_CHUNK