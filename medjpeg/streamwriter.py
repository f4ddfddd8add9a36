"""Writer that assembles JPEG-LS streams out of marker segments."""

from __future__ import annotations

import abc
from typing import Iterable, Optional

from medjpeg.jls_types import (
    ApiResult,
    CharLSError,
    ColorTransformation,
    JpegMarkerCode,
)

__all__ = ["JpegSegment", "JpegStreamWriter"]


class JpegSegment(abc.ABC):
    """A piece of a JPEG stream that knows how to write itself."""

    @abc.abstractmethod
    def serialize(self, writer: "JpegStreamWriter") -> None:
        """Write this segment through ``writer``."""


class JpegStreamWriter:
    """Collects segments and writes them between SOI and EOI markers.

    Output goes to a buffer that grows as needed, or that holds at most
    ``capacity`` bytes when a capacity is given to :meth:`write`.
    """

    def __init__(self) -> None:
        self._segments: list[JpegSegment] = []
        self._buffer = bytearray()
        self._capacity: Optional[int] = None
        self._byte_offset = 0

    @property
    def segments(self) -> tuple[JpegSegment, ...]:
        return tuple(self._segments)

    @property
    def bytes_written(self) -> int:
        """Number of bytes written so far."""
        return self._byte_offset

    @property
    def remaining(self) -> Optional[int]:
        """Free space left in a bounded output, ``None`` when unbounded."""
        if self._capacity is None:
            return None
        return self._capacity - self._byte_offset

    @property
    def data(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._buffer[: self._byte_offset])

    def add_segment(self, segment: JpegSegment) -> None:
        self._segments.append(segment)

    def add_color_transform(self, transformation: ColorTransformation) -> None:
        """Add an APP8 segment announcing a colour transform."""
        from medjpeg.markersegment import JpegMarkerSegment

        self.add_segment(JpegMarkerSegment.create_color_transform(transformation))

    def write(self, capacity: Optional[int] = None) -> bytes:
        """Write SOI, every segment and EOI; return the resulting stream."""
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must not be negative, not {capacity}")
        self._buffer = bytearray()
        self._capacity = capacity
        self._byte_offset = 0
        self.write_marker(JpegMarkerCode.START_OF_IMAGE)
        for segment in self._segments:
            segment.serialize(self)
        self.write_marker(JpegMarkerCode.END_OF_IMAGE)
        return self.data

    def _ensure_room(self, count: int) -> None:
        if self._capacity is not None and self._byte_offset + count > self._capacity:
            raise CharLSError(ApiResult.COMPRESSED_BUFFER_TOO_SMALL)
        missing = self._byte_offset + count - len(self._buffer)
        if missing > 0:
            self._buffer.extend(bytes(missing))

    def write_byte(self, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        self._ensure_room(1)
        self._buffer[self._byte_offset] = value
        self._byte_offset += 1

    def write_bytes(self, values: Iterable[int]) -> None:
        for value in values:
            self.write_byte(value)

    def write_word(self, value: int) -> None:
        """Write a big-endian 16-bit word."""
        value &= 0xFFFF
        self.write_byte(value >> 8)
        self.write_byte(value & 0xFF)

    def write_marker(self, marker: int) -> None:
        self.write_byte(0xFF)
        self.write_byte(int(marker))

    def seek(self, byte_count: int) -> None:
        """Skip ``byte_count`` bytes that were filled in by someone else."""
        if byte_count < 0:
            raise ValueError(f"cannot seek backwards by {byte_count}")
        self._ensure_room(byte_count)
        self._byte_offset += byte_count

    def fill(self, data: bytes) -> None:
        """Place ``data`` at the current position without moving it; use seek afterwards."""
        self._ensure_room(len(data))
        self._buffer[self._byte_offset : self._byte_offset + len(data)] = data