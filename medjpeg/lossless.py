"""Decoder for lossless JPEG (ITU-T T.81, Start-Of-Frame 0xC3) as found in DICOM files.

Handles 1..16 bit greyscale data and 8-bit three-component data, with
any of the seven predictors of table H.1.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

__all__ = [
    "JpegDecodeError",
    "LosslessImage",
    "decode_lossless_bytes",
    "decode_lossless_jpeg",
]

_LONG_CODE = 255  # lookup value meaning "code is longer than 8 bits"
_NO_SIZE = 123  # impossible code size
_MAX_TABLES = 4
_SOF_MARKERS = frozenset(
    [*range(0xC0, 0xC4), *range(0xC5, 0xCC), *range(0xCD, 0xD0)]
)
_MARKER_SOF3 = 0xC3
_MARKER_DHT = 0xC4
_MARKER_DRI = 0xDD
_MARKER_SOS = 0xDA
_MARKER_EOI = 0xD9


class JpegDecodeError(ValueError):
    """Raised when a lossless JPEG stream cannot be decoded."""


@dataclass(frozen=True)
class LosslessImage:
    """A decoded image.

    ``pixels`` holds ``frames`` planes of ``width * height`` samples one
    after another; ``bits`` is the storage size of a sample (8 or 16).
    """

    width: int
    height: int
    bits: int
    frames: int
    pixels: list[int]


def _mask(bits: int) -> int:
    return (1 << bits) - 1


def _reporter(verbose: bool) -> Callable[[str], None]:
    """Return a function that prints messages only when ``verbose`` is set."""

    def say(message: str) -> None:
        if verbose:
            print(message)

    return say


@dataclass(frozen=True)
class _HuffmanTable:
    size_of: tuple[int, ...]
    lookup: tuple[int, ...]
    by_length: dict[int, dict[int, int]]
    max_length: int
    max_value: int


def _build_table(counts: list[int], values: list[int]) -> _HuffmanTable:
    size_of = [_NO_SIZE] * 18
    lookup = [_LONG_CODE] * 256
    by_length: dict[int, dict[int, int]] = {}
    remaining = iter(values)
    code = 0
    for length, count in enumerate(counts, 1):
        for _ in range(count):
            value = next(remaining)
            by_length.setdefault(length, {})[code] = value
            if length <= 8:
                size_of[value] = length
                start = (code << (8 - length)) & 0xFF
                span = 1 << (8 - length)
                for key in range(start, min(start + span, 256)):
                    lookup[key] = value
            code += 1
        code <<= 1
    max_length = max((length for length, count in enumerate(counts, 1) if count), default=0)
    return _HuffmanTable(
        size_of=tuple(size_of),
        lookup=tuple(lookup),
        by_length=by_length,
        max_length=max_length,
        max_value=values[-1] if values else 0,
    )


class _HeaderReader:
    """Byte reader for marker segments; reads past the end yield zero."""

    def __init__(self, data: bytes, pos: int) -> None:
        self.data = data
        self.pos = pos

    def read_byte(self) -> int:
        value = self.data[self.pos] if self.pos < len(self.data) else 0
        self.pos += 1
        return value

    def read_word(self) -> int:
        high = self.read_byte()
        return (high << 8) + self.read_byte()


class _ScanReader:
    """Bit reader over the unstuffed entropy-coded segment."""

    def __init__(self, data: bytearray, pos: int) -> None:
        self.data = data
        self.pos = pos
        self.bit = 0

    def _at(self, index: int) -> int:
        return self.data[index] if 0 <= index < len(self.data) else 0

    def _advance(self, bits: int) -> None:
        self.bit += bits
        self.pos += self.bit >> 3
        self.bit &= 7

    def read_bit(self) -> int:
        result = (self._at(self.pos) >> (7 - self.bit)) & 1
        self._advance(1)
        return result

    def read_bits(self, count: int) -> int:
        window = (self._at(self.pos) << 16) | (self._at(self.pos + 1) << 8) | self._at(self.pos + 2)
        result = (window >> (24 - self.bit - count)) & _mask(count)
        self._advance(count)
        return result

    def difference(self, table: _HuffmanTable) -> int:
        first = (self._at(self.pos) << self.bit) + (self._at(self.pos + 1) >> (8 - self.bit))
        first &= 0xFF
        category = table.lookup[first]
        if category != _LONG_CODE:
            self._advance(table.size_of[category])
        else:
            code = first
            length = 8
            self.pos += 1
            while True:
                length += 1
                code = (code << 1) + self.read_bit()
                category = table.by_length.get(length, {}).get(code, _LONG_CODE)
                if length >= table.max_length and category == _LONG_CODE:
                    category = table.max_value
                if category != _LONG_CODE:
                    break
        if category == 0:
            return 0
        if category == 1:
            return 1 if self.read_bit() else -1
        if category == 16:
            # H.1.2.2: no extra bits follow SSSS = 16
            return 32768
        diff = self.read_bits(category)
        if diff <= _mask(category - 1):
            diff -= _mask(category)
        return diff


def _unstuff(raw: bytes, start: int) -> bytearray:
    """Drop the zero byte after each 0xFF, stopping at the EOI marker."""
    out = bytearray(raw)
    src = dst = start
    size = len(raw)
    while src < size:
        value = raw[src]
        out[dst] = value
        if value == 0xFF and src + 1 < size:
            following = raw[src + 1]
            if following == 0:
                src += 1
            elif following == _MARKER_EOI:
                break
        src += 1
        dst += 1
    return out


def _predict(plane: list[int], index: int, width: int, predictor: int, initial: int) -> int:
    row, col = divmod(index, width)
    if index == 0:
        return initial
    if row == 0:
        return plane[index - 1]
    if col == 0:
        return plane[index - width]
    left = plane[index - 1]
    above = plane[index - width]
    upper_left = plane[index - width - 1]
    if predictor == 2:
        return above
    if predictor == 3:
        return upper_left
    if predictor == 4:
        return left + above - upper_left
    if predictor == 5:
        return left + ((above - upper_left) >> 1)
    if predictor == 6:
        return above + ((left - upper_left) >> 1)
    if predictor == 7:
        return (left + above) >> 1
    return left


def _read_huffman_segment(
    header: _HeaderReader, seg_end: int, tables: list[_HuffmanTable], say: Callable[[str], None]
) -> None:
    while True:
        header.read_byte()  # table class and destination are not used
        counts = [header.read_byte() for _ in range(16)]
        for length, count in enumerate(counts, 1):
            say(f"DHT has {count} combinations with {length} bits")
        if sum(counts) > 17:
            raise JpegDecodeError("Huffman table corrupted.")
        values = []
        for count in counts:
            for _ in range(count):
                value = header.read_byte()
                if value > 16:
                    raise JpegDecodeError("Huffman size array corrupted.")
                values.append(value)
        if len(tables) >= _MAX_TABLES:
            raise JpegDecodeError(f"More than {_MAX_TABLES} Huffman tables.")
        tables.append(_build_table(counts, values))
        if seg_end - header.pos < 18:
            break


def _decode(raw: bytes, verbose: bool, where: str) -> LosslessImage:
    say = _reporter(verbose)
    size = len(raw)
    if size <= 8:
        raise JpegDecodeError(f"Unable to load 0XC3 JPEG {where}")
    if raw[0] != 0xFF or raw[1] != 0xD8 or raw[2] != 0xFF:
        raise JpegDecodeError(f"JPEG signature 0xFFD8FF not found at {where}")
    say(f"JPEG signature 0xFFD8FF found at {where}")

    header = _HeaderReader(raw, 2)
    precision = ydim = xdim = components = 0
    predictor = point_transform = 0
    tables: list[_HuffmanTable] = []
    while True:
        while True:
            if header.read_byte() != 0xFF:
                raise JpegDecodeError("JPEG header tag must begin with 0xFF")
            marker = header.read_byte()
            if marker in (0x01, 0xFF) or 0xD0 <= marker <= 0xD7:
                marker = 0  # only segments with length fields are processed
            if not (header.pos < size and marker == 0):
                break
        length = header.read_word()
        seg_end = header.pos + (length - 2)
        if seg_end > size:
            raise JpegDecodeError("Segment larger than image")
        say(f"btMarkerType {marker:#04X} length {length}@{header.pos}")
        if marker in _SOF_MARKERS:
            precision = header.read_byte()
            ydim = header.read_word()
            xdim = header.read_word()
            components = header.read_byte()
            header.pos = seg_end
            say(f" [Precision {precision} X*Y {xdim}*{ydim} Frames {components}]")
            if marker != _MARKER_SOF3:
                raise JpegDecodeError(
                    "This JPEG decoder can only decompress lossless JPEG ITU-T81 images "
                    f"(SoF must be 0XC3, not {marker:#04X})"
                )
            if (
                not 1 <= precision <= 16
                or components not in (1, 3)
                or (components == 3 and precision > 8)
            ):
                raise JpegDecodeError(
                    "Scalar data must be 1..16 bit, RGB data must be 8-bit "
                    f"({precision}-bit, {components} frames)"
                )
        elif marker == _MARKER_DHT:
            say(f" [Huffman Length {length}]")
            _read_huffman_segment(header, seg_end, tables, say)
            header.pos = seg_end
            say(f" [FrameCount {len(tables)}]")
        elif marker == _MARKER_DRI:
            raise JpegDecodeError("btMarkerType == 0xDD: unsupported Restart Segments")
        elif marker == _MARKER_SOS:
            scan_components = header.read_byte()
            for _ in range(scan_components):
                header.read_byte()  # component identifier
                header.read_byte()  # table selectors
            predictor = header.read_byte()
            header.read_byte()  # end of spectral selection, unused
            approximation = header.read_byte()
            point_transform = approximation & 16
            say(f" [Predictor: {predictor} Transform {approximation}]")
            header.pos = seg_end
        else:
            header.pos = seg_end
        if not (header.pos < size and marker != _MARKER_SOS):
            break

    if not tables:
        raise JpegDecodeError("Decoding error: no Huffman tables.")
    if precision == 0:
        raise JpegDecodeError("Decoding error: no frame header.")
    shift = precision - 1 - point_transform
    if shift < 0:
        raise JpegDecodeError(f"Unsupported point transform {point_transform}")

    scan = _unstuff(raw, header.pos)
    reader = _ScanReader(scan, header.pos)
    # images with fewer tables than components reuse the last table
    plane_tables = [tables[min(frame, len(tables) - 1)] for frame in range(components)]
    sample_mask = 0xFFFF if precision > 8 else 0xFF
    initial = 1 << shift
    plane_size = xdim * ydim
    planes = [[0] * plane_size for _ in range(components)]
    for index in range(plane_size):
        for plane, table in zip(planes, plane_tables):
            predicted = _predict(plane, index, xdim, predictor, initial)
            plane[index] = (predicted + reader.difference(table)) & sample_mask
    say(f"JPEG ends {reader.pos}")
    return LosslessImage(
        width=xdim,
        height=ydim,
        bits=16 if precision > 8 else 8,
        frames=components,
        pixels=[value for plane in planes for value in plane],
    )


def decode_lossless_bytes(data: bytes, verbose: bool = False) -> LosslessImage:
    """Decode a lossless JPEG stream held in memory."""
    return _decode(bytes(data), verbose, "start of buffer")


def decode_lossless_jpeg(
    path: str | os.PathLike[str],
    skip_bytes: int = 0,
    verbose: bool = False,
    disk_bytes: int = 0,
) -> LosslessImage:
    """Decode the lossless JPEG stored ``skip_bytes`` into ``path``.

    ``disk_bytes`` is the compressed size, or 0 when unknown.
    """
    path = Path(path)
    with path.open("rb") as handle:
        handle.seek(0, os.SEEK_END)
        size = handle.tell() - skip_bytes
        if 0 < disk_bytes < size:
            size = disk_bytes
        if size <= 8:
            raise JpegDecodeError(f"Unable to load 0XC3 JPEG {path}")
        handle.seek(skip_bytes)
        raw = handle.read(size)
    where = f"offset {skip_bytes} of {path}"
    if len(raw) < size:
        raise JpegDecodeError(f"JPEG signature 0xFFD8FF not found at {where}")
    return _decode(raw, verbose, where)