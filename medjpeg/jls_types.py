"""Shared JPEG-LS types: result codes, markers, parameters and small helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import MutableSequence, NamedTuple, Optional

__all__ = [
    "ApiResult",
    "CharLSError",
    "InterleaveMode",
    "ColorTransformation",
    "JpegMarkerCode",
    "PresetCodingParameters",
    "JfifParameters",
    "JlsParameters",
    "JlsRect",
    "Triplet",
    "Quad",
    "push_word",
    "log_2",
    "sign",
    "bitwise_sign",
    "read_big_endian",
]


class ApiResult(enum.IntEnum):
    """Result codes reported by the JPEG-LS codec."""

    OK = 0
    INVALID_JLS_PARAMETERS = 1
    PARAMETER_VALUE_NOT_SUPPORTED = 2
    UNCOMPRESSED_BUFFER_TOO_SMALL = 3
    COMPRESSED_BUFFER_TOO_SMALL = 4
    INVALID_COMPRESSED_DATA = 5
    TOO_MUCH_COMPRESSED_DATA = 6
    IMAGE_TYPE_NOT_SUPPORTED = 7
    UNSUPPORTED_BIT_DEPTH_FOR_TRANSFORM = 8
    UNSUPPORTED_COLOR_TRANSFORM = 9
    UNSUPPORTED_ENCODING = 10
    UNKNOWN_JPEG_MARKER = 11
    MISSING_JPEG_MARKER_START = 12
    UNSPECIFIED_FAILURE = 13
    UNEXPECTED_FAILURE = 14


class CharLSError(Exception):
    """Error raised by the JPEG-LS codec; ``result`` tells what went wrong."""

    def __init__(self, result: ApiResult | int, message: Optional[str] = None) -> None:
        self.result = ApiResult(result)
        super().__init__(message or "CharLS error")


class InterleaveMode(enum.IntEnum):
    """How the components of an image are interleaved in a scan (ILV)."""

    NONE = 0
    LINE = 1
    SAMPLE = 2


class ColorTransformation(enum.IntEnum):
    """Colour transforms of the HP extension, plus byte-order flags."""

    NONE = 0
    HP1 = 1
    HP2 = 2
    HP3 = 3
    BIG_ENDIAN = 1 << 29
    LITTLE_ENDIAN = 1 << 30


class JpegMarkerCode(enum.IntEnum):
    """Second byte of the JPEG markers used by JPEG-LS streams."""

    START_OF_FRAME_BASELINE_JPEG = 0xC0
    START_OF_FRAME_EXTENDED_SEQUENTIAL = 0xC1
    START_OF_FRAME_PROGRESSIVE = 0xC2
    START_OF_FRAME_LOSSLESS = 0xC3
    START_OF_FRAME_DIFFERENTIAL_SEQUENTIAL = 0xC5
    START_OF_FRAME_DIFFERENTIAL_PROGRESSIVE = 0xC6
    START_OF_FRAME_DIFFERENTIAL_LOSSLESS = 0xC7
    START_OF_FRAME_EXTENDED_ARITHMETIC = 0xC9
    START_OF_FRAME_PROGRESSIVE_ARITHMETIC = 0xCA
    START_OF_FRAME_LOSSLESS_ARITHMETIC = 0xCB
    RESTART0 = 0xD0
    RESTART1 = 0xD1
    RESTART2 = 0xD2
    RESTART3 = 0xD3
    RESTART4 = 0xD4
    RESTART5 = 0xD5
    RESTART6 = 0xD6
    RESTART7 = 0xD7
    START_OF_IMAGE = 0xD8
    END_OF_IMAGE = 0xD9
    START_OF_SCAN = 0xDA
    DEFINE_NUMBER_OF_LINES = 0xDC
    DEFINE_RESTART_INTERVAL = 0xDD
    APPLICATION_DATA0 = 0xE0
    APPLICATION_DATA7 = 0xE7
    APPLICATION_DATA8 = 0xE8
    START_OF_FRAME_JPEG_LS = 0xF7
    JPEG_LS_PRESET_PARAMETERS = 0xF8
    COMMENT = 0xFE


@dataclass
class PresetCodingParameters:
    """JPEG-LS preset coding parameters (LSE segment, type 1)."""

    maximum_sample_value: int = 0
    threshold1: int = 0
    threshold2: int = 0
    threshold3: int = 0
    reset_value: int = 0


@dataclass
class JfifParameters:
    """Contents of a JFIF APP0 segment."""

    version: int = 0
    units: int = 0
    x_density: int = 0
    y_density: int = 0
    x_thumbnail: int = 0
    y_thumbnail: int = 0
    thumbnail: Optional[bytes] = None


@dataclass
class JlsParameters:
    """Description of a JPEG-LS image and how its pixels are laid out."""

    width: int = 0
    height: int = 0
    bits_per_sample: int = 0
    stride: int = 0
    components: int = 0
    allowed_lossy_error: int = 0
    interleave_mode: InterleaveMode = InterleaveMode.NONE
    color_transformation: ColorTransformation = ColorTransformation.NONE
    output_bgr: bool = False
    custom: PresetCodingParameters = field(default_factory=PresetCodingParameters)
    jfif: JfifParameters = field(default_factory=JfifParameters)


@dataclass
class JlsRect:
    """A rectangle within an image."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


class Triplet(NamedTuple):
    """Three samples of one pixel."""

    v1: int = 0
    v2: int = 0
    v3: int = 0

    @property
    def red(self) -> int:
        return self.v1

    @property
    def green(self) -> int:
        return self.v2

    @property
    def blue(self) -> int:
        return self.v3


class Quad(NamedTuple):
    """Four samples of one pixel."""

    v1: int = 0
    v2: int = 0
    v3: int = 0
    v4: int = 0

    @property
    def red(self) -> int:
        return self.v1

    @property
    def green(self) -> int:
        return self.v2

    @property
    def blue(self) -> int:
        return self.v3

    @property
    def alpha(self) -> int:
        return self.v4

    @classmethod
    def from_triplet(cls, triplet: Triplet, alpha: int) -> "Quad":
        """Extend a triplet with a fourth sample."""
        return cls(triplet.v1, triplet.v2, triplet.v3, alpha)


def push_word(values: MutableSequence[int], value: int) -> None:
    """Append ``value`` as a big-endian 16-bit word."""
    value &= 0xFFFF
    values.append(value >> 8)
    values.append(value & 0xFF)


def log_2(n: int) -> int:
    """Smallest ``x`` with ``n <= 2**x``."""
    x = 0
    while n > (1 << x):
        x += 1
    return x


def sign(n: int) -> int:
    """-1 for negative values, 1 otherwise."""
    return -1 if n < 0 else 1


def bitwise_sign(n: int) -> int:
    """-1 for negative values, 0 otherwise."""
    return -1 if n < 0 else 0


def read_big_endian(data: bytes, size: int) -> int:
    """Read an unsigned big-endian integer of 4 or 8 bytes."""
    if size not in (4, 8):
        raise ValueError(f"unsupported big-endian size {size}")
    if len(data) < size:
        raise ValueError(f"need {size} bytes, got {len(data)}")
    return int.from_bytes(bytes(data[:size]), "big")