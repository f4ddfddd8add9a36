"""Minimal reader for the header and scan headers of a JPEG-LS byte stream."""

from __future__ import annotations

import copy
from typing import BinaryIO, Union

from medjpeg.jls_types import (
    ApiResult,
    CharLSError,
    ColorTransformation,
    InterleaveMode,
    JlsParameters,
    JlsRect,
    JpegMarkerCode,
    PresetCodingParameters,
)

__all__ = ["JpegStreamReader", "check_parameter_coherent"]

_UNSUPPORTED_FRAMES = frozenset(
    {
        JpegMarkerCode.START_OF_FRAME_BASELINE_JPEG,
        JpegMarkerCode.START_OF_FRAME_EXTENDED_SEQUENTIAL,
        JpegMarkerCode.START_OF_FRAME_PROGRESSIVE,
        JpegMarkerCode.START_OF_FRAME_LOSSLESS,
        JpegMarkerCode.START_OF_FRAME_DIFFERENTIAL_SEQUENTIAL,
        JpegMarkerCode.START_OF_FRAME_DIFFERENTIAL_PROGRESSIVE,
        JpegMarkerCode.START_OF_FRAME_DIFFERENTIAL_LOSSLESS,
        JpegMarkerCode.START_OF_FRAME_EXTENDED_ARITHMETIC,
        JpegMarkerCode.START_OF_FRAME_PROGRESSIVE_ARITHMETIC,
        JpegMarkerCode.START_OF_FRAME_LOSSLESS_ARITHMETIC,
    }
)


def check_parameter_coherent(params: JlsParameters) -> ApiResult:
    """Tell whether the frame description can be decoded."""
    if not 2 <= params.bits_per_sample <= 16:
        return ApiResult.PARAMETER_VALUE_NOT_SUPPORTED
    if not InterleaveMode.NONE <= params.interleave_mode <= InterleaveMode.SAMPLE:
        return ApiResult.INVALID_COMPRESSED_DATA
    if params.components == 4:
        if params.interleave_mode == InterleaveMode.SAMPLE:
            return ApiResult.PARAMETER_VALUE_NOT_SUPPORTED
        return ApiResult.OK
    if params.components == 3:
        return ApiResult.OK
    if params.components == 0:
        return ApiResult.INVALID_JLS_PARAMETERS
    if params.interleave_mode != InterleaveMode.NONE:
        return ApiResult.PARAMETER_VALUE_NOT_SUPPORTED
    return ApiResult.OK


class JpegStreamReader:
    """Reads markers from a JPEG-LS stream held in memory or in a binary file."""

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO]) -> None:
        if hasattr(source, "read"):
            self._stream = source
            self._data = None
        else:
            self._stream = None
            self._data = bytes(source)
        self._position = 0
        self._params = JlsParameters()
        self._rect = JlsRect()

    @property
    def params(self) -> JlsParameters:
        """The image description read so far."""
        return self._params

    @property
    def custom_preset(self) -> PresetCodingParameters:
        """Preset coding parameters from an LSE segment, zero when absent."""
        return self._params.custom

    @property
    def rect(self) -> JlsRect:
        return self._rect

    @property
    def position(self) -> int:
        """Number of bytes consumed."""
        return self._position

    def set_info(self, params: JlsParameters) -> None:
        self._params = copy.deepcopy(params)

    def set_rect(self, rect: JlsRect) -> None:
        self._rect = copy.deepcopy(rect)

    def read_byte(self) -> int:
        """Read one byte; running out of data is an error."""
        if self._stream is not None:
            chunk = self._stream.read(1)
            if not chunk:
                raise CharLSError(ApiResult.COMPRESSED_BUFFER_TOO_SMALL)
            value = chunk[0]
        else:
            if self._position >= len(self._data):
                raise CharLSError(ApiResult.COMPRESSED_BUFFER_TOO_SMALL)
            value = self._data[self._position]
        self._position += 1
        return value

    def _read_word(self) -> int:
        high = self.read_byte()
        return high * 256 + self.read_byte()

    def _read_bytes(self, count: int) -> bytes:
        return bytes(self.read_byte() for _ in range(count))

    def read_header(self) -> None:
        """Read all segments up to and including the first SOS marker."""
        if self._read_next_marker() != JpegMarkerCode.START_OF_IMAGE:
            raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)
        while True:
            marker = self._read_next_marker()
            if marker == JpegMarkerCode.START_OF_SCAN:
                return
            segment_length = self._read_word()
            bytes_read = self._read_marker(marker) + 2
            padding = segment_length - bytes_read
            if padding < 0:
                raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)
            self._read_bytes(padding)

    def _read_next_marker(self) -> int:
        value = self.read_byte()
        if value != 0xFF:
            raise CharLSError(
                ApiResult.MISSING_JPEG_MARKER_START,
                f"Expected JPEG Marker start byte 0xFF but the byte value was 0x{value:02X}",
            )
        # T.81, B.1.1.2: any number of 0xFF fill bytes may precede a marker
        while value == 0xFF:
            value = self.read_byte()
        return value

    def _read_marker(self, marker: int) -> int:
        if marker == JpegMarkerCode.START_OF_FRAME_JPEG_LS:
            return self._read_start_of_frame()
        if marker in (
            JpegMarkerCode.COMMENT,
            JpegMarkerCode.APPLICATION_DATA0,
            JpegMarkerCode.APPLICATION_DATA7,
        ):
            return 0
        if marker == JpegMarkerCode.JPEG_LS_PRESET_PARAMETERS:
            return self._read_preset_parameters()
        if marker == JpegMarkerCode.APPLICATION_DATA8:
            return self._read_color_transform()
        if marker in _UNSUPPORTED_FRAMES:
            raise CharLSError(
                ApiResult.UNSUPPORTED_ENCODING,
                f"JPEG encoding with marker {marker} is not supported.",
            )
        raise CharLSError(ApiResult.UNKNOWN_JPEG_MARKER, f"Unknown JPEG marker {marker} encountered.")

    def _read_start_of_frame(self) -> int:
        self._params.bits_per_sample = self.read_byte()
        self._params.height = self._read_word()
        self._params.width = self._read_word()
        self._params.components = self.read_byte()
        return 6

    def _read_preset_parameters(self) -> int:
        kind = self.read_byte()
        if kind == 1:
            custom = self._params.custom
            custom.maximum_sample_value = self._read_word()
            custom.threshold1 = self._read_word()
            custom.threshold2 = self._read_word()
            custom.threshold3 = self._read_word()
            custom.reset_value = self._read_word()
            return 11
        if kind in (2, 3, 4):
            raise CharLSError(
                ApiResult.UNSUPPORTED_ENCODING,
                f"JPEG-LS preset parameters with type {kind} are not supported.",
            )
        raise CharLSError(
            ApiResult.INVALID_JLS_PARAMETERS,
            f"JPEG-LS preset parameters with invalid type {kind} encountered.",
        )

    def _read_color_transform(self) -> int:
        if self._read_bytes(4) != b"mrfx":
            return 4
        xform = self.read_byte()
        if xform <= ColorTransformation.HP3:
            self._params.color_transformation = ColorTransformation(xform)
            return 5
        if xform in (4, 5):
            raise CharLSError(ApiResult.IMAGE_TYPE_NOT_SUPPORTED)
        raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)

    def read_start_of_scan(self, first_component: bool) -> None:
        """Read a scan header; for later components the SOS marker is read too."""
        if not first_component:
            if self.read_byte() != 0xFF:
                raise CharLSError(ApiResult.MISSING_JPEG_MARKER_START)
            if self.read_byte() != JpegMarkerCode.START_OF_SCAN:
                raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)
        self._read_word()  # segment length is not used
        component_count = self.read_byte()
        if component_count not in (1, self._params.components):
            raise CharLSError(ApiResult.PARAMETER_VALUE_NOT_SUPPORTED)
        self._read_bytes(2 * component_count)
        self._params.allowed_lossy_error = self.read_byte()
        mode = self.read_byte()
        if mode not in tuple(InterleaveMode):
            raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)
        self._params.interleave_mode = InterleaveMode(mode)
        if self.read_byte() != 0:
            raise CharLSError(ApiResult.INVALID_COMPRESSED_DATA)
        if self._params.stride == 0:
            width = self._rect.width if self._rect.width != 0 else self._params.width
            components = 1 if self._params.interleave_mode == InterleaveMode.NONE else self._params.components
            self._params.stride = components * width * ((self._params.bits_per_sample + 7) // 8)