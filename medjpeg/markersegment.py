"""Marker segments of a JPEG-LS stream: SOF55, APP0 (JFIF), LSE, APP8, SOS."""

from __future__ import annotations

from dataclasses import dataclass

from medjpeg.jls_types import (
    ApiResult,
    CharLSError,
    ColorTransformation,
    InterleaveMode,
    JfifParameters,
    JpegMarkerCode,
    PresetCodingParameters,
    push_word,
)
from medjpeg.streamwriter import JpegSegment, JpegStreamWriter

__all__ = ["JpegMarkerSegment"]


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValueError(message)


@dataclass(frozen=True)
class JpegMarkerSegment(JpegSegment):
    """A marker followed by a length field and ``content``."""

    marker_code: JpegMarkerCode
    content: bytes

    def serialize(self, writer: JpegStreamWriter) -> None:
        writer.write_byte(0xFF)
        writer.write_byte(int(self.marker_code))
        writer.write_word(len(self.content) + 2)
        writer.write_bytes(self.content)

    @classmethod
    def create_start_of_frame(
        cls, width: int, height: int, bits_per_sample: int, component_count: int
    ) -> "JpegMarkerSegment":
        """Frame header as defined in T.87, C.2.2 and T.81, B.2.2."""
        _require(0 <= width <= 0xFFFF, f"width out of range: {width}")
        _require(0 <= height <= 0xFFFF, f"height out of range: {height}")
        _require(0 < bits_per_sample <= 0xFF, f"bits per sample out of range: {bits_per_sample}")
        _require(0 < component_count <= 0xFE, f"component count out of range: {component_count}")
        content: list[int] = [bits_per_sample]
        push_word(content, height)
        push_word(content, width)
        content.append(component_count)
        for component in range(component_count):
            # identifier, sampling factors 1x1, no quantization table
            content.extend((component + 1, 0x11, 0))
        return cls(JpegMarkerCode.START_OF_FRAME_JPEG_LS, bytes(content))

    @classmethod
    def create_jfif(cls, params: JfifParameters) -> "JpegMarkerSegment":
        """APP0 segment in the JPEG File Interchange Format, v1.02."""
        _require(params.units in (0, 1, 2), f"invalid units: {params.units}")
        _require(params.x_density > 0, "x density must be positive")
        _require(params.y_density > 0, "y density must be positive")
        _require(0 <= params.x_thumbnail < 256, "x thumbnail out of range")
        _require(0 <= params.y_thumbnail < 256, "y thumbnail out of range")
        content: list[int] = list(b"JFIF\0")
        push_word(content, params.version)
        content.append(params.units)
        push_word(content, params.x_density)
        push_word(content, params.y_density)
        content.append(params.x_thumbnail)
        content.append(params.y_thumbnail)
        if params.x_thumbnail > 0:
            if params.thumbnail is None:
                raise CharLSError(
                    ApiResult.INVALID_JLS_PARAMETERS,
                    "params.x_thumbnail is > 0 but params.thumbnail is missing",
                )
            size = 3 * params.x_thumbnail * params.y_thumbnail
            if len(params.thumbnail) < size:
                raise CharLSError(ApiResult.INVALID_JLS_PARAMETERS, "thumbnail data too short")
            content.extend(params.thumbnail[:size])
        return cls(JpegMarkerCode.APPLICATION_DATA0, bytes(content))

    @classmethod
    def create_preset_parameters(cls, params: PresetCodingParameters) -> "JpegMarkerSegment":
        """LSE segment holding JPEG-LS preset coding parameters (ID 1)."""
        content: list[int] = [1]
        for value in (
            params.maximum_sample_value,
            params.threshold1,
            params.threshold2,
            params.threshold3,
            params.reset_value,
        ):
            push_word(content, value)
        return cls(JpegMarkerCode.JPEG_LS_PRESET_PARAMETERS, bytes(content))

    @classmethod
    def create_color_transform(cls, transformation: ColorTransformation) -> "JpegMarkerSegment":
        """APP8 segment naming the colour transform of the HP extension."""
        return cls(JpegMarkerCode.APPLICATION_DATA8, b"mrfx" + bytes([int(transformation) & 0xFF]))

    @classmethod
    def create_start_of_scan(
        cls,
        component_index: int,
        component_count: int,
        allowed_lossy_error: int,
        interleave_mode: InterleaveMode,
    ) -> "JpegMarkerSegment":
        """Scan header as defined in T.87, C.2.3 and T.81, B.2.3."""
        _require(component_index >= 0, f"component index out of range: {component_index}")
        _require(component_count > 0, f"component count out of range: {component_count}")
        content: list[int] = [component_count & 0xFF]
        for i in range(component_count):
            content.extend(((component_index + i) & 0xFF, 0))  # no mapping table
        content.append(allowed_lossy_error & 0xFF)
        content.append(int(interleave_mode) & 0xFF)
        content.append(0)  # point transform
        return cls(JpegMarkerCode.START_OF_SCAN, bytes(content))