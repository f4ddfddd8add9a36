import io

import pytest

from medjpeg.jls_types import (
    ApiResult,
    CharLSError,
    ColorTransformation,
    InterleaveMode,
    JlsParameters,
    JlsRect,
)
from medjpeg.streamreader import JpegStreamReader, check_parameter_coherent

SOI = bytes([0xFF, 0xD8])


def sof(width, height, bits, components):
    body = bytes([bits, height >> 8, height & 0xFF, width >> 8, width & 0xFF, components])
    for index in range(components):
        body += bytes([index + 1, 0x11, 0])
    length = len(body) + 2
    return bytes([0xFF, 0xF7, length >> 8, length & 0xFF]) + body


def sos(component_count, near=0, ilv=0, transform=0, with_marker=True):
    body = bytes([component_count])
    for index in range(component_count):
        body += bytes([index + 1, 0])
    body += bytes([near, ilv, transform])
    length = len(body) + 2
    head = bytes([0xFF, 0xDA]) if with_marker else b""
    return head + bytes([length >> 8, length & 0xFF]) + body


def segment(marker, body):
    length = len(body) + 2
    return bytes([0xFF, marker, length >> 8, length & 0xFF]) + body


def read_error(data):
    with pytest.raises(CharLSError) as info:
        JpegStreamReader(data).read_header()
    return info.value.result


def test_header_reads_frame_description():
    reader = JpegStreamReader(SOI + sof(3, 2, 8, 1) + sos(1))
    reader.read_header()
    params = reader.params
    assert (params.width, params.height, params.bits_per_sample, params.components) == (3, 2, 8, 1)


def test_start_of_scan_sets_stride_and_mode():
    reader = JpegStreamReader(SOI + sof(3, 2, 8, 1) + sos(1, near=2))
    reader.read_header()
    reader.read_start_of_scan(True)
    assert reader.params.stride == 3
    assert reader.params.allowed_lossy_error == 2
    assert reader.params.interleave_mode == InterleaveMode.NONE


def test_line_interleaved_stride_covers_all_components():
    reader = JpegStreamReader(SOI + sof(5, 2, 12, 3) + sos(3, ilv=1))
    reader.read_header()
    reader.read_start_of_scan(True)
    assert reader.params.stride == 3 * 5 * 2
    assert reader.params.interleave_mode == InterleaveMode.LINE


def test_rect_width_is_used_for_stride():
    reader = JpegStreamReader(SOI + sof(10, 2, 8, 1) + sos(1))
    reader.set_rect(JlsRect(0, 0, 4, 2))
    reader.read_header()
    reader.read_start_of_scan(True)
    assert reader.params.stride == 4


def test_second_scan_needs_marker():
    data = SOI + sof(2, 2, 8, 3) + sos(1) + sos(1)
    reader = JpegStreamReader(data)
    reader.read_header()
    reader.read_start_of_scan(True)
    reader.read_start_of_scan(False)
    assert reader.position == len(data)


def test_second_scan_without_ff_fails():
    reader = JpegStreamReader(SOI + sof(2, 2, 8, 3) + sos(1) + b"\x00\xda")
    reader.read_header()
    reader.read_start_of_scan(True)
    with pytest.raises(CharLSError) as info:
        reader.read_start_of_scan(False)
    assert info.value.result == ApiResult.MISSING_JPEG_MARKER_START


def test_scan_with_wrong_component_count_fails():
    reader = JpegStreamReader(SOI + sof(2, 2, 8, 1) + sos(2))
    reader.read_header()
    with pytest.raises(CharLSError) as info:
        reader.read_start_of_scan(True)
    assert info.value.result == ApiResult.PARAMETER_VALUE_NOT_SUPPORTED


@pytest.mark.parametrize("ilv, transform", [(3, 0), (0, 1)])
def test_scan_with_bad_fields_fails(ilv, transform):
    reader = JpegStreamReader(SOI + sof(2, 2, 8, 1) + sos(1, ilv=ilv, transform=transform))
    reader.read_header()
    with pytest.raises(CharLSError) as info:
        reader.read_start_of_scan(True)
    assert info.value.result == ApiResult.INVALID_COMPRESSED_DATA


def test_preset_parameters_are_read():
    lse = segment(0xF8, bytes([1, 0, 0xFF, 0, 3, 0, 7, 0, 21, 0, 64]))
    reader = JpegStreamReader(SOI + lse + sof(2, 2, 8, 1) + sos(1))
    reader.read_header()
    custom = reader.custom_preset
    assert (custom.maximum_sample_value, custom.threshold1, custom.threshold2) == (255, 3, 7)
    assert (custom.threshold3, custom.reset_value) == (21, 64)


@pytest.mark.parametrize(
    "kind, result",
    [(2, ApiResult.UNSUPPORTED_ENCODING), (9, ApiResult.INVALID_JLS_PARAMETERS)],
)
def test_bad_preset_type(kind, result):
    assert read_error(SOI + segment(0xF8, bytes([kind]) + bytes(10))) == result


def test_color_transform_segment():
    reader = JpegStreamReader(SOI + segment(0xE8, b"mrfx\x02") + sof(2, 2, 8, 3) + sos(3, ilv=1))
    reader.read_header()
    assert reader.params.color_transformation == ColorTransformation.HP2


def test_foreign_app8_segment_is_skipped():
    reader = JpegStreamReader(SOI + segment(0xE8, b"abcdXYZ") + sof(2, 2, 8, 1) + sos(1))
    reader.read_header()
    assert reader.params.color_transformation == ColorTransformation.NONE
    assert reader.params.width == 2


@pytest.mark.parametrize(
    "xform, result",
    [(4, ApiResult.IMAGE_TYPE_NOT_SUPPORTED), (7, ApiResult.INVALID_COMPRESSED_DATA)],
)
def test_bad_color_transform(xform, result):
    assert read_error(SOI + segment(0xE8, b"mrfx" + bytes([xform]))) == result


def test_comment_and_app0_are_skipped():
    data = SOI + segment(0xFE, b"hello") + segment(0xE0, b"JFIF\x00") + sof(4, 1, 8, 1) + sos(1)
    reader = JpegStreamReader(data)
    reader.read_header()
    assert reader.params.width == 4


def test_fill_bytes_before_marker():
    reader = JpegStreamReader(SOI + b"\xff" + sof(3, 3, 8, 1) + sos(1))
    reader.read_header()
    assert reader.params.height == 3


def test_missing_start_of_image():
    assert read_error(sof(2, 2, 8, 1)) == ApiResult.INVALID_COMPRESSED_DATA


def test_missing_marker_start():
    with pytest.raises(CharLSError) as info:
        JpegStreamReader(b"\x12\xd8").read_header()
    assert info.value.result == ApiResult.MISSING_JPEG_MARKER_START
    assert "0x12" in str(info.value)


def test_lossless_jpeg_frame_is_unsupported():
    assert read_error(SOI + segment(0xC3, bytes(6))) == ApiResult.UNSUPPORTED_ENCODING


def test_unknown_marker():
    assert read_error(SOI + segment(0x01, b"")) == ApiResult.UNKNOWN_JPEG_MARKER


def test_segment_shorter_than_content():
    data = SOI + bytes([0xFF, 0xF7, 0, 5, 8, 0, 2, 0, 2, 1])
    assert read_error(data) == ApiResult.INVALID_COMPRESSED_DATA


def test_truncated_stream():
    assert read_error(SOI + sof(2, 2, 8, 1)[:6]) == ApiResult.COMPRESSED_BUFFER_TOO_SMALL


def test_reads_from_binary_stream():
    reader = JpegStreamReader(io.BytesIO(SOI + sof(7, 5, 16, 1) + sos(1)))
    reader.read_header()
    reader.read_start_of_scan(True)
    assert (reader.params.width, reader.params.height) == (7, 5)
    assert reader.params.stride == 14


def test_read_byte_past_end_of_stream():
    reader = JpegStreamReader(io.BytesIO(b"\x01"))
    assert reader.read_byte() == 1
    with pytest.raises(CharLSError) as info:
        reader.read_byte()
    assert info.value.result == ApiResult.COMPRESSED_BUFFER_TOO_SMALL


def test_set_info_copies_parameters():
    params = JlsParameters(width=9, height=4, bits_per_sample=8, components=1)
    reader = JpegStreamReader(b"")
    reader.set_info(params)
    params.width = 1
    assert reader.params.width == 9


@pytest.mark.parametrize(
    "params, result",
    [
        (JlsParameters(bits_per_sample=1, components=1), ApiResult.PARAMETER_VALUE_NOT_SUPPORTED),
        (JlsParameters(bits_per_sample=17, components=1), ApiResult.PARAMETER_VALUE_NOT_SUPPORTED),
        (JlsParameters(bits_per_sample=8, components=1), ApiResult.OK),
        (JlsParameters(bits_per_sample=8, components=0), ApiResult.INVALID_JLS_PARAMETERS),
        (
            JlsParameters(bits_per_sample=8, components=3, interleave_mode=InterleaveMode.SAMPLE),
            ApiResult.OK,
        ),
        (
            JlsParameters(bits_per_sample=8, components=4, interleave_mode=InterleaveMode.SAMPLE),
            ApiResult.PARAMETER_VALUE_NOT_SUPPORTED,
        ),
        (
            JlsParameters(bits_per_sample=8, components=4, interleave_mode=InterleaveMode.LINE),
            ApiResult.OK,
        ),
        (
            JlsParameters(bits_per_sample=8, components=2, interleave_mode=InterleaveMode.LINE),
            ApiResult.PARAMETER_VALUE_NOT_SUPPORTED,
        ),
    ],
)
def test_check_parameter_coherent(params, result):
    assert check_parameter_coherent(params) == result