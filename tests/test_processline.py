import array
import io

import pytest

from medjpeg.colortransform import TransformHp1, TransformHp2, TransformNone
from medjpeg.jls_types import ApiResult, CharLSError, InterleaveMode, JlsParameters, Quad, Triplet
from medjpeg.processline import (
    PostProcessSingleComponent,
    PostProcessSingleStream,
    ProcessLine,
    ProcessTransformed,
    byte_swap,
    transform_line,
    transform_line_to_quad,
    transform_line_to_triplet,
    transform_quad_to_line,
    transform_rgb_to_bgr,
    transform_triplet_to_line,
)


def _identity(v1, v2, v3):
    return Triplet(v1, v2, v3)


def test_byte_swap_pairs():
    assert byte_swap(b"\x01\x02\x03\x04") == b"\x02\x01\x04\x03"
    data = bytes(range(10))
    assert byte_swap(byte_swap(data)) == data


def test_byte_swap_odd_length():
    with pytest.raises(CharLSError) as info:
        byte_swap(b"\x01\x02\x03")
    assert info.value.result is ApiResult.INVALID_JLS_PARAMETERS


def test_rgb_to_bgr():
    samples = [1, 2, 3, 4, 5, 6]
    swapped = transform_rgb_to_bgr(samples, 3, 2)
    assert swapped == [3, 2, 1, 6, 5, 4]
    assert transform_rgb_to_bgr(swapped, 3, 2) == samples


def test_transform_line_applies_transform():
    transform = TransformHp1()
    pixels = [Triplet(1, 2, 3), Triplet(200, 100, 50)]
    out = transform_line(pixels, transform.forward)
    assert transform_line(out, transform.inverse) == pixels


def test_triplet_line_round_trip():
    pixels = [Triplet(1, 2, 3), Triplet(4, 5, 6), Triplet(7, 8, 9)]
    line = transform_triplet_to_line(pixels, 3, 4, _identity)
    assert line[0:3] == [1, 4, 7]
    assert line[4:7] == [2, 5, 8]
    assert transform_line_to_triplet(line, 4, 3, _identity) == pixels


def test_quad_line_round_trip():
    pixels = [Quad(1, 2, 3, 4), Quad(5, 6, 7, 8)]
    line = transform_quad_to_line(pixels, 2, 2, _identity)
    assert line == [1, 5, 2, 6, 3, 7, 4, 8]
    assert transform_line_to_quad(line, 2, 2, _identity) == pixels


def test_process_line_is_abstract():
    with pytest.raises(TypeError):
        ProcessLine()


def test_single_component_buffer_with_padding():
    raw = bytearray(b"abcXYdefXY")
    params = JlsParameters(stride=5)
    process = PostProcessSingleComponent(raw, params, 1)
    assert process.new_line_requested(3, 0) == b"abc"
    assert process.new_line_requested(3, 0) == b"def"

    out = bytearray(10)
    writer = PostProcessSingleComponent(out, params, 1)
    writer.new_line_decoded(b"abc", 3, 0)
    writer.new_line_decoded(b"def", 3, 0)
    assert out[0:3] == b"abc" and out[5:8] == b"def"


def test_single_component_buffer_overrun():
    process = PostProcessSingleComponent(bytearray(4), JlsParameters(stride=4), 2)
    with pytest.raises(CharLSError) as info:
        process.new_line_requested(3, 0)
    assert info.value.result is ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL


def test_single_stream_swaps_and_skips_padding():
    stream = io.BytesIO(b"\x01\x02\x03\x04XY\x05\x06\x07\x08")
    process = PostProcessSingleStream(stream, JlsParameters(stride=6), 2)
    assert process.new_line_requested(2, 0) == b"\x02\x01\x04\x03"
    assert process.new_line_requested(2, 0) == b"\x06\x05\x08\x07"


def test_single_stream_writes_and_runs_dry():
    out = io.BytesIO()
    process = PostProcessSingleStream(out, JlsParameters(stride=3), 1)
    process.new_line_decoded(b"xyz", 3, 0)
    assert out.getvalue() == b"xyz"
    empty = PostProcessSingleStream(io.BytesIO(b"a"), JlsParameters(stride=3), 1)
    with pytest.raises(CharLSError):
        empty.new_line_requested(3, 0)


def _params(mode, bits=8, bgr=False):
    return JlsParameters(
        width=4,
        height=2,
        bits_per_sample=bits,
        components=3,
        stride=4 * 3 * bits // 8,
        interleave_mode=mode,
        output_bgr=bgr,
    )


def test_transformed_line_mode_is_planar():
    image = bytearray(range(24))
    process = ProcessTransformed(image, _params(InterleaveMode.LINE), TransformNone())
    line = process.new_line_requested(4, 4)
    assert line == [0, 3, 6, 9, 1, 4, 7, 10, 2, 5, 8, 11]


@pytest.mark.parametrize("mode", [InterleaveMode.LINE, InterleaveMode.SAMPLE])
@pytest.mark.parametrize("bgr", [False, True])
def test_transformed_buffer_round_trip(mode, bgr):
    image = bytearray((i * 37) % 256 for i in range(24))
    params = _params(mode, bgr=bgr)
    encoder = ProcessTransformed(bytearray(image), params, TransformHp1())
    out = bytearray(24)
    decoder = ProcessTransformed(out, params, TransformHp1())
    for _ in range(2):
        line = encoder.new_line_requested(4, 4)
        decoder.new_line_decoded(line, 4, 4)
    assert out == image


def test_transformed_stream_round_trip_16_bit():
    values = [(i * 4099) % 65536 for i in range(24)]
    raw = array.array("H", values).tobytes()
    params = _params(InterleaveMode.LINE, bits=16)
    encoder = ProcessTransformed(io.BytesIO(raw), params, TransformHp2(bits=16))
    out = io.BytesIO()
    decoder = ProcessTransformed(out, params, TransformHp2(bits=16))
    for _ in range(2):
        decoder.new_line_decoded(encoder.new_line_requested(4, 4), 4, 4)
    assert out.getvalue() == raw


def test_transformed_stream_too_short():
    params = _params(InterleaveMode.SAMPLE)
    process = ProcessTransformed(io.BytesIO(b"\x00" * 5), params, TransformHp1())
    with pytest.raises(CharLSError) as info:
        process.new_line_requested(4, 4)
    assert info.value.result is ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL