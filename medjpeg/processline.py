"""Line conversion between raw pixel buffers and the codec's line format.

The codec works one line at a time. These classes hand it lines taken from
raw pixel data and put decoded lines back, applying colour transforms,
component (de)interleaving, byte swapping and line padding on the way.
"""

from __future__ import annotations

import abc
import array
import io
from typing import BinaryIO, Callable, Iterable, Sequence, Union

from medjpeg.jls_types import (
    ApiResult,
    CharLSError,
    InterleaveMode,
    JlsParameters,
    Quad,
    Triplet,
)

__all__ = [
    "ProcessLine",
    "PostProcessSingleComponent",
    "PostProcessSingleStream",
    "ProcessTransformed",
    "byte_swap",
    "transform_rgb_to_bgr",
    "transform_line",
    "transform_line_to_triplet",
    "transform_triplet_to_line",
    "transform_line_to_quad",
    "transform_quad_to_line",
]

TripletTransform = Callable[[int, int, int], Triplet]
RawPixels = Union[bytearray, memoryview, BinaryIO]

_TYPE_CODES = {1: "B", 2: "H"}


def _chunks(samples: Iterable[int], size: int) -> list[tuple[int, ...]]:
    """Group a flat sample sequence into tuples of ``size``."""
    return list(zip(*[iter(samples)] * size))


def _flatten(pixels: Iterable[Sequence[int]]) -> list[int]:
    return [value for pixel in pixels for value in pixel]


def _unpack(data: bytes, bytes_per_sample: int) -> list[int]:
    samples = array.array(_TYPE_CODES[bytes_per_sample])
    samples.frombytes(bytes(data))
    return samples.tolist()


def _pack(samples: Sequence[int], bytes_per_sample: int) -> bytes:
    return array.array(_TYPE_CODES[bytes_per_sample], samples).tobytes()


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = bytearray()
    while len(data) < count:
        chunk = stream.read(count - len(data))
        if not chunk:
            raise CharLSError(
                ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL,
                f"No more bytes available in input buffer, still needing {count - len(data)}",
            )
        data += chunk
    return bytes(data)


def _write_all(stream: BinaryIO, data: bytes) -> None:
    written = stream.write(data)
    if written != len(data):
        raise CharLSError(ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL)


def byte_swap(data: bytes) -> bytes:
    """Swap the two bytes of every 16-bit word."""
    if len(data) % 2:
        raise CharLSError(
            ApiResult.INVALID_JLS_PARAMETERS,
            f"An odd number of bytes ({len(data)}) cannot be swapped.",
        )
    swapped = bytearray(len(data))
    swapped[0::2] = data[1::2]
    swapped[1::2] = data[0::2]
    return bytes(swapped)


def transform_rgb_to_bgr(samples: Sequence[int], samples_per_pixel: int, pixel_count: int) -> list[int]:
    """Exchange the first and third sample of each of ``pixel_count`` pixels."""
    result = list(samples)
    for start in range(0, pixel_count * samples_per_pixel, samples_per_pixel):
        result[start], result[start + 2] = result[start + 2], result[start]
    return result


def transform_line(source: Iterable[Sequence[int]], transform: TripletTransform) -> list[Triplet]:
    """Apply ``transform`` to every pixel of an interleaved line."""
    return [transform(*pixel[:3]) for pixel in source]


def transform_line_to_triplet(
    source: Sequence[int], stride_in: int, pixel_count: int, transform: TripletTransform
) -> list[Triplet]:
    """Combine three planes of ``stride_in`` samples into transformed pixels."""
    count = min(pixel_count, stride_in)
    planes = (source[k * stride_in : k * stride_in + count] for k in range(3))
    return [transform(*pixel) for pixel in zip(*planes)]


def transform_triplet_to_line(
    source: Sequence[Sequence[int]], pixel_count: int, stride_out: int, transform: TripletTransform
) -> list[int]:
    """Split transformed pixels into three planes of ``stride_out`` samples."""
    line = [0] * (3 * stride_out)
    for x, pixel in enumerate(source[: min(stride_out, pixel_count)]):
        t = transform(*pixel[:3])
        line[x], line[x + stride_out], line[x + 2 * stride_out] = t
    return line


def transform_line_to_quad(
    source: Sequence[int], stride_in: int, pixel_count: int, transform: TripletTransform
) -> list[Quad]:
    """Combine four planes into pixels, transforming the first three samples."""
    count = min(pixel_count, stride_in)
    planes = (source[k * stride_in : k * stride_in + count] for k in range(4))
    return [Quad.from_triplet(transform(v1, v2, v3), v4) for v1, v2, v3, v4 in zip(*planes)]


def transform_quad_to_line(
    source: Sequence[Sequence[int]], pixel_count: int, stride_out: int, transform: TripletTransform
) -> list[int]:
    """Split pixels into four planes, transforming the first three samples."""
    line = [0] * (4 * stride_out)
    for x, pixel in enumerate(source[: min(stride_out, pixel_count)]):
        v1, v2, v3 = transform(pixel[0], pixel[1], pixel[2])
        for plane, value in enumerate((v1, v2, v3, pixel[3])):
            line[x + plane * stride_out] = value
    return line


class ProcessLine(abc.ABC):
    """Supplies lines to encode and accepts decoded lines."""

    @abc.abstractmethod
    def new_line_requested(self, pixel_count: int, dest_stride: int):
        """Return the next line of ``pixel_count`` pixels to encode."""

    @abc.abstractmethod
    def new_line_decoded(self, source, pixel_count: int, source_stride: int) -> None:
        """Store a decoded line of ``pixel_count`` pixels."""


class _BufferCursor:
    """Position in an in-memory pixel buffer, moved one line stride at a time."""

    def __init__(self, buffer: Union[bytearray, memoryview], stride: int) -> None:
        self._buffer = buffer
        self._stride = stride
        self._position = 0

    def _check(self, count: int) -> None:
        if self._position + count > len(self._buffer):
            raise CharLSError(ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL)

    def take(self, count: int) -> bytes:
        self._check(count)
        data = bytes(self._buffer[self._position : self._position + count])
        self._position += self._stride
        return data

    def put(self, data: bytes) -> None:
        self._check(len(data))
        self._buffer[self._position : self._position + len(data)] = data
        self._position += self._stride


class PostProcessSingleComponent(ProcessLine):
    """Copies lines of one component to and from an in-memory buffer."""

    def __init__(self, raw: Union[bytearray, memoryview], params: JlsParameters, bytes_per_pixel: int) -> None:
        self._cursor = _BufferCursor(raw, params.stride)
        self._bytes_per_pixel = bytes_per_pixel

    def new_line_requested(self, pixel_count: int, dest_stride: int) -> bytes:
        return self._cursor.take(pixel_count * self._bytes_per_pixel)

    def new_line_decoded(self, source: bytes, pixel_count: int, source_stride: int) -> None:
        count = pixel_count * self._bytes_per_pixel
        if len(source) < count:
            raise CharLSError(ApiResult.UNCOMPRESSED_BUFFER_TOO_SMALL)
        self._cursor.put(bytes(source[:count]))


class PostProcessSingleStream(ProcessLine):
    """Reads and writes lines of one component through a binary stream.

    Requested 16-bit lines are byte swapped; line padding in the stream is
    skipped.
    """

    def __init__(self, stream: BinaryIO, params: JlsParameters, bytes_per_pixel: int) -> None:
        self._stream = stream
        self._bytes_per_pixel = bytes_per_pixel
        self._bytes_per_line = params.stride

    def new_line_requested(self, pixel_count: int, dest_stride: int) -> bytes:
        count = pixel_count * self._bytes_per_pixel
        data = _read_exact(self._stream, count)
        if self._bytes_per_pixel == 2:
            data = byte_swap(data)
        padding = self._bytes_per_line - count
        if padding > 0:
            self._stream.seek(padding, io.SEEK_CUR)
        return data

    def new_line_decoded(self, source: bytes, pixel_count: int, source_stride: int) -> None:
        _write_all(self._stream, bytes(source[: pixel_count * self._bytes_per_pixel]))


class ProcessTransformed(ProcessLine):
    """Handles three- and four-component lines with a colour transform.

    Raw pixels are interleaved samples in native byte order, held either in
    a writable buffer (advanced by ``params.stride`` per line) or in a
    binary stream. Lines handed to the codec are flat sample lists: pixel
    interleaved in sample mode, one plane of ``stride`` samples per
    component otherwise.
    """

    def __init__(self, raw: RawPixels, params: JlsParameters, transform) -> None:
        self._params = params
        self._transform = transform
        self._bytes_per_sample = transform.bits // 8
        if hasattr(raw, "read") or hasattr(raw, "write"):
            self._stream = raw
            self._cursor = None
        else:
            self._stream = None
            self._cursor = _BufferCursor(raw, params.stride)

    def _line_bytes(self, pixel_count: int) -> int:
        return pixel_count * self._params.components * self._bytes_per_sample

    def new_line_requested(self, pixel_count: int, dest_stride: int) -> list[int]:
        count = self._line_bytes(pixel_count)
        data = _read_exact(self._stream, count) if self._stream else self._cursor.take(count)
        return self._encode(_unpack(data, self._bytes_per_sample), pixel_count, dest_stride)

    def new_line_decoded(self, source: Sequence[int], pixel_count: int, source_stride: int) -> None:
        samples = self._decode(source, pixel_count, source_stride)
        data = _pack(samples, self._bytes_per_sample)
        if self._stream:
            _write_all(self._stream, data)
        else:
            self._cursor.put(data)

    def _encode(self, samples: list[int], pixel_count: int, dest_stride: int) -> list[int]:
        params = self._params
        forward = self._transform.forward
        if params.output_bgr:
            samples = transform_rgb_to_bgr(samples, params.components, pixel_count)
        if params.components == 3:
            pixels = _chunks(samples, 3)
            if params.interleave_mode == InterleaveMode.SAMPLE:
                return _flatten(transform_line(pixels, forward))
            return transform_triplet_to_line(pixels, pixel_count, dest_stride, forward)
        if params.components == 4 and params.interleave_mode == InterleaveMode.LINE:
            return transform_quad_to_line(_chunks(samples, 4), pixel_count, dest_stride, forward)
        return [0] * (dest_stride * params.components)

    def _decode(self, source: Sequence[int], pixel_count: int, source_stride: int) -> list[int]:
        params = self._params
        inverse = self._transform.inverse
        if params.components == 3:
            if params.interleave_mode == InterleaveMode.SAMPLE:
                samples = _flatten(transform_line(_chunks(source, 3), inverse))
            else:
                samples = _flatten(transform_line_to_triplet(source, source_stride, pixel_count, inverse))
        elif params.components == 4 and params.interleave_mode == InterleaveMode.LINE:
            samples = _flatten(transform_line_to_quad(source, source_stride, pixel_count, inverse))
        else:
            samples = [0] * (pixel_count * params.components)
        if params.output_bgr:
            samples = transform_rgb_to_bgr(samples, params.components, pixel_count)
        return samples