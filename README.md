# medjpeg

Pure-Python tools for the JPEG variants found in medical image files.
The package has no runtime dependencies.

* `medjpeg.lossless` decodes lossless JPEG (ITU-T T.81, Start-Of-Frame 0xC3).
  It handles 1–16 bit greyscale and 8-bit three-component data, with the
  predictors of table H.1.
* The other modules are building blocks for JPEG-LS (ITU-T T.87) streams:
  * `medjpeg.jls_types`: result codes (`ApiResult`), `CharLSError`,
    `InterleaveMode`, `ColorTransformation`, `JpegMarkerCode`, the
    parameter dataclasses (`JlsParameters`, `PresetCodingParameters`,
    `JfifParameters`, `JlsRect`), `Triplet`/`Quad` and small helpers.
  * `medjpeg.colortransform`: the reversible HP1, HP2 and HP3 colour
    transforms, the identity transform and `TransformShifted` for bit
    depths other than 8 and 16.
  * `medjpeg.processline`: line converters between raw pixel buffers or
    binary streams and the per-line sample format.
  * `medjpeg.presets`: default preset thresholds (`compute_default`) and
    gradient quantization tables.
  * `medjpeg.streamreader`: `JpegStreamReader`, which parses the header and
    scan headers of a JPEG-LS stream.
  * `medjpeg.streamwriter` and `medjpeg.markersegment`: `JpegStreamWriter`
    and the SOF55, APP0 (JFIF), LSE, APP8 and SOS marker segments.
  * `medjpeg.bitwriter`: `BitStreamWriter`, which packs bit fields with the
    zero bit inserted after every 0xFF byte.

## Installing

```
pip install .
```

With the test requirements:

```
pip install .[test]
```

## Decoding lossless JPEG

```python
from medjpeg.lossless import decode_lossless_jpeg, JpegDecodeError

try:
    image = decode_lossless_jpeg("image.dcm", skip_bytes=1234, verbose=False, disk_bytes=0)
except JpegDecodeError as exc:
    print("cannot decode:", exc)
else:
    print(image.width, image.height, image.bits, image.frames)
```

`skip_bytes` is the offset of the JPEG stream in the file and `disk_bytes`
the compressed size, or 0 when it is not known. The result is a
`LosslessImage`: `pixels` holds `frames` planes of `width * height` samples
one after another, and `bits` is 8 or 16. `decode_lossless_bytes(data, verbose)`
decodes a stream that is already in memory. With `verbose=True` the decoder
prints what it finds in the header.

## Writing a JPEG-LS header

```python
from medjpeg.streamwriter import JpegStreamWriter
from medjpeg.markersegment import JpegMarkerSegment
from medjpeg.presets import compute_default

writer = JpegStreamWriter()
writer.add_segment(JpegMarkerSegment.create_start_of_frame(512, 512, 16, 1))
writer.add_segment(JpegMarkerSegment.create_preset_parameters(compute_default(65535, 0)))
stream = writer.write(1024)  # SOI, the segments, EOI; at most 1024 bytes
```

`write()` without a capacity lets the output grow as needed. Running out of
room raises `CharLSError` with `ApiResult.COMPRESSED_BUFFER_TOO_SMALL`.

## Reading a JPEG-LS header

```python
from medjpeg.streamreader import JpegStreamReader

reader = JpegStreamReader(data)   # bytes or a binary file object
reader.read_header()              # stops after the first SOS marker
reader.read_start_of_scan(True)
print(reader.params.width, reader.params.height, reader.params.interleave_mode)
```

## Bit output

```python
from medjpeg.bitwriter import BitStreamWriter

bits = BitStreamWriter()
bits.append(0b101, 3)
bits.append_ones(8)
bits.end_scan()
print(bits.getvalue())
```

## What the package does not do

There is no JPEG-LS sample coder: the package reads and writes JPEG-LS
headers and provides the transforms, line converters, presets and bit
output, but it cannot compress or decompress JPEG-LS image data on its own.
It does not parse DICOM files (the caller gives the offset of the JPEG
stream), writes no other image formats, and has no command-line program.

## Running the tests

```
pytest
```