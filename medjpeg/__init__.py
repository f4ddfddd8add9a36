"""Lossless JPEG decoding and JPEG-LS header, transform and bit-writing building blocks."""

__version__ = "0.1.0"