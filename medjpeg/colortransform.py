"""Lossless colour transforms (HP1, HP2, HP3) used around JPEG-LS line coding.

Each transform works on samples of ``bits`` (8 or 16) bits; results are
truncated to that width.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from medjpeg.jls_types import Quad, Triplet

__all__ = [
    "TransformNone",
    "TransformHp1",
    "TransformHp2",
    "TransformHp3",
    "TransformShifted",
]


@dataclass(frozen=True)
class _SampleTransform:
    bits: int = 8

    def __post_init__(self) -> None:
        if self.bits not in (8, 16):
            raise ValueError(f"sample width must be 8 or 16 bits, not {self.bits}")

    @property
    def _range(self) -> int:
        return 1 << self.bits

    def _cast(self, value: int) -> int:
        return value & (self._range - 1)

    def _triplet(self, v1: int, v2: int, v3: int) -> Triplet:
        return Triplet(self._cast(v1), self._cast(v2), self._cast(v3))


@dataclass(frozen=True)
class TransformNone(_SampleTransform):
    """Identity transform."""

    def forward(self, v1: int, v2: int, v3: int) -> Triplet:
        return self._triplet(v1, v2, v3)

    def inverse(self, v1: int, v2: int, v3: int) -> Triplet:
        return self._triplet(v1, v2, v3)


@dataclass(frozen=True)
class TransformHp1(_SampleTransform):
    """HP1: red and blue relative to green."""

    def forward(self, red: int, green: int, blue: int) -> Triplet:
        half = self._range // 2
        return self._triplet(red - green + half, green, blue - green + half)

    def inverse(self, v1: int, v2: int, v3: int) -> Triplet:
        half = self._range // 2
        return self._triplet(v1 + v2 - half, v2, v3 + v2 - half)


@dataclass(frozen=True)
class TransformHp2(_SampleTransform):
    """HP2: red relative to green, blue relative to their mean."""

    def forward(self, red: int, green: int, blue: int) -> Triplet:
        half = self._range // 2
        return self._triplet(red - green + half, green, blue - ((red + green) >> 1) - half)

    def inverse(self, v1: int, v2: int, v3: int) -> Triplet:
        half = self._range // 2
        red = self._cast(v1 + v2 - half)
        green = self._cast(v2)
        blue = self._cast(v3 + ((red + green) >> 1) - half)
        return Triplet(red, green, blue)


@dataclass(frozen=True)
class TransformHp3(_SampleTransform):
    """HP3: a reversible luminance/chrominance style transform."""

    def forward(self, red: int, green: int, blue: int) -> Triplet:
        half = self._range // 2
        v2 = self._cast(blue - green + half)
        v3 = self._cast(red - green + half)
        v1 = self._cast(green + ((v2 + v3) >> 2) - self._range // 4)
        return Triplet(v1, v2, v3)

    def inverse(self, v1: int, v2: int, v3: int) -> Triplet:
        half = self._range // 2
        green = v1 - ((v3 + v2) >> 2) + self._range // 4
        return self._triplet(v3 + green - half, green, v2 + green - half)


_Inner = Union[TransformNone, TransformHp1, TransformHp2, TransformHp3]


@dataclass(frozen=True)
class TransformShifted:
    """Apply ``transform`` to samples moved ``shift`` bits towards the high bit.

    Lets the HP transforms work on bit depths other than 8 and 16.
    """

    transform: _Inner
    shift: int

    @property
    def bits(self) -> int:
        return self.transform.bits

    def _shift_back(self, result: Triplet) -> Triplet:
        s = self.shift
        return Triplet(result.v1 >> s, result.v2 >> s, result.v3 >> s)

    def _alpha(self, value: int) -> int:
        return value & ((1 << self.bits) - 1)

    def forward(self, red: int, green: int, blue: int) -> Triplet:
        s = self.shift
        return self._shift_back(self.transform.forward(red << s, green << s, blue << s))

    def inverse(self, v1: int, v2: int, v3: int) -> Triplet:
        s = self.shift
        return self._shift_back(self.transform.inverse(v1 << s, v2 << s, v3 << s))

    def forward_quad(self, red: int, green: int, blue: int, alpha: int) -> Quad:
        return Quad.from_triplet(self.forward(red, green, blue), self._alpha(alpha))

    def inverse_quad(self, v1: int, v2: int, v3: int, v4: int) -> Quad:
        return Quad.from_triplet(self.inverse(v1, v2, v3), self._alpha(v4))