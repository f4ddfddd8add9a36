"""Default JPEG-LS preset coding parameters and gradient quantization tables."""

from __future__ import annotations

from medjpeg.jls_types import PresetCodingParameters

__all__ = [
    "DEFAULT_THRESHOLD1",
    "DEFAULT_THRESHOLD2",
    "DEFAULT_THRESHOLD3",
    "DEFAULT_RESET_VALUE",
    "clamp",
    "compute_default",
    "quantize_gradient",
    "create_quantization_lut",
]

# ISO/IEC 14495-1, C.2.4.1.1, table C.3
DEFAULT_THRESHOLD1 = 3
DEFAULT_THRESHOLD2 = 7
DEFAULT_THRESHOLD3 = 21
DEFAULT_RESET_VALUE = 64


def clamp(i: int, j: int, maximum_sample_value: int) -> int:
    """Clamping function of ISO/IEC 14495-1, figure C.3."""
    if i > maximum_sample_value or i < j:
        return j
    return i


def compute_default(maximum_sample_value: int, allowed_lossy_error: int) -> PresetCodingParameters:
    """Default thresholds and reset value for the given sample range and NEAR."""
    factor = (min(maximum_sample_value, 4095) + 128) // 256
    threshold1 = clamp(
        factor * (DEFAULT_THRESHOLD1 - 2) + 2 + 3 * allowed_lossy_error,
        allowed_lossy_error + 1,
        maximum_sample_value,
    )
    threshold2 = clamp(
        factor * (DEFAULT_THRESHOLD2 - 3) + 3 + 5 * allowed_lossy_error,
        threshold1,
        maximum_sample_value,
    )
    threshold3 = clamp(
        factor * (DEFAULT_THRESHOLD3 - 4) + 4 + 7 * allowed_lossy_error,
        threshold2,
        maximum_sample_value,
    )
    return PresetCodingParameters(
        maximum_sample_value=maximum_sample_value,
        threshold1=threshold1,
        threshold2=threshold2,
        threshold3=threshold3,
        reset_value=DEFAULT_RESET_VALUE,
    )


def quantize_gradient(preset: PresetCodingParameters, near: int, di: int) -> int:
    """Map a local gradient ``di`` to one of the regions -4..4."""
    if di <= -preset.threshold3:
        return -4
    if di <= -preset.threshold2:
        return -3
    if di <= -preset.threshold1:
        return -2
    if di < -near:
        return -1
    if di <= near:
        return 0
    if di < preset.threshold1:
        return 1
    if di < preset.threshold2:
        return 2
    if di < preset.threshold3:
        return 3
    return 4


def create_quantization_lut(bits: int) -> list[int]:
    """Lossless quantization table for ``bits``-bit samples.

    The entry for a difference ``d`` in ``-range..range-1`` is at index
    ``range + d``, where ``range`` is ``2**bits``.
    """
    preset = compute_default((1 << bits) - 1, 0)
    sample_range = preset.maximum_sample_value + 1
    return [quantize_gradient(preset, 0, diff) for diff in range(-sample_range, sample_range)]