from __future__ import annotations

import math
from typing import NamedTuple, Sequence, Tuple

import numpy as np

from .config import D65_WHITE, LAB_EPSILON, LAB_KAPPA, SRGB_TO_XYZ

Color = Tuple[int, int, int]


class LabColor(NamedTuple):
    L: float
    a: float
    b: float


class HsvColor(NamedTuple):
    h: float
    s: float
    v: float


_MATRIX = np.array(SRGB_TO_XYZ, dtype=np.float64)
_WHITE = np.array(D65_WHITE, dtype=np.float64)


def clamp_color(values: Sequence[float]) -> Color:
    """Round and clamp three channel values to a valid 8-bit Color."""
    if len(values) != 3:
        raise ValueError(f"Expected 3 channels, got {len(values)}")
    r, g, b = (int(min(255, max(0, round(float(v))))) for v in values)
    return (r, g, b)


def _lab_f(t):
    return np.where(t > LAB_EPSILON, np.cbrt(t), LAB_KAPPA * t + 16.0 / 116.0)


def rgb_array_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    Convert an (..., 3) uint8 sRGB array to CIE Lab (D65), float64 (..., 3).
    """
    if rgb.shape[-1] != 3:
        raise ValueError(f"Expected trailing RGB axis of size 3, got shape={rgb.shape}")

    v = rgb.astype(np.float64) / 255.0
    linear = np.where(v > 0.04045, ((v + 0.055) / 1.055) ** 2.4, v / 12.92)
    xyz = linear @ _MATRIX.T
    f = _lab_f(xyz / _WHITE)

    lab = np.empty_like(f)
    lab[..., 0] = 116.0 * f[..., 1] - 16.0
    lab[..., 1] = 500.0 * (f[..., 0] - f[..., 1])
    lab[..., 2] = 200.0 * (f[..., 1] - f[..., 2])
    return lab


def rgb_to_lab(color: Color) -> LabColor:
    L, a, b = rgb_array_to_lab(np.array(color, dtype=np.uint8).reshape(1, 3))[0]
    return LabColor(float(L), float(a), float(b))


def rgb_to_hsv(color: Color) -> HsvColor:
    """
    h in [0, 360), s and v in [0, 100]. Diagnostic only; never used to classify.
    """
    r, g, b = (c / 255.0 for c in color)
    hi = max(r, g, b)
    lo = min(r, g, b)
    diff = hi - lo

    s = 0.0 if hi == 0 else diff / hi * 100.0
    v = hi * 100.0
    h = 0.0
    if diff != 0:
        if hi == r:
            h = ((g - b) / diff + (6.0 if g < b else 0.0)) * 60.0
        elif hi == g:
            h = ((b - r) / diff + 2.0) * 60.0
        else:
            h = ((r - g) / diff + 4.0) * 60.0
    return HsvColor(h % 360.0, s, v)


def perceptual_distance(c1: Color, c2: Color) -> float:
    """ΔE (CIE76): Euclidean distance between two colors in Lab space."""
    l1 = rgb_to_lab(c1)
    l2 = rgb_to_lab(c2)
    return math.sqrt((l1.L - l2.L) ** 2 + (l1.a - l2.a) ** 2 + (l1.b - l2.b) ** 2)


def parse_color(text: str) -> Color:
    """
    Parse "#rrggbb", "rrggbb", "#rgb" or "r,g,b" into a Color.
    """
    s = text.strip()
    if "," in s:
        parts = [p.strip() for p in s.split(",")]
        if len(parts) != 3:
            raise ValueError(f"Expected 'r,g,b', got {text!r}")
        try:
            values = [int(p) for p in parts]
        except ValueError as e:
            raise ValueError(f"Invalid RGB color: {text!r}") from e
        if any(v < 0 or v > 255 for v in values):
            raise ValueError(f"RGB channels must be in [0,255], got {text!r}")
        return (values[0], values[1], values[2])

    hex_part = s[1:] if s.startswith("#") else s
    if len(hex_part) == 3:
        hex_part = "".join(ch * 2 for ch in hex_part)
    if len(hex_part) != 6:
        raise ValueError(f"Invalid hex color: {text!r}")
    try:
        return (int(hex_part[0:2], 16), int(hex_part[2:4], 16), int(hex_part[4:6], 16))
    except ValueError as e:
        raise ValueError(f"Invalid hex color: {text!r}") from e
