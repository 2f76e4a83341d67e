from __future__ import annotations

import numpy as np

from .color import Color, rgb_array_to_lab


def delta_e_map(rgb: np.ndarray, background: Color) -> np.ndarray:
    """
    Per-pixel ΔE to `background`, float64 (H, W).
    """
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"Expected image (H,W,3|4), got shape={rgb.shape}")
    lab = rgb_array_to_lab(rgb[..., :3])
    bg_lab = rgb_array_to_lab(np.array(background, dtype=np.uint8).reshape(1, 3))[0]
    return np.sqrt(((lab - bg_lab) ** 2).sum(axis=-1))


def classify_pixels(rgb: np.ndarray, background: Color, threshold: float) -> np.ndarray:
    """
    Binary alpha map: 0.0 where ΔE(pixel, background) < threshold, else 1.0.

    This map is the ground truth later stages may only soften, never invert.
    """
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    distance = delta_e_map(rgb, background)
    return np.where(distance < float(threshold), 0.0, 1.0).astype(np.float32)


def transparent_ratio(alpha: np.ndarray) -> float:
    if alpha.size == 0:
        return 0.0
    return float((alpha == 0.0).mean())
