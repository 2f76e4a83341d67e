from __future__ import annotations

import math

import numpy as np

from .config import BILATERAL_INTENSITY_SIGMA, BILATERAL_SPATIAL_SIGMA


def bilateral_denoise(
    rgba: np.ndarray,
    spatial_sigma: float = BILATERAL_SPATIAL_SIGMA,
    intensity_sigma: float = BILATERAL_INTENSITY_SIGMA,
) -> np.ndarray:
    """
    Edge-preserving smoothing of the color channels.

    Each pixel becomes the weighted mean of its square neighborhood of radius
    ceil(2 * spatial_sigma). Weight = spatial Gaussian on pixel offset times an
    intensity Gaussian on the summed absolute RGB difference to the center.
    Neighbors outside the image are skipped. A 4th (alpha) channel is copied
    through untouched. Returns a new uint8 array.
    """
    if rgba.ndim != 3 or rgba.shape[2] not in (3, 4):
        raise ValueError(f"Expected image (H,W,3|4), got shape={rgba.shape}")
    if spatial_sigma <= 0 or intensity_sigma <= 0:
        raise ValueError(f"Sigmas must be positive, got spatial={spatial_sigma} intensity={intensity_sigma}")

    out = rgba.copy()
    h, w = rgba.shape[:2]
    if h == 0 or w == 0:
        return out

    r = int(math.ceil(2.0 * spatial_sigma))
    center = rgba[..., :3].astype(np.float64)
    padded = np.pad(center, ((r, r), (r, r), (0, 0)))
    valid = np.pad(np.ones((h, w), dtype=np.float64), r)

    two_ss = 2.0 * spatial_sigma * spatial_sigma
    two_si = 2.0 * intensity_sigma * intensity_sigma

    acc = np.zeros_like(center)
    weight_sum = np.zeros((h, w), dtype=np.float64)
    for dy in range(-r, r + 1):
        for dx in range(-r, r + 1):
            nb = padded[r + dy : r + dy + h, r + dx : r + dx + w]
            spatial = math.exp(-(dx * dx + dy * dy) / two_ss)
            diff = np.abs(center - nb).sum(axis=-1)
            weight = spatial * np.exp(-(diff * diff) / two_si) * valid[r + dy : r + dy + h, r + dx : r + dx + w]
            acc += nb * weight[..., None]
            weight_sum += weight

    # The center pixel always contributes weight 1, so weight_sum > 0.
    smoothed = np.floor(acc / weight_sum[..., None] + 0.5)
    out[..., :3] = np.clip(smoothed, 0, 255).astype(np.uint8)
    return out
