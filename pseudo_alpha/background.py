from __future__ import annotations

import logging

import numpy as np

from .color import Color
from .config import CORNER_SAMPLE_DIVISOR, CORNER_SAMPLE_MAX, FALLBACK_BACKGROUND, QUANTIZE_STEP

logger = logging.getLogger(__name__)


def corner_region_size(height: int, width: int) -> int:
    return max(1, min(CORNER_SAMPLE_MAX, min(width, height) // CORNER_SAMPLE_DIVISOR))


def corner_samples(rgb: np.ndarray) -> np.ndarray:
    """
    Collect RGB samples from the four image corners.

    Order: top-left, top-right, bottom-left, bottom-right; row-major inside each
    square region. Returns a uint8 array of shape (N, 3), N == 0 for empty images.
    """
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"Expected image (H,W,3|4), got shape={rgb.shape}")

    h, w = rgb.shape[:2]
    if h == 0 or w == 0:
        return np.zeros((0, 3), dtype=np.uint8)

    n = corner_region_size(h, w)
    origins = [(0, 0), (0, w - n), (h - n, 0), (h - n, w - n)]
    regions = [rgb[y : y + n, x : x + n, :3].reshape(-1, 3) for y, x in origins]
    return np.concatenate(regions, axis=0).astype(np.uint8, copy=False)


def quantize(samples: np.ndarray, step: int = QUANTIZE_STEP) -> np.ndarray:
    """Floor every channel to a multiple of `step` to merge near-duplicate shades."""
    return (samples // step) * step


def detect_background_color(rgb: np.ndarray) -> Color:
    """
    Dominant corner color. Samples are bucketed by quantized color; the most
    populated bucket wins (ties go to the bucket seen first in sampling order)
    and its first sample is returned, so flat backgrounds come back exactly.
    Falls back to white when there is nothing to sample.
    """
    samples = corner_samples(rgb)
    if samples.shape[0] == 0:
        logger.debug("No corner samples; falling back to %s", FALLBACK_BACKGROUND)
        return FALLBACK_BACKGROUND

    q = quantize(samples.astype(np.int64))
    keys = (q[:, 0] << 16) | (q[:, 1] << 8) | q[:, 2]
    _keys, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)

    tied = np.flatnonzero(counts == counts.max())
    best = tied[np.argmin(first_idx[tied])]
    r, g, b = samples[first_idx[best]]
    return (int(r), int(g), int(b))
