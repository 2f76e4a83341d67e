from __future__ import annotations

import math

import cv2
import numpy as np

EDGE_DIFF = 0.5


def gaussian_disc_kernel(radius: float) -> np.ndarray:
    """
    Gaussian weights (sigma = radius / 2) restricted to offsets with
    Euclidean length <= radius. Not normalized.
    """
    r = int(math.ceil(radius))
    ys, xs = np.mgrid[-r : r + 1, -r : r + 1]
    d2 = (xs * xs + ys * ys).astype(np.float64)
    sigma = radius / 2.0
    kernel = np.exp(-d2 / (2.0 * sigma * sigma))
    kernel[d2 > radius * radius] = 0.0
    return kernel.astype(np.float32)


def edge_mask(alpha: np.ndarray) -> np.ndarray:
    """
    True where some 3x3 neighbor differs from the pixel by more than 0.5.
    """
    a = alpha.astype(np.float32, copy=False)
    kernel = np.ones((3, 3), np.uint8)
    # Default morphology border value ignores out-of-image neighbors.
    hi = cv2.dilate(a, kernel)
    lo = cv2.erode(a, kernel)
    return ((hi - a) > EDGE_DIFF) | ((a - lo) > EDGE_DIFF)


def feather_alpha(alpha: np.ndarray, radius: float) -> np.ndarray:
    """
    Anti-alias the alpha map at classification boundaries.

    1) Gaussian-weighted mean over the disc of `radius`, normalized by the
       weights of in-image neighbors.
    2) Hard pixels (exactly 0 or 1) only take the smoothed value when they sit
       on an edge; partial pixels always do.
    """
    if alpha.ndim != 2:
        raise ValueError(f"Expected 2D alpha map, got shape={alpha.shape}")
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")

    a = alpha.astype(np.float32, copy=True)
    if radius == 0 or a.size == 0:
        return a

    kernel = gaussian_disc_kernel(float(radius))
    num = cv2.filter2D(a, cv2.CV_32F, kernel, borderType=cv2.BORDER_CONSTANT)
    den = cv2.filter2D(np.ones_like(a), cv2.CV_32F, kernel, borderType=cv2.BORDER_CONSTANT)
    smoothed = num / den

    hard = (a == 0.0) | (a == 1.0)
    keep = hard & ~edge_mask(a)
    out = np.where(keep, a, smoothed)
    return np.clip(out, 0.0, 1.0).astype(np.float32, copy=False)
