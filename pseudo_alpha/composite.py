from __future__ import annotations

import numpy as np


def to_rgba(img: np.ndarray) -> np.ndarray:
    """
    Return a fresh uint8 (H,W,4) copy. RGB input gets an opaque alpha channel.
    """
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f"Expected image (H,W,3|4), got shape={img.shape}")
    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.shape[2] == 4:
        return img.copy()
    a8 = np.full(img.shape[:2], 255, dtype=np.uint8)
    return np.dstack([img, a8])


def alpha_to_bytes(alpha: np.ndarray) -> np.ndarray:
    """round(clamp(alpha, 0, 1) * 255) as uint8, half-up like the byte writer."""
    return np.floor(np.clip(alpha.astype(np.float64), 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def composite_alpha(rgba: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """
    Write the alpha map into the alpha byte of an RGBA buffer (in place).
    Color channels are left as they are.
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H,W,4), got {rgba.shape}")
    if alpha.ndim != 2 or alpha.shape[:2] != rgba.shape[:2]:
        raise ValueError(f"Alpha shape {alpha.shape} does not match RGBA {rgba.shape[:2]}")

    rgba[..., 3] = alpha_to_bytes(alpha)
    return rgba
