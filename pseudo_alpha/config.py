"""
Centralized configuration constants for the pseudo-alpha keying pipeline.

Ground rules:
- CPU + numpy, one image in flight at a time
- Lab ΔE is the only classification metric
"""

from __future__ import annotations

import os

# sRGB -> XYZ (D65) matrix, rows are X, Y, Z.
SRGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)
D65_WHITE = (0.95047, 1.0, 1.08883)
LAB_EPSILON = 0.008856
LAB_KAPPA = 7.787

# Corner sampling for background detection.
CORNER_SAMPLE_MAX = 20
CORNER_SAMPLE_DIVISOR = 10
QUANTIZE_STEP = 8
FALLBACK_BACKGROUND = (255, 255, 255)

# Bilateral denoise tuning (fixed when smoothing is enabled).
BILATERAL_SPATIAL_SIGMA = 2.0
BILATERAL_INTENSITY_SIGMA = 30.0

# Processing defaults (threshold is in Lab ΔE units, not raw RGB).
DEFAULT_THRESHOLD = 8.0
DEFAULT_SMOOTH = True
DEFAULT_FEATHER_RADIUS = 1.5
DEFAULT_TIMEOUT_S = 10.0

# Batch defaults.
DEFAULT_MAX_BATCH_ITEMS = 20
DEFAULT_INTER_ITEM_DELAY_S = 0.0
JPEG_EXTENSIONS = {".jpg", ".jpeg"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}

# Number of leading pixels whose ΔE decision is logged at DEBUG level.
DEBUG_SAMPLE_PIXELS = 10


def get_max_batch_items() -> int:
    try:
        value = int(os.getenv("PSEUDO_ALPHA_MAX_FILES", str(DEFAULT_MAX_BATCH_ITEMS)))
    except ValueError:
        return DEFAULT_MAX_BATCH_ITEMS
    return value if value > 0 else DEFAULT_MAX_BATCH_ITEMS


def get_timeout_s() -> float:
    try:
        value = float(os.getenv("PSEUDO_ALPHA_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)))
    except ValueError:
        return DEFAULT_TIMEOUT_S
    return value if value > 0 else DEFAULT_TIMEOUT_S


def get_inter_item_delay_s() -> float:
    try:
        value = float(os.getenv("PSEUDO_ALPHA_INTER_ITEM_DELAY_S", str(DEFAULT_INTER_ITEM_DELAY_S)))
    except ValueError:
        return DEFAULT_INTER_ITEM_DELAY_S
    return max(0.0, value)
