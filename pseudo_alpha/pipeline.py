from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .background import detect_background_color
from .classify import classify_pixels, delta_e_map, transparent_ratio
from .color import Color, clamp_color, rgb_to_hsv, rgb_to_lab
from .composite import composite_alpha, to_rgba
from .config import BILATERAL_INTENSITY_SIGMA, BILATERAL_SPATIAL_SIGMA, DEBUG_SAMPLE_PIXELS
from .contracts import ProcessingConfig
from .denoise import bilateral_denoise
from .errors import DependencyMissing, InvalidImage, LoadFailure, LoadTimeout, PseudoAlphaError
from .feather import feather_alpha

logger = logging.getLogger(__name__)

# Host capability: turn an identifier into a decoded (H,W,3|4) uint8 array.
Loader = Callable[[str], np.ndarray]


@dataclass(frozen=True)
class StageTimings:
    detect_s: float
    classify_s: float
    denoise_s: float
    feather_s: float
    composite_s: float
    total_s: float


@dataclass(frozen=True)
class PipelineReport:
    rgba: np.ndarray
    background: Color
    transparent_ratio: float
    timings: StageTimings


def _validate_buffer(buffer: np.ndarray) -> None:
    if not isinstance(buffer, np.ndarray) or buffer.ndim != 3 or buffer.shape[2] not in (3, 4):
        shape = getattr(buffer, "shape", None)
        raise InvalidImage(f"Expected image array (H,W,3|4), got shape={shape}")
    h, w = buffer.shape[:2]
    if h <= 0 or w <= 0:
        raise InvalidImage(f"Invalid image size: {(w, h)}")


def _log_background(background: Color, source: str) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    lab = rgb_to_lab(background)
    hsv = rgb_to_hsv(background)
    logger.debug(
        "%s background RGB%s Lab(%.1f, %.1f, %.1f) HSV(%.0f, %.0f%%, %.0f%%)",
        source,
        background,
        lab.L,
        lab.a,
        lab.b,
        hsv.h,
        hsv.s,
        hsv.v,
    )


def _log_sample_decisions(rgb: np.ndarray, background: Color, threshold: float) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    flat = rgb[..., :3].reshape(-1, 3)[:DEBUG_SAMPLE_PIXELS]
    distances = delta_e_map(flat.reshape(1, -1, 3), background)[0]
    for i, (px, de) in enumerate(zip(flat, distances), start=1):
        logger.debug(
            "%d. RGB(%d,%d,%d) dE=%.2f threshold=%.2f background=%s",
            i,
            px[0],
            px[1],
            px[2],
            de,
            threshold,
            bool(de < threshold),
        )


def run_pipeline(buffer: np.ndarray, config: ProcessingConfig) -> PipelineReport:
    """
    Deterministic, linear pipeline:
      1) Resolve background (explicit target color, else corner detection)
      2) Classify pixels by Lab ΔE -> binary alpha map
      3) Bilateral denoise of the color channels (config.smooth)
      4) Feather the alpha map at edges (config.feather_radius > 0)
      5) Composite alpha into a fresh RGBA buffer
    The caller's array is never modified.
    """
    _validate_buffer(buffer)
    t0 = time.perf_counter()

    # Background
    t_det0 = time.perf_counter()
    if config.target_color is not None:
        background: Color = clamp_color(config.target_color)
        _log_background(background, "Target")
    else:
        background = detect_background_color(buffer)
        _log_background(background, "Detected")
    t_det1 = time.perf_counter()

    # Classify
    t_cls0 = time.perf_counter()
    alpha = classify_pixels(buffer, background, config.threshold)
    _log_sample_decisions(buffer, background, config.threshold)
    ratio = transparent_ratio(alpha)
    t_cls1 = time.perf_counter()

    rgba = to_rgba(buffer)

    # Denoise
    t_dn0 = time.perf_counter()
    if config.smooth:
        rgba = bilateral_denoise(rgba, BILATERAL_SPATIAL_SIGMA, BILATERAL_INTENSITY_SIGMA)
    t_dn1 = time.perf_counter()

    # Feather
    t_fe0 = time.perf_counter()
    if config.feather_radius > 0:
        alpha = feather_alpha(alpha, config.feather_radius)
    t_fe1 = time.perf_counter()

    # Composite
    t_comp0 = time.perf_counter()
    rgba = composite_alpha(rgba, alpha)
    t_comp1 = time.perf_counter()

    logger.info("Keyed background RGB%s: %.1f%% transparent", background, ratio * 100.0)

    t1 = time.perf_counter()
    return PipelineReport(
        rgba=rgba,
        background=background,
        transparent_ratio=ratio,
        timings=StageTimings(
            detect_s=t_det1 - t_det0,
            classify_s=t_cls1 - t_cls0,
            denoise_s=t_dn1 - t_dn0,
            feather_s=t_fe1 - t_fe0,
            composite_s=t_comp1 - t_comp0,
            total_s=t1 - t0,
        ),
    )


def process_image(buffer: np.ndarray, config: ProcessingConfig) -> np.ndarray:
    """Public API: decoded buffer in, RGBA buffer with alpha applied out."""
    return run_pipeline(buffer, config).rgba


def load_image_with_timeout(identifier: str, loader: Optional[Loader], timeout_s: float) -> np.ndarray:
    """
    Run the host loader in a daemon thread and stop waiting after `timeout_s`.

    The deadline bounds acquisition only. A worker still blocked at the deadline
    is abandoned; being a daemon it does not hold the interpreter open at exit.
    Errors raised by the loader itself (including its own TimeoutError) are
    reported as LoadFailure, never as LoadTimeout.
    """
    if loader is None:
        raise DependencyMissing("No image loader configured")

    outcome: "queue.Queue[Tuple[bool, object]]" = queue.Queue(maxsize=1)

    def _worker() -> None:
        try:
            outcome.put((True, loader(identifier)))
        except Exception as e:  # noqa: BLE001 - re-raised in the caller's thread
            outcome.put((False, e))

    threading.Thread(target=_worker, name="pseudo-alpha-load", daemon=True).start()
    try:
        ok, value = outcome.get(timeout=timeout_s)
    except queue.Empty:
        raise LoadTimeout(f"Image load timed out after {timeout_s:.1f}s: {identifier}") from None

    if not ok:
        if isinstance(value, PseudoAlphaError):
            raise value
        raise LoadFailure(f"Failed to load image {identifier}: {value}") from value
    return np.asarray(value)


def load_and_process(identifier: str, loader: Optional[Loader], config: ProcessingConfig) -> np.ndarray:
    buffer = load_image_with_timeout(identifier, loader, config.timeout_s)
    return process_image(buffer, config)
