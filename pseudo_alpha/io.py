from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .config import JPEG_EXTENSIONS


def load_image_rgba(path: str) -> np.ndarray:
    """
    Load an image as RGBA uint8 ndarray of shape (H, W, 4).
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read image: {path}")
    try:
        with Image.open(p) as img:
            img.load()
            rgba = img.convert("RGBA")
    except UnidentifiedImageError as e:
        raise ValueError(f"Unsupported or corrupt image: {path}") from e

    arr = np.array(rgba, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"Expected RGBA image array, got shape={arr.shape}")
    return arr


def to_pil(rgba: np.ndarray) -> Image.Image:
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H,W,4), got {rgba.shape}")
    return Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))


def save_rgba_png(rgba: np.ndarray, out_path: str) -> None:
    """
    Save as lossless RGBA PNG, creating parent directories.
    """
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    to_pil(rgba).save(str(p), format="PNG", optimize=False)


def iter_images(input_dir: Path, exts: Optional[Iterable[str]] = None) -> Iterator[Path]:
    """Sorted, recursive listing of files whose suffix is in `exts` (JPEG by default)."""
    wanted = {e.lower() for e in (exts if exts is not None else JPEG_EXTENSIONS)}
    for p in sorted(input_dir.rglob("*")):
        if p.is_file() and p.suffix.lower() in wanted:
            yield p
