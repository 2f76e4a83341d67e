from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pseudo_alpha.io import iter_images, load_image_rgba, save_rgba_png


def test_save_then_load_is_lossless(tmp_path: Path):
    rgba = np.zeros((6, 8, 4), dtype=np.uint8)
    rgba[..., 0] = 200
    rgba[2:4, 2:6, 3] = 255
    out = tmp_path / "nested" / "x.png"

    save_rgba_png(rgba, str(out))

    assert out.exists()
    np.testing.assert_array_equal(load_image_rgba(str(out)), rgba)


def test_load_rgb_file_gets_opaque_alpha(tmp_path: Path):
    path = tmp_path / "p.png"
    Image.new("RGB", (5, 3), (10, 20, 30)).save(str(path), format="PNG")
    arr = load_image_rgba(str(path))
    assert arr.shape == (3, 5, 4)
    assert (arr[..., 3] == 255).all()
    assert arr[0, 0, :3].tolist() == [10, 20, 30]


def test_missing_and_corrupt_files(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_image_rgba(str(tmp_path / "nope.jpg"))
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"not an image")
    with pytest.raises(ValueError):
        load_image_rgba(str(bad))


def test_iter_images_filters_and_sorts(tmp_path: Path):
    for name in ["b.JPG", "a.jpeg", "c.png", "notes.txt", "sub/d.jpg"]:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(b"")

    jpegs = [p.relative_to(tmp_path).as_posix() for p in iter_images(tmp_path)]
    assert jpegs == ["a.jpeg", "b.JPG", "sub/d.jpg"]

    pngs = [p.name for p in iter_images(tmp_path, {".png"})]
    assert pngs == ["c.png"]
