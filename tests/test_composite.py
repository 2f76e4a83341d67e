import numpy as np
import pytest

from pseudo_alpha.composite import alpha_to_bytes, composite_alpha, to_rgba


def test_boundary_alpha_values_map_exactly():
    rgba = np.full((1, 5, 4), 90, dtype=np.uint8)
    alpha = np.array([[0.0, 1.0, 0.5, -0.3, 1.7]], dtype=np.float32)
    out = composite_alpha(rgba, alpha)
    assert out[0, :, 3].tolist() == [0, 255, 128, 0, 255]


def test_alpha_bytes_match_round_clamp_formula():
    alpha = np.linspace(-0.1, 1.1, 97, dtype=np.float32).reshape(1, -1)
    expected = [int(np.floor(min(1.0, max(0.0, float(a))) * 255 + 0.5)) for a in alpha[0]]
    assert alpha_to_bytes(alpha)[0].tolist() == expected


def test_color_channels_untouched():
    rng = np.random.default_rng(1)
    rgba = rng.integers(0, 256, size=(4, 4, 4), dtype=np.uint8)
    colors = rgba[..., :3].copy()
    composite_alpha(rgba, np.zeros((4, 4), dtype=np.float32))
    np.testing.assert_array_equal(rgba[..., :3], colors)
    assert (rgba[..., 3] == 0).all()


def test_shape_mismatch_rejected():
    with pytest.raises(ValueError):
        composite_alpha(np.zeros((2, 2, 4), dtype=np.uint8), np.zeros((2, 3), dtype=np.float32))
    with pytest.raises(ValueError):
        composite_alpha(np.zeros((2, 2, 3), dtype=np.uint8), np.zeros((2, 2), dtype=np.float32))


def test_to_rgba_promotes_rgb_and_copies():
    rgb = np.full((2, 3, 3), 7, dtype=np.uint8)
    rgba = to_rgba(rgb)
    assert rgba.shape == (2, 3, 4)
    assert (rgba[..., 3] == 255).all()

    src = np.zeros((2, 2, 4), dtype=np.uint8)
    copy = to_rgba(src)
    copy[0, 0, 0] = 99
    assert src[0, 0, 0] == 0
