import logging

import numpy as np
import pytest

from skin_tools.api.buffer import PixelBuffer
from skin_tools.constants import FilterKind
from skin_tools.exceptions import OutOfRangeParameter, UnsupportedParameterCombination
from skin_tools.filters import FILTERS, apply_filter
from skin_tools.filters import kernels
from skin_tools.filters.image import Posterize, make_filter, to_bytes

from ..utils import gradient_buffer, random_buffer, solid

logger = logging.getLogger(__name__)


def test_registry_is_complete():
    assert set(FILTERS) == set(FilterKind)


@pytest.mark.parametrize("kind", [kind for kind in FilterKind if kind != FilterKind.BLUR])
def test_alpha_preserved(kind):
    buffer = random_buffer(12, 10, seed=5)
    result = apply_filter(buffer, kind)
    assert result.size == buffer.size
    assert np.array_equal(result.array[:, :, 3], buffer.array[:, :, 3])


def test_invert():
    result = apply_filter(solid(2, 2, (10, 100, 255, 7)), "invert")
    assert tuple(result.array[0, 0]) == (245, 155, 0, 7)


def test_invert_twice():
    buffer = random_buffer(6, 6, seed=2)
    assert apply_filter(apply_filter(buffer, "invert"), "invert") == buffer


@pytest.mark.parametrize(
    "levels, value, expected",
    [
        (2, 100, 0),
        (2, 200, 255),
        (4, 100, 85),
        (4, 150, 170),
        (256, 77, 77),
        (1, 200, 255),
    ],
)
def test_posterize(levels, value, expected):
    result = apply_filter(solid(2, 2, (value, value, value, 255)), "posterize", levels=levels)
    assert result.array[0, 0, 0] == expected


def test_posterize_levels_clamped():
    assert Posterize(levels=1).levels == 2
    assert Posterize(levels=1000).levels == 256


@pytest.mark.parametrize(
    "color, expected",
    [
        ((200, 100, 90, 255), 255),
        ((100, 100, 100, 255), 0),
        ((128, 128, 128, 255), 255),
    ],
)
def test_threshold(color, expected):
    result = apply_filter(solid(2, 2, color), "threshold")
    assert tuple(result.array[0, 0, :3]) == (expected,) * 3


def test_sepia():
    result = apply_filter(solid(1, 1, (255, 255, 255, 255)), "sepia")
    assert tuple(result.array[0, 0]) == (255, 255, 239, 255)
    result = apply_filter(solid(1, 1, (100, 50, 25, 255)), "sepia", intensity=0)
    assert tuple(result.array[0, 0]) == (100, 50, 25, 255)


def test_noise():
    buffer = solid(16, 16, (128, 128, 128, 255))
    result = apply_filter(buffer, "noise", amount=40, seed=9)
    assert result == apply_filter(buffer, "noise", {"amount": 40, "seed": 9})
    assert result != apply_filter(buffer, "noise", amount=40, seed=10)
    rgb = result.array[:, :, :3].astype(int)
    assert np.all(np.abs(rgb - 128) <= 40)
    # The same offset is added to every color channel.
    assert np.array_equal(rgb[:, :, 0], rgb[:, :, 1])
    assert np.array_equal(rgb[:, :, 0], rgb[:, :, 2])


def test_noise_invalid_seed():
    with pytest.raises(OutOfRangeParameter):
        apply_filter(solid(2, 2, (0, 0, 0, 255)), "noise", seed="abc")


def test_noise_zero_amount():
    buffer = random_buffer(8, 8, seed=1)
    assert apply_filter(buffer, "noise", amount=0) == buffer


def test_pixelate():
    buffer = gradient_buffer(10, 10)
    result = apply_filter(buffer, "pixelate", size=4)
    row = buffer.array[0, :, 0].astype(float)
    values = result.array[0, :, 0]
    assert np.all(values[0:4] == np.floor(np.mean(row[0:4]) + 0.5))
    assert np.all(values[4:8] == np.floor(np.mean(row[4:8]) + 0.5))
    # The partial block at the border averages only in-bounds pixels.
    assert np.all(values[8:10] == np.floor(np.mean(row[8:10]) + 0.5))
    assert np.array_equal(result.array[0], result.array[9])


def test_pixelate_size_one():
    buffer = random_buffer(5, 5, seed=4)
    assert apply_filter(buffer, "pixelate", size=1) == buffer


def test_edge_flat():
    result = apply_filter(solid(6, 6, (90, 90, 90, 255)), "edge")
    assert not np.any(result.array[:, :, :3])


def test_edge_step_clamped():
    array = np.zeros((6, 6), dtype=np.uint8)
    array[:, 3:] = 255
    result = apply_filter(PixelBuffer.fromarray(array), "edge")
    assert result.array[2, 2, 0] == 255
    assert result.array[2, 3, 0] == 255
    assert result.array[2, 0, 0] == 0
    assert result.array[2, 5, 0] == 0


def test_emboss_flat():
    result = apply_filter(solid(4, 4, (50, 50, 50, 255)), "emboss")
    assert np.all(result.array[:, :, :3] == 178)
    result = apply_filter(solid(4, 4, (50, 50, 50, 255)), "emboss", strength=0)
    assert np.all(result.array[:, :, :3] == 128)


def test_blur_flat():
    buffer = solid(8, 8, (40, 80, 120, 200))
    assert apply_filter(buffer, "blur", radius=3) == buffer


def test_blur_no_color_bleed():
    array = np.zeros((8, 8, 4), dtype=np.uint8)
    array[:, :4] = (255, 0, 0, 255)
    array[:, 4:] = (0, 255, 0, 0)
    result = apply_filter(PixelBuffer.fromarray(array), "blur", radius=2)
    assert 0 < result.array[4, 4, 3] < 255
    assert result.array[4, 4, 0] == 255
    assert result.array[4, 4, 1] == 0


def test_blur_zero_radius():
    buffer = random_buffer(5, 5)
    assert apply_filter(buffer, "blur", radius=0) == buffer


def test_unknown_filter():
    with pytest.raises(UnsupportedParameterCombination):
        apply_filter(solid(2, 2, (0, 0, 0, 255)), "glow")


def test_typed_params():
    params = Posterize(levels=2)
    assert make_filter("posterize", params) is params
    with pytest.raises(UnsupportedParameterCombination):
        make_filter("invert", params)
    with pytest.raises(UnsupportedParameterCombination):
        apply_filter(solid(2, 2, (0, 0, 0, 255)), "posterize", params, levels=3)


def test_to_bytes():
    assert to_bytes(np.array([-3.0, 0.4, 0.5, 254.5, 300.0])).tolist() == [0, 0, 1, 255, 255]


def test_gaussian_kernel():
    kernel = kernels.gaussian_kernel(3)
    assert kernel.shape == (7,)
    assert kernel.sum() == pytest.approx(1.0)
    assert kernel[3] == kernel.max()
    np.testing.assert_allclose(kernel, kernel[::-1])


def test_kernels_read_only():
    with pytest.raises(ValueError):
        kernels.SOBEL_X[0, 0] = 5


def test_correlate_clamps_edges():
    plane = np.arange(9, dtype=np.float64).reshape(3, 3)
    result = kernels.correlate(plane, kernels.SOBEL_X)
    # Columns increase by one; clamped taps halve the response at the borders.
    np.testing.assert_allclose(result[:, 1], 8.0)
    np.testing.assert_allclose(result[:, 0], 4.0)
    np.testing.assert_allclose(result[:, 2], 4.0)
