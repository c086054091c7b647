import logging

import numpy as np
import pytest

from skin_tools.constants import NoiseMode
from skin_tools.synth import noise

logger = logging.getLogger(__name__)


def _grid(size=32, step=0.173):
    Y, X = np.mgrid[0:size, 0:size]
    return X * step, Y * step


def test_seed_is_permutation():
    state = noise.seed(42)
    assert state.perm.shape == (512,)
    assert sorted(state.perm[:256].tolist()) == list(range(256))
    assert np.array_equal(state.perm[:256], state.perm[256:])


def test_seed_deterministic():
    assert np.array_equal(noise.seed(7).perm, noise.seed(7).perm)
    assert not np.array_equal(noise.seed(7).perm, noise.seed(8).perm)


def test_lcg():
    assert noise.lcg(0) == 12345
    assert 0 <= noise.lcg(2 ** 40) <= noise.LCG_MASK


def test_random_stream():
    a, b = noise.Random(3), noise.Random(3)
    values = [a.random() for _ in range(100)]
    assert values == [b.random() for _ in range(100)]
    assert all(0.0 <= value < 1.0 for value in values)
    assert 2.0 <= noise.Random(3).uniform(2.0, 4.0) < 4.0


def test_gradient_noise_zero_on_lattice():
    state = noise.seed(1)
    Y, X = np.mgrid[0:8, 0:8].astype(np.float64)
    np.testing.assert_allclose(noise.gradient_noise(state, X, Y), 0.0, atol=1e-12)


def test_gradient_noise_range():
    X, Y = _grid()
    value = noise.gradient_noise(noise.seed(5), X, Y)
    assert value.shape == X.shape
    assert value.min() >= -1.0 and value.max() <= 1.0
    assert value.std() > 0


def test_scalar_input_gives_float():
    state = noise.seed(5)
    assert isinstance(noise.gradient_noise(state, 0.3, 0.7), float)
    assert isinstance(noise.value_noise(state, 0.3, 0.7), float)
    assert isinstance(noise.fractal_sum(state, 0.3, 0.7), float)


def test_scalar_matches_array():
    state = noise.seed(5)
    array = noise.gradient_noise(state, np.array([0.3, 1.6]), np.array([0.7, 2.2]))
    assert noise.gradient_noise(state, 1.6, 2.2) == pytest.approx(array[1])


def test_value_noise_range():
    X, Y = _grid()
    value = noise.value_noise(noise.seed(9), X, Y)
    assert value.min() >= 0.0 and value.max() <= 1.0


def test_negative_coordinates():
    state = noise.seed(9)
    value = noise.gradient_noise(state, np.array([-3.5, -0.25]), np.array([-1.5, 0.5]))
    assert np.all(np.isfinite(value))


@pytest.mark.parametrize(
    "mode, low, high",
    [
        (NoiseMode.FBM, -1.0, 1.0),
        (NoiseMode.TURBULENCE, 0.0, 1.0),
        (NoiseMode.RIDGED, 0.0, 1.0),
        ("ridged", 0.0, 1.0),
    ],
)
def test_fractal_sum_range(mode, low, high):
    X, Y = _grid()
    value = noise.fractal_sum(noise.seed(11), X, Y, octaves=5, mode=mode)
    assert value.min() >= low and value.max() <= high


def test_fractal_sum_single_octave_is_base_noise():
    X, Y = _grid()
    state = noise.seed(11)
    np.testing.assert_allclose(
        noise.fractal_sum(state, X, Y, octaves=1),
        noise.gradient_noise(state, X, Y),
    )


def test_fractal_sum_unknown_mode():
    with pytest.raises(ValueError):
        noise.fractal_sum(noise.seed(1), 0.5, 0.5, mode="billow")


def test_value_fbm_range():
    X, Y = _grid()
    value = noise.value_fbm(noise.seed(2), X, Y, octaves=3)
    assert value.min() >= 0.0 and value.max() <= 1.0
