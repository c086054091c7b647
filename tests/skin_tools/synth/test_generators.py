import logging

import numpy as np
import pytest

from skin_tools.api.buffer import PixelBuffer
from skin_tools.constants import GeneratorType, NoiseType, PatternType
from skin_tools.exceptions import (
    InvalidBufferDimensions,
    OutOfRangeParameter,
    UnsupportedParameterCombination,
)
from skin_tools.synth.generators import (
    GENERATORS,
    CloudsParams,
    NoiseParams,
    PatternParams,
    WoodParams,
    generate,
    make_params,
    pattern_index,
)

logger = logging.getLogger(__name__)

DENSE = [
    GeneratorType.NOISE,
    GeneratorType.CLOUDS,
    GeneratorType.PLASMA,
    GeneratorType.MARBLE,
    GeneratorType.WOOD,
    GeneratorType.METAL,
    GeneratorType.FABRIC,
    GeneratorType.LEATHER,
    GeneratorType.CONCRETE,
    GeneratorType.GRADIENT,
    GeneratorType.PATTERN,
]


def test_registry_is_complete():
    assert set(GENERATORS) == set(GeneratorType)


@pytest.mark.parametrize("generator_type", list(GeneratorType))
def test_generate(generator_type):
    buffer = generate(generator_type, None, 24, 16)
    assert isinstance(buffer, PixelBuffer)
    assert buffer.size == (24, 16)
    assert generate(generator_type.value, {}, 24, 16) == buffer


@pytest.mark.parametrize("generator_type", DENSE)
def test_dense_generators_are_opaque(generator_type):
    buffer = generate(generator_type, None, 16, 16)
    assert np.all(buffer.array[:, :, 3] == 255)


def test_noise_is_deterministic():
    params = {"seed": 42, "scale": 50, "octaves": 4}
    first = generate("noise", params, 8, 8)
    second = generate("noise", params, 8, 8)
    assert first.tobytes() == second.tobytes()


@pytest.mark.parametrize("generator_type", ["noise", "marble", "wood", "plasma"])
def test_seed_changes_output(generator_type):
    a = generate(generator_type, {"seed": 1}, 64, 64)
    b = generate(generator_type, {"seed": 2}, 64, 64)
    assert a != b


@pytest.mark.parametrize("noise_type", list(NoiseType))
def test_noise_types(noise_type):
    buffer = generate("noise", {"noiseType": noise_type.value, "scale": 8}, 32, 32)
    assert buffer.array[:, :, :3].std() > 0


@pytest.mark.parametrize(
    "generator_type, params",
    [
        ("rust", None),
        ("dirt", None),
        ("grunge", None),
        ("scratches", {"density": 3, "thickness": 1, "length": 20}),
        ("splatter", {"density": 1, "size": 3, "satellites": 0}),
    ],
)
def test_sparse_generators_leave_transparent_pixels(generator_type, params):
    buffer = generate(generator_type, params, 64, 64)
    assert np.any(buffer.array[:, :, 3] == 0)


@pytest.mark.parametrize(
    "generator_type, params",
    [
        ("rust", {"density": 0}),
        ("grunge", {"intensity": 0}),
        ("scratches", {"density": 0}),
        ("splatter", {"density": 0}),
    ],
)
def test_zero_density_is_empty(generator_type, params):
    buffer = generate(generator_type, params, 16, 16)
    assert not np.any(buffer.array)


def test_scratches_color():
    buffer = generate(
        "scratches", {"density": 20, "thickness": 3, "color": "#ff0000"}, 32, 32
    )
    covered = buffer.array[:, :, 3] > 0
    assert np.any(covered)
    assert np.all(buffer.array[covered][:, :3] == (255, 0, 0))


def test_gradient_direction():
    buffer = generate("gradient", {"angle": 0}, 32, 4)
    assert buffer.array[0, 0, 0] == 0
    assert buffer.array[0, -1, 0] == 255
    row = buffer.array[0, :, 0].astype(int)
    assert np.all(np.diff(row) >= 0)


def test_pattern_colors():
    buffer = generate(
        "pattern", {"patternType": "checker", "scale": 4, "colors": ["#ff0000", "#0000ff"]}, 8, 8
    )
    assert tuple(buffer.array[0, 0, :3]) == (255, 0, 0)
    assert tuple(buffer.array[0, 4, :3]) == (0, 0, 255)
    assert tuple(buffer.array[4, 4, :3]) == (255, 0, 0)


@pytest.mark.parametrize(
    "pattern_type, expected",
    [
        (PatternType.CHECKER, [[0, 1], [1, 0]]),
        (PatternType.STRIPES, [[0, 1], [0, 1]]),
        (PatternType.DOTS, [[0, 0], [0, 0]]),
    ],
)
def test_pattern_index(pattern_type, expected):
    X = np.array([[5.0, 15.0], [5.0, 15.0]])
    Y = np.array([[5.0, 5.0], [15.0, 15.0]])
    assert pattern_index(pattern_type, X, Y, 10.0).tolist() == expected


def test_make_params():
    params = make_params("wood", {"seed": 3, "rings": 500, "ringCount": 4})
    assert isinstance(params, WoodParams)
    assert params.seed == 3
    assert params.rings == 100.0
    assert params.generator_type == GeneratorType.WOOD


@pytest.mark.parametrize("seed", [float("nan"), "random", None])
def test_make_params_invalid_seed(seed):
    with pytest.raises(OutOfRangeParameter):
        make_params("noise", {"seed": seed})


def test_make_params_seed_string():
    assert make_params("noise", {"seed": "42"}).seed == 42


def test_make_params_defaults():
    params = make_params(GeneratorType.CLOUDS)
    assert isinstance(params, CloudsParams)
    assert params.noise_type == NoiseType.VALUE
    assert params.octaves == 6


def test_make_params_typed():
    params = NoiseParams(seed=5)
    assert make_params("noise", params) is params
    with pytest.raises(UnsupportedParameterCombination):
        make_params("pattern", params)
    assert isinstance(make_params("pattern", PatternParams()), PatternParams)


def test_unknown_generator():
    with pytest.raises(UnsupportedParameterCombination):
        generate("voronoi", None, 8, 8)


def test_empty_color_ramp():
    with pytest.raises(UnsupportedParameterCombination):
        generate("noise", {"colors": []}, 8, 8)


@pytest.mark.parametrize("size", [(0, 8), (8, 0)])
def test_invalid_size(size):
    with pytest.raises(InvalidBufferDimensions):
        generate("noise", None, *size)
