"""
Seeded lattice noise.

All primitives take a :py:class:`NoiseState` built by :py:func:`seed` and
accept either scalars or numpy arrays of coordinates. The permutation table is
shuffled with a linear congruential generator in pure integer arithmetic, so
identical seeds give bit-identical output on every platform.

Example::

    import numpy as np
    from skin_tools.synth import noise

    state = noise.seed(42)
    Y, X = np.mgrid[0:64, 0:64] / 16.0
    field = noise.fractal_sum(state, X, Y, octaves=4, mode='ridged')
"""

import logging
from typing import Union

import numpy as np
from attrs import define, field

from skin_tools.constants import NoiseMode

logger = logging.getLogger(__name__)

Coordinate = Union[float, np.ndarray]

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF

# Gradient directions of 3D improved noise; the z component is dropped.
GRAD3 = np.array(
    [
        [1, 1],
        [-1, 1],
        [1, -1],
        [-1, -1],
        [1, 0],
        [-1, 0],
        [1, 0],
        [-1, 0],
        [0, 1],
        [0, -1],
        [0, 1],
        [0, -1],
    ],
    dtype=np.float64,
)


def lcg(state: int) -> int:
    """Advance the linear congruential generator by one step."""
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK


@define(frozen=True, eq=False)
class NoiseState:
    """
    Seeded permutation table.

    .. py:attribute:: seed
    .. py:attribute:: perm

        512 entries, the 256-entry permutation repeated twice.
    """

    seed: int = field()
    perm: np.ndarray = field(repr=False)


def seed(value: int) -> NoiseState:
    """Build the permutation table for a seed."""
    value = int(value)
    table = list(range(256))
    s = value & LCG_MASK
    for i in range(255, 0, -1):
        s = lcg(s)
        j = s % (i + 1)
        table[i], table[j] = table[j], table[i]
    perm = np.array(table + table, dtype=np.int64)
    perm.setflags(write=False)
    return NoiseState(value, perm)


class Random:
    """
    Deterministic float stream driven by the same generator as :py:func:`seed`.

    Used for stochastic placement where every instance needs a few draws.
    """

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & LCG_MASK

    def random(self) -> float:
        """Next float in [0, 1)."""
        self._state = lcg(self._state)
        return self._state / float(LCG_MASK + 1)

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()


def fade(t: np.ndarray) -> np.ndarray:
    """Quintic smoothstep ``6t^5 - 15t^4 + 10t^3``."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(t: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return a + t * (b - a)


def _lattice(x: Coordinate, y: Coordinate):
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    x0 = np.floor(x)
    y0 = np.floor(y)
    X = x0.astype(np.int64) & 255
    Y = y0.astype(np.int64) & 255
    return X, Y, x - x0, y - y0


def _result(value: np.ndarray, x: Coordinate, y: Coordinate) -> Coordinate:
    if np.ndim(x) == 0 and np.ndim(y) == 0:
        return float(value)
    return value


def _grad(h: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    g = GRAD3[h % 12]
    return g[..., 0] * x + g[..., 1] * y


def gradient_noise(state: NoiseState, x: Coordinate, y: Coordinate) -> Coordinate:
    """Lattice gradient (Perlin) noise in [-1, 1]."""
    perm = state.perm
    X, Y, xf, yf = _lattice(x, y)
    u = fade(xf)
    v = fade(yf)

    aa = perm[perm[X] + Y]
    ab = perm[perm[X] + Y + 1]
    ba = perm[perm[X + 1] + Y]
    bb = perm[perm[X + 1] + Y + 1]

    value = _lerp(
        v,
        _lerp(u, _grad(aa, xf, yf), _grad(ba, xf - 1.0, yf)),
        _lerp(u, _grad(ab, xf, yf - 1.0), _grad(bb, xf - 1.0, yf - 1.0)),
    )
    return _result(np.clip(value, -1.0, 1.0), x, y)


def value_noise(state: NoiseState, x: Coordinate, y: Coordinate) -> Coordinate:
    """Lattice value noise in [0, 1]."""
    perm = state.perm
    X, Y, xf, yf = _lattice(x, y)
    u = fade(xf)
    v = fade(yf)

    def corner(i, j):
        return perm[(perm[(X + i) & 255] + Y + j) & 255] / 255.0

    value = _lerp(
        v,
        _lerp(u, corner(0, 0), corner(1, 0)),
        _lerp(u, corner(0, 1), corner(1, 1)),
    )
    return _result(value, x, y)


def fractal_sum(
    state: NoiseState,
    x: Coordinate,
    y: Coordinate,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    mode: Union[NoiseMode, str] = NoiseMode.FBM,
) -> Coordinate:
    """
    Multi-octave sum of :py:func:`gradient_noise`.

    The sum is normalized by the total amplitude: ``fbm`` lies in [-1, 1],
    ``turbulence`` and ``ridged`` in [0, 1].

    :param octaves: number of octaves, at least one.
    :param persistence: amplitude factor between octaves.
    :param lacunarity: frequency factor between octaves.
    :param mode: ``fbm`` sums the noise, ``turbulence`` sums its absolute
        value, ``ridged`` sums ``(1 - |n|)^2`` weighted by the previous
        octave's signal.
    """
    mode = NoiseMode(mode)
    octaves = max(1, int(octaves))
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
    weight = np.ones_like(total)
    amplitude = 1.0
    frequency = 1.0
    max_amplitude = 0.0
    for _ in range(octaves):
        n = np.asarray(gradient_noise(state, x * frequency, y * frequency))
        if mode == NoiseMode.FBM:
            total += n * amplitude
        elif mode == NoiseMode.TURBULENCE:
            total += np.abs(n) * amplitude
        else:
            signal = (1.0 - np.abs(n)) ** 2 * weight
            weight = np.clip(signal * 2.0, 0.0, 1.0)
            total += signal * amplitude
        max_amplitude += amplitude
        amplitude *= persistence
        frequency *= lacunarity

    if max_amplitude > 0:
        total /= max_amplitude
    return _result(total, x, y)


def value_fbm(
    state: NoiseState,
    x: Coordinate,
    y: Coordinate,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
) -> Coordinate:
    """Multi-octave :py:func:`value_noise` normalized to [0, 1]."""
    octaves = max(1, int(octaves))
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0
    max_amplitude = 0.0
    for octave in range(octaves):
        # Offset octaves so that lattice points do not line up.
        offset = 17.0 * octave
        total += amplitude * np.asarray(
            value_noise(state, x * frequency + offset, y * frequency + offset)
        )
        max_amplitude += amplitude
        amplitude *= persistence
        frequency *= lacunarity

    if max_amplitude > 0:
        total /= max_amplitude
    return _result(total, x, y)
