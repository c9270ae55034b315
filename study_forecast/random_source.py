"""
PURPOSE: Seeded pseudo-random number generators for reproducible simulations.

RESPONSIBILITIES:
- Uniform variates in [0, 1) from an explicitly chosen algorithm (LCG, mulberry32)
- Standard-normal variates via the Box-Muller transform
- Single responsibility: only random number generation, no sampling policy

Every generator carries its own state; there is no module-level stream, so two
simulations never interfere with each other.
"""

import math

from study_forecast.config import DEFAULT_GENERATOR

__all__ = [
    "RandomSource",
    "LCGRandom",
    "Mulberry32Random",
    "create_random",
    "mulberry32",
    "random_normal",
    "make_random_source",
    "GENERATORS",
]

_LCG_MODULUS = 2147483647  # 2^31 - 1
_LCG_MULTIPLIER = 16807
_UINT32_MASK = 0xFFFFFFFF


def _imul(a, b):
    """32-bit integer multiply (low 32 bits, unsigned)."""
    return (a * b) & _UINT32_MASK


class RandomSource:
    """Base class for seeded uniform generators."""

    name = "base"

    def __init__(self, seed):
        self.seed = seed

    def next_uniform(self) -> float:
        """Return the next float in [0, 1)."""
        raise NotImplementedError

    def next_normal(self) -> float:
        """Return the next standard-normal draw."""
        return random_normal(self)

    def __call__(self) -> float:
        return self.next_uniform()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(seed={self.seed})"


class LCGRandom(RandomSource):
    """
    Park-Miller minimal standard generator.

    x(k+1) = 16807 * x(k) mod (2^31 - 1). The state never reaches 0, and the
    output (x - 1) / (2^31 - 2) lies in [0, 1).
    """

    name = "lcg"

    def __init__(self, seed):
        super().__init__(seed)
        state = int(seed) % (_LCG_MODULUS - 1)
        if state <= 0:
            state += _LCG_MODULUS - 1
        self._state = state

    def next_uniform(self) -> float:
        self._state = (self._state * _LCG_MULTIPLIER) % _LCG_MODULUS
        return (self._state - 1) / (_LCG_MODULUS - 1)


class Mulberry32Random(RandomSource):
    """mulberry32: 32-bit state, bit-compatible with the JavaScript reference."""

    name = "mulberry32"

    def __init__(self, seed):
        super().__init__(seed)
        self._state = int(seed) & _UINT32_MASK

    def next_uniform(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _UINT32_MASK
        return ((t ^ (t >> 14)) & _UINT32_MASK) / 4294967296


_GENERATORS = {
    LCGRandom.name: LCGRandom,
    Mulberry32Random.name: Mulberry32Random,
}
GENERATORS = tuple(_GENERATORS)


def create_random(seed) -> LCGRandom:
    """Return a Park-Miller LCG seeded with `seed`."""
    return LCGRandom(seed)


def mulberry32(seed) -> Mulberry32Random:
    """Return a mulberry32 generator seeded with `seed`."""
    return Mulberry32Random(seed)


def make_random_source(seed, generator=DEFAULT_GENERATOR) -> RandomSource:
    """
    Build a generator by name.

    Args:
        seed: Integer seed
        generator: "lcg" or "mulberry32"

    Returns:
        A fresh RandomSource instance

    Raises:
        ValueError: If the generator name is unknown
    """
    try:
        cls = _GENERATORS[generator]
    except KeyError:
        raise ValueError(
            f"Unknown generator: {generator}. Must be one of {sorted(_GENERATORS)}"
        ) from None
    return cls(seed)


def random_normal(rng) -> float:
    """
    Draw one standard-normal variate with the Box-Muller cosine transform.

    Args:
        rng: RandomSource or any zero-argument callable returning floats in [0, 1)

    Returns:
        float drawn from N(0, 1)
    """
    u = 0.0
    v = 0.0
    # log(0) is undefined; re-draw exact zeros
    while u == 0.0:
        u = rng()
    while v == 0.0:
        v = rng()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
