"""
gp_evolution/random_source.py - Seedable random number providers

Every stochastic operator draws from a RandomSource injected at construction,
so a run is exactly reproducible from its seed.
"""
import random
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class RandomSource(ABC):
    """Random number contract used by all operators"""

    @abstractmethod
    def next_int(self, bound: Optional[int] = None) -> int:
        """Uniform int in [0, bound), or an unbounded 32-bit int if bound is None"""

    @abstractmethod
    def next_double(self) -> float:
        """Uniform float in [0, 1)"""

    @abstractmethod
    def next_boolean(self) -> bool:
        pass

    @abstractmethod
    def set_seed(self, seed: int) -> None:
        pass

    def choice(self, items):
        """Uniformly choose one element of a non-empty sequence"""
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self.next_int(len(items))]


class MersenneTwister(RandomSource):
    """RandomSource backed by the standard library generator"""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_int(self, bound: Optional[int] = None) -> int:
        if bound is None:
            return self._random.getrandbits(32) - 2 ** 31
        if bound <= 0:
            raise ValueError("bound must be positive")
        return self._random.randrange(bound)

    def next_double(self) -> float:
        return self._random.random()

    def next_boolean(self) -> bool:
        return self._random.random() < 0.5

    def set_seed(self, seed: int) -> None:
        self._random.seed(seed)


class NumpyRandomSource(RandomSource):
    """RandomSource backed by a numpy PCG64 generator"""

    def __init__(self, seed: Optional[int] = None):
        self._generator = np.random.default_rng(seed)

    def next_int(self, bound: Optional[int] = None) -> int:
        if bound is None:
            return int(self._generator.integers(-2 ** 31, 2 ** 31))
        if bound <= 0:
            raise ValueError("bound must be positive")
        return int(self._generator.integers(0, bound))

    def next_double(self) -> float:
        return float(self._generator.random())

    def next_boolean(self) -> bool:
        return bool(self._generator.random() < 0.5)

    def set_seed(self, seed: int) -> None:
        self._generator = np.random.default_rng(seed)
