"""
Initialization Rules
====================

Networks allocate ONE flat parameter block and hand it to an
initialization rule, which fills it.  All rules follow the pattern:

    θ = rule.initialize(size, rng) → ndarray, shape (size,)

where ``size`` is the total number of scalars owned by the network and
``rng`` a ``numpy.random.Generator`` for reproducibility.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class Initialization:
    """Abstract initialization rule."""

    def initialize(self, size: int, rng: np.random.Generator | None = None) -> NDArray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class GaussianInitialization(Initialization):
    r"""Normal initialization.

    .. math::
        \theta_i \sim \mathcal{N}(\mu, \sigma)

    The dueling Q-network uses ``GaussianInitialization(0, 0.001)``: tiny
    weights keep the initial Q-values close to zero for every action.

    Parameters
    ----------
    mean : float — μ.
    std  : float — σ (must be non-negative).
    """

    def __init__(self, mean: float = 0.0, std: float = 1.0) -> None:
        if std < 0:
            raise ValueError(f"std must be non-negative, got {std}")
        self.mean = mean
        self.std = std

    def initialize(self, size: int, rng: np.random.Generator | None = None) -> NDArray:
        if rng is None:
            rng = np.random.default_rng()
        return rng.normal(self.mean, self.std, size=size).astype(np.float64)

    def __repr__(self) -> str:
        return f"GaussianInitialization(mean={self.mean}, std={self.std})"


class RandomInitialization(Initialization):
    r"""Uniform initialization.

    .. math::
        \theta_i \sim \mathcal{U}[\text{low}, \text{high}]
    """

    def __init__(self, low: float = -1.0, high: float = 1.0) -> None:
        if high < low:
            raise ValueError(f"high ({high}) must be >= low ({low})")
        self.low = low
        self.high = high

    def initialize(self, size: int, rng: np.random.Generator | None = None) -> NDArray:
        if rng is None:
            rng = np.random.default_rng()
        return rng.uniform(self.low, self.high, size=size).astype(np.float64)

    def __repr__(self) -> str:
        return f"RandomInitialization(low={self.low}, high={self.high})"


class ConstInitialization(Initialization):
    """Every parameter set to the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def initialize(self, size: int, rng: np.random.Generator | None = None) -> NDArray:
        return np.full(size, self.value, dtype=np.float64)

    def __repr__(self) -> str:
        return f"ConstInitialization(value={self.value})"


class ZeroInitialization(ConstInitialization):
    """All-zeros initialization; ``rng`` is ignored."""

    def __init__(self) -> None:
        super().__init__(0.0)

    def __repr__(self) -> str:
        return "ZeroInitialization()"
