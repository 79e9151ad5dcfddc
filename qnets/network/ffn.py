"""
Feed-Forward Network
====================

``FFN`` wraps a ``Sequential`` graph with a loss function and an
initialization rule and owns the single parameter block of the whole
graph:

  • ``reset_parameters()``      — allocate + initialize the block, install views
  • ``predict(X)``              — inference, no caches written
  • ``forward(X)``              — inference + caches for ``backward``
  • ``backward(X, target)``     — loss gradient → backprop → ∂L/∂θ
  • ``evaluate(X, target)``     — scalar loss

Parameters are reset lazily on first use, so layers can be added freely
after construction.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..core.initializers import GaussianInitialization, Initialization
from ..core.layer import Layer
from ..core.losses import Loss, MeanSquaredError
from ..exceptions import PreconditionError, ShapeMismatchError
from ..utils.logger import get_logger
from .sequential import Sequential

logger = get_logger(__name__)


class FFN:
    """Feed-forward network driving a ``Sequential`` graph.

    Parameters
    ----------
    loss_fn        : Loss — defaults to ``MeanSquaredError``.
    initialization : Initialization — defaults to ``GaussianInitialization(0, 0.001)``.
    seed           : int | None — seed of the initialization RNG.
    """

    def __init__(
        self,
        loss_fn: Loss | None = None,
        initialization: Initialization | None = None,
        seed: int | None = None,
    ) -> None:
        self.network = Sequential()
        self.loss_fn = loss_fn if loss_fn is not None else MeanSquaredError()
        self.initialization = (
            initialization if initialization is not None else GaussianInitialization(0.0, 0.001)
        )
        self._rng = np.random.default_rng(seed)
        self._reset = False
        self._output: NDArray | None = None

    # ── graph ────────────────────────────────────────────────────
    def add(self, layer: Layer) -> "FFN":
        self.network.add(layer)
        self._reset = False
        self._output = None
        return self

    @property
    def layers(self) -> list[Layer]:
        return self.network.layers

    @property
    def weight_size(self) -> int:
        return self.network.weight_size

    # ── parameters ───────────────────────────────────────────────
    def reset_parameters(self) -> None:
        """Allocate a fresh block, fill it with the initialization rule, install it."""
        block = self.initialization.initialize(self.weight_size, self._rng)
        self.network.parameters = np.ascontiguousarray(block, dtype=np.float64)
        self._reset = True
        self._output = None
        logger.debug(
            f"Reset {self.weight_size} parameters with {self.initialization!r}"
        )

    def _ensure_reset(self) -> None:
        if not self._reset:
            self.reset_parameters()

    @property
    def parameters(self) -> NDArray:
        """The flat block; every layer's weight / bias view aliases it."""
        self._ensure_reset()
        return self.network.parameters

    @parameters.setter
    def parameters(self, values: NDArray) -> None:
        self._ensure_reset()
        values = np.asarray(values, dtype=np.float64).ravel()
        block = self.network.parameters
        if values.size != block.size:
            raise ShapeMismatchError(
                f"network has {block.size} parameters, got {values.size}"
            )
        # copy into the existing block so the layer views stay valid
        block[...] = values

    # ── passes ───────────────────────────────────────────────────
    def predict(self, X: NDArray) -> NDArray:  # noqa: N803
        self._ensure_reset()
        return self.network.predict(X)

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        self._ensure_reset()
        self._output = self.network.forward(X)
        return self._output

    def backward(self, X: NDArray, target: NDArray) -> NDArray:  # noqa: N803
        """Back-propagate the loss of the last ``forward`` output.

        Returns
        -------
        gradient : ndarray, shape (weight_size,) — ∂L/∂θ in block layout.
        """
        if self._output is None:
            raise PreconditionError("call forward() before backward()")
        error = self.loss_fn.backward(self._output, target)
        self.network.backward(X, error)
        return self.network.gradient(X, error)

    def evaluate(self, X: NDArray, target: NDArray) -> float:  # noqa: N803
        return self.loss_fn.forward(self.predict(X), target)

    def layer_input(self, index: int) -> NDArray:
        return self.network.layer_input(index)

    # ── serialization ────────────────────────────────────────────
    def serialize(self, archive) -> None:
        if not archive.is_loading:
            self._ensure_reset()
        self.network.serialize(archive)
        if archive.is_loading:
            self._reset = True
            self._output = None

    # ── utilities ────────────────────────────────────────────────
    def summary(self) -> str:
        return self.network.summary()

    def __repr__(self) -> str:
        return (
            f"FFN(\n"
            f"  network={self.network},\n"
            f"  loss={self.loss_fn},\n"
            f"  initialization={self.initialization}\n"
            f")"
        )
