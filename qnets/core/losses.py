"""
Loss Functions — Forward (loss value) & Backward (gradient)
============================================================

Each loss class implements:
  • forward(predicted, target)  → scalar loss
  • backward(predicted, target) → gradient ∂L/∂predicted

Losses keep no state between calls; the network that owns the prediction
passes it back in.

Notation
--------
  Ŷ (predicted) : network output  — shape (n_outputs, batch)
  Y (target)    : training target — same shape as Ŷ
  n             : number of elements in Ŷ
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ShapeMismatchError


class Loss:
    """Abstract loss function."""

    def forward(self, predicted: NDArray, target: NDArray) -> float:
        raise NotImplementedError

    def backward(self, predicted: NDArray, target: NDArray) -> NDArray:
        raise NotImplementedError

    @staticmethod
    def _check_shapes(predicted: NDArray, target: NDArray) -> None:
        if predicted.shape != target.shape:
            raise ShapeMismatchError(
                f"prediction {predicted.shape} and target {target.shape} differ"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


# ────────────────────────────────────────────────────────────────────
# Mean Squared Error Loss
# ────────────────────────────────────────────────────────────────────
class MeanSquaredError(Loss):
    r"""Mean squared error over every element.

    Forward
    -------
    .. math::
        L = \frac{1}{n} \sum_{i} (\hat{Y}_i - Y_i)^2

    Backward
    --------
    .. math::
        \frac{\partial L}{\partial \hat{Y}} = \frac{2}{n} (\hat{Y} - Y)

    An empty batch has zero loss and an empty gradient.
    """

    def forward(self, predicted: NDArray, target: NDArray) -> float:
        self._check_shapes(predicted, target)
        if predicted.size == 0:
            return 0.0
        return float(np.mean((predicted - target) ** 2))

    def backward(self, predicted: NDArray, target: NDArray) -> NDArray:
        self._check_shapes(predicted, target)
        if predicted.size == 0:
            return np.zeros_like(predicted, dtype=np.float64)
        return 2.0 * (predicted - target) / predicted.size


# ────────────────────────────────────────────────────────────────────
# Empty loss (gradient computed elsewhere)
# ────────────────────────────────────────────────────────────────────
class EmptyLoss(Loss):
    """Placeholder for networks whose loss is owned by a caller.

    ``backward`` returns ``target`` unchanged: the caller passes the
    already-computed output gradient in the target slot, and the network
    back-propagates it as is.
    """

    def forward(self, predicted: NDArray, target: NDArray) -> float:
        return 0.0

    def backward(self, predicted: NDArray, target: NDArray) -> NDArray:
        self._check_shapes(predicted, target)
        return np.asarray(target, dtype=np.float64)
