"""
Activation Layers — Forward & Backward Passes
=============================================

Activations are parameterless layers.  They follow the same contract as
every other layer:

  • forward(X)      → A           (element-wise transform)
  • backward(X, dA) → dX          (local gradient via chain rule)

The backward pass recomputes what it needs from ``X`` instead of caching
the forward result, so one activation instance can be shared freely.

Mathematical conventions
------------------------
  X : pre-activation   (shape: neurons × batch)
  A : post-activation  (shape: neurons × batch)
  dA: upstream gradient ∂L/∂A
  dX: downstream gradient ∂L/∂X = dA ⊙ f'(X)   (element-wise Hadamard ⊙)
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ShapeMismatchError
from .layer import Layer


class Activation(Layer):
    """Element-wise activation base class."""

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        raise NotImplementedError

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        """Element-wise f'(X)."""
        raise NotImplementedError

    def backward(self, X: NDArray, dA: NDArray) -> NDArray:  # noqa: N803
        if X.shape != dA.shape:
            raise ShapeMismatchError(
                f"{self!r}: input {X.shape} and upstream gradient {dA.shape} differ"
            )
        return dA * self.derivative(X)


# ---------------------------------------------------------------------------
# ReLU
# ---------------------------------------------------------------------------
class ReLU(Activation):
    r"""Rectified Linear Unit.

    Forward
    -------
    .. math::
        A = \max(0, X)

    Backward
    --------
    .. math::
        \frac{\partial A}{\partial X} =
            \begin{cases}
                1 & \text{if } X > 0 \\
                0 & \text{otherwise}
            \end{cases}

    Chain rule:
        dX = dA ⊙ 𝟙(X > 0)
    """

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        return np.maximum(0.0, X)

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        # indicator mask: 1 where X > 0, else 0
        return (X > 0).astype(np.float64)


# ---------------------------------------------------------------------------
# LeakyReLU
# ---------------------------------------------------------------------------
class LeakyReLU(Activation):
    r"""Leaky Rectified Linear Unit.

    .. math::
        A = \begin{cases}
                X        & \text{if } X > 0 \\
                \alpha X & \text{otherwise}
            \end{cases}
    """

    def __init__(self, alpha: float = 0.01) -> None:
        super().__init__()
        self.alpha = alpha

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        return np.where(X > 0, X, self.alpha * X)

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        return np.where(X > 0, 1.0, self.alpha)

    def __repr__(self) -> str:
        return f"LeakyReLU(alpha={self.alpha})"


# ---------------------------------------------------------------------------
# Sigmoid
# ---------------------------------------------------------------------------
class Sigmoid(Activation):
    r"""Logistic sigmoid function.

    Forward
    -------
    .. math::
        A = \sigma(X) = \frac{1}{1 + e^{-X}}

    Backward
    --------
    .. math::
        \frac{\partial A}{\partial X} = \sigma(X) \cdot (1 - \sigma(X))
    """

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        # Clip to [-500, 500] to prevent overflow in exp(-X)
        X_safe: NDArray = np.clip(X, -500, 500)
        return 1.0 / (1.0 + np.exp(-X_safe))

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        s = self.forward(X)
        return s * (1.0 - s)


# ---------------------------------------------------------------------------
# Tanh
# ---------------------------------------------------------------------------
class Tanh(Activation):
    r"""Hyperbolic tangent activation.

    .. math::
        \frac{\partial A}{\partial X} = 1 - \tanh^2(X)
    """

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        return np.tanh(X)

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        return 1.0 - np.tanh(X) ** 2


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
class Identity(Activation):
    """Pass-through layer, handy as a placeholder trunk stage."""

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        return X

    def derivative(self, X: NDArray) -> NDArray:  # noqa: N803
        return np.ones_like(X, dtype=np.float64)
