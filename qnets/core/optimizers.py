"""
Optimizers — Parameter Update Rules
====================================

Networks expose all their parameters as ONE flat block, and compute
gradients in the same layout, so an optimizer is a single vectorised
update:

    optimizer.update(parameters, gradient)     # in place, no reallocation

Updating in place is required: layer weight/bias views alias the block.

Notation
--------
  θ   : flat parameter block
  g   : gradient ∂L/∂θ (same shape)
  η   : step size
  v   : first-moment estimate
  s   : second-moment estimate
  β₁  : exponential decay rate for first moment  (Adam)
  β₂  : exponential decay rate for second moment (Adam)
  ε   : small constant to prevent division by zero
  t   : time-step counter (for bias correction in Adam)
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ShapeMismatchError


class Optimizer:
    """Abstract optimizer."""

    def __init__(self, step_size: float = 0.01) -> None:
        self.step_size = step_size

    def update(self, parameters: NDArray, gradient: NDArray) -> None:
        """Apply one update to *parameters* in place."""
        raise NotImplementedError

    @staticmethod
    def _check(parameters: NDArray, gradient: NDArray) -> None:
        if parameters.shape != gradient.shape:
            raise ShapeMismatchError(
                f"gradient {gradient.shape} does not match parameters {parameters.shape}"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(step_size={self.step_size})"


# ────────────────────────────────────────────────────────────────────
# Vanilla SGD
# ────────────────────────────────────────────────────────────────────
class StandardSGD(Optimizer):
    r"""Plain gradient descent.

    .. math::
        \theta \leftarrow \theta - \eta \, g
    """

    def update(self, parameters: NDArray, gradient: NDArray) -> None:
        self._check(parameters, gradient)
        parameters -= self.step_size * gradient


# ────────────────────────────────────────────────────────────────────
# Adam
# ────────────────────────────────────────────────────────────────────
class Adam(Optimizer):
    r"""Adam optimizer (Adaptive Moment Estimation).

    Update rule
    -----------
    .. math::
        v  &\leftarrow \beta_1 \, v + (1 - \beta_1) \, g \\
        s  &\leftarrow \beta_2 \, s + (1 - \beta_2) \, g^2 \\
        \hat{v} &= \frac{v}{1 - \beta_1^t}, \qquad
        \hat{s} = \frac{s}{1 - \beta_2^t} \\
        \theta &\leftarrow \theta
          - \eta \frac{\hat{v}}{\sqrt{\hat{s}} + \varepsilon}

    Moment buffers are sized on the first update and re-created if the
    block length changes.

    Reference: Kingma & Ba, 2015.
    """

    def __init__(
        self,
        step_size: float = 0.001,
        beta1: float = 0.9,
        beta2: float = 0.999,
        eps: float = 1e-8,
    ) -> None:
        super().__init__(step_size)
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self._t: int = 0
        self._v: NDArray | None = None
        self._s: NDArray | None = None

    def update(self, parameters: NDArray, gradient: NDArray) -> None:
        self._check(parameters, gradient)
        if self._v is None or self._v.shape != parameters.shape:
            self._v = np.zeros_like(parameters)
            self._s = np.zeros_like(parameters)
            self._t = 0

        self._t += 1

        # biased moment estimates
        self._v = self.beta1 * self._v + (1.0 - self.beta1) * gradient
        self._s = self.beta2 * self._s + (1.0 - self.beta2) * gradient ** 2

        # bias correction
        v_hat: NDArray = self._v / (1.0 - self.beta1 ** self._t)
        s_hat: NDArray = self._s / (1.0 - self.beta2 ** self._t)

        parameters -= self.step_size * v_hat / (np.sqrt(s_hat) + self.eps)

    def __repr__(self) -> str:
        return (
            f"Adam(step_size={self.step_size}, beta1={self.beta1}, "
            f"beta2={self.beta2}, eps={self.eps})"
        )
