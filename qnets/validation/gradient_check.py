"""
Gradient Checking — Numerical Verification of Backpropagation
=============================================================

Gradient checking compares the **analytical** gradient (from backprop)
against a **numerical** approximation using finite differences.

Numerical gradient
------------------
.. math::
    \\frac{\\partial L}{\\partial \\theta_i}
    \\approx \\frac{L(\\theta_i + \\varepsilon) - L(\\theta_i - \\varepsilon)}
                   {2 \\varepsilon}

This is the **centered difference** formula — O(ε²) accurate.

Relative error
--------------
.. math::
    \\text{rel\\_error} =
        \\frac{\\|g_{\\text{analytic}} - g_{\\text{numeric}}\\|_2}
             {\\|g_{\\text{analytic}}\\|_2 + \\|g_{\\text{numeric}}\\|_2 + \\varepsilon}

Rules of thumb:
  • rel_error < 1e-5  — correct implementation
  • rel_error < 1e-3  — may have a bug
  • rel_error > 1e-3  — almost certainly buggy

Because every network here exposes its parameters as one aliased flat
block, perturbing ``parameters[i]`` in place is enough to move the
corresponding weight or bias inside whichever layer owns it.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

from ..utils.logger import get_logger

logger = get_logger(__name__)


def relative_error(analytic: NDArray, numeric: NDArray) -> float:
    diff = np.linalg.norm(analytic - numeric)
    norm_sum = np.linalg.norm(analytic) + np.linalg.norm(numeric) + 1e-15
    return float(diff / norm_sum)


def gradient_check(
    loss_fn: Callable[[NDArray], float],
    params: NDArray,
    analytic_grad: NDArray,
    epsilon: float = 1e-7,
) -> float:
    """Check gradient of a scalar loss function w.r.t. a flat parameter array.

    Parameters
    ----------
    loss_fn       : callable — takes params (flat ndarray) → scalar loss.
    params        : ndarray, shape (D,) — current parameter values.
    analytic_grad : ndarray, shape (D,) — gradient from backprop.
    epsilon       : float — perturbation size.

    Returns
    -------
    rel_error : float — relative error between numeric and analytic grads.
    """
    numeric_grad = np.zeros_like(params)

    for i in range(params.size):
        params_plus = params.copy()
        params_plus[i] += epsilon
        loss_plus = loss_fn(params_plus)

        params_minus = params.copy()
        params_minus[i] -= epsilon
        loss_minus = loss_fn(params_minus)

        numeric_grad[i] = (loss_plus - loss_minus) / (2.0 * epsilon)

    return relative_error(analytic_grad, numeric_grad)


def _perturbation_gradient(
    block: NDArray,
    loss_fn: Callable[[], float],
    epsilon: float,
) -> NDArray:
    """Centred differences over an aliased block, restoring every entry."""
    numeric = np.zeros_like(block)
    for i in range(block.size):
        original = block[i]

        block[i] = original + epsilon
        loss_plus = loss_fn()

        block[i] = original - epsilon
        loss_minus = loss_fn()

        block[i] = original
        numeric[i] = (loss_plus - loss_minus) / (2.0 * epsilon)
    return numeric


def gradient_check_layer(
    layer,
    X: NDArray,  # noqa: N803
    dY: NDArray,  # noqa: N803
    epsilon: float = 1e-6,
) -> dict[str, float]:
    """Check ``gradient`` and ``backward`` of a single layer.

    The proxy loss is ``L = Σ Y ⊙ dY``, so ∂L/∂Y = dY.

    Parameters
    ----------
    layer : Layer — a layer whose views are built (``reset()`` called).
    X     : ndarray, shape (n_in, batch) — input data.
    dY    : ndarray, shape (n_out, batch) — upstream gradient.

    Returns
    -------
    errors : dict — relative error for ``"parameters"`` and ``"input"``.
    """
    def proxy_loss() -> float:
        return float(np.sum(layer.forward(X) * dY))

    errors: dict[str, float] = {}

    if layer.weight_size:
        analytic = layer.gradient(X, dY)
        numeric = _perturbation_gradient(layer.parameters, proxy_loss, epsilon)
        errors["parameters"] = relative_error(analytic, numeric)

    analytic_dx = layer.backward(X, dY)
    X_work = np.array(X, dtype=np.float64)
    numeric_dx = _perturbation_gradient(
        X_work.reshape(-1), lambda: float(np.sum(layer.forward(X_work) * dY)), epsilon
    ).reshape(X.shape)
    errors["input"] = relative_error(analytic_dx, numeric_dx)

    for key, err in errors.items():
        logger.debug(f"{layer!r} {key:>10s}  rel_error = {err:.2e}")
    return errors


def gradient_check_network(
    network,
    X: NDArray,  # noqa: N803
    target: NDArray,
    epsilon: float = 1e-6,
) -> float:
    """Check the full parameter gradient of a network against its loss.

    ``network`` must expose ``parameters`` (the aliased flat block),
    ``forward``, ``backward(X, target)`` and ``evaluate(X, target)`` —
    ``FFN`` and ``DuelingDQN`` both do.

    Returns
    -------
    rel_error : float
    """
    network.forward(X)
    analytic = np.array(network.backward(X, target), copy=True)

    numeric = _perturbation_gradient(
        network.parameters, lambda: network.evaluate(X, target), epsilon
    )
    err = relative_error(analytic, numeric)
    logger.debug(f"Network gradient check over {numeric.size} parameters: {err:.2e}")
    return err
