"""
Dueling Streams — value / advantage fan-out with a centered merge
================================================================

The combinator node of a dueling Q-network (Wang et al., 2016).  It feeds
the same feature matrix Φ to two owned sub-networks and merges them:

::

              ┌─→ value network     ─→ V  (1, batch)  ─┐
    Φ ───────┤                                           ├─→ Q (n_actions, batch)
              └─→ advantage network ─→ A  (n_actions, batch) ┘

Forward (per state, i.e. per column)
------------------------------------
.. math::
    Q_a = V + A_a - \\frac{1}{|\\mathcal{A}|} \\sum_{a'} A_{a'}

Without the centering, any constant could move between V and A and
produce the same Q.

Backward (exact Jacobian of the merge)
--------------------------------------
.. math::
    \\frac{\\partial L}{\\partial V} = \\sum_a \\frac{\\partial L}{\\partial Q_a}
    \\qquad
    \\frac{\\partial L}{\\partial A_j} = \\frac{\\partial L}{\\partial Q_j}
        - \\frac{1}{|\\mathcal{A}|} \\sum_a \\frac{\\partial L}{\\partial Q_a}

Both branches read Φ, so their input gradients are summed.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..core.layer import Layer, install_block
from ..exceptions import ShapeMismatchError
from ..network.sequential import Sequential


class DuelingStreams(Layer):
    """Fan-out node owning the value and advantage sub-networks.

    Parameters
    ----------
    value_network     : Sequential — Φ → V, exactly one output row.
    advantage_network : Sequential — Φ → A, one output row per action.

    The parameter block is ``[θ_value | θ_advantage]``.
    """

    trainable: bool = True

    def __init__(self, value_network: Sequential, advantage_network: Sequential) -> None:
        for name, net in (("value_network", value_network), ("advantage_network", advantage_network)):
            if not isinstance(net, Sequential):
                raise TypeError(f"{name} must be a Sequential, got {type(net).__name__}")
        self.value_network = value_network
        self.advantage_network = advantage_network
        self._parameters: NDArray | None = None

    # ── shape contract ───────────────────────────────────────────
    @property
    def input_size(self) -> int | None:
        size = self.value_network.input_size
        if size is None:
            size = self.advantage_network.input_size
        return size

    @property
    def output_size(self) -> int | None:
        return self.advantage_network.output_size

    def validate(self, feature_size: int | None, action_size: int | None = None) -> int:
        """Check both branches against the feature width and action count.

        Returns
        -------
        action_size : int — number of actions produced by the advantage branch.
        """
        value_in = self.value_network.input_size
        advantage_in = self.advantage_network.input_size
        if value_in != advantage_in:
            raise ShapeMismatchError(
                f"value branch reads {value_in} features, advantage branch {advantage_in}"
            )
        if feature_size is not None and value_in is not None and value_in != feature_size:
            raise ShapeMismatchError(
                f"feature network produces {feature_size} features, branches read {value_in}"
            )

        value_out = self.value_network.output_size
        if value_out != 1:
            raise ShapeMismatchError(f"value branch must output 1 row, got {value_out}")

        advantage_out = self.advantage_network.output_size
        if advantage_out is None or advantage_out < 1:
            raise ShapeMismatchError(
                f"advantage branch must output at least one action, got {advantage_out}"
            )
        if action_size is not None and advantage_out != action_size:
            raise ShapeMismatchError(
                f"advantage branch outputs {advantage_out} actions, expected {action_size}"
            )
        return advantage_out

    # ── parameter block ──────────────────────────────────────────
    @property
    def weight_size(self) -> int:
        return self.value_network.weight_size + self.advantage_network.weight_size

    @property
    def parameters(self) -> NDArray:
        if self._parameters is None or self._parameters.size != self.weight_size:
            block = np.concatenate(
                [self.value_network.parameters, self.advantage_network.parameters]
            )
            self._install(block.astype(np.float64))
        return self._parameters

    @parameters.setter
    def parameters(self, block: NDArray) -> None:
        install_block(self, block)
        self._install(block)

    def _install(self, block: NDArray) -> None:
        self._parameters = block
        n_value = self.value_network.weight_size
        self.value_network.parameters = block[:n_value]
        self.advantage_network.parameters = block[n_value:]

    def reset(self) -> None:
        self._install(self.parameters)

    # ── merge & split ────────────────────────────────────────────
    @staticmethod
    def combine(value: NDArray, advantage: NDArray) -> NDArray:
        """Q = V + A − mean_a(A), mean taken per column (per state)."""
        if value.ndim != 2 or value.shape[0] != 1:
            raise ShapeMismatchError(f"value must have shape (1, batch), got {value.shape}")
        if advantage.ndim != 2 or advantage.shape[1] != value.shape[1]:
            raise ShapeMismatchError(
                f"advantage {advantage.shape} does not match value {value.shape}"
            )
        return advantage - advantage.mean(axis=0, keepdims=True) + value

    @staticmethod
    def split_gradient(dQ: NDArray) -> tuple[NDArray, NDArray]:  # noqa: N803
        """Route ∂L/∂Q to (∂L/∂V, ∂L/∂A) through the centering Jacobian."""
        grad_value = dQ.sum(axis=0, keepdims=True)
        grad_advantage = dQ - dQ.mean(axis=0, keepdims=True)
        return grad_value, grad_advantage

    # ── passes ───────────────────────────────────────────────────
    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        value = self.value_network.forward(X)
        advantage = self.advantage_network.forward(X)
        return self.combine(value, advantage)

    def predict(self, X: NDArray) -> NDArray:  # noqa: N803
        value = self.value_network.predict(X)
        advantage = self.advantage_network.predict(X)
        return self.combine(value, advantage)

    def backward(self, X: NDArray, dY: NDArray) -> NDArray:  # noqa: N803
        grad_value, grad_advantage = self.split_gradient(dY)
        # both branches consumed the same features
        return (
            self.value_network.backward(X, grad_value)
            + self.advantage_network.backward(X, grad_advantage)
        )

    def gradient(self, X: NDArray, E: NDArray) -> NDArray:  # noqa: N803
        grad_value, grad_advantage = self.split_gradient(E)
        return np.concatenate([
            self.value_network.gradient(X, grad_value),
            self.advantage_network.gradient(X, grad_advantage),
        ])

    # ── serialization ────────────────────────────────────────────
    def serialize(self, archive) -> None:
        with archive.scope("value"):
            self.value_network.serialize(archive)
        with archive.scope("advantage"):
            self.advantage_network.serialize(archive)
        if archive.is_loading:
            self._parameters = None

    def __repr__(self) -> str:
        value = repr(self.value_network).replace("\n", "\n  ")
        advantage = repr(self.advantage_network).replace("\n", "\n  ")
        return f"DuelingStreams(\n  value={value},\n  advantage={advantage}\n)"
