"""
Sequential Container
====================

A ``Sequential`` chains layers in order, forwarding the output of each
layer as input to the next.  Backward propagation flows in reverse.

Architecture diagram
--------------------
::

    X ─→ [Layer 0] ─→ [Layer 1] ─→ ... ─→ [Layer N-1] ─→ Ŷ

    ∂L/∂X ←─ [Layer 0] ←─ [Layer 1] ←─ ... ←─ [Layer N-1] ←─ ∂L/∂Ŷ

Parameter block
---------------
The container is itself a ``Layer``.  Its parameters are ONE flat block,
the concatenation of its children's blocks; each trainable child receives
a contiguous view of it::

    θ = [ θ_0 | θ_1 | ... | θ_{N-1} ]

so writing to ``θ`` updates every child's weight and bias views, and
``gradient`` returns a vector with exactly the same layout.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from ..core.layer import Layer, install_block
from ..exceptions import PreconditionError, SerializationError, ShapeMismatchError
from ..serialization import DictArchive


def input_size_of(layer: Layer) -> int | None:
    """Rows a layer expects, or None when the layer accepts any width."""
    size = getattr(layer, "in_size", None)
    if size is None:
        size = getattr(layer, "input_size", None)
    return size


def output_size_of(layer: Layer) -> int | None:
    """Rows a layer produces, or None when it keeps its input width."""
    size = getattr(layer, "out_size", None)
    if size is None:
        size = getattr(layer, "output_size", None)
    return size


class Sequential(Layer):
    """Sequential container — holds an ordered list of owned layers.

    Parameters
    ----------
    *layers : Layer
        Variadic initial layers (can also be added later with ``add``).

    Example
    -------
    >>> from qnets.core import NoisyLinear, ReLU
    >>> net = Sequential(NoisyLinear(4, 8), ReLU(), NoisyLinear(8, 2))
    >>> net.parameters = np.random.randn(net.weight_size)
    >>> Q = net.forward(states)          # states: (4, batch)
    """

    def __init__(self, *layers: Layer) -> None:
        self._layers: list[Layer] = list(layers)
        self._parameters: NDArray | None = None

        # caches of the last forward / backward sweep
        self._inputs: list[NDArray] | None = None
        self._errors: list[NDArray] | None = None

    # ── layer management ─────────────────────────────────────────
    def add(self, layer: Layer) -> "Sequential":
        """Append a layer and return self (for chaining)."""
        self._layers.append(layer)
        # the block no longer covers every child
        self._parameters = None
        self._inputs = None
        self._errors = None
        return self

    @property
    def layers(self) -> list[Layer]:
        return self._layers

    @property
    def trainable(self) -> bool:  # type: ignore[override]
        return any(layer.trainable for layer in self._layers)

    @property
    def input_size(self) -> int | None:
        for layer in self._layers:
            size = input_size_of(layer)
            if size is not None:
                return size
        return None

    @property
    def output_size(self) -> int | None:
        for layer in reversed(self._layers):
            size = output_size_of(layer)
            if size is not None:
                return size
        return None

    # ── parameter block ──────────────────────────────────────────
    @property
    def weight_size(self) -> int:
        return sum(layer.weight_size for layer in self._layers)

    @property
    def parameters(self) -> NDArray:
        if self._parameters is None or self._parameters.size != self.weight_size:
            self.collect_parameters()
        return self._parameters

    @parameters.setter
    def parameters(self, block: NDArray) -> None:
        install_block(self, block)
        self._install(block)

    def collect_parameters(self) -> None:
        """Gather the children's current values into a fresh block and install it."""
        parts = [layer.parameters.ravel() for layer in self._layers if layer.weight_size]
        block = np.concatenate(parts) if parts else np.zeros(0)
        self._install(block.astype(np.float64))

    def _install(self, block: NDArray) -> None:
        self._parameters = block
        offset = 0
        for layer in self._layers:
            n = layer.weight_size
            if n:
                layer.parameters = block[offset:offset + n]
                offset += n
            # empty layers still need their (empty) views
            layer.reset()

    def reset(self) -> None:
        """Re-install the current block into every child (rebuilds all views)."""
        if self._parameters is None or self._parameters.size != self.weight_size:
            self.collect_parameters()
        else:
            self._install(self._parameters)

    # ── forward ──────────────────────────────────────────────────
    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        """Forward pass: pipe X through every layer, caching each input.

        Parameters
        ----------
        X : ndarray, shape (n_features, batch_size)

        Returns
        -------
        Y_hat : ndarray — output of the last layer.
        """
        inputs: list[NDArray] = []
        out: NDArray = X
        for layer in self._layers:
            inputs.append(out)
            out = layer.forward(out)
        self._inputs = inputs
        self._errors = None
        return out

    def predict(self, X: NDArray) -> NDArray:  # noqa: N803
        """Inference pass; leaves the training caches untouched."""
        out: NDArray = X
        for layer in self._layers:
            out = layer.predict(out)
        return out

    def layer_input(self, index: int) -> NDArray:
        """Input fed to ``layers[index]`` during the last ``forward``."""
        if self._inputs is None:
            raise PreconditionError("call forward() before reading layer inputs")
        return self._inputs[index]

    # ── backward ─────────────────────────────────────────────────
    def backward(self, X: NDArray, dY: NDArray) -> NDArray:  # noqa: N803
        """Backward pass: propagate gradient in reverse layer order.

        Each layer receives the input it saw during the last ``forward``.

        Returns
        -------
        dX : ndarray — gradient w.r.t. the container input.
        """
        if self._inputs is None:
            raise PreconditionError("call forward() before backward()")

        errors: list[NDArray] = [dY] * len(self._layers)
        grad: NDArray = dY
        for i in reversed(range(len(self._layers))):
            errors[i] = grad
            grad = self._layers[i].backward(self._inputs[i], grad)
        self._errors = errors
        return grad

    # ── parameter gradient ───────────────────────────────────────
    def gradient(self, X: NDArray, E: NDArray) -> NDArray:  # noqa: N803
        """Concatenate every child's parameter gradient.

        Uses the per-layer inputs and errors cached by the last
        ``forward`` / ``backward`` sweep, which must have been run with
        ``X`` and ``E``.
        """
        if self._inputs is None or self._errors is None:
            raise PreconditionError("call forward() and backward() before gradient()")
        if self._errors and self._errors[-1].shape != E.shape:
            raise ShapeMismatchError(
                f"error {E.shape} does not match the last backward sweep "
                f"{self._errors[-1].shape}"
            )

        parts = [
            layer.gradient(self._inputs[i], self._errors[i])
            for i, layer in enumerate(self._layers)
            if layer.weight_size
        ]
        return np.concatenate(parts) if parts else np.zeros(0, dtype=np.float64)

    # ── serialization ────────────────────────────────────────────
    def serialize(self, archive) -> None:
        """Save or load every child under a ``layer_<i>`` scope.

        A load that fails part-way puts every child back into its previous
        state, views into this container's block included, then re-raises.
        """
        if not archive.is_loading:
            self._serialize_layers(archive)
            return

        previous = self._parameters
        snapshot = DictArchive()
        self._serialize_layers(snapshot)
        try:
            self._serialize_layers(archive)
        except SerializationError:
            self._serialize_layers(snapshot.loader())
            if previous is not None and previous.size == self.weight_size:
                self._install(previous)
            else:
                self.collect_parameters()
            raise

        # children now own freshly sized blocks
        self.collect_parameters()
        self._inputs = None
        self._errors = None

    def _serialize_layers(self, archive) -> None:
        for i, layer in enumerate(self._layers):
            with archive.scope(f"layer_{i}"):
                layer.serialize(archive)

    # ── utilities ────────────────────────────────────────────────
    def count_params(self) -> int:
        """Total number of trainable scalar parameters."""
        return self.weight_size

    def summary(self) -> str:
        """Return a Keras-style model summary."""
        lines: list[str] = []
        header = f"{'Layer':<30} {'Output Shape':<20} {'# Params':>10}"
        lines.append(header)
        lines.append("=" * len(header))
        for layer in self._layers:
            out_size = output_size_of(layer)
            out_shape = f"({out_size}, batch)" if out_size is not None else ""
            name = repr(layer).splitlines()[0]
            lines.append(f"{name:<30} {out_shape:<20} {layer.weight_size:>10,}")
        lines.append("=" * len(header))
        lines.append(f"Total trainable params: {self.weight_size:,}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __repr__(self) -> str:
        inner = ",\n  ".join(repr(l) for l in self._layers)
        return f"Sequential(\n  {inner}\n)"
