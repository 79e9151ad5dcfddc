"""
Layer Abstractions — Base Layer & Noisy Linear Layer
====================================================

A *layer* maps an input matrix to an output matrix, back-propagates an
error signal, and (when trainable) computes the gradient of its own
parameters.  Layers are stateless with respect to activations: every
operation receives the input it needs explicitly.

Notation
--------
  X  : input           — shape (n_in, batch_size)   one column per sample
  Y  : output          — shape (n_out, batch_size)
  W  : weight view     — shape (n_out, n_in)
  b  : bias view       — shape (n_out, 1)
  dY : upstream grad   — ∂L/∂Y, shape (n_out, batch_size)
  dX : downstream grad — ∂L/∂X, shape (n_in, batch_size)

Parameter block
---------------
All learnable numbers of a layer live in ONE flat ``float64`` vector::

    θ = [ W (row-major, n_out·n_in values) | b (n_out values) ]

``W`` and ``b`` are numpy *views* into θ, rebuilt by ``reset()``.  A
container may hand the layer a slice of a larger block; the views then
alias the container's memory and a single vectorised optimizer step
updates every layer at once.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..exceptions import PreconditionError, SerializationError, ShapeMismatchError
from ..utils.logger import get_logger

logger = get_logger(__name__)


# ────────────────────────────────────────────────────────────────────
# Base class
# ────────────────────────────────────────────────────────────────────
class Layer:
    """Abstract layer interface.

    Every concrete layer must implement ``forward`` and ``backward``.
    Parameterless layers inherit the empty ``parameters`` / ``gradient``.
    """

    trainable: bool = False

    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        raise NotImplementedError

    def predict(self, X: NDArray) -> NDArray:  # noqa: N803
        """Inference-only pass; identical to ``forward`` for cache-free layers."""
        return self.forward(X)

    def backward(self, X: NDArray, dY: NDArray) -> NDArray:  # noqa: N803
        raise NotImplementedError

    def gradient(self, X: NDArray, E: NDArray) -> NDArray:  # noqa: N803
        """Return ∂L/∂θ laid out like ``parameters`` (empty by default)."""
        return np.zeros(0, dtype=np.float64)

    def reset(self) -> None:
        """Rebuild views over the parameter block (no-op by default)."""

    @property
    def weight_size(self) -> int:
        """Number of scalars in the parameter block."""
        return 0

    @property
    def parameters(self) -> NDArray:
        return np.zeros(0, dtype=np.float64)

    @parameters.setter
    def parameters(self, block: NDArray) -> None:
        if np.asarray(block).size != 0:
            raise ShapeMismatchError(
                f"{self.__class__.__name__} has no parameters, got a block of "
                f"{np.asarray(block).size} values"
            )

    def serialize(self, archive) -> None:
        """Persist / restore layer state through an ``Archive``."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def install_block(layer: Layer, block: NDArray) -> None:
    """Check that *block* can back *layer* as a view, without a copy."""
    if not isinstance(block, np.ndarray) or block.dtype != np.float64:
        raise TypeError("parameter blocks must be float64 numpy arrays")
    if block.ndim != 1 or block.size != layer.weight_size:
        raise ShapeMismatchError(
            f"{layer!r} expects a flat block of {layer.weight_size} values, "
            f"got shape {block.shape}"
        )
    if block.size and not block.flags.c_contiguous:
        raise ShapeMismatchError("parameter blocks must be contiguous")


# ────────────────────────────────────────────────────────────────────
# Noisy linear layer
# ────────────────────────────────────────────────────────────────────
class NoisyLinear(Layer):
    r"""Fully-connected layer whose weights live in one flat parameter block.

    The layer is the trainable linear map used by the Q-networks; its
    parameters are treated as a single stochastic vector, so an optimizer
    or a perturbation acts on the whole block at once.

    Forward pass
    ------------
    .. math::
        Y = W \cdot X + b \mathbf{1}^T

    Backward pass (input is not needed by a linear map)
    ---------------------------------------------------
    .. math::
        dX = W^T \cdot dY

    Parameter gradient
    ------------------
    .. math::
        \frac{\partial L}{\partial W} = E \cdot X^T
        \qquad
        \frac{\partial L}{\partial b} = E \cdot \mathbf{1}

    returned flattened as ``[vec(∂L/∂W) | ∂L/∂b]`` in the block layout.

    Parameters
    ----------
    in_size : int
        Number of input rows.
    out_size : int
        Number of output rows.

    Lifecycle
    ---------
    construct → ``reset()`` → forward / backward / gradient … →
    ``serialize`` (load resizes the block, then ``reset()`` again).
    """

    trainable: bool = True

    def __init__(self, in_size: int = 0, out_size: int = 0) -> None:
        super().__init__()
        for name, value in (("in_size", in_size), ("out_size", out_size)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        self.in_size = int(in_size)
        self.out_size = int(out_size)

        # θ = [W | b], owned until a container installs a view of its own
        self._parameters: NDArray = np.zeros(self._block_size(), dtype=np.float64)

        # Views; None until reset()
        self.weight: NDArray | None = None
        self.bias: NDArray | None = None

    def _block_size(self) -> int:
        return self.out_size * self.in_size + self.out_size

    # ── parameter block ──────────────────────────────────────────
    @property
    def weight_size(self) -> int:
        return self._block_size()

    @property
    def parameters(self) -> NDArray:
        return self._parameters

    @parameters.setter
    def parameters(self, block: NDArray) -> None:
        install_block(self, block)
        self._parameters = block
        # The old views point at the previous buffer
        self.weight = None
        self.bias = None

    def reset(self) -> None:
        """Rebuild ``weight`` and ``bias`` as aliases of the parameter block."""
        n_weight = self.out_size * self.in_size
        self.weight = self._parameters[:n_weight].reshape(self.out_size, self.in_size)
        self.bias = self._parameters[n_weight:].reshape(self.out_size, 1)

    def _check_ready(self) -> None:
        if self.weight is None or self.bias is None:
            raise PreconditionError(f"{self!r}: call reset() before using the layer")

    def _check_rows(self, name: str, array: NDArray, rows: int) -> None:
        if array.ndim != 2 or array.shape[0] != rows:
            raise ShapeMismatchError(
                f"{self!r}: {name} must have {rows} rows, got shape {array.shape}"
            )

    # ── forward ──────────────────────────────────────────────────
    def forward(self, X: NDArray) -> NDArray:  # noqa: N803
        """Compute Y = W · X + b.

        Parameters
        ----------
        X : ndarray, shape (in_size, batch_size)

        Returns
        -------
        Y : ndarray, shape (out_size, batch_size)
        """
        self._check_ready()
        self._check_rows("X", X, self.in_size)

        # bias (out, 1) broadcasts over the batch columns
        return self.weight @ X + self.bias

    # ── backward ─────────────────────────────────────────────────
    def backward(self, X: NDArray, dY: NDArray) -> NDArray:  # noqa: N803
        """Compute dX = Wᵀ · dY.

        ``X`` is accepted for interface symmetry and ignored.

        Returns
        -------
        dX : ndarray, shape (in_size, batch_size)
        """
        self._check_ready()
        self._check_rows("dY", dY, self.out_size)
        return self.weight.T @ dY

    # ── parameter gradient ───────────────────────────────────────
    def gradient(self, X: NDArray, E: NDArray) -> NDArray:  # noqa: N803
        """Compute ∂L/∂θ in the same flat layout as ``parameters``.

        Parameters
        ----------
        X : ndarray, shape (in_size, batch_size)
        E : ndarray, shape (out_size, batch_size) — error at the output.

        Returns
        -------
        gradient : ndarray, shape (weight_size,)
        """
        self._check_ready()
        self._check_rows("X", X, self.in_size)
        self._check_rows("E", E, self.out_size)
        if X.shape[1] != E.shape[1]:
            raise ShapeMismatchError(
                f"{self!r}: X has {X.shape[1]} samples, E has {E.shape[1]}"
            )

        gradient = np.empty(self.weight_size, dtype=np.float64)
        n_weight = self.out_size * self.in_size

        # dW = E · Xᵀ  →  (out, in), flattened row-major like the weight view
        gradient[:n_weight] = (E @ X.T).ravel()
        # db = Σ over batch columns  →  (out,)
        gradient[n_weight:] = E.sum(axis=1)
        return gradient

    # ── serialization ────────────────────────────────────────────
    def serialize(self, archive) -> None:
        """Save or load ``in_size``, ``out_size`` and then the block.

        On load the block is sized from the restored sizes *before* its
        contents are read; the views are dropped and must be rebuilt with
        ``reset()``.  An inconsistent archive raises ``SerializationError``
        and leaves the layer untouched.
        """
        if not archive.is_loading:
            archive.field("in_size", self.in_size)
            archive.field("out_size", self.out_size)
            archive.field("parameters", self._parameters)
            return

        in_size = int(archive.field("in_size"))
        out_size = int(archive.field("out_size"))
        if in_size < 0 or out_size < 0:
            raise SerializationError(
                f"archive declares negative sizes ({in_size}, {out_size})"
            )

        block = np.zeros(out_size * in_size + out_size, dtype=np.float64)
        stored = np.asarray(archive.field("parameters"), dtype=np.float64).ravel()
        if stored.size != block.size:
            raise SerializationError(
                f"NoisyLinear({in_size}, {out_size}) needs "
                f"{block.size} parameters, archive holds {stored.size}"
            )
        block[...] = stored

        self.in_size = in_size
        self.out_size = out_size
        self._parameters = block
        self.weight = None
        self.bias = None
        logger.debug(f"Loaded {self!r} ({stored.size} parameters)")

    def __repr__(self) -> str:
        return f"NoisyLinear({self.in_size}, {self.out_size})"
