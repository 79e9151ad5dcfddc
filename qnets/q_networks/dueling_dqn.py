"""Dueling deep Q-network (Wang et al., 2016).

Decomposes Q(s, a) = V(s) + A(s, a) − mean_a A(s, a).
A shared feature network feeds two sibling streams; after construction the
feature network owns the fused streams as its last layer, so the whole
composition has exactly one parameter block.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.activations import ReLU
from ..core.initializers import GaussianInitialization, Initialization
from ..core.layer import NoisyLinear
from ..core.losses import EmptyLoss, Loss, MeanSquaredError
from ..exceptions import PreconditionError
from ..network.ffn import FFN
from ..network.sequential import Sequential
from ..serialization import NpzArchive
from ..utils.logger import get_logger
from .dueling_streams import DuelingStreams

logger = get_logger(__name__)


class DuelingDQN:
    """Dueling Q-network over column-per-state batches.

    Default architecture::

        feature   : NoisyLinear(input_dim → h1) → ReLU
        value     : NoisyLinear(h1 → h2) → ReLU → NoisyLinear(h2 → 1)
        advantage : NoisyLinear(h1 → h2) → ReLU → NoisyLinear(h2 → output_dim)

    Parameters
    ----------
    input_dim  : int — state dimensionality.
    h1         : int — width of the shared feature layer.
    h2         : int — hidden width of both streams.
    output_dim : int — number of discrete actions.
    initialization : Initialization — defaults to ``GaussianInitialization(0, 0.001)``.
    seed       : int | None — seed of the initialization RNG.
    """

    def __init__(
        self,
        input_dim: int,
        h1: int,
        h2: int,
        output_dim: int,
        initialization: Initialization | None = None,
        seed: int | None = None,
    ) -> None:
        for name, value in (("input_dim", input_dim), ("h1", h1), ("h2", h2), ("output_dim", output_dim)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

        feature_network = FFN(
            EmptyLoss(),
            initialization if initialization is not None else GaussianInitialization(0.0, 0.001),
            seed=seed,
        )
        feature_network.add(NoisyLinear(input_dim, h1))
        feature_network.add(ReLU())

        value_network = Sequential(NoisyLinear(h1, h2), ReLU(), NoisyLinear(h2, 1))
        advantage_network = Sequential(NoisyLinear(h1, h2), ReLU(), NoisyLinear(h2, output_dim))

        self._fuse(feature_network, advantage_network, value_network, output_dim)

    @classmethod
    def from_networks(
        cls,
        feature_network: FFN | Sequential,
        advantage_network: Sequential,
        value_network: Sequential,
        output_dim: int | None = None,
    ) -> "DuelingDQN":
        """Take ownership of pre-built networks and fuse them.

        A bare ``Sequential`` feature network is wrapped in an ``FFN`` with
        the default Gaussian initialization.  Parameters are re-initialized
        on first use, as for any ``FFN`` that gained layers.
        """
        if isinstance(feature_network, Sequential):
            wrapped = FFN(EmptyLoss())
            for layer in feature_network:
                wrapped.add(layer)
            feature_network = wrapped
        elif not isinstance(feature_network.loss_fn, EmptyLoss):
            # the dueling network owns the loss
            feature_network.loss_fn = EmptyLoss()

        obj = cls.__new__(cls)
        obj._fuse(feature_network, advantage_network, value_network, output_dim)
        return obj

    @classmethod
    def from_config(cls, config: Any) -> "DuelingDQN":
        """Build from a loaded config (``network`` / ``initialization`` / ``seed``)."""
        net = config["network"]
        init = config.get("initialization") or {}
        return cls(
            int(net["input_dim"]),
            int(net["h1"]),
            int(net["h2"]),
            int(net["output_dim"]),
            initialization=GaussianInitialization(
                float(init.get("mean", 0.0)), float(init.get("std", 0.001))
            ),
            seed=config.get("seed"),
        )

    def _fuse(
        self,
        feature_network: FFN,
        advantage_network: Sequential,
        value_network: Sequential,
        output_dim: int | None,
    ) -> None:
        streams = DuelingStreams(value_network, advantage_network)
        self.output_dim = streams.validate(feature_network.network.output_size, output_dim)
        feature_network.add(streams)

        self._feature_network = feature_network
        self._value_network = value_network
        self._advantage_network = advantage_network
        self._streams = streams
        self.loss_fn: Loss = MeanSquaredError()

        # training caches, written by forward()
        self._network_output: NDArray | None = None
        self._features: NDArray | None = None

        logger.debug(
            f"Built DuelingDQN with {self._feature_network.weight_size} parameters, "
            f"{self.output_dim} actions"
        )

    # ── sub-networks ─────────────────────────────────────────────
    @property
    def feature_network(self) -> FFN:
        return self._feature_network

    @property
    def value_network(self) -> Sequential:
        return self._value_network

    @property
    def advantage_network(self) -> Sequential:
        return self._advantage_network

    @property
    def streams(self) -> DuelingStreams:
        return self._streams

    @property
    def features(self) -> NDArray | None:
        """Shared features from the last ``forward``."""
        return self._features

    @property
    def network_output(self) -> NDArray | None:
        """Action values from the last ``forward``."""
        return self._network_output

    # ── inference ────────────────────────────────────────────────
    def predict(self, state: NDArray) -> NDArray:
        """Return Q(s, ·), shape ``(output_dim, batch)``; writes no cache."""
        return self._feature_network.predict(state)

    def forward(self, state: NDArray) -> NDArray:
        """Same values as ``predict``, caching output and features for ``backward``."""
        output = self._feature_network.forward(state)
        self._features = self._feature_network.layer_input(-1)
        self._network_output = output
        return output

    # ── training ─────────────────────────────────────────────────
    def backward(self, state: NDArray, target: NDArray) -> NDArray:
        """Gradient of the loss against *target* for the last ``forward``.

        The loss gradient on Q is split by the streams node (sum for V,
        centered copy for A), each branch back-propagates to the shared
        features, the two feature gradients are summed and the feature
        network finishes the sweep.

        Returns
        -------
        gradient : ndarray, shape (len(parameters),) — block layout.
        """
        if self._network_output is None:
            raise PreconditionError("call forward() before backward()")
        grad_loss = self.loss_fn.backward(self._network_output, target)
        return self._feature_network.backward(state, grad_loss)

    def evaluate(self, state: NDArray, target: NDArray) -> float:
        return self.loss_fn.forward(self.predict(state), target)

    def reset_parameters(self) -> None:
        """Fresh random initialization of the feature, value and advantage networks."""
        self._feature_network.reset_parameters()
        self._network_output = None
        self._features = None

    @property
    def parameters(self) -> NDArray:
        return self._feature_network.parameters

    @parameters.setter
    def parameters(self, values: NDArray) -> None:
        self._feature_network.parameters = values

    # ── persistence ──────────────────────────────────────────────
    def serialize(self, archive) -> None:
        self._feature_network.serialize(archive)
        if archive.is_loading:
            # layer sizes come from the archive
            trunk_size = Sequential(*self._feature_network.layers[:-1]).output_size
            self.output_dim = self._streams.validate(trunk_size)
            self._network_output = None
            self._features = None

    def save(self, path: Path | str) -> Path:
        archive = NpzArchive()
        self.serialize(archive)
        return archive.save(path)

    def load(self, path: Path | str) -> None:
        self.serialize(NpzArchive.load(path))
        logger.info(f"Loaded DuelingDQN parameters from {path}")

    def __repr__(self) -> str:
        return (
            f"DuelingDQN(input_dim={self._feature_network.network.input_size}, "
            f"output_dim={self.output_dim}, parameters={self._feature_network.weight_size})"
        )
