"""
Shared fixtures for qnets tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def linear():
    """A reset NoisyLinear(3, 2) with distinct, known parameters."""
    from qnets.core.layer import NoisyLinear

    layer = NoisyLinear(3, 2)
    layer.parameters[:] = np.arange(1.0, layer.weight_size + 1.0)
    layer.reset()
    return layer


@pytest.fixture
def dueling():
    """Small dueling network with well-spread weights (no ReLU near-kinks)."""
    from qnets.q_networks.dueling_dqn import DuelingDQN

    net = DuelingDQN(4, 8, 4, 3, seed=0)
    net.parameters = np.random.default_rng(7).normal(0.0, 0.5, net.parameters.size)
    return net
