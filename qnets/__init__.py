"""qnets — noisy linear layers and dueling Q-networks on NumPy."""

from .core import NoisyLinear, ReLU
from .network import FFN, Sequential
from .q_networks import DuelingDQN, DuelingStreams
from .serialization import DictArchive, NpzArchive

__version__ = "1.0.0"

__all__ = [
    "NoisyLinear", "ReLU",
    "Sequential", "FFN",
    "DuelingDQN", "DuelingStreams",
    "DictArchive", "NpzArchive",
]
