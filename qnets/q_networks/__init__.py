"""Q-network architectures."""

from .dueling_dqn import DuelingDQN
from .dueling_streams import DuelingStreams

__all__ = ["DuelingDQN", "DuelingStreams"]
