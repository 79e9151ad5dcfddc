"""Network containers: the layer graph and its feed-forward driver."""

from .sequential import Sequential
from .ffn import FFN

__all__ = ["Sequential", "FFN"]
