"""Core building blocks: layers, activations, losses, optimizers, initializers."""

from .activations import Identity, LeakyReLU, ReLU, Sigmoid, Tanh
from .layer import Layer, NoisyLinear
from .losses import EmptyLoss, MeanSquaredError
from .optimizers import Adam, StandardSGD
from .initializers import (
    ConstInitialization,
    GaussianInitialization,
    RandomInitialization,
    ZeroInitialization,
)

__all__ = [
    "ReLU", "LeakyReLU", "Sigmoid", "Tanh", "Identity",
    "Layer", "NoisyLinear",
    "MeanSquaredError", "EmptyLoss",
    "StandardSGD", "Adam",
    "GaussianInitialization", "RandomInitialization",
    "ConstInitialization", "ZeroInitialization",
]
