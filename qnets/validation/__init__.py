"""Numerical gradient verification for backpropagation correctness."""

from .gradient_check import gradient_check, gradient_check_layer, gradient_check_network

__all__ = ["gradient_check", "gradient_check_layer", "gradient_check_network"]
