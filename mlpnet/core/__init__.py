"""Core numerical primitives for mlpnet."""

from . import activations, backprop, costs, errors, network, persistence, types

__all__ = ["activations", "backprop", "costs", "errors", "network", "persistence", "types"]
