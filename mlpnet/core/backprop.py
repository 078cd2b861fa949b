"""Backpropagation of a single labelled sample."""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .errors import ConfigurationError
from .network import Network
from .types import Array, ForwardState, Gradients

Masks = Sequence[Optional[Array]]


def draw_dropout_masks(
    network: Network, keep_probability: float, rng: np.random.Generator
) -> List[Optional[Array]]:
    """Draw one inverted-dropout mask per hidden layer.

    Kept neurons carry ``1 / keep_probability`` so the expected pre-activation
    of the next layer matches inference, where no mask is applied. The input
    and output layers are never masked (``None``).
    """

    sizes = network.layer_sizes
    masks: List[Optional[Array]] = [None] * len(sizes)
    for i in range(1, len(sizes) - 1):
        keep = rng.random(sizes[i]) < keep_probability
        masks[i] = keep.astype(np.float64) / keep_probability
    return masks


def forward_with_state(
    network: Network, values: Array, masks: Optional[Masks] = None
) -> ForwardState:
    """Forward pass keeping every layer's weighted sums and activations."""

    a = network.check_input(values)
    activation = network.activation
    weighted_sums: List[Array] = [np.zeros(0)]
    activations: List[Array] = [a]
    for i in range(1, network.num_layers):
        z = network.weights[i] @ a + network.biases[i]
        a = activation.activation(z)
        if masks is not None and masks[i] is not None:
            a = a * masks[i]
        weighted_sums.append(z)
        activations.append(a)
    return ForwardState(weighted_sums=weighted_sums, activations=activations)


def backprop(
    network: Network,
    values: Array,
    expected: Array,
    masks: Optional[Masks] = None,
) -> Gradients:
    """Return ``dC/db`` and ``dC/dW`` for one sample.

    The returned lists are index-aligned with ``network.biases`` and
    ``network.weights`` (slot 0 is empty).
    """

    y = np.asarray(expected, dtype=np.float64).reshape(-1)
    if y.shape[0] != network.output_size:
        raise ConfigurationError(
            f"Expected output has {y.shape[0]} values but the network produces "
            f"{network.output_size}"
        )
    state = forward_with_state(network, values, masks)
    activation = network.activation
    k = network.num_layers - 1

    grads = Gradients.zeros_like(network.biases, network.weights)
    z = state.weighted_sums
    a = state.activations

    error = activation.activation_derivative(z[k]) * network.cost.cost_derivative(y, a[k])
    grads.biases[k] = error
    grads.weights[k] = np.outer(error, a[k - 1])
    for i in range(k - 1, 0, -1):
        error = activation.activation_derivative(z[i]) * (network.weights[i + 1].T @ error)
        if masks is not None and masks[i] is not None:
            error = error * masks[i]
        grads.biases[i] = error
        grads.weights[i] = np.outer(error, a[i - 1])
    return grads


__all__ = ["backprop", "draw_dropout_masks", "forward_with_state"]
