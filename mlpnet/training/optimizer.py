"""Mini-batch gradient accumulation and the SGD update rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..core.backprop import backprop, draw_dropout_masks
from ..core.network import Network
from ..core.types import Array, Classifiable, Gradients

logger = logging.getLogger(__name__)


@dataclass
class SGDOptimizer:
    """SGD with L2 weight decay and optional momentum.

    The velocity buffer belongs to one training run: call :meth:`reset`
    before the first step of every run.
    """

    regularization: float = 0.0
    momentum: Optional[float] = None
    velocity: Optional[List[Array]] = field(default=None, init=False, repr=False)

    def reset(self, network: Network) -> None:
        if self.momentum is None:
            self.velocity = None
        else:
            self.velocity = [np.zeros_like(w) for w in network.weights]

    def step(
        self,
        network: Network,
        grads: Gradients,
        learning_rate: float,
        data_size: int,
    ) -> None:
        """Apply averaged ``grads`` to ``network`` in place.

        ``data_size`` is the size of the whole training set and normalises
        the weight-decay term.
        """

        decay = 1.0 - learning_rate * self.regularization / data_size
        if self.momentum is not None and self.velocity is None:
            self.reset(network)
        for i in range(1, network.num_layers):
            network.biases[i] -= learning_rate * grads.biases[i]
            if self.velocity is not None:
                v = self.velocity[i]
                v *= self.momentum
                v -= learning_rate * grads.weights[i]
                network.weights[i] = network.weights[i] * decay + v
            else:
                network.weights[i] = network.weights[i] * decay - learning_rate * grads.weights[i]


def _is_well_formed(network: Network, sample: Optional[Classifiable]) -> bool:
    if sample is None:
        return False
    x = np.asarray(sample.as_input())
    y = np.asarray(sample.expected_output())
    return x.size == network.input_size and y.size == network.output_size


def accumulate_gradients(
    network: Network,
    batch: Sequence[Optional[Classifiable]],
    *,
    keep_probability: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> tuple[Gradients, int]:
    """Sum per-sample gradients over ``batch``.

    Returns the summed gradients and the number of samples that contributed.
    Malformed samples are logged and skipped.
    """

    total = Gradients.zeros_like(network.biases, network.weights)
    used = 0
    for sample in batch:
        if not _is_well_formed(network, sample):
            logger.warning("Skipping malformed training sample: %r", sample)
            continue
        masks = None
        if keep_probability is not None and keep_probability < 1.0:
            if rng is None:
                rng = np.random.default_rng()
            masks = draw_dropout_masks(network, keep_probability, rng)
        total.accumulate(
            backprop(network, sample.as_input(), sample.expected_output(), masks)
        )
        used += 1
    return total, used


def learn_from_mini_batch(
    network: Network,
    batch: Sequence[Optional[Classifiable]],
    optimizer: SGDOptimizer,
    learning_rate: float,
    data_size: int,
    *,
    keep_probability: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> int:
    """One gradient step from the averaged gradient of ``batch``.

    The full batch gradient is computed before any parameter changes.
    Returns the number of samples used; nothing is updated if it is zero.
    """

    grads, used = accumulate_gradients(
        network, batch, keep_probability=keep_probability, rng=rng
    )
    if used == 0:
        logger.warning("Mini-batch had no usable samples; skipping update")
        return 0
    grads.scale(1.0 / used)
    optimizer.step(network, grads, learning_rate, data_size)
    return used


__all__ = ["SGDOptimizer", "accumulate_gradients", "learn_from_mini_batch"]
