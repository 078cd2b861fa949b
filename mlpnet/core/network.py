"""Parameter store, forward pass and classifier adapter."""

from __future__ import annotations

from pathlib import Path
from typing import Hashable, Iterable, List, Optional, Sequence

import numpy as np

from .activations import ACTIVATIONS, ActivationFunction
from .costs import COSTS, CostFunction
from .errors import ConfigurationError
from .types import Array, Classifiable


def validate_topology(layer_sizes: Sequence[int]) -> tuple[int, ...]:
    """Return ``layer_sizes`` as a tuple or raise :class:`ConfigurationError`."""

    sizes = tuple(layer_sizes)
    if len(sizes) < 2:
        raise ConfigurationError(
            f"A network needs an input and an output layer, got {len(sizes)} layer(s)"
        )
    for idx, size in enumerate(sizes):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size < 1:
            raise ConfigurationError(f"Layer {idx} size must be a positive integer, got {size!r}")
    return tuple(int(size) for size in sizes)


def check_pairing(activation: ActivationFunction, cost: CostFunction) -> None:
    """Reject cost/activation pairs whose output error formula is invalid."""

    if cost.requires_sigmoid and activation.name != "sigmoid":
        raise ConfigurationError(
            f"The {cost.name} cost is only valid with sigmoid outputs, not {activation.name}"
        )


class Network:
    """Fully-connected feedforward network.

    ``weights[i]`` has shape ``(n_i, n_{i-1})`` and ``biases[i]`` length
    ``n_i`` for every layer ``i >= 1``. Index 0 holds empty arrays so that
    indices match layer numbers.

    Weights are drawn from ``N(0, 1/sqrt(n_{i-1}))`` and biases from
    ``N(0, 1)``.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: "str | int | ActivationFunction" = "sigmoid",
        cost: "str | int | CostFunction" = "cross_entropy",
        *,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._sizes = validate_topology(layer_sizes)
        self._activation = ACTIVATIONS.resolve(activation)
        self._cost = COSTS.resolve(cost)
        check_pairing(self._activation, self._cost)
        self.biases: List[Array] = []
        self.weights: List[Array] = []
        self.reset(rng if rng is not None else np.random.default_rng(seed))

    # ------------------------------------------------------------------
    # Parameter storage

    @classmethod
    def from_parameters(
        cls,
        layer_sizes: Sequence[int],
        weights: Sequence[Array],
        biases: Sequence[Array],
        activation: "str | int | ActivationFunction" = "sigmoid",
        cost: "str | int | CostFunction" = "cross_entropy",
    ) -> "Network":
        """Build a network from explicit per-layer parameters (layers 1..k)."""

        net = cls.__new__(cls)
        net._sizes = validate_topology(layer_sizes)
        net._activation = ACTIVATIONS.resolve(activation)
        net._cost = COSTS.resolve(cost)
        check_pairing(net._activation, net._cost)
        net.weights, net.biases = net._empty_parameters()
        net.set_parameters(weights, biases)
        return net

    def _empty_parameters(self) -> tuple[List[Array], List[Array]]:
        weights: List[Array] = [np.zeros((0, 0))]
        biases: List[Array] = [np.zeros(0)]
        for n_in, n_out in zip(self._sizes[:-1], self._sizes[1:]):
            weights.append(np.zeros((n_out, n_in)))
            biases.append(np.zeros(n_out))
        return weights, biases

    def reset(self, rng: np.random.Generator) -> None:
        """Re-draw every weight and bias from ``rng``."""

        weights, biases = self._empty_parameters()
        for i in range(1, len(self._sizes)):
            n_out, n_in = weights[i].shape
            biases[i] = rng.standard_normal(n_out)
            weights[i] = rng.standard_normal((n_out, n_in)) / np.sqrt(n_in)
        self.weights = weights
        self.biases = biases

    def set_parameters(self, weights: Sequence[Array], biases: Sequence[Array]) -> None:
        """Copy parameters for layers ``1..k`` into this network."""

        k = len(self._sizes) - 1
        if len(weights) != k or len(biases) != k:
            raise ConfigurationError(
                f"Expected parameters for {k} layers, got {len(weights)} weights "
                f"and {len(biases)} biases"
            )
        for i in range(1, k + 1):
            w = np.array(weights[i - 1], dtype=np.float64)
            b = np.array(biases[i - 1], dtype=np.float64).reshape(-1)
            if w.shape != self.weights[i].shape:
                raise ConfigurationError(
                    f"Layer {i} weights must have shape {self.weights[i].shape}, got {w.shape}"
                )
            if b.shape != self.biases[i].shape:
                raise ConfigurationError(
                    f"Layer {i} biases must have shape {self.biases[i].shape}, got {b.shape}"
                )
            self.weights[i] = w
            self.biases[i] = b

    def copy(self) -> "Network":
        """Return an independent deep copy."""

        return Network.from_parameters(
            self._sizes,
            self.weights[1:],
            self.biases[1:],
            activation=self._activation,
            cost=self._cost,
        )

    def copy_from(self, other: "Network") -> None:
        """Become an exact, independent copy of ``other`` (topology included)."""

        self._sizes = other.layer_sizes
        self._activation = other.activation
        self._cost = other.cost
        self.weights = [w.copy() for w in other.weights]
        self.biases = [b.copy() for b in other.biases]

    def parameter_count(self) -> int:
        return int(sum(w.size + b.size for w, b in zip(self.weights, self.biases)))

    @property
    def layer_sizes(self) -> tuple[int, ...]:
        return self._sizes

    @property
    def num_layers(self) -> int:
        return len(self._sizes)

    @property
    def input_size(self) -> int:
        return self._sizes[0]

    @property
    def output_size(self) -> int:
        return self._sizes[-1]

    @property
    def activation(self) -> ActivationFunction:
        return self._activation

    @property
    def cost(self) -> CostFunction:
        return self._cost

    def set_activation(self, activation: "str | int | ActivationFunction") -> None:
        resolved = ACTIVATIONS.resolve(activation)
        check_pairing(resolved, self._cost)
        self._activation = resolved

    def set_cost(self, cost: "str | int | CostFunction") -> None:
        resolved = COSTS.resolve(cost)
        check_pairing(self._activation, resolved)
        self._cost = resolved

    # ------------------------------------------------------------------
    # Inference

    def check_input(self, values: Array) -> Array:
        vector = np.asarray(values, dtype=np.float64).reshape(-1)
        if vector.shape[0] != self.input_size:
            raise ConfigurationError(
                f"Input has {vector.shape[0]} values but the network expects {self.input_size}"
            )
        return vector

    def forward(self, values: Array) -> Array:
        """Propagate ``values`` through every layer; return output activations."""

        a = self.check_input(values)
        for i in range(1, len(self._sizes)):
            a = self._activation.activation(self.weights[i] @ a + self.biases[i])
        return a

    def classify(self, sample: Classifiable) -> Hashable:
        return sample.to_label(self.forward(sample.as_input()))

    def evaluate(self, samples: Iterable[Classifiable]) -> int:
        """Count samples whose classification matches their label."""

        return sum(1 for sample in samples if self.classify(sample) == sample.label)

    def accuracy(self, samples: Sequence[Classifiable]) -> float:
        if not samples:
            raise ConfigurationError("Cannot compute accuracy of an empty sample set")
        return self.evaluate(samples) / len(samples)

    # ------------------------------------------------------------------
    # Persistence shortcuts

    def save(self, path: "str | Path") -> Path:
        from .persistence import save_network

        return save_network(self, path)

    @classmethod
    def load(cls, path: "str | Path") -> "Network":
        from .persistence import load_network

        return load_network(path)

    def load_file(self, path: "str | Path") -> None:
        """Replace this network's state with the contents of ``path``."""

        self.copy_from(self.load(path))

    def __repr__(self) -> str:
        sizes = ", ".join(str(n) for n in self._sizes)
        return (
            f"Network([{sizes}], activation={self._activation.name!r}, "
            f"cost={self._cost.name!r})"
        )


__all__ = ["Network", "validate_topology", "check_pairing"]
