"""Activation strategies and their serialization registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Union

import numpy as np

from .errors import ConfigurationError
from .types import Array

Value = Union[float, Array]


@dataclass(frozen=True)
class ActivationFunction:
    """Elementwise activation with its derivative.

    ``code`` identifies the function inside saved network files and must be
    unique among registered activations.
    """

    name: str
    code: int
    fn: Callable[[Value], Value]
    derivative_fn: Callable[[Value], Value]

    def activation(self, z: Value) -> Value:
        return self.fn(z)

    def activation_derivative(self, z: Value) -> Value:
        return self.derivative_fn(z)

    __call__ = activation


def _sigmoid(z: Value) -> Value:
    return 1.0 / (1.0 + np.exp(-z))


def _sigmoid_deriv(z: Value) -> Value:
    a = _sigmoid(z)
    return a * (1.0 - a)


def _tanh(z: Value) -> Value:
    return np.tanh(z)


def _tanh_deriv(z: Value) -> Value:
    return 1.0 - np.tanh(z) ** 2


class ActivationRegistry:
    """Closed mapping from code (and name) to activation instance."""

    def __init__(self) -> None:
        self._by_code: Dict[int, ActivationFunction] = {}
        self._by_name: Dict[str, ActivationFunction] = {}

    def register(self, activation: ActivationFunction) -> ActivationFunction:
        if activation.code in self._by_code:
            raise ValueError(f"Activation code {activation.code} already registered")
        self._by_code[activation.code] = activation
        self._by_name[activation.name] = activation
        return activation

    def by_code(self, code: int) -> ActivationFunction:
        try:
            return self._by_code[code]
        except KeyError as exc:
            raise KeyError(f"Unknown activation code: {code}") from exc

    def resolve(self, value: "str | int | ActivationFunction") -> ActivationFunction:
        if isinstance(value, ActivationFunction):
            return value
        if isinstance(value, int):
            try:
                return self.by_code(value)
            except KeyError as exc:
                raise ConfigurationError(str(exc.args[0])) from exc
        if value not in self._by_name:
            available = ", ".join(self.names())
            raise ConfigurationError(
                f"Unknown activation {value!r}. Available activations: {available}"
            )
        return self._by_name[value]

    def names(self) -> Iterable[str]:
        return sorted(self._by_name)


ACTIVATIONS = ActivationRegistry()

SIGMOID = ACTIVATIONS.register(
    ActivationFunction("sigmoid", 0, _sigmoid, _sigmoid_deriv)
)
TANH = ACTIVATIONS.register(ActivationFunction("tanh", 1, _tanh, _tanh_deriv))

__all__ = ["ActivationFunction", "ActivationRegistry", "ACTIVATIONS", "SIGMOID", "TANH"]
