"""Cost strategies and their serialization registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import ConfigurationError
from .types import Array

CostFn = Callable[[Array, Array], float]
CostDerivFn = Callable[[Array, Array], Array]


@dataclass(frozen=True)
class CostFunction:
    """Per-output-neuron cost derivative ``dC/da``.

    ``requires_sigmoid`` marks costs whose derivative is only meaningful when
    the output layer uses the sigmoid activation.
    """

    name: str
    code: int
    fn: CostFn
    derivative_fn: CostDerivFn
    requires_sigmoid: bool = False

    def cost(self, expected: Array, actual: Array) -> float:
        return self.fn(expected, actual)

    def cost_derivative(self, expected, actual):
        return self.derivative_fn(expected, actual)


def _quadratic(y: Array, a: Array) -> float:
    diff = np.asarray(a) - np.asarray(y)
    return float(0.5 * np.sum(diff * diff))


def _quadratic_deriv(y, a):
    return a - y


def _cross_entropy(y: Array, a: Array) -> float:
    y = np.asarray(y)
    a = np.asarray(a)
    return float(-np.sum(y * np.log(a) + (1.0 - y) * np.log(1.0 - a)))


def _cross_entropy_deriv(y, a):
    return (1.0 - y) / (1.0 - a) - y / a


class CostRegistry:
    """Closed mapping from code (and name) to cost instance."""

    def __init__(self) -> None:
        self._by_code: Dict[int, CostFunction] = {}
        self._by_name: Dict[str, CostFunction] = {}

    def register(self, cost: CostFunction) -> CostFunction:
        if cost.code in self._by_code:
            raise ValueError(f"Cost code {cost.code} already registered")
        self._by_code[cost.code] = cost
        self._by_name[cost.name] = cost
        return cost

    def by_code(self, code: int) -> CostFunction:
        try:
            return self._by_code[code]
        except KeyError as exc:
            raise KeyError(f"Unknown cost code: {code}") from exc

    def resolve(self, value: "str | int | CostFunction") -> CostFunction:
        if isinstance(value, CostFunction):
            return value
        if isinstance(value, int):
            try:
                return self.by_code(value)
            except KeyError as exc:
                raise ConfigurationError(str(exc.args[0])) from exc
        if value not in self._by_name:
            available = ", ".join(self.names())
            raise ConfigurationError(f"Unknown cost {value!r}. Available costs: {available}")
        return self._by_name[value]

    def names(self) -> Iterable[str]:
        return sorted(self._by_name)


COSTS = CostRegistry()

QUADRATIC = COSTS.register(CostFunction("quadratic", 0, _quadratic, _quadratic_deriv))
CROSS_ENTROPY = COSTS.register(
    CostFunction(
        "cross_entropy",
        1,
        _cross_entropy,
        _cross_entropy_deriv,
        requires_sigmoid=True,
    )
)

__all__ = ["CostFunction", "CostRegistry", "COSTS", "QUADRATIC", "CROSS_ENTROPY"]
