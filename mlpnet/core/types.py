"""Core typing contracts for mlpnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, List, Optional, Protocol, runtime_checkable

import numpy as np

Array = np.ndarray


@runtime_checkable
class Classifiable(Protocol):
    """Anything a :class:`~mlpnet.core.network.Network` can learn from or classify.

    ``label`` is opaque to the engine: it is only compared for equality with
    the result of :meth:`to_label` during evaluation.
    """

    @property
    def label(self) -> Hashable:
        """The true classification of this sample."""

    def as_input(self) -> Array:
        """Return the network input vector (length ``n0``)."""

    def expected_output(self) -> Array:
        """Return the desired output activations (length ``nk``)."""

    def to_label(self, output: Array) -> Hashable:
        """Map raw output activations onto a label."""


@dataclass
class ForwardState:
    """Weighted sums and activations retained for backpropagation.

    Index 0 of ``activations`` is the input vector; ``weighted_sums[0]`` is an
    empty placeholder so indices match layer numbers.
    """

    weighted_sums: List[Array]
    activations: List[Array]


@dataclass
class Gradients:
    """Per-layer gradients, shaped like the network's parameters."""

    biases: List[Array]
    weights: List[Array]

    @classmethod
    def zeros_like(cls, biases: List[Array], weights: List[Array]) -> "Gradients":
        return cls(
            biases=[np.zeros_like(b) for b in biases],
            weights=[np.zeros_like(w) for w in weights],
        )

    def accumulate(self, other: "Gradients") -> None:
        for idx in range(len(self.biases)):
            self.biases[idx] += other.biases[idx]
            self.weights[idx] += other.weights[idx]

    def scale(self, factor: float) -> None:
        for idx in range(len(self.biases)):
            self.biases[idx] *= factor
            self.weights[idx] *= factor


@dataclass(frozen=True)
class EpochRecord:
    """Outcome of one training epoch."""

    epoch: int
    cycle: int
    learning_rate: float
    correct: Optional[int] = None
    total: Optional[int] = None

    @property
    def accuracy(self) -> Optional[float]:
        if self.correct is None or not self.total:
            return None
        return self.correct / self.total

    def as_metrics(self) -> dict[str, Any]:
        metrics: dict[str, Any] = {
            "cycle": self.cycle,
            "learning_rate": self.learning_rate,
        }
        if self.correct is not None:
            metrics["correct"] = self.correct
            metrics["accuracy"] = self.accuracy
        return metrics


@dataclass
class TrainingHistory:
    """Summary returned by every :class:`~mlpnet.training.trainer.Trainer` run."""

    records: List[EpochRecord] = field(default_factory=list)
    best_accuracy: Optional[float] = None
    best_epoch: Optional[int] = None
    best_cycle: Optional[int] = None

    def add(self, record: EpochRecord) -> bool:
        """Append ``record``; return ``True`` if it beats the best so far."""

        self.records.append(record)
        accuracy = record.accuracy
        if accuracy is None or record.epoch == 0:
            return False
        if self.best_accuracy is None or accuracy > self.best_accuracy:
            self.best_accuracy = accuracy
            self.best_epoch = record.epoch
            self.best_cycle = record.cycle
            return True
        return False

    @property
    def epochs_trained(self) -> int:
        return sum(1 for record in self.records if record.epoch > 0)
