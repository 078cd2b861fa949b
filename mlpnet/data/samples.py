"""Reference sample type for one-hot classification problems."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..core.types import Array


@dataclass(frozen=True, eq=False)
class VectorSample:
    """A feature vector with an integer class label.

    The expected output is the one-hot encoding of ``label`` and a network
    output maps back to the index of its largest activation.
    """

    features: Array
    label: int
    num_classes: int
    _expected: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0 <= self.label < self.num_classes:
            raise ValueError(f"label {self.label} outside [0, {self.num_classes})")
        features = np.asarray(self.features, dtype=np.float64).reshape(-1)
        expected = np.zeros(self.num_classes, dtype=np.float64)
        expected[self.label] = 1.0
        object.__setattr__(self, "features", features)
        object.__setattr__(self, "_expected", expected)

    def as_input(self) -> Array:
        return self.features

    def expected_output(self) -> Array:
        return self._expected

    def to_label(self, output: Array) -> int:
        return int(np.argmax(output))


def samples_from_arrays(
    inputs: Array, labels: Sequence[int], num_classes: int
) -> List[VectorSample]:
    """Wrap the rows of ``inputs`` and matching ``labels`` as samples."""

    inputs = np.asarray(inputs, dtype=np.float64)
    if inputs.shape[0] != len(labels):
        raise ValueError(f"{inputs.shape[0]} input rows but {len(labels)} labels")
    return [
        VectorSample(features=row, label=int(label), num_classes=num_classes)
        for row, label in zip(inputs, labels)
    ]
