"""Pure in-memory synthetic classification data."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from .samples import VectorSample, samples_from_arrays


def make_blobs(
    n_per_class: int = 50,
    centers: "np.ndarray | None" = None,
    spread: float = 0.4,
    seed: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Gaussian clusters around ``centers``; returns shuffled ``(inputs, labels)``."""

    rng = np.random.default_rng(seed)
    if centers is None:
        centers = np.array([[2.0, 2.0], [-2.0, -2.0], [2.0, -2.0]])
    centers = np.asarray(centers, dtype=np.float64)
    inputs = []
    labels = []
    for idx, center in enumerate(centers):
        inputs.append(center + spread * rng.standard_normal((n_per_class, centers.shape[1])))
        labels.append(np.full(n_per_class, idx, dtype=np.int64))
    X = np.vstack(inputs)
    y = np.concatenate(labels)
    order = rng.permutation(X.shape[0])
    return X[order], y[order]


def blob_samples(
    n_per_class: int = 50,
    centers: "np.ndarray | None" = None,
    spread: float = 0.4,
    seed: int = 0,
) -> List[VectorSample]:
    X, y = make_blobs(n_per_class, centers=centers, spread=spread, seed=seed)
    num_classes = int(y.max()) + 1 if y.size else 0
    return samples_from_arrays(X, y.tolist(), num_classes)
